import logging
import os

from localevents.api.main import app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", "8000"))
    logger.info("Serving local events map on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
