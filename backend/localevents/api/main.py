from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from localevents.api.routers import event_map, events, geo, health
from localevents.config import get_frontend_origin
from localevents.services.explore_session import ExploreSession


def create_app(session: ExploreSession | None = None) -> FastAPI:
    app = FastAPI(title="Local Events API", version="0.1.0")
    app.state.session = session if session is not None else ExploreSession()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[get_frontend_origin()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(events.router, prefix="/api")
    app.include_router(geo.router, prefix="/api")
    app.include_router(event_map.router)

    return app


app = create_app()
