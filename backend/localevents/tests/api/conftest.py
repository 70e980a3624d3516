from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from localevents.api.main import create_app
from localevents.services.explore_session import ExploreSession


@pytest.fixture()
def session(catalog, geocoder, router, tiles):
    return ExploreSession(catalog, geocoder=geocoder, router=router, tiles=tiles)


@pytest.fixture()
def api_client(session):
    app = create_app(session=session)
    with TestClient(app) as client:
        yield client
