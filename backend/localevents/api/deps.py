from __future__ import annotations

from fastapi import HTTPException, Request

from localevents.services.explore_session import ExploreSession


def get_session(request: Request) -> ExploreSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=500, detail="Explore session not configured")
    return session
