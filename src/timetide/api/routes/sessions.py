"""Session payload routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from timetide.auth.dependencies import get_session
from timetide.auth.session import Session

router = APIRouter()


class SessionResponse(BaseModel):
    """Current session payload."""

    new: bool
    data: dict[str, Any]


def _response(session: Session) -> SessionResponse:
    return SessionResponse(new=session.is_new, data=session.to_dict())


@router.get("/current", response_model=SessionResponse)
async def get_current_session(session: Session = Depends(get_session)) -> SessionResponse:
    return _response(session)


@router.patch("/current", response_model=SessionResponse)
async def update_current_session(
    data: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
) -> SessionResponse:
    """Merge keys into the session payload."""
    session.update(data)
    return _response(session)


@router.delete("/current", response_model=SessionResponse)
async def clear_current_session(session: Session = Depends(get_session)) -> SessionResponse:
    """Remove every key from the session payload.

    The session ID is kept; the stored record is deleted.
    """
    session.clear()
    return _response(session)
