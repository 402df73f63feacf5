"""Session state API routes polled by the UI and written by the agent."""

import logging
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_session_store
from app.session.models import SessionState, SessionStateUpdate
from app.session.store import SessionStateStore

logger = logging.getLogger(__name__)

session_router = APIRouter(prefix="/session", tags=["session"])


@session_router.get("/{room_name}/state", response_model=SessionState)
def get_session_state(
    room_name: str,
    session_store: SessionStateStore = Depends(get_session_store),
) -> SessionState:
    """Get the latest sources and answer recorded for a room."""
    state = session_store.get(room_name)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found.")

    return state


@session_router.post("/{room_name}/state", response_model=SessionState)
def upsert_session_state(
    room_name: str,
    update: SessionStateUpdate,
    session_store: SessionStateStore = Depends(get_session_store),
) -> SessionState:
    """
    Merge sources and/or lastAnswer into a room's state.

    Omitted fields keep their previous values.
    """
    logger.info(
        "Updating session state",
        extra={
            "room_name": room_name,
            "source_count": len(update.sources) if update.sources is not None else None,
            "has_last_answer": update.last_answer is not None,
        },
    )

    return session_store.upsert(
        room_name,
        sources=update.sources,
        last_answer=update.last_answer,
    )
