"""In-memory session state registry keyed by room name."""
import logging
import threading
from datetime import datetime, timezone

from app.session.models import SessionSource, SessionState

logger = logging.getLogger(__name__)


class SessionStateStore:
    """
    Keeps the most recent session state per room for the process lifetime.

    Upserts merge onto the previous state under a lock, so concurrent
    writers for the same room never lose each other's fields.
    """

    def __init__(self):
        self._states: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def get(self, room_name: str) -> SessionState | None:
        with self._lock:
            return self._states.get(room_name)

    def upsert(
        self,
        room_name: str,
        sources: list[SessionSource] | None = None,
        last_answer: str | None = None,
    ) -> SessionState:
        """
        Merge the supplied fields onto the room's previous state.

        Fields passed as None keep their previous value (an empty source
        list and no answer for a new room). updated_at is always refreshed.
        """
        with self._lock:
            current = self._states.get(room_name)

            state = SessionState(
                room_name=room_name,
                updated_at=datetime.now(timezone.utc),
                sources=list(sources) if sources is not None else (list(current.sources) if current else []),
                last_answer=last_answer if last_answer is not None else (current.last_answer if current else None),
            )
            self._states[room_name] = state

        logger.debug(
            "Session state updated",
            extra={
                "room_name": room_name,
                "source_count": len(state.sources),
                "has_last_answer": state.last_answer is not None,
            },
        )
        return state
