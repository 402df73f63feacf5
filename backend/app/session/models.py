"""Pydantic models for session state."""
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from app.kb.models import CamelModel


class SessionSource(CamelModel):
    """Lightweight reference to a chunk the agent used for a turn."""
    doc_id: str
    doc_title: str
    chunk_id: str
    snippet: str


class SessionState(CamelModel):
    """Latest retrieval sources and answer for one room."""
    room_name: str
    updated_at: datetime
    sources: list[SessionSource] = Field(default_factory=list)
    last_answer: str | None = None


class SessionStateUpdate(CamelModel):
    """Request model for a session state upsert; omitted fields carry forward."""
    sources: list[SessionSource] | None = None
    last_answer: str | None = None

    @field_validator("sources", "last_answer", mode="before")
    @classmethod
    def reject_explicit_null(cls, value: Any) -> Any:
        # Omit a field to keep its value; null is not accepted
        if value is None:
            raise ValueError("must not be null")
        return value
