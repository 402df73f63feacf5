"""Pydantic models for KB operations."""
import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_TOP_K = 1
MAX_TOP_K = 20
DEFAULT_TOP_K = 5


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON (either accepted on input)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadInput(BaseModel):
    """A file received by the upload endpoint."""
    filename: str
    mime_type: str = ""
    content: bytes


class KBDocument(CamelModel):
    """Public summary of an ingested document."""
    id: str
    title: str
    created_at: datetime
    chunk_count: int = Field(ge=1)


class KBDocumentRecord(KBDocument):
    """Registry entry for an ingested document; file_path stays internal."""
    file_path: str

    def to_summary(self) -> KBDocument:
        return KBDocument(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            chunk_count=self.chunk_count,
        )


class StoredChunk(BaseModel):
    """A chunk of document text with its embedding, as written to a vector store."""
    chunk_id: str  # "<doc_id>:<index>"
    doc_id: str
    doc_title: str
    text: str
    embedding: list[float]


class VectorSearchResult(BaseModel):
    """Single nearest-neighbour hit returned by a vector store."""
    chunk_id: str
    doc_id: str
    doc_title: str
    text: str
    score: float


class KBSearchRequest(CamelModel):
    """Request model for KB search."""
    query: str
    top_k: int = Field(default=DEFAULT_TOP_K, ge=MIN_TOP_K, le=MAX_TOP_K)

    @field_validator("top_k", mode="before")
    @classmethod
    def clamp_top_k(cls, value: Any) -> Any:
        # Numbers are floored and clamped into range instead of rejected
        if value is None:
            return DEFAULT_TOP_K
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValueError("topK must be a number")
        if not math.isfinite(value):
            raise ValueError("topK must be finite")
        return max(MIN_TOP_K, min(MAX_TOP_K, math.floor(value)))


class KBSearchResult(CamelModel):
    """Single search result."""
    doc_id: str
    doc_title: str
    chunk_id: str
    snippet: str
    score: float


class KBSearchResponse(BaseModel):
    """Response model for KB search."""
    results: list[KBSearchResult]


class KBUploadResponse(BaseModel):
    """Response model for KB document upload."""
    ok: bool = True
    doc: KBDocument


class KBDocListResponse(BaseModel):
    """Response model for listing KB documents."""
    docs: list[KBDocument]


class KBDeleteResponse(BaseModel):
    ok: bool = True
