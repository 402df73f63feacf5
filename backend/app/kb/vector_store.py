"""Vector store interface, in-process backend and backend selection."""
import logging
import math
import threading
from abc import ABC, abstractmethod
from typing import Sequence

from app.kb.models import StoredChunk, VectorSearchResult

logger = logging.getLogger(__name__)


class VectorStore(ABC):
    """Abstract base for chunk vector stores."""

    @abstractmethod
    def add_chunks(self, chunks: list[StoredChunk]) -> None:
        """Upsert chunks by chunk_id. No-op on empty input."""
        ...

    @abstractmethod
    def search(self, query_vector: list[float], top_k: int) -> list[VectorSearchResult]:
        """Return at most top_k hits, ordered by descending score."""
        ...

    @abstractmethod
    def delete_by_doc_id(self, doc_id: str) -> None:
        """Remove every chunk belonging to doc_id. No-op if none match."""
        ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the overlapping prefix of two vectors.

    Returns 0.0 when the overlap is empty or either vector has zero norm.
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(length):
        dot += a[i] * b[i]
        norm_a += a[i] * a[i]
        norm_b += b[i] * b[i]

    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Clamp float rounding so identical vectors never exceed 1.0
    return max(-1.0, min(1.0, dot / (math.sqrt(norm_a) * math.sqrt(norm_b))))


class InMemoryVectorStore(VectorStore):
    """Process-local chunk registry scanned linearly with cosine similarity."""

    def __init__(self):
        self._chunks: dict[str, StoredChunk] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._chunks)

    def add_chunks(self, chunks: list[StoredChunk]) -> None:
        with self._lock:
            for chunk in chunks:
                self._chunks[chunk.chunk_id] = chunk

    def search(self, query_vector: list[float], top_k: int) -> list[VectorSearchResult]:
        with self._lock:
            candidates = list(self._chunks.values())

        results = [
            VectorSearchResult(
                chunk_id=chunk.chunk_id,
                doc_id=chunk.doc_id,
                doc_title=chunk.doc_title,
                text=chunk.text,
                score=cosine_similarity(query_vector, chunk.embedding),
            )
            for chunk in candidates
        ]

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:max(top_k, 0)]

    def delete_by_doc_id(self, doc_id: str) -> None:
        with self._lock:
            stale = [chunk_id for chunk_id, chunk in self._chunks.items() if chunk.doc_id == doc_id]
            for chunk_id in stale:
                del self._chunks[chunk_id]


def create_vector_store(
    qdrant_url: str,
    collection_name: str,
    vector_size: int,
    qdrant_api_key: str | None = None,
    backend: str = "auto",
) -> tuple[VectorStore, str]:
    """
    Pick the vector store backend once, at start-up.

    Tries Qdrant first; any initialization failure falls back to the
    in-memory store. Returns the store and the backend name
    ("qdrant" or "memory").
    """
    if backend == "memory":
        logger.info("Vector store backend forced to in-memory")
        return InMemoryVectorStore(), "memory"

    # app.kb.client imports VectorStore from this module
    from app.kb.client import QdrantVectorStore

    try:
        store = QdrantVectorStore(
            url=qdrant_url,
            collection_name=collection_name,
            vector_size=vector_size,
            api_key=qdrant_api_key,
        )
        store.initialize()
    except Exception as e:
        logger.warning(f"Qdrant unavailable at {qdrant_url}, using in-memory vector store: {e}")
        return InMemoryVectorStore(), "memory"

    return store, "qdrant"
