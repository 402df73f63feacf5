"""Qdrant client initialization, collection management and vector store backend."""
import logging
import threading
import uuid

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from app.kb.models import StoredChunk, VectorSearchResult
from app.kb.vector_store import VectorStore

logger = logging.getLogger(__name__)

REQUIRED_PAYLOAD_FIELDS = ("chunk_id", "doc_id", "doc_title")


def create_qdrant_client(url: str, api_key: str | None = None) -> QdrantClient:
    """Create a Qdrant client instance."""
    logger.info(f"Initializing Qdrant client: {url}")
    return QdrantClient(
        url=url,
        api_key=api_key if api_key else None,
    )


def ensure_collection_exists(
    client: QdrantClient,
    collection_name: str,
    vector_size: int = 1536,  # OpenAI text-embedding-3-small dimension
) -> None:
    """
    Ensure Qdrant collection exists with proper configuration.

    New collections use cosine distance and get a keyword index on doc_id
    so deletes by document stay cheap.

    Args:
        client: Qdrant client
        collection_name: Name of collection
        vector_size: Dimension of embedding vectors
    """
    collections = client.get_collections().collections
    exists = any(c.name == collection_name for c in collections)

    if not exists:
        logger.info(f"Creating Qdrant collection: {collection_name}")
        client.create_collection(
            collection_name=collection_name,
            vectors_config=VectorParams(
                size=vector_size,
                distance=Distance.COSINE,
            ),
        )
        client.create_payload_index(
            collection_name=collection_name,
            field_name="doc_id",
            field_schema=PayloadSchemaType.KEYWORD,
        )
        logger.info(f"Collection '{collection_name}' created successfully")
    else:
        logger.info(f"Collection '{collection_name}' already exists")


def point_id_for_chunk(chunk_id: str) -> str:
    """Stable Qdrant point id for a chunk id (same chunk id = same point)."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, chunk_id))


class QdrantVectorStore(VectorStore):
    """Vector store backed by a Qdrant collection."""

    def __init__(
        self,
        url: str,
        collection_name: str,
        vector_size: int = 1536,
        api_key: str | None = None,
        client: QdrantClient | None = None,
    ):
        self._url = url
        self._api_key = api_key
        self._collection_name = collection_name
        self._vector_size = vector_size
        self._client = client
        self._ready = False
        self._init_lock = threading.Lock()

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def initialize(self) -> QdrantClient:
        """Connect and ensure the collection exists; runs once per instance."""
        if self._ready:
            return self._client

        with self._init_lock:
            if not self._ready:
                if self._client is None:
                    self._client = create_qdrant_client(self._url, self._api_key)
                ensure_collection_exists(self._client, self._collection_name, self._vector_size)
                self._ready = True

        return self._client

    def add_chunks(self, chunks: list[StoredChunk]) -> None:
        if not chunks:
            return

        client = self.initialize()
        points = [
            PointStruct(
                id=point_id_for_chunk(chunk.chunk_id),
                vector=chunk.embedding,
                payload={
                    "chunk_id": chunk.chunk_id,
                    "doc_id": chunk.doc_id,
                    "doc_title": chunk.doc_title,
                    "text": chunk.text,
                },
            )
            for chunk in chunks
        ]

        logger.info(f"Upserting {len(points)} points to Qdrant collection '{self._collection_name}'")
        client.upsert(
            collection_name=self._collection_name,
            points=points,
            wait=True,
        )

    def search(self, query_vector: list[float], top_k: int) -> list[VectorSearchResult]:
        client = self.initialize()

        response = client.query_points(
            collection_name=self._collection_name,
            query=query_vector,
            limit=top_k,
            with_payload=True,
            with_vectors=False,
        )

        results = []
        for hit in response.points:
            payload = hit.payload or {}
            if not all(isinstance(payload.get(field), str) for field in REQUIRED_PAYLOAD_FIELDS):
                continue

            # Cosine collections report similarity directly (higher = closer)
            results.append(VectorSearchResult(
                chunk_id=payload["chunk_id"],
                doc_id=payload["doc_id"],
                doc_title=payload["doc_title"],
                text=payload.get("text") or "",
                score=hit.score,
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    def delete_by_doc_id(self, doc_id: str) -> None:
        client = self.initialize()

        logger.info(f"Deleting chunks for doc_id={doc_id} from '{self._collection_name}'")
        client.delete(
            collection_name=self._collection_name,
            points_selector=FilterSelector(
                filter=Filter(
                    must=[
                        FieldCondition(
                            key="doc_id",
                            match=MatchValue(value=doc_id),
                        )
                    ]
                )
            ),
            wait=True,
        )
