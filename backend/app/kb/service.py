"""Knowledge base ingestion, listing, deletion and search."""
import logging
import os
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from opentelemetry.trace import Status, StatusCode

from app.core.tracing import get_tracer, safe_span_attributes
from app.kb.chunker import chunk_text
from app.kb.embeddings import Embedder
from app.kb.errors import (
    EmbeddingFailedError,
    EmptyDocumentError,
    InvalidQueryError,
    UnsupportedFileTypeError,
    VectorStoreFailedError,
)
from app.kb.extract import FileKind, extract_text
from app.kb.models import (
    DEFAULT_TOP_K,
    KBDocument,
    KBDocumentRecord,
    KBSearchResult,
    StoredChunk,
    UploadInput,
)
from app.kb.vector_store import VectorStore

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200
SNIPPET_MAX_CHARS = 240

MIME_KINDS = {
    "application/pdf": FileKind.PDF,
    "text/plain": FileKind.TXT,
}


def detect_file_kind(filename: str, mime_type: str | None) -> FileKind:
    """
    Resolve the file kind from the extension, then from the MIME type.

    Raises:
        UnsupportedFileTypeError: If neither identifies a PDF or TXT file
    """
    extension = os.path.splitext(filename)[1].lower()
    for kind in FileKind:
        if extension == kind.value:
            return kind

    mime_kind = MIME_KINDS.get((mime_type or "").split(";")[0].strip().lower())
    if mime_kind is not None:
        return mime_kind

    raise UnsupportedFileTypeError()


def make_snippet(text: str) -> str:
    """Collapse whitespace and hard-cut to SNIPPET_MAX_CHARS characters."""
    return re.sub(r"\s+", " ", text).strip()[:SNIPPET_MAX_CHARS]


class KBService:
    """
    Orchestrates extraction, chunking, embedding and storage of documents.

    The service owns the in-memory document registry; chunks live in the
    vector store it was constructed with. Registry contents do not survive
    a restart.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        upload_dir: str | Path,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
    ):
        self._vector_store = vector_store
        self._embedder = embedder
        self._upload_dir = Path(upload_dir)
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._docs: dict[str, KBDocumentRecord] = {}
        self._lock = threading.Lock()

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def upload(self, file: UploadInput) -> KBDocument:
        """
        Ingest one file: extract, chunk, embed, store, persist, register.

        The document is registered only after its chunks are in the vector
        store and its bytes are on disk, so a listed document is always
        searchable.

        Args:
            file: Uploaded file name, declared MIME type and raw bytes

        Returns:
            Summary of the registered document

        Raises:
            UnsupportedFileTypeError: Not a PDF or TXT file
            EmptyDocumentError: No text could be extracted
            EmbeddingFailedError: Embedding call failed or returned the wrong count
            VectorStoreFailedError: Chunks could not be written
        """
        title = os.path.basename((file.filename or "").replace("\\", "/")) or "document"

        with tracer.start_as_current_span("kb.upload") as span:
            span.set_attributes(safe_span_attributes(
                title=title,
                mime_type=file.mime_type,
                size_bytes=len(file.content),
            ))

            try:
                kind = detect_file_kind(title, file.mime_type)

                logger.info(f"Processing KB upload: file={title}, kind={kind.name}, bytes={len(file.content)}")
                text = extract_text(file.content, kind)
                if not text.strip():
                    raise EmptyDocumentError()

                chunks = chunk_text(text, chunk_size=self._chunk_size, chunk_overlap=self._chunk_overlap)
                if not chunks:
                    raise EmptyDocumentError()

                doc_id = str(uuid.uuid4())
                created_at = datetime.now(timezone.utc)

                try:
                    embeddings = self._embedder.embed_texts([c.content for c in chunks])
                except Exception as e:
                    raise EmbeddingFailedError(str(e) or e.__class__.__name__) from e

                if len(embeddings) != len(chunks):
                    logger.error(f"Embedding count mismatch: {len(embeddings)} embeddings for {len(chunks)} chunks")
                    raise EmbeddingFailedError()

                stored_chunks = [
                    StoredChunk(
                        chunk_id=f"{doc_id}:{chunk.index}",
                        doc_id=doc_id,
                        doc_title=title,
                        text=chunk.content,
                        embedding=embedding,
                    )
                    for chunk, embedding in zip(chunks, embeddings)
                ]

                try:
                    self._vector_store.add_chunks(stored_chunks)
                except Exception as e:
                    raise VectorStoreFailedError(str(e) or e.__class__.__name__) from e

                # Only written once the vectors are stored
                self._upload_dir.mkdir(parents=True, exist_ok=True)
                file_path = self._upload_dir / f"{doc_id}{kind.value}"
                file_path.write_bytes(file.content)

                record = KBDocumentRecord(
                    id=doc_id,
                    title=title,
                    created_at=created_at,
                    chunk_count=len(stored_chunks),
                    file_path=str(file_path),
                )
                with self._lock:
                    self._docs[doc_id] = record

            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            span.set_attributes(safe_span_attributes(doc_id=doc_id, chunk_count=record.chunk_count))
            logger.info(f"KB upload complete: doc_id={doc_id}, chunks={record.chunk_count}")
            return record.to_summary()

    def list_docs(self) -> list[KBDocument]:
        """All registered documents, most recently created first."""
        with self._lock:
            records = list(self._docs.values())

        records.sort(key=lambda r: r.created_at, reverse=True)
        return [r.to_summary() for r in records]

    def get_doc(self, doc_id: str) -> KBDocument | None:
        with self._lock:
            record = self._docs.get(doc_id)
        return record.to_summary() if record else None

    def delete_doc(self, doc_id: str) -> bool:
        """
        Delete a document's chunks, registry entry and stored files.

        File removal is best-effort: failures are logged and do not change
        the result.

        Returns:
            False if the document is unknown, True otherwise
        """
        with self._lock:
            record = self._docs.get(doc_id)
        if record is None:
            return False

        with tracer.start_as_current_span("kb.delete") as span:
            span.set_attributes(safe_span_attributes(doc_id=doc_id))

            self._vector_store.delete_by_doc_id(doc_id)
            with self._lock:
                self._docs.pop(doc_id, None)

            self._remove_file(Path(record.file_path))
            if self._upload_dir.is_dir():
                try:
                    leftovers = [p for p in self._upload_dir.iterdir() if p.name.startswith(doc_id)]
                except OSError as e:
                    logger.warning(f"Could not scan upload dir {self._upload_dir}: {e}")
                    leftovers = []
                for path in leftovers:
                    self._remove_file(path)

        logger.info(f"Deleted KB document {doc_id}")
        return True

    def _remove_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove stored file {path}: {e}")

    def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[KBSearchResult]:
        """
        Semantic search over all stored chunks.

        Args:
            query: Search query text
            top_k: Maximum number of results

        Returns:
            Results ordered by descending score

        Raises:
            InvalidQueryError: If the query is empty after trimming
        """
        cleaned = (query or "").strip()
        if not cleaned:
            raise InvalidQueryError()

        with tracer.start_as_current_span("kb.search") as span:
            span.set_attributes(safe_span_attributes(query=cleaned, top_k=top_k))

            try:
                query_vector = self._embedder.embed_query(cleaned)
                hits = self._vector_store.search(query_vector, top_k)
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            results = [
                KBSearchResult(
                    doc_id=hit.doc_id,
                    doc_title=hit.doc_title,
                    chunk_id=hit.chunk_id,
                    snippet=make_snippet(hit.text),
                    score=hit.score,
                )
                for hit in hits
            ]

            span.set_attributes(safe_span_attributes(result_count=len(results)))

        logger.info(f"KB search: query_len={len(cleaned)}, top_k={top_k}, results={len(results)}")
        return results
