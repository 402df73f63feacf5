"""Knowledge Base API routes for upload, listing, deletion and search."""
import logging
from fastapi import APIRouter, Depends, File, UploadFile, HTTPException
from PyPDF2.errors import PdfReadError
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_kb_service
from app.core.config import settings
from app.kb.errors import (
    EmbeddingFailedError,
    EmptyDocumentError,
    InvalidQueryError,
    UnsupportedFileTypeError,
    VectorStoreFailedError,
)
from app.kb.models import (
    KBDeleteResponse,
    KBDocListResponse,
    KBSearchRequest,
    KBSearchResponse,
    KBUploadResponse,
    UploadInput,
)
from app.kb.service import KBService

logger = logging.getLogger(__name__)

kb_router = APIRouter(prefix="/kb", tags=["knowledge-base"])

INVALID_SEARCH_PAYLOAD = "Invalid payload. Expected JSON body with { query, topK? }."


@kb_router.post("/upload", response_model=KBUploadResponse)
async def upload_kb_document(
    file: UploadFile = File(...),
    kb_service: KBService = Depends(get_kb_service),
) -> KBUploadResponse:
    """
    Upload a document to the KB.

    Supports PDF and TXT files. Extracts the text, chunks it, embeds the
    chunks and stores them in the vector store.

    Returns:
        The registered document summary
    """
    # At most one byte past the limit is read
    binary_content = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    file_name = file.filename or "document"

    if len(binary_content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB.",
        )

    if not binary_content:
        raise HTTPException(status_code=400, detail="Invalid file upload. Expected one non-empty file.")

    upload = UploadInput(
        filename=file_name,
        mime_type=file.content_type or "",
        content=binary_content,
    )

    try:
        doc = await run_in_threadpool(kb_service.upload, upload)

    except UnsupportedFileTypeError:
        raise HTTPException(status_code=400, detail="Invalid file. Supported file types are .pdf and .txt.")

    except (EmptyDocumentError, PdfReadError) as e:
        logger.warning(f"No text extracted from {file_name}: {e}")
        raise HTTPException(status_code=400, detail="Invalid file. Could not extract text.")

    except EmbeddingFailedError as e:
        logger.error(f"KB upload failed: {e.message}")
        raise HTTPException(
            status_code=500,
            detail="Embedding failed. Check OPENAI_API_KEY and embedding model access.",
        )

    except VectorStoreFailedError as e:
        logger.error(f"KB upload failed: {e.message}")
        raise HTTPException(
            status_code=500,
            detail="Vector store write failed. Check QDRANT_URL/QDRANT_COLLECTION_NAME and Qdrant server status.",
        )

    except Exception as e:
        logger.exception(f"Failed to upload document to KB: {e}")
        raise HTTPException(status_code=500, detail="Failed to process and store document.")

    return KBUploadResponse(doc=doc)


@kb_router.get("/docs", response_model=KBDocListResponse)
def list_kb_documents(kb_service: KBService = Depends(get_kb_service)) -> KBDocListResponse:
    """List ingested documents, most recent first."""
    return KBDocListResponse(docs=kb_service.list_docs())


@kb_router.delete("/docs/{doc_id}", response_model=KBDeleteResponse)
def delete_kb_document(
    doc_id: str,
    kb_service: KBService = Depends(get_kb_service),
) -> KBDeleteResponse:
    """Delete a document, its chunks and its stored file."""
    if not kb_service.delete_doc(doc_id):
        raise HTTPException(status_code=404, detail="Document not found.")

    return KBDeleteResponse()


@kb_router.post("/search", response_model=KBSearchResponse)
def search_kb_endpoint(
    request: KBSearchRequest,
    kb_service: KBService = Depends(get_kb_service),
) -> KBSearchResponse:
    """
    Search the KB for relevant chunks.

    Returns:
        Results with snippets, ordered by descending relevance score
    """
    if not request.query.strip():
        raise HTTPException(status_code=400, detail=INVALID_SEARCH_PAYLOAD)

    try:
        results = kb_service.search(request.query, top_k=request.top_k)

    except InvalidQueryError:
        raise HTTPException(status_code=400, detail=INVALID_SEARCH_PAYLOAD)

    except Exception as e:
        logger.exception(f"KB search failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to search knowledge base.")

    return KBSearchResponse(results=results)
