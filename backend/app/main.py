import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.tracing import setup_tracing
from app.api.api_router import api_router
from app.kb.embeddings import OpenAIEmbedder
from app.kb.service import KBService
from app.kb.vector_store import create_vector_store
from app.agent_config.store import AgentConfigStore
from app.session.store import SessionStateStore

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_tracing()

    # Backend is chosen once here and injected into the service
    vector_store, backend = create_vector_store(
        qdrant_url=settings.QDRANT_URL,
        collection_name=settings.QDRANT_COLLECTION_NAME,
        vector_size=settings.EMBEDDING_DIMENSIONS,
        qdrant_api_key=settings.QDRANT_API_KEY,
        backend=settings.VECTOR_STORE_BACKEND,
    )
    logger.info(f"KB vector store backend: {backend}")

    embedder = OpenAIEmbedder(
        api_key=settings.OPENAI_API_KEY,
        model=settings.EMBEDDING_MODEL,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
    )

    app.state.vector_store_backend = backend
    app.state.kb_service = KBService(vector_store, embedder, settings.UPLOAD_DIR)
    app.state.session_store = SessionStateStore()
    app.state.agent_config_store = AgentConfigStore(settings.AGENT_SYSTEM_PROMPT)

    yield

    # Shutdown


app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALL_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request payloads as 400 rather than 422."""
    logger.info(f"Rejected invalid payload for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid payload.", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/healthz")
async def health_check(request: Request):
    """Health check endpoint reporting which vector store backend is active."""
    backend = getattr(request.app.state, "vector_store_backend", None)
    return {
        "status": "healthy" if backend else "starting",
        "services": {
            "vector_store": backend or "unknown",
        },
    }


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
