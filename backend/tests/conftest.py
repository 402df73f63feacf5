"""Pytest configuration and shared fixtures."""

import os
import re
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.update({
    "OPENAI_API_KEY": "sk-test-key",
    "QDRANT_URL": "http://localhost:6333",
    "VECTOR_STORE_BACKEND": "memory",
    "OTEL_TRACES_EXPORTER": "none",
    "MAX_UPLOAD_SIZE_MB": "1",
})

from app.agent_config.store import AgentConfigStore  # noqa: E402
from app.kb.embeddings import Embedder  # noqa: E402
from app.kb.service import KBService  # noqa: E402
from app.kb.vector_store import InMemoryVectorStore  # noqa: E402
from app.session.store import SessionStateStore  # noqa: E402

VOCABULARY = ["apple", "banana", "cherry", "engine", "voice", "refund"]


class KeywordEmbedder(Embedder):
    """Deterministic embedder: one dimension per vocabulary word, counting occurrences."""

    def __init__(self):
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            words = re.findall(r"[a-z]+", text.lower())
            vectors.append([float(words.count(term)) for term in VOCABULARY])
        return vectors


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def kb_service(vector_store: InMemoryVectorStore, embedder: KeywordEmbedder, upload_dir: Path) -> KBService:
    return KBService(vector_store, embedder, upload_dir)


@pytest.fixture
def session_store() -> SessionStateStore:
    return SessionStateStore()


@pytest.fixture
def agent_config_store() -> AgentConfigStore:
    return AgentConfigStore()


@pytest.fixture
def client(
    kb_service: KBService,
    session_store: SessionStateStore,
    agent_config_store: AgentConfigStore,
) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to in-memory services (lifespan is not run)."""
    from app.api.deps import get_agent_config_store, get_kb_service, get_session_store
    from app.main import app

    app.dependency_overrides[get_kb_service] = lambda: kb_service
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_agent_config_store] = lambda: agent_config_store

    yield TestClient(app)

    app.dependency_overrides.clear()
