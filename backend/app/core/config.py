from typing import Annotated, Any, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field, AnyUrl, BeforeValidator


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    APP_NAME: str = "Voice Agent KB"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Initial agent system prompt (editable at runtime via /agent/config)
    AGENT_SYSTEM_PROMPT: str = "You are a helpful voice AI assistant."

    # OpenAI embeddings
    OPENAI_API_KEY: str
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 1536  # text-embedding-3-small output size
    EMBEDDING_BATCH_SIZE: int = 100

    # Qdrant vector database (falls back to in-process store when unreachable)
    QDRANT_URL: str = "http://localhost:6333"
    QDRANT_API_KEY: str = ""
    QDRANT_COLLECTION_NAME: str = "voice_agent_kb"
    VECTOR_STORE_BACKEND: Literal["auto", "memory"] = "auto"

    # Uploaded document storage
    UPLOAD_DIR: str = "storage/uploads"
    MAX_UPLOAD_SIZE_MB: int = 20

    @computed_field  # type: ignore[prop-decorator]
    @property
    def MAX_UPLOAD_SIZE(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    FRONTEND_HOST: str = "http://localhost:5173"
    BACKEND_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_cors)] = [
        "http://localhost:8000"
    ]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ALL_CORS_ORIGINS(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
