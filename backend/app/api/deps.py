"""FastAPI dependencies exposing the services built at start-up."""
from fastapi import HTTPException, Request

from app.agent_config.store import AgentConfigStore
from app.kb.service import KBService
from app.session.store import SessionStateStore


def get_kb_service(request: Request) -> KBService:
    kb_service = getattr(request.app.state, "kb_service", None)
    if kb_service is None:
        raise HTTPException(status_code=503, detail="Knowledge base is not initialized")
    return kb_service


def get_session_store(request: Request) -> SessionStateStore:
    session_store = getattr(request.app.state, "session_store", None)
    if session_store is None:
        raise HTTPException(status_code=503, detail="Session store is not initialized")
    return session_store


def get_agent_config_store(request: Request) -> AgentConfigStore:
    config_store = getattr(request.app.state, "agent_config_store", None)
    if config_store is None:
        raise HTTPException(status_code=503, detail="Agent config store is not initialized")
    return config_store
