from fastapi import APIRouter
from app.api.routes.agent_config import agent_config_router
from app.api.routes.kb import kb_router
from app.api.routes.session import session_router

api_router = APIRouter()

api_router.include_router(kb_router)
api_router.include_router(session_router)
api_router.include_router(agent_config_router)
