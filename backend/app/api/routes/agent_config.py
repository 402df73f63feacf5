"""Agent prompt configuration routes."""

import logging
from fastapi import APIRouter, Depends, HTTPException

from app.agent_config.models import (
    PromptConfigResponse,
    PromptConfigUpdate,
    PromptConfigUpdateResponse,
)
from app.agent_config.store import AgentConfigStore, normalize_system_prompt
from app.api.deps import get_agent_config_store

logger = logging.getLogger(__name__)

agent_config_router = APIRouter(prefix="/agent", tags=["agent-config"])

INVALID_PROMPT_PAYLOAD = "Invalid payload. Expected JSON body with non-empty { systemPrompt }."


@agent_config_router.get("/config", response_model=PromptConfigResponse)
def get_agent_config(
    config_store: AgentConfigStore = Depends(get_agent_config_store),
) -> PromptConfigResponse:
    """Get the system prompt the agent currently uses."""
    return PromptConfigResponse(config=config_store.get())


@agent_config_router.post("/config", response_model=PromptConfigUpdateResponse)
def update_agent_config(
    update: PromptConfigUpdate,
    config_store: AgentConfigStore = Depends(get_agent_config_store),
) -> PromptConfigUpdateResponse:
    """Replace the system prompt; the agent picks it up on its next turn."""
    if not normalize_system_prompt(update.system_prompt):
        raise HTTPException(status_code=400, detail=INVALID_PROMPT_PAYLOAD)

    return PromptConfigUpdateResponse(config=config_store.set(update.system_prompt))
