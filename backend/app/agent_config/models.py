"""Pydantic models for the agent prompt configuration."""
from datetime import datetime

from app.kb.models import CamelModel


class PromptConfig(CamelModel):
    """Current system prompt and when it was last set."""
    system_prompt: str
    updated_at: datetime


class PromptConfigUpdate(CamelModel):
    """Request model for replacing the system prompt."""
    system_prompt: str


class PromptConfigResponse(CamelModel):
    config: PromptConfig


class PromptConfigUpdateResponse(CamelModel):
    ok: bool = True
    config: PromptConfig
