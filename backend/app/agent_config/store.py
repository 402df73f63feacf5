"""In-memory store for the agent system prompt."""
import logging
import threading
from datetime import datetime, timezone

from app.agent_config.models import PromptConfig

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful voice AI assistant."


def normalize_system_prompt(value: str) -> str:
    """Convert CRLF line endings to \\n and trim surrounding whitespace."""
    return value.replace("\r\n", "\n").strip()


class AgentConfigStore:
    """
    Keeps the single prompt configuration for the process lifetime.

    A blank initial prompt falls back to DEFAULT_SYSTEM_PROMPT.
    """

    def __init__(self, initial_prompt: str = DEFAULT_SYSTEM_PROMPT):
        self._config = PromptConfig(
            system_prompt=normalize_system_prompt(initial_prompt) or DEFAULT_SYSTEM_PROMPT,
            updated_at=datetime.now(timezone.utc),
        )
        self._lock = threading.Lock()

    def get(self) -> PromptConfig:
        with self._lock:
            return self._config

    def set(self, system_prompt: str) -> PromptConfig:
        """Replace the prompt (normalized) and refresh updated_at."""
        config = PromptConfig(
            system_prompt=normalize_system_prompt(system_prompt),
            updated_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._config = config

        logger.info("System prompt updated", extra={"prompt_length": len(config.system_prompt)})
        return config
