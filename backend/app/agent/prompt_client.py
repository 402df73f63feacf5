"""HTTP client the agent uses to read the current system prompt."""

import logging
import time
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from app.agent_config.models import PromptConfig
from app.agent_config.store import DEFAULT_SYSTEM_PROMPT, normalize_system_prompt

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3.0
DEFAULT_TIMEOUT = 10.0


class PromptConfigClient:
    """
    Calls GET /agent/config on the API server, caching the result for a short TTL.

    On failure the last good config is reused; with no cache yet, the
    default prompt is used (and cached for one TTL).
    """

    def __init__(
        self,
        api_base_url: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._api_base_url = api_base_url.rstrip("/")
        self._ttl_seconds = ttl_seconds
        self._timeout = timeout
        self._cached: PromptConfig | None = None
        self._expires_at = 0.0

    async def get_prompt_config(self) -> PromptConfig:
        now = time.monotonic()
        if self._cached is not None and self._expires_at > now:
            return self._cached

        try:
            config = await self._fetch()
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            if self._cached is not None:
                logger.warning(f"Prompt config refresh failed, keeping cached prompt: {e}")
                return self._cached

            logger.error(f"Failed to load prompt config from API, using default prompt: {e}")
            config = PromptConfig(
                system_prompt=DEFAULT_SYSTEM_PROMPT,
                updated_at=datetime.now(timezone.utc),
            )

        self._cached = config
        self._expires_at = now + self._ttl_seconds
        return config

    async def get_system_prompt(self) -> str:
        config = await self.get_prompt_config()
        return config.system_prompt

    async def _fetch(self) -> PromptConfig:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{self._api_base_url}/agent/config", timeout=self._timeout)

        if response.status_code >= 400:
            raise ValueError(f"HTTP {response.status_code}")

        body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Invalid config response shape")

        config = PromptConfig.model_validate(body.get("config"))
        system_prompt = normalize_system_prompt(config.system_prompt)
        if not system_prompt:
            raise ValueError("Empty system prompt in config response")

        return config.model_copy(update={"system_prompt": system_prompt})
