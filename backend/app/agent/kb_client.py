"""HTTP clients the agent uses to query the KB and publish session state.

Both clients are best-effort: a failed request is logged and the agent turn
carries on without retrieval context.
"""

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.kb.models import KBSearchResult
from app.session.models import SessionSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class KBSearchClient:
    """Calls POST /kb/search on the API server."""

    def __init__(self, api_base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    async def search(self, query: str, top_k: int = 4) -> list[KBSearchResult]:
        """Return search hits for query, or an empty list on any failure."""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._api_base_url}/kb/search",
                    json={"query": query, "topK": top_k},
                    timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            logger.warning(f"KB search request failed: {e}")
            return []

        if response.status_code >= 400:
            logger.warning(
                "KB search returned an error",
                extra={"status": response.status_code, "body": response.text[:200]},
            )
            return []

        try:
            raw_results = response.json().get("results", [])
            results = [KBSearchResult.model_validate(item) for item in raw_results]
        except (ValueError, AttributeError, TypeError, ValidationError) as e:
            logger.warning(f"KB search returned a malformed body: {e}")
            return []

        logger.debug(
            "KB search results",
            extra={"query_length": len(query), "top_k": top_k, "count": len(results)},
        )
        return results


class SessionStateClient:
    """Calls POST /session/{room}/state on the API server."""

    def __init__(self, api_base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    async def update_room_state(
        self,
        room_name: str,
        sources: list[KBSearchResult] | None = None,
        last_answer: str | None = None,
    ) -> bool:
        """
        Publish sources and/or the last answer for a room.

        Only the supplied fields are sent, so the server keeps the others.

        Returns:
            True if the server accepted the update
        """
        payload: dict = {}
        if sources is not None:
            payload["sources"] = [
                SessionSource(
                    doc_id=s.doc_id,
                    doc_title=s.doc_title,
                    chunk_id=s.chunk_id,
                    snippet=s.snippet,
                ).model_dump(by_alias=True)
                for s in sources
            ]
        if last_answer:
            payload["lastAnswer"] = last_answer

        url = f"{self._api_base_url}/session/{quote(room_name, safe='')}/state"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=payload, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Session state update request failed for room {room_name}: {e}")
            return False

        if response.status_code >= 400:
            logger.warning(
                "Session state update failed",
                extra={"room_name": room_name, "status": response.status_code},
            )
            return False

        logger.debug(
            "Session state updated",
            extra={
                "room_name": room_name,
                "source_count": len(sources) if sources is not None else 0,
                "has_last_answer": bool(last_answer),
            },
        )
        return True
