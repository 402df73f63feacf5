"""Builds the knowledge base context block injected before each LLM call."""

import logging
from typing import Any

from app.agent.kb_client import KBSearchClient, SessionStateClient
from app.kb.models import KBSearchResult

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No relevant KB excerpts were found for this user query."
CONTEXT_HEADER = "You have access to the following knowledge base excerpts (may be relevant):"
CONTEXT_FOOTER = (
    "Use these excerpts when useful. If they do not answer the question, "
    "say so clearly and avoid fabricating details."
)
AGENT_TOP_K = 4


def get_last_user_query(messages: list[dict[str, Any]]) -> str:
    """Text of the most recent non-empty user message, or ""."""
    for message in reversed(messages):
        if message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return ""


def build_kb_context_block(results: list[KBSearchResult]) -> str:
    """Format search hits as a system message for the LLM."""
    if not results:
        return NO_RESULTS_MESSAGE

    lines = [
        f"[{i}] (docTitle={r.doc_title}, docId={r.doc_id}, chunkId={r.chunk_id}, score={r.score:.4f}): {r.snippet}"
        for i, r in enumerate(results, start=1)
    ]
    return "\n".join([CONTEXT_HEADER, *lines, CONTEXT_FOOTER])


async def retrieve_turn_context(
    query: str,
    room_name: str,
    kb_client: KBSearchClient,
    session_client: SessionStateClient,
    top_k: int = AGENT_TOP_K,
) -> tuple[list[KBSearchResult], str | None]:
    """
    Run retrieval for one user turn and publish the sources used.

    Returns:
        The hits and the context block to inject, or None when nothing
        relevant was found and the prompt should go out unchanged
    """
    results = await kb_client.search(query, top_k) if query.strip() else []

    await session_client.update_room_state(room_name, sources=results)

    if not results:
        logger.debug(f"No KB context for room {room_name}")
        return results, None

    return results, build_kb_context_block(results)
