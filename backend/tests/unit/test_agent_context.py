"""Unit tests for the agent-side retrieval helpers."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from app.agent.context import (
    NO_RESULTS_MESSAGE,
    build_kb_context_block,
    get_last_user_query,
    retrieve_turn_context,
)
from app.agent.kb_client import KBSearchClient, SessionStateClient
from app.kb.models import KBSearchResult


def make_result(chunk_id: str = "doc-1:0", score: float = 0.87654) -> KBSearchResult:
    return KBSearchResult(
        doc_id=chunk_id.split(":")[0],
        doc_title="handbook.pdf",
        chunk_id=chunk_id,
        snippet="Refunds are processed within 30 days.",
        score=score,
    )


def mock_async_client(response=None, side_effect=None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client.post = AsyncMock(return_value=response, side_effect=side_effect)
    return mock_client


class TestContextBlock:
    """Formatting of the system context block."""

    def test_no_results(self):
        assert build_kb_context_block([]) == NO_RESULTS_MESSAGE

    def test_lists_numbered_excerpts(self):
        block = build_kb_context_block([make_result("doc-1:0"), make_result("doc-2:3", score=0.5)])
        lines = block.split("\n")

        assert lines[0].startswith("You have access to the following knowledge base excerpts")
        assert lines[1] == (
            "[1] (docTitle=handbook.pdf, docId=doc-1, chunkId=doc-1:0, score=0.8765): "
            "Refunds are processed within 30 days."
        )
        assert lines[2].startswith("[2] (docTitle=handbook.pdf, docId=doc-2, chunkId=doc-2:3, score=0.5000)")
        assert "avoid fabricating details" in lines[3]


class TestLastUserQuery:
    """Finding the query for the current turn."""

    def test_returns_latest_non_empty_user_message(self):
        messages = [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "What is the refund policy?"},
            {"role": "assistant", "content": "Let me check."},
            {"role": "user", "content": "   "},
        ]
        assert get_last_user_query(messages) == "What is the refund policy?"

    def test_no_user_message(self):
        assert get_last_user_query([{"role": "assistant", "content": "Hi"}]) == ""


class TestKBSearchClient:
    """HTTP search client used by the agent."""

    @pytest.mark.asyncio
    async def test_search_success(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"results": [make_result().model_dump(by_alias=True)]}

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(response=mock_response)
            mock_client_class.return_value = mock_client

            results = await KBSearchClient("http://api:8000/api/").search("refund?", top_k=4)

        assert results == [make_result()]
        call = mock_client.post.call_args
        assert call[0][0] == "http://api:8000/api/kb/search"
        assert call[1]["json"] == {"query": "refund?", "topK": 4}

    @pytest.mark.asyncio
    async def test_search_error_status_returns_empty(self):
        mock_response = MagicMock()
        mock_response.status_code = 500
        mock_response.text = '{"detail": "Failed to search knowledge base."}'

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(response=mock_response)
            assert await KBSearchClient("http://api:8000/api").search("refund?") == []

    @pytest.mark.asyncio
    async def test_search_transport_error_returns_empty(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(side_effect=httpx.ConnectError("refused"))
            assert await KBSearchClient("http://api:8000/api").search("refund?") == []

    @pytest.mark.asyncio
    async def test_search_malformed_body_returns_empty(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"results": [{"docId": "only-this"}]}

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(response=mock_response)
            assert await KBSearchClient("http://api:8000/api").search("refund?") == []


class TestSessionStateClient:
    """HTTP session state client used by the agent."""

    @pytest.mark.asyncio
    async def test_posts_only_supplied_fields(self):
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(response=mock_response)
            mock_client_class.return_value = mock_client

            ok = await SessionStateClient("http://api:8000/api").update_room_state(
                "room/1", sources=[make_result()]
            )

        assert ok is True
        call = mock_client.post.call_args
        assert call[0][0] == "http://api:8000/api/session/room%2F1/state"
        assert call[1]["json"] == {
            "sources": [{
                "docId": "doc-1",
                "docTitle": "handbook.pdf",
                "chunkId": "doc-1:0",
                "snippet": "Refunds are processed within 30 days.",
            }]
        }

    @pytest.mark.asyncio
    async def test_last_answer_only(self):
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(response=mock_response)
            mock_client_class.return_value = mock_client

            await SessionStateClient("http://api:8000/api").update_room_state("room-1", last_answer="Yes.")

        assert mock_client.post.call_args[1]["json"] == {"lastAnswer": "Yes."}

    @pytest.mark.asyncio
    async def test_failure_is_not_raised(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(side_effect=httpx.ReadTimeout("slow"))
            ok = await SessionStateClient("http://api:8000/api").update_room_state("room-1", sources=[])

        assert ok is False


class TestRetrieveTurnContext:
    """Per-turn retrieval flow."""

    @pytest.mark.asyncio
    async def test_publishes_sources_and_returns_block(self):
        kb_client = MagicMock()
        kb_client.search = AsyncMock(return_value=[make_result()])
        session_client = MagicMock()
        session_client.update_room_state = AsyncMock(return_value=True)

        results, block = await retrieve_turn_context("refund?", "room-1", kb_client, session_client)

        assert results == [make_result()]
        assert block.startswith("You have access")
        kb_client.search.assert_awaited_once_with("refund?", 4)
        session_client.update_room_state.assert_awaited_once_with("room-1", sources=[make_result()])

    @pytest.mark.asyncio
    async def test_empty_query_skips_search_but_clears_sources(self):
        kb_client = MagicMock()
        kb_client.search = AsyncMock()
        session_client = MagicMock()
        session_client.update_room_state = AsyncMock(return_value=True)

        results, block = await retrieve_turn_context("  ", "room-1", kb_client, session_client)

        assert results == []
        assert block is None
        kb_client.search.assert_not_awaited()
        session_client.update_room_state.assert_awaited_once_with("room-1", sources=[])
