"""Test suite for the API endpoints."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from prompt_architect.api.app import app, get_llm_client, get_repository
from prompt_architect.repositories.memory import InMemoryRepository
from prompt_architect.services.conversation import (
    CLARIFICATION_ACK,
    ERROR_REPLY,
    PROMPT_READY_ACK,
    STARTER_SUGGESTIONS,
)


@pytest.fixture
def api(client):
    """App wired to a fresh repository and the fake-transport client."""
    repository = InMemoryRepository()
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_llm_client] = lambda: client
    yield AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    app.dependency_overrides.clear()


async def create_session(api):
    response = await api.post("/sessions")
    assert response.status_code == 200
    return response.json()["id"]


@pytest.mark.asyncio
async def test_create_session(api):
    """Test creating a new session."""
    async with api:
        response = await api.post("/sessions")
        assert response.status_code == 200
        data = response.json()
        assert data["messages"] == []
        assert data["target_model"] == "GENERAL"
        assert data["target_model_label"] == "General LLM"
        assert data["is_loading"] is False

        response = await api.get(f"/sessions/{data['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_unknown_session(api):
    """Test unknown and malformed session ids."""
    async with api:
        response = await api.get("/sessions/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

        response = await api.get("/sessions/not-a-uuid")
        assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_session(api):
    """Test deleting a session."""
    async with api:
        session_id = await create_session(api)
        assert (await api.delete(f"/sessions/{session_id}")).status_code == 204
        assert (await api.get(f"/sessions/{session_id}")).status_code == 404
        assert (await api.delete(f"/sessions/{session_id}")).status_code == 404


@pytest.mark.asyncio
async def test_submit_prompt_ready(api, transport, prompt_reply):
    """Test a submission that yields an optimized prompt."""
    transport.replies = [prompt_reply]
    async with api:
        session_id = await create_session(api)
        response = await api.post(
            f"/sessions/{session_id}/messages",
            json={"content": "Write a viral LinkedIn post about AI"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is True

        messages = data["session"]["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[1]["content"] == PROMPT_READY_ACK
        assert messages[1]["optimized_prompt"] == prompt_reply["optimizedPrompt"]
        assert messages[1]["copy_label"] == "Copy Prompt"
        assert data["session"]["is_loading"] is False


@pytest.mark.asyncio
async def test_submit_clarification(api, transport, clarification_reply):
    """Clarification replies get the clarification acknowledgment."""
    transport.replies = [clarification_reply]
    async with api:
        session_id = await create_session(api)
        response = await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})
        reply = response.json()["session"]["messages"][-1]
        assert reply["content"] == CLARIFICATION_ACK
        assert reply["numbered_questions"] == ["1. Who is the audience?", "2. What tone?"]


@pytest.mark.asyncio
async def test_submit_failure(api, transport):
    """Test that a failed generation becomes the error reply."""
    transport.replies = [RuntimeError("API key not valid")]
    async with api:
        session_id = await create_session(api)
        response = await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["messages"][-1]["content"] == ERROR_REPLY
        assert session["messages"][-1]["optimized_prompt"] is None
        assert session["is_loading"] is False


@pytest.mark.asyncio
async def test_blank_submit_not_accepted(api, transport):
    """Test that blank content is not sent."""
    async with api:
        session_id = await create_session(api)
        response = await api.post(f"/sessions/{session_id}/messages", json={"content": "   "})
        assert response.status_code == 200
        assert response.json()["accepted"] is False
        assert response.json()["session"]["messages"] == []
        assert transport.calls == []

        response = await api.post(f"/sessions/{session_id}/messages", json={})
        assert response.status_code == 422


@pytest.mark.asyncio
async def test_concurrent_submit_is_dropped(api, transport):
    """Test that a second submission during loading is dropped."""
    transport.release = asyncio.Event()
    async with api:
        session_id = await create_session(api)
        first = asyncio.create_task(
            api.post(f"/sessions/{session_id}/messages", json={"content": "First"})
        )
        while not transport.calls:
            await asyncio.sleep(0.01)

        second = await api.post(f"/sessions/{session_id}/messages", json={"content": "Second"})
        assert second.json()["accepted"] is False
        assert second.json()["session"]["loading_text"] == "Architecting prompt..."

        transport.release.set()
        first = await first
        assert first.json()["accepted"] is True
        assert len(first.json()["session"]["messages"]) == 2
        assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_draft_and_suggestions(api, transport):
    """Test filling the draft from a suggestion and sending it."""
    async with api:
        suggestions = (await api.get("/suggestions")).json()
        assert suggestions == STARTER_SUGGESTIONS

        session_id = await create_session(api)
        response = await api.put(f"/sessions/{session_id}/draft", json={"text": suggestions[0]})
        assert response.json()["draft"] == suggestions[0]

        response = await api.post(f"/sessions/{session_id}/draft/submit")
        data = response.json()
        assert data["accepted"] is True
        assert data["session"]["draft"] == ""
        assert data["session"]["messages"][0]["content"] == suggestions[0]


@pytest.mark.asyncio
async def test_select_target_model(api, transport):
    """Test selecting the target model."""
    async with api:
        assert (await api.get("/target-models")).json()["CLAUDE"] == "Claude / Anthropic"

        session_id = await create_session(api)
        response = await api.put(
            f"/sessions/{session_id}/target-model", json={"target_model": "CLAUDE"}
        )
        assert response.status_code == 200
        assert response.json()["target_model"] == "CLAUDE"

        response = await api.put(
            f"/sessions/{session_id}/target-model", json={"target_model": "LLAMA"}
        )
        assert response.status_code == 422

        await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})
        assert transport.calls[0]["contents"][-1]["parts"][0].startswith("Target Model: CLAUDE\n")


@pytest.mark.asyncio
async def test_clear_history_flow(api, transport):
    """Test the two-step clear history flow."""
    async with api:
        session_id = await create_session(api)
        await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})

        response = await api.post(f"/sessions/{session_id}/clear/confirm")
        assert response.json()["cleared"] is False
        assert len(response.json()["session"]["messages"]) == 2

        response = await api.post(f"/sessions/{session_id}/clear")
        assert response.json()["pending_clear"] is True
        response = await api.post(f"/sessions/{session_id}/clear/cancel")
        assert response.json()["pending_clear"] is False

        await api.post(f"/sessions/{session_id}/clear")
        response = await api.post(f"/sessions/{session_id}/clear/confirm")
        assert response.json()["cleared"] is True
        assert response.json()["session"]["messages"] == []


@pytest.mark.asyncio
async def test_recent_requests(api, transport):
    """Test the recent requests list."""
    async with api:
        session_id = await create_session(api)
        for goal in ["First goal", "Second goal", "Third goal"]:
            await api.post(f"/sessions/{session_id}/messages", json={"content": goal})

        response = await api.get(f"/sessions/{session_id}/recent?limit=2")
        assert [m["content"] for m in response.json()] == ["Third goal", "Second goal"]


@pytest.mark.asyncio
async def test_copy_prompt(api, transport, clarification_reply, prompt_reply):
    """Test copying an optimized prompt."""
    transport.replies = [clarification_reply, prompt_reply]
    async with api:
        session_id = await create_session(api)
        await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})
        response = await api.post(
            f"/sessions/{session_id}/messages", json={"content": "Engineers, casual"}
        )
        messages = response.json()["session"]["messages"]
        clarification_id = messages[1]["id"]
        prompt_id = messages[3]["id"]

        response = await api.post(f"/sessions/{session_id}/messages/{prompt_id}/copy")
        assert response.status_code == 200
        assert response.json() == {
            "text": prompt_reply["optimizedPrompt"],
            "copied_message_id": prompt_id,
        }

        session = (await api.get(f"/sessions/{session_id}")).json()
        assert session["copied_message_id"] == prompt_id
        assert session["messages"][3]["copy_label"] == "Copied"

        response = await api.post(f"/sessions/{session_id}/messages/{clarification_id}/copy")
        assert response.status_code == 409

        response = await api.post(
            f"/sessions/{session_id}/messages/00000000-0000-0000-0000-000000000000/copy"
        )
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_metrics(api, transport):
    """Test the metrics endpoint."""
    async with api:
        session_id = await create_session(api)
        await api.post(f"/sessions/{session_id}/messages", json={"content": "Help me"})
        response = await api.get("/metrics")
        assert response.status_code == 200
        assert "prompt_generations_total" in response.text
        assert "requests_total" in response.text
