"""Shared test fixtures for the prompt architect."""

import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from prompt_architect.domain.models import ConversationSession
from prompt_architect.services.clipboard import InMemoryClipboard
from prompt_architect.services.conversation import ConversationController
from prompt_architect.services.llm import PromptGenerationClient

PROMPT_REPLY = {
    "isClarificationNeeded": False,
    "optimizedPrompt": "## Persona\nYou are a LinkedIn ghostwriter.\n## Task\nWrite a viral post about AI.",
    "logic": "Markdown headers separate the PTCF sections.",
    "modelTip": "Think step-by-step before drafting the hook.",
}

CLARIFICATION_REPLY = {
    "isClarificationNeeded": True,
    "clarifyingQuestions": ["Who is the audience?", "What tone?"],
    "logic": "The goal is too vague to pick a persona.",
    "modelTip": "Provide examples of past posts.",
}


class FakeTransport:
    """Records each call and answers with canned reply text."""

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []
        self.release: Optional[asyncio.Event] = None

    async def __call__(self, system_instruction, contents, schema):
        self.calls.append(
            {"system_instruction": system_instruction, "contents": contents, "schema": schema}
        )
        if self.release is not None:
            await self.release.wait()
        reply = self.replies.pop(0) if self.replies else PROMPT_REPLY
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return PromptGenerationClient(transport=transport)


@pytest.fixture
def clipboard():
    return InMemoryClipboard()


@pytest.fixture
def controller(client, clipboard):
    return ConversationController(
        ConversationSession(), client, clipboard=clipboard, copy_feedback_seconds=0.1
    )


@pytest.fixture
def prompt_reply():
    return dict(PROMPT_REPLY)


@pytest.fixture
def clarification_reply():
    return dict(CLARIFICATION_REPLY)
