"""Prompt generation client backed by Google's Gemini models."""

from typing import Any, Dict, List, Optional, Protocol, Sequence

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from .. import config
from ..domain.errors import InvalidResponseError
from ..domain.models import HistoryTurn, PromptResult, TargetModel

logger = structlog.get_logger()

SYSTEM_INSTRUCTION = """
You are a World-Class Prompt Engineer and AI Architect. Your goal is to help users formulate the most effective, high-performing prompts for any LLM (Gemini, GPT-4, Claude, Llama).

You follow the "PTCF" framework: Persona, Task, Context, and Format.

Your Process:
1. Ask Clarifying Questions: If the user's request is vague or lacks sufficient detail to create a world-class prompt, set isClarificationNeeded to true and provide 2-3 targeted questions.
2. Draft the Prompt: Provide a structured, "state-of-the-art" prompt.
3. Explain the Logic: Briefly explain why you chose certain structures (e.g., "I used XML tags here because Claude performs better with them").

Architecture Standards:
- For Claude: Use XML tags (e.g., <context>, <task>) and include a <thinking> scratchpad section.
- For GPT-4/Gemini: Use Markdown headers (##), bolding for emphasis, and clear step-by-step instructions.
- General: Use "Few-Shot" examples (placeholders where the user can add examples) and "Chain of Thought" triggers (e.g., "Think step-by-step").

Output Schema:
You MUST respond in JSON format matching the defined schema.
"""

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "isClarificationNeeded": {"type": "BOOLEAN"},
        "clarifyingQuestions": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "2-3 questions if clarification is needed",
        },
        "optimizedPrompt": {
            "type": "STRING",
            "description": "The actual generated prompt if clarification is NOT needed",
        },
        "logic": {
            "type": "STRING",
            "description": "Explanation of prompt engineering techniques used",
        },
        "modelTip": {
            "type": "STRING",
            "description": "One specific tip for the target model",
        },
    },
    "required": ["isClarificationNeeded", "logic", "modelTip"],
}


class Transport(Protocol):
    """Remote call boundary: one structured completion per call."""

    async def __call__(
        self,
        system_instruction: str,
        contents: List[Dict[str, Any]],
        schema: Dict[str, Any],
    ) -> str:
        ...


class GeminiTransport:
    """Calls Gemini with a JSON response schema and returns the raw reply text."""

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name

    async def __call__(
        self,
        system_instruction: str,
        contents: List[Dict[str, Any]],
        schema: Dict[str, Any],
    ) -> str:
        # Credential is read per call so a key set after startup is picked up.
        api_key = config.get_api_key()
        genai.configure(api_key=api_key)
        model_name = self.model_name or config.get_model_name()
        model = genai.GenerativeModel(
            model_name,
            system_instruction=system_instruction,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        logger.info("gemini_request", model=model_name, turns=len(contents), has_api_key=bool(api_key))
        response = await model.generate_content_async(contents)
        try:
            return response.text
        except ValueError as e:
            # Blocked or empty candidates carry no text part.
            logger.warning("gemini_empty_response", model=model_name, error=str(e))
            return ""


def build_contents(
    user_text: str,
    target: TargetModel,
    history: Sequence[HistoryTurn],
) -> List[Dict[str, Any]]:
    """Prior turns followed by the current request tagged with its target model."""
    contents = [{"role": turn.role, "parts": [turn.text]} for turn in history]
    contents.append(
        {"role": "user", "parts": [f"Target Model: {target.value}\nUser Request: {user_text}"]}
    )
    return contents


def parse_result(text: str) -> PromptResult:
    """Validate the reply against the result schema."""
    try:
        return PromptResult.model_validate_json(text or "{}")
    except ValidationError as e:
        logger.error("prompt_result_parse_error", error=str(e))
        raise InvalidResponseError() from e


class PromptGenerationClient:
    """Turns one user request plus history into a validated ``PromptResult``."""

    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport or GeminiTransport()

    async def generate(
        self,
        user_text: str,
        target: TargetModel,
        history: Optional[Sequence[HistoryTurn]] = None,
    ) -> PromptResult:
        """Call the remote model.

        Raises ``InvalidResponseError`` when the payload cannot be parsed;
        errors raised by the transport itself propagate unchanged.
        """
        history = history or []
        contents = build_contents(user_text, target, history)
        logger.info(
            "prompt_generation_requested",
            target_model=target.value,
            history_turns=len(history),
        )
        text = await self.transport(SYSTEM_INSTRUCTION, contents, RESPONSE_SCHEMA)
        result = parse_result(text)
        logger.info(
            "prompt_generation_completed",
            target_model=target.value,
            clarification_needed=result.is_clarification_needed,
        )
        return result
