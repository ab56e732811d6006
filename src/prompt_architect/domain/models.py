"""Domain models for the prompt architect conversation."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TargetModel(str, Enum):
    """Downstream LLM the generated prompt is optimized for."""

    GENERAL = "GENERAL"
    GPT4 = "GPT4"
    CLAUDE = "CLAUDE"
    GEMINI = "GEMINI"

    @property
    def label(self) -> str:
        return TARGET_MODEL_LABELS[self]


TARGET_MODEL_LABELS = {
    TargetModel.GENERAL: "General LLM",
    TargetModel.GPT4: "GPT-4 / OpenAI",
    TargetModel.CLAUDE: "Claude / Anthropic",
    TargetModel.GEMINI: "Gemini / Google",
}


class Clarification(BaseModel):
    """The model needs more detail before it can draft a prompt."""

    kind: Literal["clarification"] = "clarification"
    questions: List[str]
    logic: str
    tip: str


class OptimizedPrompt(BaseModel):
    """A finished prompt with the reasoning behind it."""

    kind: Literal["optimized_prompt"] = "optimized_prompt"
    text: str
    logic: str
    tip: str


PromptOutcome = Union[Clarification, OptimizedPrompt]


class PromptResult(BaseModel):
    """Structured reply returned by the remote model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_clarification_needed: bool = Field(alias="isClarificationNeeded")
    clarifying_questions: Optional[List[str]] = Field(default=None, alias="clarifyingQuestions")
    optimized_prompt: Optional[str] = Field(default=None, alias="optimizedPrompt")
    logic: str
    model_tip: str = Field(alias="modelTip")

    @property
    def outcome(self) -> PromptOutcome:
        """Tagged view selected by ``is_clarification_needed``."""
        if self.is_clarification_needed:
            return Clarification(
                questions=list(self.clarifying_questions or []),
                logic=self.logic,
                tip=self.model_tip,
            )
        return OptimizedPrompt(
            text=self.optimized_prompt or "",
            logic=self.logic,
            tip=self.model_tip,
        )


class Message(BaseModel):
    """Message model."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    role: Literal["user", "assistant"]
    content: str
    result: Optional[PromptResult] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class HistoryTurn(BaseModel):
    """A prior message as sent to the remote model."""

    role: Literal["user", "model"]
    text: str

    @classmethod
    def from_message(cls, message: Message) -> "HistoryTurn":
        role = "user" if message.role == "user" else "model"
        return cls(role=role, text=message.content)


class ConversationSession(BaseModel):
    """Conversation state owned by a single client."""

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=_utcnow)
    messages: List[Message] = []
    target_model: TargetModel = TargetModel.GENERAL
    draft: str = ""
    is_loading: bool = False
    copied_message_id: Optional[UUID] = None
    pending_clear: bool = False

    _copy_token: int = PrivateAttr(default=0)

    def next_copy_token(self) -> int:
        self._copy_token += 1
        return self._copy_token

    def is_current_copy(self, token: int) -> bool:
        return token == self._copy_token
