"""Display-ready projections of messages and sessions."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from ..domain.models import Clarification, ConversationSession, Message, TargetModel

LOADING_TEXT = "Architecting prompt..."
COPY_LABEL = "Copy Prompt"
COPIED_LABEL = "Copied"


class MessageView(BaseModel):
    """A message as the chat feed shows it."""

    id: UUID
    role: str
    content: str
    timestamp: datetime
    numbered_questions: List[str] = []
    optimized_prompt: Optional[str] = None
    logic: Optional[str] = None
    model_tip: Optional[str] = None
    copy_label: Optional[str] = None


class SessionView(BaseModel):
    id: UUID
    created_at: datetime
    target_model: TargetModel
    target_model_label: str
    draft: str
    is_loading: bool
    loading_text: Optional[str] = None
    pending_clear: bool
    copied_message_id: Optional[UUID] = None
    messages: List[MessageView]


def render_message(message: Message, copied_message_id: Optional[UUID] = None) -> MessageView:
    view = MessageView(
        id=message.id,
        role=message.role,
        content=message.content,
        timestamp=message.timestamp,
    )
    if message.result is None:
        return view

    outcome = message.result.outcome
    if isinstance(outcome, Clarification):
        view.numbered_questions = [f"{i}. {q}" for i, q in enumerate(outcome.questions, start=1)]
    elif outcome.text:
        # Rationale and tip are only shown alongside a finished prompt.
        view.optimized_prompt = outcome.text
        view.logic = outcome.logic
        view.model_tip = outcome.tip
        view.copy_label = COPIED_LABEL if copied_message_id == message.id else COPY_LABEL
    return view


def render_session(session: ConversationSession) -> SessionView:
    return SessionView(
        id=session.id,
        created_at=session.created_at,
        target_model=session.target_model,
        target_model_label=session.target_model.label,
        draft=session.draft,
        is_loading=session.is_loading,
        loading_text=LOADING_TEXT if session.is_loading else None,
        pending_clear=session.pending_clear,
        copied_message_id=session.copied_message_id,
        messages=[render_message(m, session.copied_message_id) for m in session.messages],
    )
