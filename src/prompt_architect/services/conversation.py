"""Conversation controller: turn-taking state around the prompt generation client."""

import asyncio
from typing import Callable, List, Optional, Union
from uuid import UUID

import structlog

from .. import config
from ..domain.models import ConversationSession, HistoryTurn, Message, TargetModel
from .clipboard import Clipboard, InMemoryClipboard
from .llm import PromptGenerationClient

logger = structlog.get_logger()

CLARIFICATION_ACK = "I need a bit more information to build the perfect prompt for you:"
PROMPT_READY_ACK = "I've architected a world-class prompt based on your requirements."
ERROR_REPLY = (
    "I encountered an error while constructing your prompt. "
    "Please check your API configuration or try again."
)
CLEAR_CONFIRMATION_PROMPT = "Are you sure you want to clear your conversation history?"

STARTER_SUGGESTIONS = [
    "Write a viral LinkedIn post about AI",
    "An expert tutor for quantum physics",
    "A Python tool for scraping web data",
    "Summary of complex legal documents",
]

Listener = Callable[[ConversationSession], None]


class ConversationController:
    """Owns a session's messages and drives one generation request at a time."""

    def __init__(
        self,
        session: ConversationSession,
        client: PromptGenerationClient,
        clipboard: Optional[Clipboard] = None,
        copy_feedback_seconds: Optional[float] = None,
    ):
        self.session = session
        self.client = client
        self.clipboard = clipboard or InMemoryClipboard()
        if copy_feedback_seconds is None:
            copy_feedback_seconds = config.get_copy_feedback_seconds()
        self.copy_feedback_seconds = copy_feedback_seconds
        self._listeners: List[Listener] = []
        self._scroll_listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with the session after every state change."""
        self._listeners.append(listener)

    def on_scroll(self, listener: Listener) -> None:
        """Call ``listener`` whenever the view should scroll to the latest message."""
        self._scroll_listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener(self.session)

    def _scroll_to_latest(self) -> None:
        for listener in self._scroll_listeners:
            listener(self.session)

    def _append(self, message: Message) -> None:
        self.session.messages.append(message)
        logger.info(
            "message_appended",
            session_id=str(self.session.id),
            message_id=str(message.id),
            role=message.role,
            has_result=message.result is not None,
        )

    def history(self) -> List[HistoryTurn]:
        return [HistoryTurn.from_message(m) for m in self.session.messages]

    def set_draft(self, text: str) -> None:
        self.session.draft = text
        self._changed()

    def apply_suggestion(self, suggestion: str) -> None:
        """Fill the draft with a starter suggestion without sending it."""
        self.set_draft(suggestion)

    async def submit(self, text: Optional[str] = None) -> bool:
        """Send ``text`` (or the current draft) and append the assistant's reply.

        Returns False without touching the session when the text is blank or
        a request is already in flight.
        """
        if text is None:
            text = self.session.draft
        if not text.strip() or self.session.is_loading:
            logger.debug(
                "submit_ignored",
                session_id=str(self.session.id),
                blank=not text.strip(),
                loading=self.session.is_loading,
            )
            return False

        # History is taken before the new message is appended; the new text
        # goes out as the current turn only.
        history = self.history()
        target = self.session.target_model

        self._append(Message(role="user", content=text))
        self.session.draft = ""
        self.session.is_loading = True

        try:
            self._changed()
            self._scroll_to_latest()
            result = await self.client.generate(text, target, history)
        except asyncio.CancelledError:
            # Keep user/assistant turns paired for the next request's history.
            logger.warning("prompt_generation_cancelled", session_id=str(self.session.id))
            self._append(Message(role="assistant", content=ERROR_REPLY))
            raise
        except Exception as e:
            logger.error(
                "prompt_generation_failed",
                session_id=str(self.session.id),
                error_type=type(e).__name__,
                error=str(e),
            )
            reply = Message(role="assistant", content=ERROR_REPLY)
        else:
            ack = CLARIFICATION_ACK if result.is_clarification_needed else PROMPT_READY_ACK
            reply = Message(role="assistant", content=ack, result=result)
        finally:
            self.session.is_loading = False

        self._append(reply)
        self._changed()
        self._scroll_to_latest()
        return True

    def select_target_model(self, target: Union[TargetModel, str]) -> None:
        self.session.target_model = TargetModel(target)
        logger.info("target_model_selected", session_id=str(self.session.id), target_model=self.session.target_model.value)
        self._changed()

    def clear_history(self, confirm: Callable[[str], bool]) -> bool:
        """Empty the conversation if ``confirm`` answers yes. There is no undo."""
        if not confirm(CLEAR_CONFIRMATION_PROMPT):
            return False
        self._clear()
        return True

    def request_clear_history(self) -> None:
        self.session.pending_clear = True
        self._changed()

    def cancel_clear_history(self) -> None:
        self.session.pending_clear = False
        self._changed()

    def confirm_clear_history(self) -> bool:
        """Clear only if a clear was requested first."""
        if not self.session.pending_clear:
            return False
        self._clear()
        return True

    def _clear(self) -> None:
        count = len(self.session.messages)
        self.session.messages = []
        self.session.pending_clear = False
        logger.info("history_cleared", session_id=str(self.session.id), messages=count)
        self._changed()

    def recent_requests(self, limit: int = 10) -> List[Message]:
        """Most recent user messages, newest first."""
        user_messages = [m for m in self.session.messages if m.role == "user"]
        return list(reversed(user_messages[-limit:])) if limit > 0 else []

    def copy_to_clipboard(self, text: str, message_id: UUID) -> None:
        """Copy ``text`` and flag ``message_id`` as just copied for a short window.

        Must be called from a running event loop; the reset is scheduled on it.
        """
        self.clipboard.write(text)
        token = self.session.next_copy_token()
        self.session.copied_message_id = message_id
        loop = asyncio.get_running_loop()
        loop.call_later(self.copy_feedback_seconds, self._reset_copied, token)
        self._changed()

    def _reset_copied(self, token: int) -> None:
        # A later copy owns the indicator now.
        if not self.session.is_current_copy(token):
            return
        self.session.copied_message_id = None
        self._changed()
