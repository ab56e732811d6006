"""Base repository interface."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from ..domain.models import ConversationSession


class Repository(ABC):
    """Abstract base class for session repositories."""

    @abstractmethod
    async def create_session(self) -> ConversationSession:
        """Create a new, empty conversation session."""
        pass

    @abstractmethod
    async def get_session(self, session_id: UUID) -> Optional[ConversationSession]:
        """Retrieve a session by ID."""
        pass

    @abstractmethod
    async def delete_session(self, session_id: UUID) -> bool:
        """Drop a session. Returns whether it existed."""
        pass
