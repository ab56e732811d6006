"""In-memory session repository.

Nothing survives a restart. Sessions stay until deleted or until the store
reaches ``max_sessions``, at which point the oldest session is evicted.
"""

import asyncio
from typing import Dict, Optional
from uuid import UUID

import structlog

from .. import config
from ..domain.models import ConversationSession
from .base import Repository

logger = structlog.get_logger()


class InMemoryRepository(Repository):
    """Keeps sessions in an insertion-ordered dict guarded by an asyncio lock."""

    def __init__(self, max_sessions: Optional[int] = None) -> None:
        self._sessions: Dict[UUID, ConversationSession] = {}
        self._lock = asyncio.Lock()
        self.max_sessions = max_sessions or config.get_max_sessions()
        logger.info("repository_initialized", max_sessions=self.max_sessions)

    async def create_session(self) -> ConversationSession:
        session = ConversationSession()
        async with self._lock:
            while len(self._sessions) >= self.max_sessions:
                evicted = next(iter(self._sessions))
                del self._sessions[evicted]
                logger.info("session_evicted", session_id=str(evicted))
            self._sessions[session.id] = session
        logger.info("session_created", session_id=str(session.id))
        return session

    async def get_session(self, session_id: UUID) -> Optional[ConversationSession]:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            logger.warning("session_not_found", session_id=str(session_id))
        return session

    async def delete_session(self, session_id: UUID) -> bool:
        async with self._lock:
            existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.info("session_deleted", session_id=str(session_id))
        return existed
