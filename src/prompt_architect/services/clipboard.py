"""Clipboard collaborators."""

from abc import ABC, abstractmethod
from typing import Optional

import structlog

logger = structlog.get_logger()


class Clipboard(ABC):
    """Write-only clipboard capability."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Copy text to the clipboard."""
        pass


class InMemoryClipboard(Clipboard):
    """Holds the last copied text for the client to pick up."""

    def __init__(self) -> None:
        self.text: Optional[str] = None

    def write(self, text: str) -> None:
        self.text = text
        logger.debug("clipboard_written", length=len(text))
