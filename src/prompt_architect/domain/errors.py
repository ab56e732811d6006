"""Exceptions raised by the prompt architect."""


class PromptArchitectError(Exception):
    """Base class for prompt architect errors."""
    pass


class InvalidResponseError(PromptArchitectError):
    """Raised when the remote model's payload does not match the result schema."""

    def __init__(self, message: str = "Invalid response from AI"):
        super().__init__(message)
