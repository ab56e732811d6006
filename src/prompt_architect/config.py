"""Environment-driven settings, read at call time."""

import os

import structlog

logger = structlog.get_logger()

DEFAULT_MODEL = "gemini-3-pro-preview"
DEFAULT_COPY_FEEDBACK_SECONDS = 2.0
DEFAULT_MAX_SESSIONS = 1000


def get_api_key() -> str:
    """Return the Gemini credential, or an empty string when none is set."""
    return os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY", "")


def get_model_name() -> str:
    """Return the remote model used for prompt generation."""
    return os.getenv("PROMPT_ARCHITECT_MODEL", DEFAULT_MODEL)


def get_copy_feedback_seconds() -> float:
    """Return how long the "copied" indicator stays on a message."""
    value = os.getenv("PROMPT_ARCHITECT_COPY_FEEDBACK_SECONDS")
    if not value:
        return DEFAULT_COPY_FEEDBACK_SECONDS
    try:
        return float(value)
    except ValueError:
        logger.warning("invalid_copy_feedback_seconds", value=value)
        return DEFAULT_COPY_FEEDBACK_SECONDS


def get_max_sessions() -> int:
    """Return how many live sessions the in-memory store keeps."""
    value = os.getenv("PROMPT_ARCHITECT_MAX_SESSIONS")
    if not value:
        return DEFAULT_MAX_SESSIONS
    try:
        return max(1, int(value))
    except ValueError:
        logger.warning("invalid_max_sessions", value=value)
        return DEFAULT_MAX_SESSIONS
