"""Core building blocks: errors, LLM access and the service context."""

from board_assistant.core.errors import BoardAssistantError, ErrorKind

__all__ = [
    "BoardAssistantError",
    "ErrorKind",
]
