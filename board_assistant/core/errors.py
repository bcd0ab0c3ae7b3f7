"""Error taxonomy for the board assistant.

Every analytics entry point either returns a complete report or raises a
single ``BoardAssistantError``. The error carries a closed ``ErrorKind`` and
the HTTP layer maps kinds to status codes through ``STATUS_BY_KIND``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Kinds of failure surfaced by the analytics core."""

    NOT_FOUND = "not_found"
    AMBIGUOUS_MATCH = "ambiguous_match"
    UPSTREAM_FAILURE = "upstream_failure"
    GENERATION_UNAVAILABLE = "generation_unavailable"
    INVALID_REQUEST = "invalid_request"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AMBIGUOUS_MATCH: 400,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.UPSTREAM_FAILURE: 500,
    ErrorKind.GENERATION_UNAVAILABLE: 500,
}


class BoardAssistantError(Exception):
    """Failure raised by the Trello read client or an analytics service.

    ``status_code`` is the upstream HTTP status when the failure came from
    Trello; ``http_status`` is the status the HTTP layer should answer with.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    @classmethod
    def not_found(cls, entity: str, name: str, board_name: Optional[str] = None) -> "BoardAssistantError":
        message = f"{entity} '{name}' not found"
        if board_name:
            message += f" on board '{board_name}'"
        details: Dict[str, Any] = {"entity": entity.lower(), "name": name}
        if board_name:
            details["board_name"] = board_name
        return cls(ErrorKind.NOT_FOUND, message, details=details)

    @classmethod
    def ambiguous_match(cls, name: str, count: int) -> "BoardAssistantError":
        return cls(
            ErrorKind.AMBIGUOUS_MATCH,
            f"Found {count} cards named '{name}'. Please be more specific.",
            details={"name": name, "count": count},
        )

    @classmethod
    def upstream_failure(cls, message: str, status_code: Optional[int] = None) -> "BoardAssistantError":
        return cls(ErrorKind.UPSTREAM_FAILURE, message, status_code=status_code)

    @classmethod
    def generation_unavailable(cls, message: str) -> "BoardAssistantError":
        return cls(ErrorKind.GENERATION_UNAVAILABLE, message)

    @classmethod
    def invalid_request(cls, message: str) -> "BoardAssistantError":
        return cls(ErrorKind.INVALID_REQUEST, message)


def require_name(value: Optional[str], field: str) -> str:
    """Return a stripped, non-empty name or raise INVALID_REQUEST."""

    if not isinstance(value, str) or not value.strip():
        raise BoardAssistantError.invalid_request(f"The field '{field}' is required.")
    return value.strip()
