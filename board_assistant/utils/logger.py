"""Logging utilities for the board assistant.

This module centralizes logger configuration and the structured log format
used by the HTTP layer.
"""

import json
import logging
import uuid
from typing import Optional


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger, configuring a console handler on first use."""

    logger_name = name or "board_assistant"
    logger = logging.getLogger(logger_name)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    return logger


def generate_request_id() -> str:
    """Generate a unique request identifier for correlating logs."""

    return str(uuid.uuid4())


def _format_prefixed_message(msg: str) -> str:
    return f"[BOARD-ASSISTANT] {msg}"


def _format_structured_message(
    message: str,
    board_name: Optional[str] = None,
    request_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> str:
    """Format a log message as a JSON-like structured string."""

    payload: dict = {"message": message}
    if board_name is not None:
        payload["board_name"] = board_name
    if request_id is not None:
        payload["request_id"] = request_id
    if extra:
        payload["extra"] = extra
    return json.dumps(payload, default=str, ensure_ascii=False)


def log_info(
    msg: str,
    board_name: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: object,
) -> None:
    """Log an informational message for an analytics request."""

    logger = get_logger("board_assistant.api")
    structured = _format_structured_message(
        _format_prefixed_message(msg),
        board_name=board_name,
        request_id=request_id,
        extra=extra or None,
    )
    logger.info(structured)


def log_warn(
    msg: str,
    board_name: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: object,
) -> None:
    """Log a warning message for an analytics request."""

    logger = get_logger("board_assistant.api")
    structured = _format_structured_message(
        _format_prefixed_message(msg),
        board_name=board_name,
        request_id=request_id,
        extra=extra or None,
    )
    logger.warning(structured)


def log_error(
    msg: str,
    board_name: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra: object,
) -> None:
    """Log an error message for an analytics request."""

    logger = get_logger("board_assistant.api")
    structured = _format_structured_message(
        _format_prefixed_message(msg),
        board_name=board_name,
        request_id=request_id,
        extra=extra or None,
    )
    logger.error(structured)
