"""Canonical request bodies for the HTTP layer.

Tool calls coming from the assistant spell the same argument several ways
(``boardName``, ``board_name``, ``board``). Each accepted spelling is mapped
to one field here so the analytics services only ever see canonical names.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from board_assistant.core.errors import BoardAssistantError

_BOARD_ALIASES = AliasChoices("boardName", "board_name", "board")
_LIST_ALIASES = AliasChoices("listName", "list_name", "list")
_CARD_ALIASES = AliasChoices("cardName", "card_name", "card", "taskName", "task_name")


class BoardRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    board_name: Optional[str] = Field(default=None, validation_alias=_BOARD_ALIASES)

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def resolved_board(self, default_board: Optional[str] = None) -> str:
        """Board name from the request, else the configured default."""

        board = self.board_name or default_board
        if not board:
            raise BoardAssistantError.invalid_request(
                "A board is required (boardName) and no default board is configured."
            )
        return board


class ListRequest(BoardRequest):
    list_name: Optional[str] = Field(default=None, validation_alias=_LIST_ALIASES)


class HistoryRequest(BoardRequest):
    since: Optional[str] = None
    before: Optional[str] = None


class CardHistoryRequest(HistoryRequest):
    card_name: Optional[str] = Field(default=None, validation_alias=_CARD_ALIASES)
    limit: Optional[int] = Field(default=None, ge=1, le=1000)
