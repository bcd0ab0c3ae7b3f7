"""Trello entity models and the board snapshot.

Upstream JSON from the Trello REST API is validated into these models. They
serialize with camelCase keys so responses keep Trello's naming.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from board_assistant.utils.timeparse import parse_timestamp


class ApiModel(BaseModel):
    """Base model: camelCase aliases, population by field name allowed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


class Board(ApiModel):
    id: str
    name: str = ""


class TrelloList(ApiModel):
    id: str
    name: str = ""
    id_board: Optional[str] = None
    closed: bool = False


class Label(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    color: Optional[str] = None


class Member(ApiModel):
    id: Optional[str] = None
    full_name: Optional[str] = None
    username: Optional[str] = None

    @property
    def identifier(self) -> Optional[str]:
        return self.id or self.username

    @property
    def display_name(self) -> Optional[str]:
        return self.full_name or self.username or self.identifier


class ChecklistItem(ApiModel):
    id: Optional[str] = None
    name: str = ""
    state: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.state == "complete"


class Checklist(ApiModel):
    id: Optional[str] = None
    name: str = ""
    items: List[ChecklistItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "checkItems"),
        serialization_alias="items",
    )

    @field_validator("items", mode="before")
    @classmethod
    def normalize_items(cls, value: Any) -> Any:
        return _none_to_list(value)

    @property
    def is_fully_complete(self) -> bool:
        return bool(self.items) and all(item.is_complete for item in self.items)


class Card(ApiModel):
    id: str
    name: str = ""
    desc: str = ""
    due: Optional[str] = None
    due_complete: bool = False
    id_list: Optional[str] = None
    labels: List[Label] = Field(default_factory=list)
    members: List[Member] = Field(default_factory=list)
    checklists: List[Checklist] = Field(default_factory=list)

    @field_validator("labels", "members", "checklists", mode="before")
    @classmethod
    def normalize_collections(cls, value: Any) -> Any:
        return _none_to_list(value)

    @field_validator("desc", mode="before")
    @classmethod
    def normalize_desc(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("due_complete", mode="before")
    @classmethod
    def normalize_due_complete(cls, value: Any) -> Any:
        return False if value is None else value

    def due_date(self) -> Optional[datetime]:
        """Parsed due date, or None when absent or unparsable."""

        return parse_timestamp(self.due)


class Action(ApiModel):
    """One audit-log entry. Trello's ``memberCreator`` is exposed as ``actor``."""

    id: Optional[str] = None
    type: str = ""
    date: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    actor: Optional[Member] = Field(
        default=None,
        validation_alias=AliasChoices("actor", "memberCreator"),
        serialization_alias="actor",
    )

    @field_validator("data", mode="before")
    @classmethod
    def normalize_data(cls, value: Any) -> Any:
        return {} if value is None else value

    def timestamp(self) -> Optional[datetime]:
        return parse_timestamp(self.date)

    def card_id(self) -> Optional[str]:
        """Card referenced by the action payload, if any."""

        card = self.data.get("card")
        if isinstance(card, dict):
            for key in ("id", "idCard", "idShort"):
                value = card.get(key)
                if value:
                    return str(value)
        value = self.data.get("cardId")
        return str(value) if value else None

    def actor_id(self) -> Optional[str]:
        return self.actor.identifier if self.actor else None

    def is_list_move(self) -> bool:
        """True for an updateCard action that moved the card between lists."""

        return (
            self.type == "updateCard"
            and bool(self.data.get("listBefore"))
            and bool(self.data.get("listAfter"))
        )


class SnapshotList(ApiModel):
    id: str
    name: str = ""
    cards: List[Card] = Field(default_factory=list)


class SnapshotStats(ApiModel):
    total_cards: int = 0
    overdue: int = 0
    due_today: int = 0
    due_this_week: int = 0
    no_due: int = 0
    unassigned: int = 0
    with_checklists: int = 0
    completed_checklists: int = 0


class BoardSnapshot(ApiModel):
    """Point-in-time view of a board's open lists and their cards.

    ``stats`` is derived from ``lists`` when the snapshot is built.
    """

    board_name: str
    board_id: str
    lists: List[SnapshotList] = Field(default_factory=list)
    stats: SnapshotStats = Field(default_factory=SnapshotStats)

    def iter_cards(self):
        for trello_list in self.lists:
            for card in trello_list.cards:
                yield trello_list, card

    def find_list(self, list_name: str) -> Optional[SnapshotList]:
        wanted = list_name.strip().lower()
        for trello_list in self.lists:
            if trello_list.name.lower() == wanted:
                return trello_list
        return None
