"""Read-only Trello REST client for the board assistant.

Fetches boards, lists, cards and action feeds and validates them into the
entity models. Transport, HTTP and malformed-payload failures are raised as
``BoardAssistantError`` with kind UPSTREAM_FAILURE; lookups by name raise
NOT_FOUND or AMBIGUOUS_MATCH.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from board_assistant.config.settings import Settings
from board_assistant.core.errors import BoardAssistantError
from board_assistant.models.board import Action, Board, Card, TrelloList


logger = logging.getLogger("board_assistant.trello")

ModelT = TypeVar("ModelT", bound=BaseModel)

_TRELLO_ID_RE = re.compile(r"^[0-9a-f]{24}$", re.IGNORECASE)

_SNAPSHOT_CARD_PARAMS = {
    "fields": "name,desc,due,dueComplete,labels,idMembers,idList",
    "members": "true",
    "member_fields": "fullName,username",
    "checklists": "all",
}


def looks_like_trello_id(value: str) -> bool:
    v = (value or "").strip()
    if not v:
        return False
    return bool(_TRELLO_ID_RE.match(v))


def _validate_one(model: Type[ModelT], raw: Any, path: str) -> ModelT:
    """Validate one Trello object; a malformed payload is an upstream failure."""

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Unexpected %s payload from %s: %s", model.__name__, path, exc.errors()[:3])
        raise BoardAssistantError.upstream_failure(f"Trello returned an unexpected payload for {path}") from exc


def _validate_items(model: Type[ModelT], raw: Any, path: str) -> List[ModelT]:
    """Validate a JSON array of Trello objects, skipping non-object entries."""

    return [_validate_one(model, item, path) for item in raw or [] if isinstance(item, dict)]


def _action_params(
    filter: Optional[Sequence[str]] = None,
    since: Optional[str] = None,
    before: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    filters = [value.strip() for value in (filter or []) if isinstance(value, str) and value.strip()]
    if filters:
        params["filter"] = ",".join(filters)
    if since:
        params["since"] = since
    if before:
        params["before"] = before
    if isinstance(limit, int):
        params["limit"] = limit
    return params


class TrelloReadClient:
    """Async read access to the Trello REST API.

    A fresh ``httpx.AsyncClient`` is opened per request. ``transport`` lets
    tests plug in an ``httpx.MockTransport``.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._settings = settings
        self._base_url = settings.trello_base_url.rstrip("/")
        self._timeout = settings.request_timeout
        self._transport = transport

    def _auth_params(self) -> Dict[str, str]:
        """Return Trello auth query parameters."""

        params: Dict[str, str] = {}
        if self._settings.trello_api_key:
            params["key"] = self._settings.trello_api_key
        if self._settings.trello_api_token:
            params["token"] = self._settings.trello_api_token
        return params

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query = self._auth_params()
        if params:
            query.update(params)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(f"{self._base_url}{path}", params=query)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Trello returned HTTP %s for %s", status, path)
            raise BoardAssistantError.upstream_failure(
                f"Trello returned HTTP {status} for {path}", status_code=status
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Network error while contacting Trello for %s: %r", path, exc)
            raise BoardAssistantError.upstream_failure(f"Network error while contacting Trello: {exc!r}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise BoardAssistantError.upstream_failure(f"Trello returned invalid JSON for {path}") from exc

    async def get_board(self, board_name_or_id: str) -> Board:
        """Resolve a board by 24-hex id or by exact name among open boards."""

        candidate = (board_name_or_id or "").strip()
        if not candidate:
            raise BoardAssistantError.invalid_request("A board name or id is required.")

        if looks_like_trello_id(candidate):
            try:
                data = await self._get(f"/boards/{candidate}")
            except BoardAssistantError as exc:
                if exc.status_code == 404:
                    raise BoardAssistantError.not_found("Board", candidate) from exc
                raise
            return _validate_one(Board, data, f"/boards/{candidate}")

        boards = await self._get("/members/me/boards", {"filter": "open", "fields": "id,name"})
        for board in boards or []:
            if isinstance(board, dict) and board.get("name") == candidate:
                return _validate_one(Board, board, "/members/me/boards")
        raise BoardAssistantError.not_found("Board", candidate)

    async def get_open_lists(self, board_id: str) -> List[TrelloList]:
        path = f"/boards/{board_id}/lists"
        lists = await self._get(path, {"filter": "open"})
        return _validate_items(TrelloList, lists, path)

    async def get_list_cards(self, list_id: str) -> List[Card]:
        """Cards of a list with labels, members and checklists expanded."""

        path = f"/lists/{list_id}/cards"
        cards = await self._get(path, dict(_SNAPSHOT_CARD_PARAMS))
        return _validate_items(Card, cards, path)

    async def _get_actions(
        self,
        path: str,
        filter: Optional[Sequence[str]] = None,
        since: Optional[str] = None,
        before: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Action]:
        if limit is not None:
            raw = await self._get(path, _action_params(filter, since, before, limit))
            return _validate_items(Action, raw, path)

        # Trello returns newest first; page backwards using the oldest id seen.
        page_size = self._settings.actions_page_size
        collected: List[Action] = []
        cursor = before
        for _ in range(max(1, self._settings.max_action_pages)):
            raw = await self._get(path, _action_params(filter, since, cursor, page_size))
            page = _validate_items(Action, raw, path)
            collected.extend(page)
            if len(page) < page_size or not page[-1].id:
                break
            cursor = page[-1].id
        else:
            logger.info("Stopped paging %s after %s pages", path, self._settings.max_action_pages)
        return collected

    async def get_board_actions(
        self,
        board_id: str,
        filter: Optional[Sequence[str]] = None,
        since: Optional[str] = None,
        before: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Action]:
        """Action feed of a board, optionally filtered by type and time window."""

        return await self._get_actions(f"/boards/{board_id}/actions", filter, since, before, limit)

    async def get_card_actions(
        self,
        card_id: str,
        filter: Optional[Sequence[str]] = None,
        since: Optional[str] = None,
        before: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Action]:
        return await self._get_actions(f"/cards/{card_id}/actions", filter, since, before, limit)

    async def find_card_by_name(self, board_id: str, card_name: str, board_name: Optional[str] = None) -> Card:
        """Find exactly one card on a board by case-insensitive exact name."""

        result = await self._get(
            "/search",
            {
                "query": card_name,
                "modelTypes": "cards",
                "idBoards": board_id,
                "card_fields": "id,name,desc,due,dueComplete,idList,idBoard,labels",
            },
        )
        cards = result.get("cards") if isinstance(result, dict) else None
        wanted = card_name.lower()
        matches = [
            card for card in cards or []
            if isinstance(card, dict) and str(card.get("name", "")).lower() == wanted
        ]
        if not matches:
            raise BoardAssistantError.not_found("Card", card_name, board_name=board_name)
        if len(matches) > 1:
            raise BoardAssistantError.ambiguous_match(card_name, len(matches))
        return _validate_one(Card, matches[0], "/search")
