"""Overdue listing and priority ranking.

Both are read-only: the ranking reports suggested positions but never
reorders cards on the board.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from board_assistant.config import thresholds
from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import BoardAssistantError, require_name
from board_assistant.models.board import BoardSnapshot, Card
from board_assistant.models.reports import OverdueReport, OverdueTask, PrioritizedCard, PriorityPlan
from board_assistant.services.snapshot import build_snapshot


def overdue_tasks(snapshot: BoardSnapshot, now: datetime) -> List[OverdueTask]:
    tasks = []
    for trello_list, card in snapshot.iter_cards():
        due = card.due_date()
        if due is None or card.due_complete or due >= now:
            continue
        tasks.append(
            OverdueTask(
                card_id=card.id,
                card_name=card.name,
                list_name=trello_list.name,
                due=card.due,
                overdue_by_days=(now - due) // timedelta(days=1),
            )
        )
    return tasks


def _has_high_priority_label(card: Card) -> bool:
    for label in card.labels:
        name = (label.name or "").lower()
        color = (label.color or "").lower()
        if name in thresholds.HIGH_PRIORITY_LABEL_NAMES or color in thresholds.HIGH_PRIORITY_LABEL_COLORS:
            return True
    return False


def priority_score(card: Card, now: datetime) -> int:
    due = card.due_date()
    score = 0
    if due is not None and due < now:
        score += thresholds.OVERDUE_SCORE
    if _has_high_priority_label(card):
        score += thresholds.HIGH_PRIORITY_LABEL_SCORE
    if due is not None and now <= due <= now + timedelta(hours=thresholds.DUE_SOON_HOURS):
        score += thresholds.DUE_SOON_SCORE
    if due is None:
        score += thresholds.NO_DUE_SCORE
    return score


def rank_cards(cards: List[Card], now: datetime) -> List[PrioritizedCard]:
    """Highest score first; ties by earliest due date, dated before undated."""

    def sort_key(card: Card):
        due: Optional[datetime] = card.due_date()
        return (-priority_score(card, now), due is None, due or now)

    ranked = sorted(cards, key=sort_key)
    return [
        PrioritizedCard(
            card_id=card.id,
            card_name=card.name,
            due=card.due,
            priority_score=priority_score(card, now),
            suggested_position=position,
        )
        for position, card in enumerate(ranked, start=1)
    ]


async def list_overdue_tasks(ctx: AnalyticsContext, board_name: str) -> OverdueReport:
    board_name = require_name(board_name, "boardName")
    snapshot = await build_snapshot(ctx, board_name)
    now = ctx.now()
    return OverdueReport(board_name=snapshot.board_name, generated_at=now, tasks=overdue_tasks(snapshot, now))


async def prioritize_list(ctx: AnalyticsContext, board_name: str, list_name: str) -> PriorityPlan:
    board_name = require_name(board_name, "boardName")
    list_name = require_name(list_name, "listName")
    snapshot = await build_snapshot(ctx, board_name)
    target = snapshot.find_list(list_name)
    if target is None:
        raise BoardAssistantError.not_found("List", list_name, board_name=board_name)

    now = ctx.now()
    return PriorityPlan(
        board_name=snapshot.board_name,
        list_name=target.name,
        generated_at=now,
        cards=rank_cards(target.cards, now),
    )
