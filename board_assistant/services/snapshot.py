"""Board snapshot builder.

Flattens a board's open lists and cards into one ``BoardSnapshot`` so every
analysis of a request works on a single consistent view.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Iterable, List

from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import require_name
from board_assistant.models.board import BoardSnapshot, Card, SnapshotList, SnapshotStats


logger = logging.getLogger("board_assistant.snapshot")


def tally_card(stats: SnapshotStats, card: Card, now: datetime) -> None:
    """Add one card's contribution to the aggregate counters."""

    stats.total_cards += 1

    due = card.due_date()
    if due is None:
        stats.no_due += 1
    else:
        if not card.due_complete and due < now:
            stats.overdue += 1
        if due.date() == now.date():
            stats.due_today += 1
        elif now < due <= now + timedelta(days=7):
            stats.due_this_week += 1

    if not card.members:
        stats.unassigned += 1

    if card.checklists:
        stats.with_checklists += 1
        stats.completed_checklists += sum(1 for checklist in card.checklists if checklist.is_fully_complete)


def compute_stats(lists: Iterable[SnapshotList], now: datetime) -> SnapshotStats:
    stats = SnapshotStats()
    for trello_list in lists:
        for card in trello_list.cards:
            tally_card(stats, card, now)
    return stats


async def build_snapshot(ctx: AnalyticsContext, board_name_or_id: str) -> BoardSnapshot:
    """Materialize the board's open lists and cards with aggregate stats."""

    board_key = require_name(board_name_or_id, "boardName")
    board = await ctx.trello.get_board(board_key)
    lists = await ctx.trello.get_open_lists(board.id)

    card_batches = await asyncio.gather(*(ctx.trello.get_list_cards(trello_list.id) for trello_list in lists))

    snapshot_lists: List[SnapshotList] = [
        SnapshotList(id=trello_list.id, name=trello_list.name, cards=cards)
        for trello_list, cards in zip(lists, card_batches)
    ]
    stats = compute_stats(snapshot_lists, ctx.now())

    logger.info(
        "Built snapshot for board %s: %s lists, %s cards",
        board.name,
        len(snapshot_lists),
        stats.total_cards,
    )
    return BoardSnapshot(board_name=board.name, board_id=board.id, lists=snapshot_lists, stats=stats)
