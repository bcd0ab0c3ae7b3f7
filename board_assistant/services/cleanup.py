"""Board cleanup planning.

Collects non-destructive housekeeping suggestions from a snapshot. Nothing
here writes to Trello; each suggestion lists the tool calls that would apply
it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List

from board_assistant.config import thresholds
from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import require_name
from board_assistant.models.board import BoardSnapshot
from board_assistant.models.reports import CleanupAction, CleanupPlan, CleanupSuggestion, CleanupType
from board_assistant.services.snapshot import build_snapshot


# Report order of the suggestion buckets.
SUGGESTION_MESSAGES: Dict[CleanupType, str] = {
    CleanupType.ARCHIVE_OLD_DONE_CARDS: f"Archive cards completed more than {thresholds.OLD_DONE_CARD_DAYS} days ago.",
    CleanupType.ADD_MISSING_DUE_DATES: "Add due dates to cards that have none.",
    CleanupType.LABEL_MISSING: "Apply a label to uncategorized cards.",
    CleanupType.CLEANUP_EMPTY_LISTS: "Archive or merge empty lists.",
    CleanupType.REBALANCE_LISTS: f"Rebalance overloaded lists towards {thresholds.REBALANCE_TARGET_LIST}.",
    CleanupType.SHIFT_OVERDUE: f"Shift overdue cards by {thresholds.OVERDUE_SHIFT_DAYS} days.",
    CleanupType.ADD_CHECKLIST_FOR_MISSING_PROCESS: "Add a process checklist to cards that have none.",
}


def rebalance_threshold(snapshot: BoardSnapshot) -> float:
    """Overload limit: REBALANCE_FACTOR times the average cards per list."""

    if not snapshot.lists:
        return 0.0
    total = sum(len(trello_list.cards) for trello_list in snapshot.lists)
    return total / len(snapshot.lists) * thresholds.REBALANCE_FACTOR


def plan_cleanup(snapshot: BoardSnapshot, now: datetime) -> List[CleanupSuggestion]:
    buckets: Dict[CleanupType, List[CleanupAction]] = {kind: [] for kind in SUGGESTION_MESSAGES}
    old_done_cutoff = now - timedelta(days=thresholds.OLD_DONE_CARD_DAYS)

    for trello_list in snapshot.lists:
        if not trello_list.cards:
            buckets[CleanupType.CLEANUP_EMPTY_LISTS].append(
                CleanupAction(action="archiveList", list_name=trello_list.name)
            )

        for card in trello_list.cards:
            due = card.due_date()

            if card.due_complete and due is not None and due < old_done_cutoff:
                buckets[CleanupType.ARCHIVE_OLD_DONE_CARDS].append(
                    CleanupAction(action="archiveCard", card_id=card.id, list_name=trello_list.name)
                )

            if due is None:
                buckets[CleanupType.ADD_MISSING_DUE_DATES].append(
                    CleanupAction(
                        action="addChecklistItem",
                        card_id=card.id,
                        list_name=trello_list.name,
                        suggested_value={"itemName": thresholds.DEFINE_DUE_DATE_ITEM},
                    )
                )

            if not card.labels:
                buckets[CleanupType.LABEL_MISSING].append(
                    CleanupAction(
                        action="applyLabel",
                        card_id=card.id,
                        list_name=trello_list.name,
                        suggested_value={"label": thresholds.CATEGORIZE_LABEL_NAME},
                    )
                )

            if due is not None and not card.due_complete and due < now:
                buckets[CleanupType.SHIFT_OVERDUE].append(
                    CleanupAction(
                        action="shiftDueDates",
                        card_id=card.id,
                        list_name=trello_list.name,
                        suggested_value=thresholds.OVERDUE_SHIFT_HINT,
                    )
                )

            if not card.checklists:
                buckets[CleanupType.ADD_CHECKLIST_FOR_MISSING_PROCESS].append(
                    CleanupAction(
                        action="addChecklistItem",
                        card_id=card.id,
                        list_name=trello_list.name,
                        suggested_value=thresholds.DEFINE_PROCESS_ITEM,
                    )
                )

    threshold = rebalance_threshold(snapshot)
    if threshold > 0:
        for trello_list in snapshot.lists:
            if len(trello_list.cards) > threshold:
                buckets[CleanupType.REBALANCE_LISTS].extend(
                    CleanupAction(
                        action="moveCardToList",
                        card_id=card.id,
                        list_name=trello_list.name,
                        suggested_value=thresholds.REBALANCE_TARGET_LIST,
                    )
                    for card in trello_list.cards
                )

    return [
        CleanupSuggestion(type=kind, message=message, actions=buckets[kind])
        for kind, message in SUGGESTION_MESSAGES.items()
        if buckets[kind]
    ]


async def suggest_cleanup(ctx: AnalyticsContext, board_name: str) -> CleanupPlan:
    board_name = require_name(board_name, "boardName")
    snapshot = await build_snapshot(ctx, board_name)
    now = ctx.now()
    return CleanupPlan(board_name=snapshot.board_name, generated_at=now, suggestions=plan_cleanup(snapshot, now))
