"""Board and list health analysis.

Scans snapshot cards for known problem patterns and proposes deduplicated
remediations, then grades the result as good, medium or bad.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from board_assistant.config import thresholds
from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import BoardAssistantError, require_name
from board_assistant.models.board import Action, Card
from board_assistant.models.reports import (
    HealthLevel,
    HealthReport,
    ListHealthReport,
    Problem,
    ProblemType,
    Recommendation,
)
from board_assistant.services.snapshot import build_snapshot
from board_assistant.utils.timeparse import to_iso


logger = logging.getLogger("board_assistant.health")

ACTIVITY_ACTION_TYPES = ("updateCard", "commentCard")


@dataclass
class ActivityFeed:
    """Latest activity per card, or an explicit "no data" state."""

    available: bool
    last_activity: Dict[str, datetime] = field(default_factory=dict)

    @classmethod
    def absent(cls) -> "ActivityFeed":
        return cls(available=False)

    @classmethod
    def from_actions(cls, actions: Iterable[Action]) -> "ActivityFeed":
        latest: Dict[str, datetime] = {}
        for action in actions:
            card_id = action.card_id()
            when = action.timestamp()
            if not card_id or when is None:
                continue
            if card_id not in latest or when > latest[card_id]:
                latest[card_id] = when
        return cls(available=True, last_activity=latest)

    def last_for(self, card_id: str) -> Optional[datetime]:
        return self.last_activity.get(card_id)


async def load_activity(ctx: AnalyticsContext, board_id: str) -> ActivityFeed:
    """Fetch recent card activity; failures degrade to an absent feed."""

    try:
        actions = await ctx.trello.get_board_actions(board_id, filter=ACTIVITY_ACTION_TYPES)
    except BoardAssistantError as exc:
        logger.warning("Could not load recent activity for board %s: %s", board_id, exc.message)
        return ActivityFeed.absent()
    return ActivityFeed.from_actions(actions)


class _Findings:
    def __init__(self) -> None:
        self.problems: List[Problem] = []
        self.recommendations: List[Recommendation] = []
        self._seen: Set[Tuple[str, Optional[str]]] = set()

    def problem(self, kind: ProblemType, card: Card, list_name: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.problems.append(
            Problem(type=kind, card_id=card.id, card_name=card.name, list_name=list_name, details=details)
        )

    def recommend(self, action: str, card: Optional[Card], list_name: str, suggested_value: Any = None) -> None:
        recommendation = Recommendation(
            action=action,
            card_id=card.id if card is not None else None,
            list_name=list_name,
            suggested_value=suggested_value,
        )
        key = recommendation.dedup_key()
        if key in self._seen:
            return
        self._seen.add(key)
        self.recommendations.append(recommendation)


def evaluate_card(findings: _Findings, card: Card, list_name: str, activity: ActivityFeed, now: datetime) -> None:
    due = card.due_date()
    if due is not None:
        if not card.due_complete and due < now:
            findings.problem(ProblemType.OVERDUE, card, list_name)
            findings.recommend("shiftDueDates", card, list_name, {"days": thresholds.OVERDUE_SHIFT_DAYS})
        elif now <= due <= now + timedelta(hours=thresholds.DUE_SOON_HOURS):
            findings.problem(ProblemType.DUE_SOON, card, list_name, {"due": card.due})
    else:
        findings.problem(ProblemType.NO_DUE_DATE, card, list_name)
        findings.recommend("addChecklistItem", card, list_name, {"itemName": thresholds.DEFINE_DUE_DATE_ITEM})

    if not card.members:
        findings.problem(ProblemType.UNASSIGNED, card, list_name)
        findings.recommend("applyLabel", card, list_name, {"label": thresholds.ASSIGN_LABEL_NAME})

    if card.checklists and all(not checklist.items for checklist in card.checklists):
        findings.problem(ProblemType.EMPTY_CHECKLIST, card, list_name)
        findings.recommend("addChecklistItem", card, list_name, {"itemName": thresholds.ADD_STEPS_ITEM})

    last_activity = activity.last_for(card.id)
    if last_activity is None or last_activity < now - timedelta(days=thresholds.STALLED_AFTER_DAYS):
        findings.problem(
            ProblemType.STALLED,
            card,
            list_name,
            {"lastActivity": to_iso(last_activity), "activityData": activity.available},
        )
        findings.recommend("moveCardToList", card, list_name, {"targetList": thresholds.REVIEW_LIST_NAME})

    if not card.labels:
        findings.problem(ProblemType.NO_LABEL, card, list_name)
        findings.recommend("applyLabel", card, list_name, {"label": thresholds.CATEGORIZE_LABEL_NAME})
    elif len(card.labels) > thresholds.MAX_LABELS_PER_CARD:
        findings.problem(ProblemType.TOO_MANY_LABELS, card, list_name, {"labelsCount": len(card.labels)})

    if len(card.desc) > thresholds.LONG_DESCRIPTION_CHARS:
        findings.problem(ProblemType.LONG_DESCRIPTION, card, list_name, {"length": len(card.desc)})


def evaluate_cards(
    cards: Iterable[Tuple[str, Card]],
    activity: ActivityFeed,
    now: datetime,
) -> Tuple[List[Problem], List[Recommendation]]:
    """Run every card rule over ``(list_name, card)`` pairs."""

    findings = _Findings()
    for list_name, card in cards:
        evaluate_card(findings, card, list_name, activity, now)
    return findings.problems, findings.recommendations


def health_verdict(problem_count: int, ceilings: Tuple[int, int]) -> HealthLevel:
    good_max, medium_max = ceilings
    if problem_count > medium_max:
        return HealthLevel.BAD
    if problem_count > good_max:
        return HealthLevel.MEDIUM
    return HealthLevel.GOOD


async def analyze_board(ctx: AnalyticsContext, board_name: str) -> HealthReport:
    """Health report for every card of the board."""

    board_name = require_name(board_name, "boardName")
    snapshot = await build_snapshot(ctx, board_name)
    activity = await load_activity(ctx, snapshot.board_id)
    now = ctx.now()

    problems, recommendations = evaluate_cards(
        ((trello_list.name, card) for trello_list, card in snapshot.iter_cards()),
        activity,
        now,
    )
    return HealthReport(
        board_name=snapshot.board_name,
        generated_at=now,
        health=health_verdict(len(problems), thresholds.BOARD_HEALTH_CEILINGS),
        problems=problems,
        recommendations=recommendations,
    )


async def analyze_list(ctx: AnalyticsContext, board_name: str, list_name: str) -> ListHealthReport:
    """Health report for the cards of one list (case-insensitive name)."""

    board_name = require_name(board_name, "boardName")
    list_name = require_name(list_name, "listName")
    snapshot = await build_snapshot(ctx, board_name)
    target = snapshot.find_list(list_name)
    if target is None:
        raise BoardAssistantError.not_found("List", list_name, board_name=board_name)

    activity = await load_activity(ctx, snapshot.board_id)
    now = ctx.now()

    problems, recommendations = evaluate_cards(((target.name, card) for card in target.cards), activity, now)
    return ListHealthReport(
        board_name=snapshot.board_name,
        list_name=target.name,
        generated_at=now,
        health=health_verdict(len(problems), thresholds.LIST_HEALTH_CEILINGS),
        problems=problems,
        recommendations=recommendations,
    )
