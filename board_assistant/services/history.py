"""Action-history audit.

Sorts a board's action feed by date and runs independent passes over it to
detect stalled cards, inactive members, activity spikes and gaps, cards that
bounce between lists and cards with a long cycle time. Also serves the action
timeline of a single card.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from board_assistant.config import thresholds
from board_assistant.core.context import AnalyticsContext
from board_assistant.core.errors import require_name
from board_assistant.models.board import Action, BoardSnapshot
from board_assistant.models.reports import Anomaly, AnomalyType, CardTimeline, HistoryReport, PeriodAnalyzed
from board_assistant.services.snapshot import build_snapshot
from board_assistant.utils.timeparse import to_iso


logger = logging.getLogger("board_assistant.history")

TimedAction = Tuple[datetime, Action]


def sort_actions(actions: List[Action]) -> List[TimedAction]:
    """Dated actions in ascending order; undated ones are dropped."""

    timed = []
    for action in actions:
        when = action.timestamp()
        if when is not None:
            timed.append((when, action))
    timed.sort(key=lambda pair: pair[0])
    return timed


@dataclass
class _CardContext:
    name: str
    list_name: str


@dataclass
class _Timeline:
    """Per-card, per-member and per-day indexes built in one walk."""

    card_first: Dict[str, datetime] = field(default_factory=dict)
    card_last: Dict[str, datetime] = field(default_factory=dict)
    member_last: Dict[str, datetime] = field(default_factory=dict)
    moves: Dict[str, List[datetime]] = field(default_factory=lambda: defaultdict(list))
    per_day: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def index(cls, timed: List[TimedAction]) -> "_Timeline":
        timeline = cls()
        for when, action in timed:
            card_id = action.card_id()
            if card_id:
                timeline.card_first.setdefault(card_id, when)
                timeline.card_last[card_id] = when
                if action.is_list_move():
                    timeline.moves[card_id].append(when)

            actor_id = action.actor_id()
            if actor_id:
                timeline.member_last[actor_id] = when

            day = when.date().isoformat()
            timeline.per_day[day] = timeline.per_day.get(day, 0) + 1
        return timeline


def _card_contexts(snapshot: BoardSnapshot) -> Dict[str, _CardContext]:
    return {card.id: _CardContext(card.name, trello_list.name) for trello_list, card in snapshot.iter_cards()}


def _board_members(snapshot: BoardSnapshot) -> Dict[str, str]:
    members: Dict[str, str] = {}
    for _, card in snapshot.iter_cards():
        for member in card.members:
            identifier = member.identifier
            if identifier:
                members[identifier] = member.display_name or identifier
    return members


def _stalled_cards(cards: Dict[str, _CardContext], timeline: _Timeline, now: datetime) -> List[Anomaly]:
    cutoff = now - timedelta(days=thresholds.STALLED_AFTER_DAYS)
    anomalies = []
    for card_id, context in cards.items():
        last = timeline.card_last.get(card_id)
        if last is None or last < cutoff:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.STALLED_CARD,
                    message=f'Card "{context.name}" has had no activity for more than {thresholds.STALLED_AFTER_DAYS} days.',
                    details={
                        "cardId": card_id,
                        "cardName": context.name,
                        "listName": context.list_name,
                        "lastActionAt": to_iso(last),
                    },
                )
            )
    return anomalies


def _inactive_members(members: Dict[str, str], timeline: _Timeline, now: datetime) -> List[Anomaly]:
    cutoff = now - timedelta(days=thresholds.INACTIVE_MEMBER_DAYS)
    anomalies = []
    for member_id, member_name in members.items():
        last = timeline.member_last.get(member_id)
        if last is None or last < cutoff:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.INACTIVE_MEMBER,
                    message=f'Member "{member_name}" has been inactive for more than {thresholds.INACTIVE_MEMBER_DAYS} days.',
                    details={"memberId": member_id, "memberName": member_name, "lastActionAt": to_iso(last)},
                )
            )
    return anomalies


def _activity_spikes(timeline: _Timeline) -> List[Anomaly]:
    if not timeline.per_day:
        return []
    average = sum(timeline.per_day.values()) / len(timeline.per_day)
    anomalies = []
    for day, count in sorted(timeline.per_day.items()):
        if average > 0 and count > average * thresholds.ACTIVITY_SPIKE_FACTOR:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.HIGH_ACTIVITY_SPIKE,
                    message=f"Activity spike on {day} ({count} actions, average {average:.1f}).",
                    details={"day": day, "count": count, "average": average},
                )
            )
    return anomalies


def _quiet_periods(timed: List[TimedAction], since: Optional[str], before: Optional[str]) -> List[Anomaly]:
    if not timed:
        return [
            Anomaly(
                type=AnomalyType.NO_ACTIVITY_PERIOD,
                message="No action found for the analysed period.",
                details={"since": since, "before": before},
            )
        ]

    gap = timedelta(hours=thresholds.NO_ACTIVITY_GAP_HOURS)
    anomalies = []
    for (previous_at, previous), (current_at, current) in zip(timed, timed[1:]):
        if current_at - previous_at > gap:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.NO_ACTIVITY_PERIOD,
                    message=f"No action recorded between {previous.date} and {current.date}.",
                    details={
                        "start": previous.date,
                        "end": current.date,
                        "gapHours": round((current_at - previous_at).total_seconds() / 3600, 1),
                    },
                )
            )
    return anomalies


def has_move_burst(move_times: List[datetime]) -> bool:
    """True when some window of MOVE_WINDOW_HOURS holds more than MAX_MOVES_IN_WINDOW moves."""

    window = timedelta(hours=thresholds.MOVE_WINDOW_HOURS)
    ordered = sorted(move_times)
    start = 0
    for end in range(len(ordered)):
        while ordered[end] - ordered[start] > window:
            start += 1
        if end - start + 1 > thresholds.MAX_MOVES_IN_WINDOW:
            return True
    return False


def _frequent_moves(cards: Dict[str, _CardContext], timeline: _Timeline) -> List[Anomaly]:
    anomalies = []
    for card_id, move_times in timeline.moves.items():
        if not has_move_burst(move_times):
            continue
        context = cards.get(card_id)
        name = context.name if context else card_id
        anomalies.append(
            Anomaly(
                type=AnomalyType.FREQUENT_MOVES,
                message=(
                    f'Card "{name}" was moved more than {thresholds.MAX_MOVES_IN_WINDOW} times '
                    f"within {thresholds.MOVE_WINDOW_HOURS}h."
                ),
                details={
                    "cardId": card_id,
                    "cardName": context.name if context else None,
                    "listName": context.list_name if context else None,
                    "moves": len(move_times),
                },
            )
        )
    return anomalies


def _long_cycles(cards: Dict[str, _CardContext], timeline: _Timeline) -> List[Anomaly]:
    limit = timedelta(days=thresholds.LONG_CYCLE_DAYS)
    anomalies = []
    for card_id, first in timeline.card_first.items():
        last = timeline.card_last[card_id]
        if last - first <= limit:
            continue
        context = cards.get(card_id)
        name = context.name if context else card_id
        anomalies.append(
            Anomaly(
                type=AnomalyType.LONG_CYCLE_TIME,
                message=f'Cycle time of card "{name}" exceeds {thresholds.LONG_CYCLE_DAYS} days.',
                details={
                    "cardId": card_id,
                    "cardName": context.name if context else None,
                    "listName": context.list_name if context else None,
                    "cycleTimeDays": round((last - first) / timedelta(days=1)),
                },
            )
        )
    return anomalies


def detect_anomalies(
    actions: List[Action],
    snapshot: BoardSnapshot,
    now: datetime,
    since: Optional[str] = None,
    before: Optional[str] = None,
) -> List[Anomaly]:
    """Run all history passes over one sorted copy of the feed."""

    timed = sort_actions(actions)
    timeline = _Timeline.index(timed)
    cards = _card_contexts(snapshot)

    anomalies: List[Anomaly] = []
    anomalies.extend(_stalled_cards(cards, timeline, now))
    anomalies.extend(_inactive_members(_board_members(snapshot), timeline, now))
    anomalies.extend(_activity_spikes(timeline))
    anomalies.extend(_quiet_periods(timed, since, before))
    anomalies.extend(_frequent_moves(cards, timeline))
    anomalies.extend(_long_cycles(cards, timeline))
    return anomalies


async def audit_history(
    ctx: AnalyticsContext,
    board_name: str,
    since: Optional[str] = None,
    before: Optional[str] = None,
) -> HistoryReport:
    """Anomalies found in the board's action history for a time window."""

    board_name = require_name(board_name, "boardName")
    board = await ctx.trello.get_board(board_name)
    actions, snapshot = await asyncio.gather(
        ctx.trello.get_board_actions(board.id, since=since, before=before),
        build_snapshot(ctx, board.id),
    )

    anomalies = detect_anomalies(actions, snapshot, ctx.now(), since=since, before=before)
    logger.info("History audit for %s: %s actions, %s anomalies", board.name, len(actions), len(anomalies))
    return HistoryReport(
        board_name=board.name,
        generated_at=ctx.now(),
        period_analyzed=PeriodAnalyzed(since=since, before=before, total_actions=len(actions)),
        anomalies=anomalies,
    )


async def card_timeline(
    ctx: AnalyticsContext,
    board_name: str,
    card_name: str,
    since: Optional[str] = None,
    before: Optional[str] = None,
    limit: Optional[int] = None,
) -> CardTimeline:
    """Actions of one card, found by exact name, oldest first."""

    board_name = require_name(board_name, "boardName")
    card_name = require_name(card_name, "cardName")
    board = await ctx.trello.get_board(board_name)
    card = await ctx.trello.find_card_by_name(board.id, card_name, board_name=board.name)
    actions = await ctx.trello.get_card_actions(card.id, since=since, before=before, limit=limit)

    return CardTimeline(
        board_name=board.name,
        card_id=card.id,
        card_name=card.name,
        actions=[action for _, action in sort_actions(actions)],
    )
