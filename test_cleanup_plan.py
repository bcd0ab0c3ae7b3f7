import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from board_assistant.config import thresholds
from board_assistant.core.context import AnalyticsContext
from board_assistant.models.board import BoardSnapshot, Card, Checklist, ChecklistItem, Label, SnapshotList
from board_assistant.models.reports import CleanupType
from board_assistant.services.cleanup import plan_cleanup, rebalance_threshold, suggest_cleanup


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _iso(delta: timedelta) -> str:
    return (NOW + delta).isoformat().replace("+00:00", "Z")


def _tidy_card(card_id: str, **overrides) -> Card:
    values = dict(
        id=card_id,
        name=f"Card {card_id}",
        due=_iso(timedelta(days=3)),
        labels=[Label(name="Ops")],
        checklists=[Checklist(name="Process", items=[ChecklistItem(name="step")])],
    )
    values.update(overrides)
    return Card(**values)


def _snapshot(**lists) -> BoardSnapshot:
    return BoardSnapshot(
        board_name="Organisation",
        board_id="a" * 24,
        lists=[SnapshotList(id=name, name=name, cards=cards) for name, cards in lists.items()],
    )


def _by_type(suggestions):
    return {suggestion.type: suggestion for suggestion in suggestions}


class TestPlanCleanup(unittest.TestCase):
    def test_tidy_board_needs_nothing(self):
        snapshot = _snapshot(Todo=[_tidy_card("a")], Doing=[_tidy_card("b")])
        self.assertEqual(plan_cleanup(snapshot, NOW), [])

    def test_empty_list_suggestion_only_when_a_list_is_empty(self):
        without_empty = _snapshot(Todo=[_tidy_card("a")])
        self.assertNotIn(CleanupType.CLEANUP_EMPTY_LISTS, _by_type(plan_cleanup(without_empty, NOW)))

        with_empty = _snapshot(Todo=[_tidy_card("a")], Parking=[])
        suggestion = _by_type(plan_cleanup(with_empty, NOW))[CleanupType.CLEANUP_EMPTY_LISTS]
        self.assertEqual([(a.action, a.list_name) for a in suggestion.actions], [("archiveList", "Parking")])

    def test_old_completed_cards_are_archived(self):
        old = _tidy_card("old", due=_iso(timedelta(days=-31)), due_complete=True)
        recent = _tidy_card("recent", due=_iso(timedelta(days=-29)), due_complete=True)

        suggestions = _by_type(plan_cleanup(_snapshot(Done=[old, recent]), NOW))

        archive = suggestions[CleanupType.ARCHIVE_OLD_DONE_CARDS]
        self.assertEqual([a.card_id for a in archive.actions], ["old"])
        self.assertEqual(archive.actions[0].action, "archiveCard")
        self.assertNotIn(CleanupType.SHIFT_OVERDUE, suggestions)

    def test_card_level_buckets(self):
        bare = Card(id="bare", name="Bare", due=_iso(timedelta(days=-2)))
        undated = _tidy_card("undated", due=None)

        suggestions = _by_type(plan_cleanup(_snapshot(Todo=[bare, undated]), NOW))

        shift = suggestions[CleanupType.SHIFT_OVERDUE].actions
        self.assertEqual([(a.card_id, a.suggested_value) for a in shift], [("bare", thresholds.OVERDUE_SHIFT_HINT)])

        due = suggestions[CleanupType.ADD_MISSING_DUE_DATES].actions
        self.assertEqual([a.card_id for a in due], ["undated"])
        self.assertEqual(due[0].suggested_value, {"itemName": thresholds.DEFINE_DUE_DATE_ITEM})

        labels = suggestions[CleanupType.LABEL_MISSING].actions
        self.assertEqual([a.card_id for a in labels], ["bare"])
        self.assertEqual(labels[0].suggested_value, {"label": thresholds.CATEGORIZE_LABEL_NAME})

        process = suggestions[CleanupType.ADD_CHECKLIST_FOR_MISSING_PROCESS].actions
        self.assertEqual([a.card_id for a in process], ["bare"])
        self.assertEqual(process[0].suggested_value, thresholds.DEFINE_PROCESS_ITEM)

    def test_unparsable_due_counts_as_missing(self):
        card = _tidy_card("weird", due="someday")
        suggestions = _by_type(plan_cleanup(_snapshot(Todo=[card]), NOW))
        self.assertEqual([a.card_id for a in suggestions[CleanupType.ADD_MISSING_DUE_DATES].actions], ["weird"])

    def test_overloaded_list_is_rebalanced_to_backlog(self):
        crowded = [_tidy_card(f"c{i}") for i in range(7)]
        snapshot = _snapshot(Todo=crowded, Doing=[_tidy_card("d")], Review=[_tidy_card("r")], Done=[])

        self.assertEqual(rebalance_threshold(snapshot), 4.5)

        rebalance = _by_type(plan_cleanup(snapshot, NOW))[CleanupType.REBALANCE_LISTS]
        self.assertEqual(len(rebalance.actions), 7)
        self.assertEqual({a.list_name for a in rebalance.actions}, {"Todo"})
        self.assertEqual({a.suggested_value for a in rebalance.actions}, {thresholds.REBALANCE_TARGET_LIST})
        self.assertEqual({a.action for a in rebalance.actions}, {"moveCardToList"})

    def test_suggestions_follow_report_order(self):
        stale = Card(id="s", name="Stale", due=_iso(timedelta(days=-40)), due_complete=True)
        bare = Card(id="b", name="Bare")

        suggestions = plan_cleanup(_snapshot(Todo=[stale, bare], Empty=[]), NOW)

        self.assertEqual(
            [s.type for s in suggestions],
            [
                CleanupType.ARCHIVE_OLD_DONE_CARDS,
                CleanupType.ADD_MISSING_DUE_DATES,
                CleanupType.LABEL_MISSING,
                CleanupType.CLEANUP_EMPTY_LISTS,
                CleanupType.ADD_CHECKLIST_FOR_MISSING_PROCESS,
            ],
        )
        self.assertTrue(all(s.actions for s in suggestions))


class TestSuggestCleanup(unittest.TestCase):
    def test_plan_is_built_from_one_snapshot(self):
        async def run():
            snapshot = _snapshot(Todo=[_tidy_card("a")], Parking=[])
            ctx = AnalyticsContext(trello=None, clock=lambda: NOW)

            with patch("board_assistant.services.cleanup.build_snapshot", AsyncMock(return_value=snapshot)) as built:
                plan = await suggest_cleanup(ctx, " Organisation ")

            built.assert_awaited_once_with(ctx, "Organisation")
            self.assertEqual(plan.board_name, "Organisation")
            self.assertEqual(plan.generated_at, NOW)
            self.assertEqual([s.type for s in plan.suggestions], [CleanupType.CLEANUP_EMPTY_LISTS])

        asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
