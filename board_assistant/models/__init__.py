"""Pydantic models for Trello entities, reports and requests."""

from board_assistant.models.board import (
    Action,
    Board,
    BoardSnapshot,
    Card,
    Checklist,
    ChecklistItem,
    Label,
    Member,
    SnapshotList,
    SnapshotStats,
    TrelloList,
)
from board_assistant.models.reports import (
    Anomaly,
    AnomalyType,
    CardTimeline,
    CleanupAction,
    CleanupPlan,
    CleanupSuggestion,
    CleanupType,
    HealthLevel,
    HealthReport,
    HistoryReport,
    ListHealthReport,
    NarrativeSummary,
    OverdueReport,
    OverdueTask,
    PeriodAnalyzed,
    PrioritizedCard,
    PriorityPlan,
    Problem,
    ProblemType,
    Recommendation,
    SummaryReport,
)

__all__ = [
    "Action",
    "Anomaly",
    "AnomalyType",
    "Board",
    "BoardSnapshot",
    "Card",
    "CardTimeline",
    "Checklist",
    "ChecklistItem",
    "CleanupAction",
    "CleanupPlan",
    "CleanupSuggestion",
    "CleanupType",
    "HealthLevel",
    "HealthReport",
    "HistoryReport",
    "Label",
    "ListHealthReport",
    "Member",
    "NarrativeSummary",
    "OverdueReport",
    "OverdueTask",
    "PeriodAnalyzed",
    "PrioritizedCard",
    "PriorityPlan",
    "Problem",
    "ProblemType",
    "Recommendation",
    "SnapshotList",
    "SnapshotStats",
    "SummaryReport",
    "TrelloList",
]
