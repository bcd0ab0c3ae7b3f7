"""Report models returned by the analytics services."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from board_assistant.models.board import Action, ApiModel, BoardSnapshot


class HealthLevel(str, Enum):
    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"


class ProblemType(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    NO_DUE_DATE = "no_due_date"
    UNASSIGNED = "unassigned"
    EMPTY_CHECKLIST = "empty_checklist"
    STALLED = "stalled"
    NO_LABEL = "no_label"
    TOO_MANY_LABELS = "too_many_labels"
    LONG_DESCRIPTION = "long_description"


class AnomalyType(str, Enum):
    STALLED_CARD = "stalled_card"
    INACTIVE_MEMBER = "inactive_member"
    HIGH_ACTIVITY_SPIKE = "high_activity_spike"
    NO_ACTIVITY_PERIOD = "no_activity_period"
    FREQUENT_MOVES = "frequent_moves"
    LONG_CYCLE_TIME = "long_cycle_time"


class CleanupType(str, Enum):
    ARCHIVE_OLD_DONE_CARDS = "archive_old_done_cards"
    ADD_MISSING_DUE_DATES = "add_missing_due_dates"
    LABEL_MISSING = "label_missing"
    CLEANUP_EMPTY_LISTS = "cleanup_empty_lists"
    REBALANCE_LISTS = "rebalance_lists"
    SHIFT_OVERDUE = "shift_overdue"
    ADD_CHECKLIST_FOR_MISSING_PROCESS = "add_checklist_for_missing_process"


class Problem(ApiModel):
    type: ProblemType
    card_id: str
    card_name: str
    list_name: str
    details: Optional[Dict[str, Any]] = None


class Recommendation(ApiModel):
    """Suggested remediation, named after the assistant tool that applies it."""

    action: str
    card_id: Optional[str] = None
    list_name: Optional[str] = None
    suggested_value: Optional[Any] = None

    def dedup_key(self) -> tuple:
        return (self.action, self.card_id or self.list_name)


class HealthReport(ApiModel):
    board_name: str
    generated_at: datetime
    health: HealthLevel
    problems: List[Problem] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


class ListHealthReport(HealthReport):
    list_name: str


class Anomaly(ApiModel):
    type: AnomalyType
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class PeriodAnalyzed(ApiModel):
    since: Optional[str] = None
    before: Optional[str] = None
    total_actions: int = 0


class HistoryReport(ApiModel):
    board_name: str
    generated_at: datetime
    period_analyzed: PeriodAnalyzed
    anomalies: List[Anomaly] = Field(default_factory=list)


class CleanupAction(ApiModel):
    action: str
    card_id: Optional[str] = None
    list_name: Optional[str] = None
    suggested_value: Optional[Any] = None


class CleanupSuggestion(ApiModel):
    type: CleanupType
    message: str
    actions: List[CleanupAction] = Field(default_factory=list)


class CleanupPlan(ApiModel):
    board_name: str
    generated_at: datetime
    suggestions: List[CleanupSuggestion] = Field(default_factory=list)


class NarrativeSummary(ApiModel):
    summary_text: str = ""
    key_findings: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)


class SummaryReport(ApiModel):
    board_name: str
    generated_at: datetime
    snapshot: BoardSnapshot
    health_report: HealthReport
    history_report: HistoryReport
    cleanup_plan: CleanupPlan
    summary_text: str
    key_findings: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)


class OverdueTask(ApiModel):
    card_id: str
    card_name: str
    list_name: str
    due: Optional[str] = None
    overdue_by_days: int


class OverdueReport(ApiModel):
    board_name: str
    generated_at: datetime
    tasks: List[OverdueTask] = Field(default_factory=list)


class PrioritizedCard(ApiModel):
    card_id: str
    card_name: str
    due: Optional[str] = None
    priority_score: int
    suggested_position: int


class PriorityPlan(ApiModel):
    board_name: str
    list_name: str
    generated_at: datetime
    cards: List[PrioritizedCard] = Field(default_factory=list)


class CardTimeline(ApiModel):
    board_name: str
    card_id: str
    card_name: str
    actions: List[Action] = Field(default_factory=list)
