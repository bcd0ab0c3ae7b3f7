"""Analysis thresholds for the board assistant.

Every heuristic used by the analytics services reads its limits from this
module so that scoring rules stay in one place.
"""

# Health analysis.
STALLED_AFTER_DAYS = 7
DUE_SOON_HOURS = 48
OVERDUE_SHIFT_DAYS = 3
MAX_LABELS_PER_CARD = 5
LONG_DESCRIPTION_CHARS = 2000

# Verdict ceilings: (good_max, medium_max). Anything above medium_max is bad.
BOARD_HEALTH_CEILINGS = (3, 10)
LIST_HEALTH_CEILINGS = (1, 5)

# History audit.
INACTIVE_MEMBER_DAYS = 7
ACTIVITY_SPIKE_FACTOR = 3
NO_ACTIVITY_GAP_HOURS = 48
MOVE_WINDOW_HOURS = 48
MAX_MOVES_IN_WINDOW = 5
LONG_CYCLE_DAYS = 21

# Cleanup planning.
OLD_DONE_CARD_DAYS = 30
REBALANCE_FACTOR = 2
REBALANCE_TARGET_LIST = "Backlog"
OVERDUE_SHIFT_HINT = "+3d"

# Prioritization (read-only ranking of a list).
OVERDUE_SCORE = 100
HIGH_PRIORITY_LABEL_SCORE = 50
DUE_SOON_SCORE = 30
NO_DUE_SCORE = 10
HIGH_PRIORITY_LABEL_NAMES = ("urgent", "p1", "priority", "haute priorité")
HIGH_PRIORITY_LABEL_COLORS = ("red",)

# Suggested values. These are the list, label and checklist names used on
# the boards the assistant works with, so they stay in French.
REVIEW_LIST_NAME = "En revue"
ASSIGN_LABEL_NAME = "À assigner"
CATEGORIZE_LABEL_NAME = "À catégoriser"
DEFINE_DUE_DATE_ITEM = "Définir une date d'échéance"
ADD_STEPS_ITEM = "Ajouter étapes"
DEFINE_PROCESS_ITEM = "Définir le process"
