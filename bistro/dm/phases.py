from enum import Enum


class DialogPhase(str, Enum):
    INITIAL = "initial"
    PRESENTING_OPTIONS = "presenting_options"
    AWAITING_QUANTITY = "awaiting_quantity"
    AWAITING_MORE = "awaiting_more"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETED = "completed"


# Phases in which a category keyword starts (or restarts) a menu search.
CATEGORY_PHASES = (DialogPhase.INITIAL, DialogPhase.PRESENTING_OPTIONS)
