"""Resolution modes and states."""

from enum import Enum


class ResolutionMode(Enum):
    """How ambiguity is settled."""
    UNATTENDED = "unattended"    # batch: pick automatically, never prompt
    INTERACTIVE = "interactive"  # foreground: ask a human


class ResolutionState(Enum):
    """Where a single resolution currently is."""
    PENDING = "pending"
    SEARCH_ISSUED = "search_issued"
    FILTERED = "filtered"
    AUTO_RESOLVED = "auto_resolved"
    AWAITING_USER_CHOICE = "awaiting_user_choice"  # only state waiting on a human
    RESOLVED = "resolved"
