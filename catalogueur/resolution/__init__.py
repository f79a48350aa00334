"""
Resolution package for catalogueur.

Turns an ambiguous local game entry into one authoritative catalog record.
"""

from .modes import ResolutionMode, ResolutionState
from .engine import ResolutionEngine, resolve_game, days_apart, MISSING_RELEASE_DATE_PENALTY_DAYS
from .image_selector import select_image
from .backend import SearchBackend, IdentifierLookup, to_item_option

__all__ = [
    "ResolutionMode",
    "ResolutionState",
    "ResolutionEngine",
    "resolve_game",
    "days_apart",
    "MISSING_RELEASE_DATE_PENALTY_DAYS",
    "select_image",
    "SearchBackend",
    "IdentifierLookup",
    "to_item_option",
]
