"""
Title and platform matching package for catalogueur.

Pure functions used to decide whether a search hit names the same game as
a local record.
"""

from .name_normalizer import normalize_name, names_match, sortable_name, deflate
from .platform_matcher import platforms_overlap, get_platform_id

__all__ = [
    "normalize_name",
    "names_match",
    "sortable_name",
    "deflate",
    "platforms_overlap",
    "get_platform_id",
]
