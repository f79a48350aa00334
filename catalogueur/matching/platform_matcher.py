"""
Platform compatibility checks between a local record and search candidates.

Catalogs spell platforms differently ("PC", "Windows", "PC (Microsoft
Windows)"), so names are first mapped through an alias table to a platform
id; names without an alias are compared case-insensitively as-is.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


PLATFORM_ALIASES: Dict[str, List[str]] = {
    'pc_windows': ['pc', 'windows', 'win', 'pc windows', 'pc (windows)',
                   'pc (microsoft windows)', 'microsoft windows', 'pc_windows'],
    'pc_linux': ['linux', 'pc (linux)', 'steamos', 'pc_linux'],
    'macintosh': ['mac', 'macos', 'mac os', 'os x', 'osx', 'macintosh', 'pc (mac)'],
    'pc_dos': ['dos', 'ms-dos', 'pc (dos)', 'pc_dos'],
    'sony_playstation': ['playstation', 'ps1', 'psx', 'psone', 'ps one',
                         'sony playstation', 'sony_playstation'],
    'sony_playstation2': ['playstation 2', 'ps2', 'sony playstation 2', 'sony_playstation2'],
    'sony_playstation3': ['playstation 3', 'ps3', 'sony playstation 3', 'sony_playstation3'],
    'sony_playstation4': ['playstation 4', 'ps4', 'sony playstation 4', 'sony_playstation4'],
    'sony_playstation5': ['playstation 5', 'ps5', 'sony playstation 5', 'sony_playstation5'],
    'sony_psp': ['psp', 'playstation portable', 'sony psp', 'sony_psp'],
    'sony_vita': ['ps vita', 'psvita', 'playstation vita', 'vita', 'sony_vita'],
    'xbox': ['xbox', 'microsoft xbox'],
    'xbox360': ['xbox 360', 'x360', 'microsoft xbox 360', 'xbox360'],
    'xbox_one': ['xbox one', 'xone', 'microsoft xbox one', 'xbox_one'],
    'xbox_series': ['xbox series x', 'xbox series s', 'xbox series x|s',
                    'xbox series', 'xsx', 'xbox_series'],
    'nintendo_switch': ['switch', 'nintendo switch', 'nsw', 'nintendo_switch'],
    'nintendo_wii': ['wii', 'nintendo wii', 'nintendo_wii'],
    'nintendo_wiiu': ['wii u', 'wiiu', 'nintendo wii u', 'nintendo_wiiu'],
    'nintendo_gamecube': ['gamecube', 'gcn', 'nintendo gamecube', 'nintendo_gamecube'],
    'nintendo_64': ['nintendo 64', 'n64', 'nintendo_64'],
    'nintendo_super_nes': ['snes', 'super nintendo', 'super nes',
                           'super nintendo entertainment system', 'nintendo_super_nes'],
    'nintendo_nes': ['nes', 'famicom', 'nintendo entertainment system', 'nintendo_nes'],
    'nintendo_3ds': ['3ds', 'nintendo 3ds', 'new nintendo 3ds', 'nintendo_3ds'],
    'nintendo_ds': ['ds', 'nds', 'nintendo ds', 'nintendo_ds'],
    'nintendo_gameboyadvance': ['gba', 'game boy advance', 'nintendo_gameboyadvance'],
    'nintendo_gameboycolor': ['gbc', 'game boy color', 'nintendo_gameboycolor'],
    'nintendo_gameboy': ['gb', 'game boy', 'nintendo_gameboy'],
    'sega_genesis': ['genesis', 'mega drive', 'sega genesis', 'sega mega drive',
                     'genesis/mega drive', 'sega_genesis'],
    'sega_saturn': ['saturn', 'sega saturn', 'sega_saturn'],
    'sega_dreamcast': ['dreamcast', 'sega dreamcast', 'sega_dreamcast'],
    'apple_ios': ['ios', 'iphone', 'ipad', 'apple_ios'],
    'google_android': ['android', 'google_android'],
}

WHITESPACE_RE = re.compile(r"\s+")

_ALIAS_LOOKUP: Dict[str, str] = {
    alias: platform_id
    for platform_id, aliases in PLATFORM_ALIASES.items()
    for alias in aliases
}


def _clean(platform_name: str) -> str:
    return WHITESPACE_RE.sub(" ", platform_name).strip().lower()


def get_platform_id(platform_name: str) -> Optional[str]:
    """
    Map a platform name to its platform id.

    Args:
        platform_name: Platform name as spelled by a catalog

    Returns:
        Platform id from the alias table, the cleaned lowercase name when
        there is no alias, or None for a blank name
    """
    if not platform_name:
        return None

    cleaned = _clean(platform_name)
    if not cleaned:
        return None
    return _ALIAS_LOOKUP.get(cleaned, cleaned)


def get_platform_ids(platform_names: Optional[Iterable[str]]) -> Set[str]:
    """Platform ids for a collection of platform names (blanks dropped)."""
    ids = set()
    for name in platform_names or ():
        platform_id = get_platform_id(name)
        if platform_id:
            ids.add(platform_id)
    return ids


def platforms_overlap(
    requested_platforms: Optional[Iterable[str]],
    candidate_platforms: Optional[Iterable[str]],
) -> bool:
    """
    Check whether a candidate is available on any requested platform.

    An unconstrained side (no platforms at all) always overlaps: the
    caller asked for nothing specific, or the catalog does not track
    platforms.

    Args:
        requested_platforms: Platforms of the local record
        candidate_platforms: Platforms reported by the catalog

    Returns:
        True if the platforms are compatible
    """
    requested = get_platform_ids(requested_platforms)
    if not requested:
        return True

    offered = get_platform_ids(candidate_platforms)
    if not offered:
        return True

    overlap = requested & offered
    if not overlap:
        logger.debug(f"No platform overlap: requested={sorted(requested)} offered={sorted(offered)}")
    return bool(overlap)
