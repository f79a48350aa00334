"""
Resolution of a local game entry to one catalog record.

One ResolutionEngine handles one local record against one SearchBackend:

    PENDING -> SEARCH_ISSUED -> FILTERED -> AUTO_RESOLVED        -> RESOLVED
                                         -> AWAITING_USER_CHOICE -> RESOLVED

Candidates are kept when their name (or an alternate name) has the same
comparison key as the local name and their platforms overlap the local
platforms. Several survivors are settled by release date proximity in
unattended mode, or by a human in interactive mode. The resolved
GameDetails is computed once and every field accessor projects from it.
"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional

from catalogueur.matching.name_normalizer import names_match
from catalogueur.matching.platform_matcher import platforms_overlap
from catalogueur.models import Candidate, GameDetails, ItemOption, Link, LocalGame
from catalogueur.resolution.backend import to_item_option
from catalogueur.resolution.image_selector import select_image
from catalogueur.resolution.modes import ResolutionMode, ResolutionState

logger = logging.getLogger(__name__)


# A candidate without a release date loses to any dated candidate within two
# years but still beats worse ones
MISSING_RELEASE_DATE_PENALTY_DAYS = 365 * 2


def days_apart(search_date: Optional[date], result_date: Optional[date]) -> int:
    """
    Release date distance used to rank same-name candidates.

    Args:
        search_date: Release date of the local record
        result_date: Release date of the candidate

    Returns:
        Absolute distance in days; 0 for every candidate when the local
        record has no date, MISSING_RELEASE_DATE_PENALTY_DAYS when only the
        candidate lacks one
    """
    if search_date is None:
        return 0
    if result_date is None:
        return MISSING_RELEASE_DATE_PENALTY_DAYS
    return abs((search_date - result_date).days)


def closest_by_release_date(candidates: List[Candidate], release_date: Optional[date]) -> Candidate:
    """
    Pick the candidate released closest to release_date.

    Ties (including "no local date") go to the earliest candidate in
    search order.
    """
    return min(candidates, key=lambda c: days_apart(release_date, c.release_date))


def has_matching_name(
    candidate: Candidate,
    local_name: str,
    number_length: int = 1,
    remove_edition_markers: bool = True,
) -> bool:
    """
    Check whether any of a candidate's names has the same comparison key as local_name.

    Args:
        candidate: Search hit
        local_name: Name of the local record
        number_length: Number padding of the comparison keys
        remove_edition_markers: Strip edition markers before comparing

    Returns:
        True on an exact, non-empty key match
    """
    return any(
        names_match(local_name, name, number_length, remove_edition_markers)
        for name in candidate.all_names
        if name
    )


class ResolutionEngine:
    """
    Resolves one local record against one catalog.

    Example:
        engine = ResolutionEngine(backend, LocalGame(name="Doom II"), ResolutionMode.UNATTENDED)
        details = await engine.resolve()
        description = await engine.get_description()  # no further requests
    """

    def __init__(
        self,
        backend,
        game: LocalGame,
        mode: ResolutionMode = ResolutionMode.UNATTENDED,
        chooser=None,
        number_length: int = 1,
        remove_edition_markers: bool = True,
    ):
        """
        Initialize a resolution.

        Args:
            backend: SearchBackend for the catalog
            game: Local record to resolve
            mode: Unattended (batch) or interactive (foreground)
            chooser: Chooser for interactive prompts; required in
                interactive mode
            number_length: Number padding for name comparison keys
            remove_edition_markers: Strip edition markers from names
        """
        if mode is ResolutionMode.INTERACTIVE and chooser is None:
            raise ValueError("Interactive resolution needs a chooser")

        self.backend = backend
        self.game = game
        self.mode = mode
        self.chooser = chooser
        self.number_length = number_length
        self.remove_edition_markers = remove_edition_markers

        self.state = ResolutionState.PENDING
        self.state_history: List[ResolutionState] = [self.state]

        self._details: Optional[GameDetails] = None
        self._lock = asyncio.Lock()
        # query -> raw results, so the prompt's initial search is not re-issued
        self._search_results: Dict[str, List[Candidate]] = {}

    def _set_state(self, state: ResolutionState) -> None:
        logger.debug(f"Resolution of '{self.game.name}': {self.state.value} -> {state.value}")
        self.state = state
        self.state_history.append(state)

    async def resolve(self) -> GameDetails:
        """
        Resolve the local record, once.

        Concurrent callers wait for the first computation; later calls
        return the cached result without touching the backend.

        Returns:
            Resolved GameDetails, or an empty GameDetails when nothing matched
        """
        if self._details is not None:
            return self._details

        async with self._lock:
            if self._details is None:
                details = await self._resolve_uncached()
                self._details = details if details is not None else GameDetails()
                self._set_state(ResolutionState.RESOLVED)
        return self._details

    async def _resolve_uncached(self) -> GameDetails:
        if not self.game.name or not self.game.name.strip():
            logger.debug("Local record has no name, nothing to resolve")
            return GameDetails()

        if self.mode is ResolutionMode.UNATTENDED:
            try_get_details = getattr(self.backend, "try_get_details", None)
            if try_get_details is not None:
                found, details = await try_get_details(self.game)
                if found:
                    logger.info(f"Resolved '{self.game.name}' from its identifiers")
                    return details

        candidate = await self._find_candidate()
        if candidate is None:
            return GameDetails()

        logger.info(f"Resolved '{self.game.name}' to '{candidate.name}' ({candidate.id})")
        return await self.backend.get_details(candidate)

    async def _find_candidate(self) -> Optional[Candidate]:
        name = self.game.name
        results = await self.backend.search(name)
        self._set_state(ResolutionState.SEARCH_ISSUED)
        if not results:
            logger.info(f"No search results for '{name}'")
            return None
        self._search_results[name] = results

        matches = [
            c for c in results
            if has_matching_name(c, name, self.number_length, self.remove_edition_markers)
            and platforms_overlap(self.game.platforms, c.platforms)
        ]
        self._set_state(ResolutionState.FILTERED)
        logger.debug(f"'{name}': {len(matches)} of {len(results)} search results match")

        if not matches:
            return None

        if len(matches) == 1:
            self._set_state(ResolutionState.AUTO_RESOLVED)
            return matches[0]

        if self.mode is ResolutionMode.UNATTENDED:
            self._set_state(ResolutionState.AUTO_RESOLVED)
            best = closest_by_release_date(matches, self.game.release_date)
            logger.info(
                f"'{name}': picked '{best.name}' ({best.release_date}) out of {len(matches)} "
                f"matches by release date proximity to {self.game.release_date}"
            )
            return best

        self._set_state(ResolutionState.AWAITING_USER_CHOICE)
        selected = await self.chooser.prompt_with_search(name, self._search_options)
        if selected is None:
            logger.info(f"User cancelled the selection for '{name}'")
            return None
        return selected.item

    async def _search_options(self, query: str) -> List[ItemOption]:
        """
        Search callback for the interactive prompt, invoked per typed query.

        Errors only cost the current query its results; they never end
        the prompt.
        """
        if not query or not query.strip():
            return []

        results = self._search_results.get(query)
        if results is None:
            try:
                results = await self.backend.search(query)
            except Exception:
                logger.exception(f"Failed to get search data for <{query}>")
                return []
            self._search_results[query] = results or []

        return [to_item_option(self.backend, c) for c in results or []]

    # Field accessors. Empty collections come back as None so "no data"
    # is uniform across fields.

    async def get_name(self) -> Optional[str]:
        return (await self.resolve()).name

    async def get_description(self) -> Optional[str]:
        return (await self.resolve()).description

    async def get_tags(self) -> Optional[List[str]]:
        return (await self.resolve()).tags or None

    async def get_genres(self) -> Optional[List[str]]:
        return (await self.resolve()).genres or None

    async def get_features(self) -> Optional[List[str]]:
        return (await self.resolve()).features or None

    async def get_developers(self) -> Optional[List[str]]:
        return (await self.resolve()).developers or None

    async def get_publishers(self) -> Optional[List[str]]:
        return (await self.resolve()).publishers or None

    async def get_series(self) -> Optional[List[str]]:
        return (await self.resolve()).series or None

    async def get_age_ratings(self) -> Optional[List[str]]:
        return (await self.resolve()).age_ratings or None

    async def get_links(self) -> Optional[List[Link]]:
        return (await self.resolve()).links or None

    async def get_platforms(self) -> Optional[List[str]]:
        return (await self.resolve()).platforms or None

    async def get_release_date(self) -> Optional[date]:
        return (await self.resolve()).release_date

    async def get_community_score(self) -> Optional[int]:
        return (await self.resolve()).community_score

    async def get_critic_score(self) -> Optional[int]:
        return (await self.resolve()).critic_score

    async def get_install_size(self) -> Optional[int]:
        return (await self.resolve()).install_size

    async def get_cover_image(self) -> Optional[str]:
        details = await self.resolve()
        return await select_image(details.cover_options, self.mode, self.chooser, "Select cover")

    async def get_icon(self) -> Optional[str]:
        details = await self.resolve()
        return await select_image(details.icon_options, self.mode, self.chooser, "Select icon")

    async def get_background_image(self) -> Optional[str]:
        details = await self.resolve()
        return await select_image(details.background_options, self.mode, self.chooser, "Select background")


async def resolve_game(
    backend,
    game: LocalGame,
    mode: ResolutionMode = ResolutionMode.UNATTENDED,
    chooser=None,
) -> GameDetails:
    """
    Resolve a local record in one call.

    Args:
        backend: SearchBackend for the catalog
        game: Local record
        mode: Unattended or interactive
        chooser: Chooser for interactive prompts

    Returns:
        Resolved GameDetails (empty when nothing matched)
    """
    return await ResolutionEngine(backend, game, mode, chooser).resolve()
