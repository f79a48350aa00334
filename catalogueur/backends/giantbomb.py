"""GiantBomb game database backend."""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from catalogueur.api.error_handler import (
    CatalogError,
    FatalCatalogError,
    SkippableCatalogError,
    handle_http_status,
)
from catalogueur.api.throttle import RateLimit, ThrottleManager
from catalogueur.config.settings import ApiSettings, GiantBombSettings
from catalogueur.models import Candidate, GameDetails, ImageVariant, ItemOption, Link, LocalGame

logger = logging.getLogger(__name__)


GAME_GUID_RE = re.compile(r"giantbomb\.com/(?:[^/]+/)?(?P<guid>3030-\d+)", re.IGNORECASE)

SEARCH_FIELDS = "guid,id,name,aliases,platforms,original_release_date,expected_release_year,deck,site_detail_url"

# GiantBomb reports errors in the body with HTTP 200
STATUS_OK = 1
STATUS_INVALID_API_KEY = 100
STATUS_NOT_FOUND = 101
STATUS_RATE_LIMITED = 107


def parse_release_date(game: Dict[str, Any]) -> Optional[date]:
    """
    Release date of a GiantBomb game object.

    original_release_date ("2004-11-16" or "2004-11-16 00:00:00") wins;
    otherwise the expected year/month/day parts, missing parts as 1.
    """
    original = game.get("original_release_date")
    if original:
        try:
            return date.fromisoformat(str(original)[:10])
        except ValueError:
            logger.debug(f"Unparseable release date {original!r}")

    year = game.get("expected_release_year")
    if not year:
        return None
    try:
        return date(int(year), int(game.get("expected_release_month") or 1), int(game.get("expected_release_day") or 1))
    except (TypeError, ValueError):
        return None


def split_aliases(aliases: Optional[str]) -> Tuple[str, ...]:
    """Aliases come as one newline separated string."""
    if not aliases:
        return ()
    return tuple(a.strip() for a in aliases.splitlines() if a.strip())


def _names(objects: Optional[List[Dict[str, Any]]]) -> List[str]:
    return [o["name"].strip() for o in objects or [] if o.get("name")]


def _image_variants(images: Optional[List[Dict[str, Any]]]) -> List[ImageVariant]:
    variants = []
    for image in images or []:
        url = image.get("original") or image.get("original_url") or image.get("super_url")
        if url:
            variants.append(ImageVariant(url=url, thumbnail_url=image.get("thumb") or image.get("small_url")))
    return variants


class GiantBombBackend:
    """
    SearchBackend for the GiantBomb API.

    Handles the API key, request throttling and JSON parsing. Transient
    errors answer searches with no candidates; an invalid API key raises
    FatalCatalogError.
    """

    BASE_URL = "https://www.giantbomb.com/api"

    def __init__(
        self,
        settings: GiantBombSettings,
        api: Optional[ApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        throttle_manager: Optional[ThrottleManager] = None,
    ):
        """
        Initialize backend.

        Args:
            settings: GiantBomb settings (API key, hourly request limit)
            api: Shared HTTP settings
            client: Optional httpx.AsyncClient for connection pooling
            throttle_manager: Optional ThrottleManager; one enforcing
                settings.requests_per_hour is created otherwise
        """
        if not settings.api_key:
            raise FatalCatalogError("GiantBomb API key is not configured (giantbomb.api_key)")

        self.settings = settings
        self.api = api or ApiSettings()
        self.client = client or httpx.AsyncClient(headers={"User-Agent": self.api.user_agent})
        self.throttle_manager = throttle_manager or ThrottleManager(
            RateLimit(calls=settings.requests_per_hour, window_seconds=3600)
        )

    def _build_redacted_url(self, url: str, params: Dict[str, Any]) -> str:
        redacted = dict(params)
        if "api_key" in redacted:
            redacted["api_key"] = "redacted"
        return f"{url}?{urlencode(redacted)}"

    async def _get(self, endpoint: str, resource: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make one API request.

        Args:
            endpoint: Throttle bucket ('search', 'game')
            resource: Path below BASE_URL
            params: Query parameters (api_key and format are added)

        Returns:
            Decoded response body

        Raises:
            FatalCatalogError: Invalid API key
            RetryableCatalogError: Rate limit or server trouble
            SkippableCatalogError: Not found / malformed response
        """
        await self.throttle_manager.wait_if_needed(endpoint)

        url = f"{self.BASE_URL}/{resource}"
        params = {"api_key": self.settings.api_key, "format": "json", **params}

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"API Request: {self._build_redacted_url(url, params)}")

        response = await self.client.get(url, params=params, timeout=self.api.request_timeout)

        handle_http_status(
            response.status_code,
            context=f"{endpoint}:{resource}",
            throttle_manager=self.throttle_manager,
            endpoint=endpoint,
            retry_after=response.headers.get("Retry-After"),
        )

        try:
            body = response.json()
        except ValueError as e:
            raise SkippableCatalogError(f"Invalid JSON response: {e}")

        status = body.get("status_code")
        if status == STATUS_INVALID_API_KEY:
            raise FatalCatalogError("Invalid GiantBomb API key")
        if status == STATUS_RATE_LIMITED:
            handle_http_status(429, context=resource, throttle_manager=self.throttle_manager, endpoint=endpoint)
        if status == STATUS_NOT_FOUND:
            raise SkippableCatalogError(f"Object not found ({resource})")
        if status != STATUS_OK:
            raise SkippableCatalogError(f"API error: {body.get('error')}")

        self.throttle_manager.reset_backoff(endpoint)
        return body

    async def search(self, query: str) -> List[Candidate]:
        """
        Search games by name.

        Args:
            query: Free text

        Returns:
            Candidates in GiantBomb relevance order (empty on failure)
        """
        if not query or not query.strip():
            return []

        try:
            body = await self._get("search", "search/", {
                "query": query,
                "resources": "game",
                "field_list": SEARCH_FIELDS,
                "limit": 50,
            })
        except FatalCatalogError:
            raise
        except (CatalogError, httpx.HTTPError) as e:
            logger.warning(f"GiantBomb search for '{query}' failed: {e}")
            return []

        candidates = []
        for game in body.get("results") or []:
            name = (game.get("name") or "").strip()
            if not name or not game.get("guid"):
                continue
            candidates.append(Candidate(
                id=game["guid"],
                name=name,
                alternate_names=split_aliases(game.get("aliases")),
                platforms=frozenset(_names(game.get("platforms"))),
                release_date=parse_release_date(game),
                description=game.get("deck"),
                url=game.get("site_detail_url"),
            ))
        logger.debug(f"GiantBomb search '{query}': {len(candidates)} results")
        return candidates

    async def get_details(self, candidate: Candidate) -> GameDetails:
        return await self.get_details_by_guid(candidate.id)

    async def get_details_by_guid(self, guid: str) -> GameDetails:
        """
        Full details of one game.

        Args:
            guid: GiantBomb game guid ("3030-12345")

        Returns:
            GameDetails, empty when the game could not be retrieved
        """
        try:
            body = await self._get("game", f"game/{guid}/", {})
        except FatalCatalogError:
            raise
        except (CatalogError, httpx.HTTPError) as e:
            logger.warning(f"GiantBomb details for {guid} failed: {e}")
            return GameDetails()

        game = body.get("results") or {}
        if not game.get("name"):
            return GameDetails()
        return self._to_details(game)

    def _to_details(self, game: Dict[str, Any]) -> GameDetails:
        image = game.get("image") or {}
        cover_options = []
        if image.get("original_url"):
            cover_options.append(ImageVariant(url=image["original_url"], thumbnail_url=image.get("small_url")))
        icon_options = []
        if image.get("icon_url"):
            icon_options.append(ImageVariant(url=image["icon_url"]))

        links = []
        if game.get("site_detail_url"):
            links.append(Link("Giant Bomb", game["site_detail_url"]))

        return GameDetails(
            names=[game["name"], *split_aliases(game.get("aliases"))],
            description=game.get("description") or game.get("deck"),
            tags=_names(game.get("themes")),
            genres=_names(game.get("genres")),
            developers=_names(game.get("developers")),
            publishers=_names(game.get("publishers")),
            series=_names(game.get("franchises")),
            age_ratings=_names(game.get("original_game_rating")),
            links=links,
            platforms=_names(game.get("platforms")),
            release_date=parse_release_date(game),
            cover_options=cover_options,
            icon_options=icon_options,
            background_options=_image_variants(game.get("images")),
        )

    async def try_get_details(self, game: LocalGame) -> Tuple[bool, GameDetails]:
        """
        Resolve straight from a GiantBomb link on the local record.

        Returns:
            (True, details) when the record links to a GiantBomb game page
            that could be retrieved, (False, empty) otherwise
        """
        for link in game.links:
            match = GAME_GUID_RE.search(link.url or "")
            if not match:
                continue
            details = await self.get_details_by_guid(match.group("guid"))
            if not details.is_empty:
                return True, details
        return False, GameDetails()

    def to_item_option(self, candidate: Candidate) -> ItemOption:
        parts = []
        if candidate.release_date:
            parts.append(str(candidate.release_date.year))
        if candidate.platforms:
            parts.append(", ".join(sorted(candidate.platforms)))
        if candidate.description:
            parts.append(candidate.description)
        return ItemOption(item=candidate, name=candidate.name, description=" | ".join(parts))
