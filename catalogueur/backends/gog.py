"""GOG storefront backend."""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from catalogueur.api.error_handler import CatalogError, FatalCatalogError, SkippableCatalogError, handle_http_status
from catalogueur.config.settings import ApiSettings, GogSettings
from catalogueur.models import Candidate, GameDetails, ImageVariant, ItemOption, Link, LocalGame

logger = logging.getLogger(__name__)


SEARCH_URL = "https://embed.gog.com/games/ajax/filtered"
PRODUCT_URL = "https://api.gog.com/products/{product_id}"
STORE_URL = "https://www.gog.com"

# worksOn / content_system_compatibility keys
WORKS_ON_PLATFORMS = {
    "windows": "PC (Windows)",
    "mac": "Macintosh",
    "osx": "Macintosh",
    "linux": "PC (Linux)",
}


def absolute_image_url(url: Optional[str]) -> Optional[str]:
    """GOG serves protocol-relative image URLs ("//images.gog.com/...")."""
    if not url:
        return None
    if url.startswith("//"):
        return f"https:{url}"
    return url


def parse_platforms(works_on: Optional[Dict[str, bool]]) -> List[str]:
    platforms = []
    for key, supported in (works_on or {}).items():
        name = WORKS_ON_PLATFORMS.get(key.lower())
        if supported and name and name not in platforms:
            platforms.append(name)
    return platforms


def parse_search_release_date(value: Any) -> Optional[date]:
    """Search results carry the release date as a unix timestamp."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc).date()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_product_release_date(value: Optional[str]) -> Optional[date]:
    """Product details carry ISO dates ("2008-09-12T00:00:00+0300")."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class GogBackend:
    """SearchBackend for the GOG store."""

    def __init__(
        self,
        settings: Optional[GogSettings] = None,
        api: Optional[ApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize backend.

        Args:
            settings: Store locale settings
            api: Shared HTTP settings
            client: Optional httpx.AsyncClient for connection pooling
        """
        self.settings = settings or GogSettings()
        self.api = api or ApiSettings()
        self.client = client or httpx.AsyncClient(headers={"User-Agent": self.api.user_agent})

    async def _get_json(self, url: str, params: Dict[str, Any], context: str) -> Dict[str, Any]:
        logger.debug(f"API Request: {url} {params}")
        response = await self.client.get(url, params=params, timeout=self.api.request_timeout)
        handle_http_status(response.status_code, context=context)
        try:
            return response.json()
        except ValueError as e:
            raise SkippableCatalogError(f"Invalid JSON response from {url}: {e}")

    async def search(self, query: str) -> List[Candidate]:
        """
        Search the store catalog.

        Args:
            query: Free text

        Returns:
            Candidates in store relevance order (empty on failure)
        """
        if not query or not query.strip():
            return []

        params = {"mediaType": "game", "search": query}
        try:
            body = await self._get_json(SEARCH_URL, params, context=f"search:{query}")
        except FatalCatalogError:
            raise
        except (CatalogError, httpx.HTTPError) as e:
            logger.warning(f"GOG search for '{query}' failed: {e}")
            return []

        candidates = []
        for product in body.get("products") or []:
            title = (product.get("title") or "").strip()
            if not product.get("id") or not title:
                continue
            url = product.get("url")
            candidates.append(Candidate(
                id=str(product["id"]),
                name=title,
                platforms=frozenset(parse_platforms(product.get("worksOn"))),
                release_date=parse_search_release_date(product.get("releaseDate")),
                description=product.get("developer"),
                url=f"{STORE_URL}{url}" if url and url.startswith("/") else url,
            ))
        logger.debug(f"GOG search '{query}': {len(candidates)} results")
        return candidates

    async def get_details(self, candidate: Candidate) -> GameDetails:
        return await self.get_product_details(candidate.id)

    async def get_product_details(self, product_id: str) -> GameDetails:
        """
        Product details by store id.

        Args:
            product_id: GOG product id

        Returns:
            GameDetails, empty when the product could not be retrieved
        """
        params = {"expand": "description,screenshots", "locale": self.settings.locale}
        try:
            product = await self._get_json(
                PRODUCT_URL.format(product_id=product_id), params, context=f"product:{product_id}"
            )
        except FatalCatalogError:
            raise
        except (CatalogError, httpx.HTTPError) as e:
            logger.warning(f"GOG product {product_id} failed: {e}")
            return GameDetails()

        if not product.get("title"):
            return GameDetails()
        return self._to_details(product)

    def _to_details(self, product: Dict[str, Any]) -> GameDetails:
        images = product.get("images") or {}
        description = product.get("description") or {}
        links = []
        product_card = (product.get("links") or {}).get("product_card")
        if product_card:
            links.append(Link("GOG", product_card))

        cover_options = []
        cover = absolute_image_url(images.get("logo2x") or images.get("logo"))
        if cover:
            cover_options.append(ImageVariant(url=cover))

        icon_options = []
        icon = absolute_image_url(images.get("icon"))
        if icon:
            icon_options.append(ImageVariant(url=icon))

        background_options = []
        background = absolute_image_url(images.get("background"))
        if background:
            background_options.append(ImageVariant(url=background))
        for screenshot in product.get("screenshots") or []:
            template = absolute_image_url(screenshot.get("formatter_template_url"))
            if template:
                background_options.append(ImageVariant(
                    url=template.replace("{formatter}", "ggvgl_2x"),
                    thumbnail_url=template.replace("{formatter}", "ggvgm"),
                ))

        return GameDetails(
            names=[product["title"].strip()],
            description=description.get("full") or description.get("lead"),
            links=links,
            platforms=parse_platforms(product.get("content_system_compatibility")),
            release_date=parse_product_release_date(product.get("release_date")),
            cover_options=cover_options,
            icon_options=icon_options,
            background_options=background_options,
        )

    async def try_get_details(self, game: LocalGame) -> Tuple[bool, GameDetails]:
        """
        Resolve straight from the store id of a game imported from GOG.

        Returns:
            (True, details) when the record is a GOG game whose product page
            could be retrieved, (False, empty) otherwise
        """
        if (game.source or "").strip().lower() != "gog" or not game.game_id:
            return False, GameDetails()

        details = await self.get_product_details(game.game_id)
        return (not details.is_empty), details

    def to_item_option(self, candidate: Candidate) -> ItemOption:
        parts = []
        if candidate.release_date:
            parts.append(str(candidate.release_date.year))
        if candidate.platforms:
            parts.append(", ".join(sorted(candidate.platforms)))
        if candidate.description:
            parts.append(candidate.description)
        return ItemOption(item=candidate, name=candidate.name, description=" | ".join(parts))
