"""
Data structures shared by the resolution engine, the catalog backends and
the storefront crawlers.

Search hits (Candidate) are lightweight and only live for one resolution.
GameDetails is the fully fetched record handed back to callers; an empty
GameDetails() stands in for "not found" so callers never deal with None.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class Link:
    """Named external link (store page, wiki page, ...)."""
    name: str
    url: str


@dataclass(frozen=True)
class ImageVariant:
    """
    One size/quality variant of an image field.

    url is the full size image; thumbnail_url is only used for previews.
    """
    url: str
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    """
    Lightweight search hit returned by a SearchBackend.

    id is backend-local (GiantBomb guid, GOG product id, wiki URL).
    """
    id: str
    name: str
    alternate_names: Tuple[str, ...] = ()
    platforms: FrozenSet[str] = frozenset()
    release_date: Optional[date] = None
    description: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError(f"Candidate {self.id!r} has an empty name")

    @property
    def all_names(self) -> List[str]:
        """Primary name followed by alternate names."""
        return [self.name, *self.alternate_names]


@dataclass(frozen=True)
class GameDetails:
    """
    Fully fetched, display-ready metadata for one resolved game.

    names[0] is the canonical name. All collections default to empty so a
    bare GameDetails() is the uniform "not found" result.
    """
    names: List[str] = field(default_factory=list)
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    developers: List[str] = field(default_factory=list)
    publishers: List[str] = field(default_factory=list)
    series: List[str] = field(default_factory=list)
    age_ratings: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)
    release_date: Optional[date] = None
    community_score: Optional[int] = None
    critic_score: Optional[int] = None
    install_size: Optional[int] = None
    cover_options: List[ImageVariant] = field(default_factory=list)
    icon_options: List[ImageVariant] = field(default_factory=list)
    background_options: List[ImageVariant] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.names

    @property
    def name(self) -> Optional[str]:
        return self.names[0] if self.names else None


@dataclass(frozen=True)
class LocalGame:
    """
    The ambiguous local record a resolution starts from.

    source/game_id identify the game in the library it was imported from
    (e.g. source="GOG", game_id="1207658924") and feed identifier fast paths.
    """
    name: str = ""
    platforms: Tuple[str, ...] = ()
    release_date: Optional[date] = None
    links: Tuple[Link, ...] = ()
    source: Optional[str] = None
    game_id: Optional[str] = None


@dataclass(frozen=True)
class ItemOption:
    """Row shown in an interactive search prompt."""
    item: Any
    name: str
    description: str = ""


@dataclass(frozen=True)
class ImageOption:
    """Image shown in an interactive image prompt, keyed by its preview path."""
    image: ImageVariant
    path: str


@dataclass(frozen=True)
class DownloadUrl:
    """Downloadable file attached to a scraped store record."""
    url: str
    description: str = ""


@dataclass
class ScrapedGameRecord:
    """
    Game scraped from a storefront order history.

    external_id is the store's id for the game and is unique in the final
    record set; download_urls is pruned in place by the deduplication pass.
    """
    external_id: str
    parent_order_id: int
    title: str
    cover_image_url: Optional[str] = None
    drm: Optional[str] = None
    license_key: Optional[str] = None
    license_key_hidden: bool = False
    download_urls: List[DownloadUrl] = field(default_factory=list)
