"""
TV Tropes wiki backend.

Works page articles carry no platform or release date information, so every
candidate passes the platform filter and release date proximity is always 0;
among several name matches the first search hit wins.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import quote_plus, urljoin

from catalogueur.api.fetcher import PageFetcher, parse_html
from catalogueur.config.settings import TvTropesSettings
from catalogueur.models import Candidate, GameDetails, ImageVariant, ItemOption, Link

logger = logging.getLogger(__name__)


BASE_URL = "https://tvtropes.org"
ARTICLE_PREFIX = f"{BASE_URL}/pmwiki/pmwiki.php/"
SEARCH_URL = (
    BASE_URL + "/pmwiki/elastic_search_result.php?q={query}&page_type={category}&search_type=article"
)

WHITESPACE_RE = re.compile(r"\s+")


def _clean_text(text: Optional[str]) -> str:
    return WHITESPACE_RE.sub(" ", text or "").strip()


def strip_category_suffix(title: str, categories) -> str:
    """'Portal (VideoGame)' -> 'Portal'."""
    title = title.strip()
    for category in categories:
        suffix = f" ({category})"
        if title.endswith(suffix):
            title = title[:-len(suffix)]
    return title.strip()


class TvTropesBackend:
    """SearchBackend scraping TV Tropes work pages."""

    def __init__(self, fetcher: PageFetcher, settings: Optional[TvTropesSettings] = None):
        """
        Initialize backend.

        Args:
            fetcher: PageFetcher used for search and article pages
            settings: Page categories to search and trope blacklist
        """
        self.fetcher = fetcher
        self.settings = settings or TvTropesSettings()

    async def search(self, query: str) -> List[Candidate]:
        """
        Search work pages in every configured category.

        Args:
            query: Free text

        Returns:
            Candidates, category by category in search relevance order
        """
        if not query or not query.strip():
            return []

        candidates: List[Candidate] = []
        seen_urls = set()
        for category in self.settings.categories:
            for candidate in await self._search_category(query, category):
                if candidate.id in seen_urls:
                    continue
                seen_urls.add(candidate.id)
                candidates.append(candidate)

        logger.debug(f"TV Tropes search '{query}': {len(candidates)} results")
        return candidates

    async def _search_category(self, query: str, category: str) -> List[Candidate]:
        url = SEARCH_URL.format(query=quote_plus(query), category=quote_plus(category))
        content = await self.fetcher.fetch_page_source(url)
        if not content.strip():
            return []

        doc = parse_html(content, url)
        candidates = []
        for a in doc.xpath("//a[contains(concat(' ', normalize-space(@class), ' '), ' search-result ')][@href]"):
            children = a.getchildren()
            if not children:
                continue
            title = strip_category_suffix(_clean_text(children[0].text_content()), self.settings.categories)
            if not title:
                continue

            description = None
            description_div = next(iter(a.xpath("./div")), None)
            if description_div is not None:
                for child in description_div.xpath("./*[@class='img-wrapper' or @class='more-button']"):
                    child.drop_tree()
                description = _clean_text(description_div.text_content()) or None

            article_url = urljoin(url, a.get("href"))
            candidates.append(Candidate(id=article_url, name=title, description=description, url=article_url))
        return candidates

    async def get_details(self, candidate: Candidate) -> GameDetails:
        return await self.get_article_details(candidate.url or candidate.id)

    async def get_article_details(self, url: str) -> GameDetails:
        """
        Scrape one work page.

        Args:
            url: Article URL

        Returns:
            GameDetails with the trope names as tags, empty when the page
            could not be retrieved or has no title
        """
        content = await self.fetcher.fetch_page_source(url)
        if not content.strip():
            logger.info(f"Did not get a response from {url}")
            return GameDetails()

        doc = parse_html(content, url)
        title = self._get_title(doc)
        if not title:
            logger.warning(f"No title found in {url}")
            return GameDetails()

        article = next(iter(doc.xpath("//div[@id='main-article']")), None)
        description = None
        tags: List[str] = []
        cover_options: List[ImageVariant] = []
        if article is not None:
            paragraphs = [_clean_text(p.text_content()) for p in article.xpath("./p")]
            description = "\n\n".join(p for p in paragraphs if p) or None
            tags = self._get_tropes(article)
            image = next(iter(article.xpath(".//div[contains(@class, 'quoteright')]//img/@src")), None)
            if image:
                cover_options.append(ImageVariant(url=urljoin(url, image)))

        return GameDetails(
            names=[strip_category_suffix(title, self.settings.categories)],
            description=description,
            tags=tags,
            links=[Link("TV Tropes", url)],
            cover_options=cover_options,
        )

    @staticmethod
    def _get_title(doc) -> Optional[str]:
        heading = next(iter(doc.xpath("//h1[contains(concat(' ', normalize-space(@class), ' '), ' entry-title ')]")), None)
        if heading is None:
            return None
        # <strong> holds the namespace ("VideoGame /")
        for strong in heading.xpath(".//strong"):
            strong.drop_tree()
        return _clean_text(heading.text_content()) or None

    def _get_tropes(self, article) -> List[str]:
        blacklist = [w.lower() for w in self.settings.blacklisted_words]
        tropes: List[str] = []
        for li in article.xpath(".//ul/li[a[contains(@class, 'twikilink')]]"):
            text = _clean_text(li.text_content()).lower()
            if any(word in text for word in blacklist):
                continue
            name = _clean_text(li.xpath("./a[contains(@class, 'twikilink')]")[0].text_content())
            if name and name not in tropes:
                tropes.append(name)
        return tropes

    def to_item_option(self, candidate: Candidate) -> ItemOption:
        article_id = (candidate.url or candidate.id)
        if article_id.startswith(ARTICLE_PREFIX):
            article_id = article_id[len(ARTICLE_PREFIX):]
        description = f"{article_id} | {candidate.description}" if candidate.description else article_id
        return ItemOption(item=candidate, name=candidate.name, description=description)
