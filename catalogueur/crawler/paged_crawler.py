"""
Sequential, rate-limited crawl of paginated storefront listings.

The crawler walks listing pages 1, 2, 3, ... collecting item (order) URLs,
then fetches every item page and hands it to the catalog's record
extractor. Requests are strictly sequential and separated by a random
delay; parallel fetching would defeat the pacing and trip anti-scraping
defenses.

Termination: a blank page body ends the crawl, and so does a page whose
pagination controls do not link to exactly the next page's URL (some
listings render a non-empty last page without further controls).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from catalogueur.api.fetcher import FetchResponse, PageFetcher, parse_html
from catalogueur.api.throttle import RequestDelay
from catalogueur.crawler.deduplicator import deduplicate_records
from catalogueur.models import ScrapedGameRecord

logger = logging.getLogger(__name__)


@dataclass
class ListingPage:
    """What an extractor found on one listing page."""
    item_urls: List[str] = field(default_factory=list)
    pagination_urls: List[str] = field(default_factory=list)


class RecordExtractor(Protocol):
    """Per-catalog page parsing used by PagedCrawler (pure functions over a document)."""

    def listing_url(self, page: int) -> str:
        ...

    def extract_listing(self, doc, page_url: str) -> ListingPage:
        ...

    def extract_records(self, doc, page_url: str) -> List[ScrapedGameRecord]:
        ...


class PagedCrawler:
    """
    Walks a paginated listing and extracts records from every listed page.

    Example:
        async with PageFetcher(cookies=cookies) as fetcher:
            crawler = PagedCrawler(fetcher, GamersGateExtractor(), RequestDelay(500, 2000))
            records = await crawler.crawl_records()
    """

    def __init__(self, fetcher: PageFetcher, extractor: RecordExtractor, delay: Optional[RequestDelay] = None):
        """
        Initialize crawler.

        Args:
            fetcher: PageFetcher carrying the authenticated session
            extractor: Catalog specific RecordExtractor
            delay: Pause between two requests (none if omitted)
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.delay = delay or RequestDelay()
        self._delay_owed = False

    async def _pace(self) -> None:
        """Await the delay owed since the previous request, if any."""
        if self._delay_owed:
            self._delay_owed = False
            await self.delay.wait()

    async def _fetch(self, url: str) -> FetchResponse:
        """
        Fetch one page, keeping the request pacing.

        A blank or failed response still costs its delay before control
        returns, so pacing is the same whatever the outcome.
        """
        await self._pace()
        response = await self.fetcher.fetch(url)
        self._delay_owed = True

        if response.is_blank or not response.ok:
            logger.info(f"Did not get a response from {url}")
            await self._pace()
            return FetchResponse(url=url, final_url=response.final_url, status_code=response.status_code)
        return response

    async def get_listing_page(self, page: int) -> Tuple[List[str], bool]:
        """
        Fetch one listing page.

        Args:
            page: 1-based page number

        Returns:
            Tuple of (item URLs on the page, whether a next page exists)
        """
        url = self.extractor.listing_url(page)
        response = await self._fetch(url)
        if response.is_blank:
            return [], False

        doc = parse_html(response.content, response.final_url)
        listing = self.extractor.extract_listing(doc, url)

        next_page_url = self.extractor.listing_url(page + 1)
        has_next_page = next_page_url in listing.pagination_urls
        logger.debug(f"Listing page {page}: {len(listing.item_urls)} items, next page: {has_next_page}")
        return listing.item_urls, has_next_page

    async def crawl_all(self, start_page: int = 1) -> List[str]:
        """
        Collect item URLs from every listing page.

        Args:
            start_page: First listing page to fetch

        Returns:
            Item URLs in listing order, without repeats
        """
        page = start_page
        output: List[str] = []
        seen = set()

        while True:
            item_urls, has_next_page = await self.get_listing_page(page)
            if not item_urls:
                break

            for url in item_urls:
                if url not in seen:
                    seen.add(url)
                    output.append(url)

            if not has_next_page:
                break
            page += 1

        logger.info(f"Found {len(output)} listed pages across {page - start_page + 1} listing pages")
        return output

    async def fetch_records(self, page_url: str) -> List[ScrapedGameRecord]:
        """
        Fetch one item page and extract its records.

        Args:
            page_url: Absolute item (order) page URL

        Returns:
            Records found on the page (empty when the page is blank)
        """
        response = await self._fetch(page_url)
        if response.is_blank:
            return []

        doc = parse_html(response.content, response.final_url)
        return self.extractor.extract_records(doc, page_url)

    async def crawl_records(self, start_page: int = 1) -> List[ScrapedGameRecord]:
        """
        Crawl every listed page and return the deduplicated record set.

        Args:
            start_page: First listing page to fetch

        Returns:
            Records with unique external ids and shared downloads removed
        """
        records: List[ScrapedGameRecord] = []
        for page_url in await self.crawl_all(start_page):
            records.extend(await self.fetch_records(page_url))

        logger.info(f"Extracted {len(records)} records")
        return deduplicate_records(records)
