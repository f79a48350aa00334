"""
GamersGate order history extraction.

Listing pages (/account/orders/?page=N) link to order pages; every order
page holds one section per purchased game. Only games with at least one
download link are owned in DRM-free form and become records.
"""

import logging
from typing import List, Optional
from urllib.parse import urljoin

from catalogueur.api.fetcher import PageFetcher, parse_html
from catalogueur.api.throttle import RequestDelay
from catalogueur.crawler.paged_crawler import ListingPage, PagedCrawler
from catalogueur.models import DownloadUrl, ScrapedGameRecord

logger = logging.getLogger(__name__)


BASE_URL = "https://www.gamersgate.com"
ORDERS_URL = f"{BASE_URL}/account/orders/"
SETTINGS_URL = f"{BASE_URL}/account/settings/"
ACTIVATION_PREFIX = "/support/activations/"
AVATAR_PREFIX = "/images/avatar/current/"


def _text(element) -> Optional[str]:
    if element is None:
        return None
    return element.text_content().strip()


def _first(elements):
    return elements[0] if elements else None


class GamersGateExtractor:
    """RecordExtractor for GamersGate listing and order pages."""

    def listing_url(self, page: int) -> str:
        return f"{ORDERS_URL}?page={page}"

    def extract_listing(self, doc, page_url: str) -> ListingPage:
        """
        Order links and pagination links of one listing page.

        Every order link appears twice on the page; repeats are dropped
        keeping the first occurrence.
        """
        pagination_urls = [
            urljoin(page_url, a.get("href"))
            for a in doc.xpath("//div[@class='paginator']//a[@href]")
        ]

        order_urls = []
        for a in doc.xpath("//div[@class='table orders-table']//a[@href]"):
            url = urljoin(page_url, a.get("href"))
            if url not in order_urls:
                order_urls.append(url)

        return ListingPage(item_urls=order_urls, pagination_urls=pagination_urls)

    def extract_records(self, doc, page_url: str) -> List[ScrapedGameRecord]:
        """
        Game records of one order page.

        Args:
            doc: Parsed order page
            page_url: Order page URL (resolves relative download links)

        Returns:
            Records for the DRM-free games of the order; empty when the
            page has no game sections or no parseable order id
        """
        output: List[ScrapedGameRecord] = []

        game_nodes = doc.xpath("//div[@class='content-sub-container order-item-container']")
        if not game_nodes:
            logger.info(f"No game nodes found in {page_url}")
            return output

        order_id_string = _text(_first(doc.xpath(
            "//div[@class='column order-item order-item--date']/a[@class='no-link']"
        )))
        try:
            order_id = int((order_id_string or "").lstrip("#"))
        except ValueError:
            logger.warning(f"Can't parse order id {order_id_string} in {page_url}")
            return output

        for node in game_nodes:
            record = self._extract_game(node, order_id, page_url)
            if record is not None:
                output.append(record)

        return output

    def _extract_game(self, node, order_id: int, page_url: str) -> Optional[ScrapedGameRecord]:
        heading = _first(node.xpath("./h2"))
        game_id = _first(node.xpath("./h2/@id"))
        title = _text(heading)
        content = _first(node.xpath("./div[@class='order-item-content']"))
        if content is None or not title or not game_id:
            return None

        download_links = content.xpath(
            "./div[@class='order-item-description']/div[@class='order-item-download']/a[@href]"
        )
        # no download links: not owned DRM-free
        if not download_links:
            return None

        download_urls = [
            DownloadUrl(url=urljoin(page_url, a.get("href")), description=_text(a) or "")
            for a in download_links
        ]

        cover_image_url = _first(content.xpath("./div[@class='order-item-image']/img/@src"))
        if cover_image_url and "noimage" in cover_image_url:
            cover_image_url = None

        drm = None
        activation_href = _first(content.xpath(
            f"./div[@class='order-item-image']/a[starts-with(@href, '{ACTIVATION_PREFIX}')]/@href"
        ))
        if activation_href:
            drm = activation_href[len(ACTIVATION_PREFIX):].strip("/") or None

        key_hidden = bool(content.xpath(
            "./div[@class='order-item-description']/form[@id='show_activation_code_form']"
        ))
        key = _text(_first(content.xpath(
            "./div[@class='order-item-description']/div[@class='order-item--key normal']"
            "/div[@class='order-item--key-value']"
        )))

        return ScrapedGameRecord(
            external_id=str(game_id),
            parent_order_id=order_id,
            title=title,
            cover_image_url=cover_image_url,
            drm=drm,
            license_key=key or None,
            license_key_hidden=key_hidden,
            download_urls=download_urls,
        )


async def get_all_games(fetcher: PageFetcher, delay: Optional[RequestDelay] = None) -> List[ScrapedGameRecord]:
    """
    All DRM-free games of the authenticated account.

    Args:
        fetcher: PageFetcher carrying the GamersGate session cookies
        delay: Pause between two requests

    Returns:
        Deduplicated game records
    """
    crawler = PagedCrawler(fetcher, GamersGateExtractor(), delay)
    return await crawler.crawl_records()


async def get_logged_in_user_id(fetcher: PageFetcher) -> Optional[int]:
    """
    Id of the logged in user, or None when the session is not logged in.

    An expired session gets redirected away from the settings page, so
    anything but a successful answer at the requested URL means logged out.
    """
    response = await fetcher.fetch(SETTINGS_URL)
    if (
        response.final_url != SETTINGS_URL
        or response.is_blank
        or response.status_code == 0
        or response.status_code > 399
    ):
        logger.debug(f"Not logged in (status {response.status_code}, landed on {response.final_url})")
        return None

    doc = parse_html(response.content, response.final_url)
    src = _first(doc.xpath(f"//div[@class='avatar-block']/img[starts-with(@src, '{AVATAR_PREFIX}')]/@src"))
    if not src:
        return None
    try:
        return int(src[len(AVATAR_PREFIX):])
    except ValueError:
        return None
