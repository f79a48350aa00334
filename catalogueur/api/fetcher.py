"""
HTML page fetching for scrapers and crawlers.

PageFetcher never raises for transport problems: a failed request comes back
as a FetchResponse with an empty body, which crawlers treat as end of data
and search backends as "no candidates".
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from lxml import html as lxml_html

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0 Safari/537.36"
)


@dataclass
class FetchResponse:
    """Body of a fetched page plus the response metadata session checks need."""
    url: str
    final_url: str
    status_code: int
    content: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.content or not self.content.strip()

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def parse_html(content: str, base_url: Optional[str] = None):
    """
    Parse an HTML page into an lxml element tree.

    Args:
        content: Page source
        base_url: URL the page was loaded from, used to resolve relative links

    Returns:
        Root lxml.html element
    """
    return lxml_html.document_fromstring(content, base_url=base_url)


def parse_cookie_header(cookie_header: str) -> Dict[str, str]:
    """
    Split a browser Cookie header ("a=1; b=2") into a dict.

    Args:
        cookie_header: Raw cookie header string

    Returns:
        Cookie name to value mapping
    """
    cookies = {}
    for part in (cookie_header or "").split(";"):
        if "=" not in part:
            continue
        name, value = part.split("=", 1)
        name = name.strip()
        if name:
            cookies[name] = value.strip()
    return cookies


class PageFetcher:
    """
    Fetches pages over a shared httpx.AsyncClient.

    Example:
        async with PageFetcher(cookies={"session": "..."}) as fetcher:
            response = await fetcher.fetch("https://example.com/page")
            if not response.is_blank:
                doc = parse_html(response.content, response.final_url)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        cookies: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize page fetcher.

        Args:
            client: Optional httpx.AsyncClient to share; one is created otherwise
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
            cookies: Session cookies for authenticated pages
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            cookies=cookies,
        )
        self.timeout = timeout

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def fetch(self, url: str) -> FetchResponse:
        """
        Fetch a page, following redirects.

        Args:
            url: Absolute page URL

        Returns:
            FetchResponse; on a transport failure status_code is 0 and the
            body is empty
        """
        try:
            response = await self.client.get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Request to {url} failed: {e}")
            return FetchResponse(url=url, final_url=url, status_code=0)

        logger.debug(f"GET {url} -> {response.status_code} ({response.url})")
        return FetchResponse(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            content=response.text,
        )

    async def fetch_page_source(self, url: str) -> str:
        """
        Fetch a page body, blank for any non-2xx answer.

        Args:
            url: Absolute page URL

        Returns:
            Page source, or "" when the page could not be retrieved
        """
        response = await self.fetch(url)
        if not response.ok:
            if response.status_code:
                logger.info(f"Got HTTP {response.status_code} from {url}")
            return ""
        return response.content
