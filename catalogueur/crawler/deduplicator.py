"""
Cleanup of crawled storefront records.

Order histories repeat things: the same game can show up on several order
pages, and a platform variant's installer is often attached to its sibling
as well (a PC game lists the Mac installer that is also the only download
of the separate Mac entry). These passes remove such artifacts.
"""

import logging
from typing import Iterable, List, Set

from catalogueur.models import DownloadUrl, ScrapedGameRecord

logger = logging.getLogger(__name__)


def is_meaningful_download(download: DownloadUrl) -> bool:
    """
    Whether a download counts toward owning the game.

    Manuals, demos and patches never do.
    """
    description = (download.description or "").strip().lower()
    return not (
        "manual" in description
        or description.endswith("demo")
        or "patch" in description
    )


def meaningful_downloads(record: ScrapedGameRecord) -> List[DownloadUrl]:
    return [d for d in record.download_urls if is_meaningful_download(d)]


def unique_records(records: Iterable[ScrapedGameRecord]) -> List[ScrapedGameRecord]:
    """
    Drop records whose external id was already seen (first one wins).

    Args:
        records: Records in crawl order

    Returns:
        Records with globally unique external ids, in crawl order
    """
    seen: Set[str] = set()
    output = []
    for record in records:
        if record.external_id in seen:
            logger.debug(f"Skipping repeated record {record.external_id} ({record.title})")
            continue
        seen.add(record.external_id)
        output.append(record)
    return output


def single_download_urls(records: Iterable[ScrapedGameRecord]) -> Set[str]:
    """URLs that are the only meaningful download of some record."""
    urls = set()
    for record in records:
        downloads = meaningful_downloads(record)
        if len(downloads) == 1:
            urls.add(downloads[0].url)
    return urls


def remove_shared_downloads(records: List[ScrapedGameRecord]) -> List[ScrapedGameRecord]:
    """
    Strip secondary download URLs that are another record's only download.

    Only records with two or more meaningful downloads are touched, and a
    record never loses its last meaningful download URL. Records are
    modified in place.

    Args:
        records: Full crawled record set

    Returns:
        The same list, for chaining
    """
    owned_urls = single_download_urls(records)

    for record in records:
        remaining = len(meaningful_downloads(record))
        if remaining < 2:
            continue

        kept = list(record.download_urls)
        removed = 0
        for download in record.download_urls:
            if download.url not in owned_urls or len(kept) <= 1:
                continue
            meaningful = is_meaningful_download(download)
            # the last meaningful download stays, manuals do not count
            if meaningful and remaining <= 1:
                continue
            kept.remove(download)
            removed += 1
            if meaningful:
                remaining -= 1

        if removed:
            record.download_urls = kept
            logger.info(
                f"Removed {removed} download URLs from {record.title} because they're "
                f"the only download URL for another game entry"
            )

    return records


def deduplicate_records(records: Iterable[ScrapedGameRecord]) -> List[ScrapedGameRecord]:
    """
    Full cleanup pass: unique external ids, then shared download removal.

    Args:
        records: Records from every crawled page, in crawl order

    Returns:
        Deduplicated records
    """
    return remove_shared_downloads(unique_records(records))
