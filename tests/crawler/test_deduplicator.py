import logging

import pytest

from catalogueur.crawler.deduplicator import (
    deduplicate_records,
    is_meaningful_download,
    remove_shared_downloads,
    single_download_urls,
    unique_records,
)
from catalogueur.models import DownloadUrl, ScrapedGameRecord


def record(external_id, *downloads, title=None, order=1):
    return ScrapedGameRecord(
        external_id=external_id,
        parent_order_id=order,
        title=title or f"Game {external_id}",
        download_urls=[
            d if isinstance(d, DownloadUrl) else DownloadUrl(d, "Download") for d in downloads
        ],
    )


def urls(rec):
    return [d.url for d in rec.download_urls]


@pytest.mark.unit
@pytest.mark.parametrize("description,expected", [
    ("Windows installer", True),
    ("", True),
    ("User Manual (PDF)", False),
    ("Game Demo", False),
    ("Demonstration video", True),
    ("Patch 1.02", False),
    ("Soundtrack", True),
])
def test_is_meaningful_download(description, expected):
    assert is_meaningful_download(DownloadUrl("https://dl/x", description)) is expected


@pytest.mark.unit
def test_shared_url_is_removed_from_multi_download_record_only():
    r1 = record("r1", "X")
    r2 = record("r2", "X", "Y")

    result = deduplicate_records([r1, r2])

    assert result == [r1, r2]
    assert urls(r1) == ["X"]
    assert urls(r2) == ["Y"]


@pytest.mark.unit
def test_two_single_download_records_are_left_alone():
    r1 = record("r1", "X")
    r2 = record("r2", "X")

    deduplicate_records([r1, r2])

    assert urls(r1) == ["X"]
    assert urls(r2) == ["X"]


@pytest.mark.unit
def test_record_never_loses_its_last_url():
    r1 = record("r1", "X")
    r2 = record("r2", "Y")
    both = record("both", "X", "Y")

    remove_shared_downloads([r1, r2, both])

    assert urls(both) == ["Y"]


@pytest.mark.unit
def test_manual_does_not_make_a_record_single_download():
    # One game plus its manual: still a single-download record
    r1 = record("r1", DownloadUrl("X", "Installer"), DownloadUrl("M", "Manual"))
    r2 = record("r2", "X", "Y")

    assert single_download_urls([r1, r2]) == {"X"}
    remove_shared_downloads([r1, r2])

    assert urls(r1) == ["X", "M"]
    assert urls(r2) == ["Y"]


@pytest.mark.unit
def test_unique_records_first_seen_wins():
    first = record("a", "X", order=1)
    repeat = record("a", "Z", order=2)
    other = record("b", "Y", order=2)

    assert unique_records([first, repeat, other]) == [first, other]


@pytest.mark.unit
def test_removal_is_logged(caplog):
    r1 = record("r1", "X")
    r2 = record("r2", "X", "Y", title="Ghost Game")

    with caplog.at_level(logging.INFO):
        deduplicate_records([r1, r2])

    assert (
        "Removed 1 download URLs from Ghost Game because they're the only "
        "download URL for another game entry"
    ) in caplog.text


@pytest.mark.unit
def test_manual_does_not_count_as_last_download():
    mac = record("mac", "https://dl/x")
    linux = record("linux", "https://dl/y")
    bundle = record(
        "bundle",
        DownloadUrl("https://dl/manual.pdf", "Manual"),
        "https://dl/x",
        "https://dl/y",
    )

    remove_shared_downloads([mac, linux, bundle])

    assert urls(bundle) == ["https://dl/manual.pdf", "https://dl/y"]
    assert urls(mac) == ["https://dl/x"]
    assert urls(linux) == ["https://dl/y"]
