"""
Capability interface implemented once per remote catalog.

Backends are plain classes that provide these coroutines; nothing has to
inherit from SearchBackend; it only documents the shape the engine expects.
"""

from typing import List, Protocol, Tuple, runtime_checkable

from catalogueur.models import Candidate, GameDetails, ItemOption, LocalGame


@runtime_checkable
class SearchBackend(Protocol):
    """
    Search and detail retrieval for one catalog.

    search() returns candidates in catalog relevance order. Transient
    failures are logged by the backend and answered with an empty list /
    an empty GameDetails; only fatal errors (bad credentials) propagate.
    """

    async def search(self, query: str) -> List[Candidate]:
        ...

    async def get_details(self, candidate: Candidate) -> GameDetails:
        ...


@runtime_checkable
class IdentifierLookup(Protocol):
    """Optional fast path answering straight from a local record's identifiers."""

    async def try_get_details(self, game: LocalGame) -> Tuple[bool, GameDetails]:
        ...


def to_item_option(backend, candidate: Candidate) -> ItemOption:
    """
    Prompt row for a candidate, using the backend's formatter if it has one.

    Args:
        backend: SearchBackend instance
        candidate: Search hit

    Returns:
        ItemOption wrapping the candidate
    """
    formatter = getattr(backend, "to_item_option", None)
    if formatter is not None:
        return formatter(candidate)

    parts = []
    if candidate.release_date:
        parts.append(str(candidate.release_date.year))
    if candidate.platforms:
        parts.append(", ".join(sorted(candidate.platforms)))
    if candidate.alternate_names:
        parts.append("AKA " + " / ".join(candidate.alternate_names))
    return ItemOption(item=candidate, name=candidate.name, description=" | ".join(parts))
