"""
Shared pytest fixtures and utilities for the catalogueur test suite.
"""

from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml

from catalogueur.models import Candidate, GameDetails, ItemOption


class FakeBackend:
    """
    In-memory SearchBackend recording every call.

    search() answers from `results` (query -> candidates, with `default`
    for unknown queries); get_details() builds GameDetails from the
    candidate unless `details` has an entry for its id.
    """

    def __init__(
        self,
        results: Optional[Dict[str, List[Candidate]]] = None,
        default: Optional[List[Candidate]] = None,
        details: Optional[Dict[str, GameDetails]] = None,
    ):
        self.results = results or {}
        self.default = default or []
        self.details = details or {}
        self.search_calls: List[str] = []
        self.details_calls: List[str] = []

    async def search(self, query: str) -> List[Candidate]:
        self.search_calls.append(query)
        return list(self.results.get(query, self.default))

    async def get_details(self, candidate: Candidate) -> GameDetails:
        self.details_calls.append(candidate.id)
        if candidate.id in self.details:
            return self.details[candidate.id]
        return GameDetails(
            names=[candidate.name],
            description=f"Description of {candidate.id}",
            platforms=sorted(candidate.platforms),
            release_date=candidate.release_date,
        )

    @property
    def call_count(self) -> int:
        return len(self.search_calls) + len(self.details_calls)


class ScriptedChooser:
    """
    Chooser driven by a list of keystroke responses.

    Each response is either a query string (runs search_fn) or an int
    (selects that 1-based row of the last results). None cancels.
    """

    def __init__(self, responses: List[Any], image_choice: Optional[int] = 0):
        self.responses = list(responses)
        self.image_choice = image_choice
        self.prompts: List[str] = []
        self.seen_options: List[List[ItemOption]] = []
        self.image_prompts: List[str] = []

    async def prompt_with_search(self, initial_query, search_fn):
        self.prompts.append(initial_query)
        options = await search_fn(initial_query)
        self.seen_options.append(options)
        for response in self.responses:
            if response is None:
                return None
            if isinstance(response, int):
                return options[response - 1]
            options = await search_fn(response)
            self.seen_options.append(options)
        return None

    async def prompt_image_choice(self, options, caption):
        self.image_prompts.append(caption)
        if self.image_choice is None:
            return None
        return options[self.image_choice]


def candidate(
    id: str,
    name: str,
    release_date: Optional[date] = None,
    platforms=(),
    alternate_names=(),
) -> Candidate:
    """Short-hand Candidate constructor for tests."""
    return Candidate(
        id=id,
        name=name,
        alternate_names=tuple(alternate_names),
        platforms=frozenset(platforms),
        release_date=release_date,
    )


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[[Dict[str, Any]], Path]:
    """
    Create a minimal config.yaml in a temp directory.

    Usage:
        path = make_config({"crawler": {"max_delay_ms": 0}})
    """

    def _builder(overrides: Dict[str, Any] | None = None) -> Path:
        base = {
            "giantbomb": {"api_key": "test-key"},
            "crawler": {"min_delay_ms": 0, "max_delay_ms": 0},
            "logging": {"level": "INFO", "console": True},
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow+deep merge helper for fixture config dictionaries.
    """
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
