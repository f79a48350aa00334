from datetime import date

import pytest

from catalogueur.models import ItemOption
from catalogueur.resolution.backend import IdentifierLookup, SearchBackend, to_item_option

from conftest import FakeBackend, candidate


@pytest.mark.unit
def test_fake_backend_satisfies_search_backend():
    assert isinstance(FakeBackend(), SearchBackend)
    assert not isinstance(FakeBackend(), IdentifierLookup)


@pytest.mark.unit
def test_default_item_option_description():
    hit = candidate("1", "Doom II", date(1994, 9, 30), platforms=["PC", "DOS"], alternate_names=["Doom 2"])
    option = to_item_option(FakeBackend(), hit)
    assert option.item is hit
    assert option.name == "Doom II"
    assert option.description == "1994 | DOS, PC | AKA Doom 2"


@pytest.mark.unit
def test_backend_formatter_is_preferred():
    class Formatting(FakeBackend):
        def to_item_option(self, c):
            return ItemOption(item=c, name=c.name.upper(), description="custom")

    option = to_item_option(Formatting(), candidate("1", "Doom"))
    assert option.name == "DOOM"
    assert option.description == "custom"
