from datetime import date

import pytest

from catalogueur.models import Candidate, GameDetails


@pytest.mark.unit
@pytest.mark.parametrize("name", ["", "   "])
def test_candidate_requires_name(name):
    with pytest.raises(ValueError):
        Candidate(id="1", name=name)


@pytest.mark.unit
def test_candidate_all_names():
    candidate = Candidate(id="1", name="Doom II", alternate_names=("Doom 2",), release_date=date(1994, 9, 30))
    assert candidate.all_names == ["Doom II", "Doom 2"]


@pytest.mark.unit
def test_empty_game_details():
    details = GameDetails()
    assert details.is_empty
    assert details.name is None
    assert GameDetails(names=["Doom", "DOOM (1993)"]).name == "Doom"
