import logging
from unittest.mock import AsyncMock

import pytest

from catalogueur.models import ImageOption, ImageVariant
from catalogueur.resolution.image_selector import select_image
from catalogueur.resolution.modes import ResolutionMode


VARIANTS = [
    ImageVariant("https://img/cover-large.jpg", "https://img/cover-small.jpg"),
    ImageVariant("https://img/alt-large.jpg"),
]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_no_variants():
    assert await select_image([], ResolutionMode.INTERACTIVE, AsyncMock()) is None
    assert await select_image(None, ResolutionMode.UNATTENDED) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unattended_takes_first_full_size_url():
    chooser = AsyncMock()
    assert await select_image(VARIANTS, ResolutionMode.UNATTENDED, chooser) == "https://img/cover-large.jpg"
    chooser.prompt_image_choice.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_variant_is_not_prompted():
    chooser = AsyncMock()
    assert await select_image(VARIANTS[:1], ResolutionMode.INTERACTIVE, chooser) == "https://img/cover-large.jpg"
    chooser.prompt_image_choice.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_interactive_prompt_uses_thumbnails_and_returns_full_url():
    chooser = AsyncMock()

    async def pick_second(options, caption):
        return options[1]

    chooser.prompt_image_choice.side_effect = pick_second

    result = await select_image(VARIANTS, ResolutionMode.INTERACTIVE, chooser, "Select cover")

    assert result == "https://img/alt-large.jpg"
    options, caption = chooser.prompt_image_choice.call_args.args
    assert caption == "Select cover"
    assert options == [
        ImageOption(VARIANTS[0], "https://img/cover-small.jpg"),
        ImageOption(VARIANTS[1], "https://img/alt-large.jpg"),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_interactive_prompt_cancelled():
    chooser = AsyncMock()
    chooser.prompt_image_choice.return_value = None
    assert await select_image(VARIANTS, ResolutionMode.INTERACTIVE, chooser) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_interactive_without_chooser_falls_back_to_first(caplog):
    with caplog.at_level(logging.WARNING):
        result = await select_image(VARIANTS, ResolutionMode.INTERACTIVE, None, "Select icon")
    assert result == "https://img/cover-large.jpg"
    assert "No chooser available" in caplog.text
