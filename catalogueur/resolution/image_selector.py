"""
Image URL selection among size/quality variants.

Unattended resolutions (and fields with a single image) take the first
variant's full size URL; interactive ones let a human pick from previews.
"""

import logging
from typing import List, Optional

from catalogueur.models import ImageOption, ImageVariant
from catalogueur.resolution.modes import ResolutionMode

logger = logging.getLogger(__name__)


async def select_image(
    variants: Optional[List[ImageVariant]],
    mode: ResolutionMode,
    chooser=None,
    caption: str = "Select image",
) -> Optional[str]:
    """
    Pick the image URL to use for one field (cover, icon, background).

    Args:
        variants: Candidate images in catalog order
        mode: Unattended or interactive resolution
        chooser: Chooser with prompt_image_choice(); required for
            interactive mode with more than one variant
        caption: Prompt caption

    Returns:
        Full size URL of the chosen image, or None if there is none or the
        prompt was cancelled
    """
    if not variants:
        return None

    if mode is ResolutionMode.UNATTENDED or len(variants) == 1:
        return variants[0].url

    if chooser is None:
        logger.warning(f"No chooser available for '{caption}', using the first of {len(variants)} images")
        return variants[0].url

    options = [ImageOption(image=v, path=v.thumbnail_url or v.url) for v in variants]
    selected = await chooser.prompt_image_choice(options, caption)
    if selected is None:
        logger.info(f"Image selection cancelled: {caption}")
        return None
    return selected.image.url
