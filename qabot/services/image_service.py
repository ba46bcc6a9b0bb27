"""
Image Service
=============
Shrinks screenshots before they are sent to a vision backend.

Phone screenshots are often several megapixels; sending them raw makes
local vision models time out. Images are scaled so the longer side is at
most 1024 px (aspect preserved, never upscaled) and re-encoded as JPEG at
quality 85.

Failures raise ImagePreparationError; the analyzer then sends the original
bytes instead.
"""
import io
import logging

from PIL import Image, UnidentifiedImageError

from qabot.analysis.errors import ImagePreparationError
from qabot.core.constants import JPEG_QUALITY, MAX_IMAGE_SIDE

logger = logging.getLogger(__name__)


def scaled_size(width: int, height: int, max_side: int = MAX_IMAGE_SIDE) -> tuple[int, int]:
    """Target size with the longer side capped at ``max_side``; each side ≥ 1."""
    if width <= max_side and height <= max_side:
        return width, height
    if width > height:
        return max_side, max(1, height * max_side // width)
    return max(1, width * max_side // height), max_side


def prepare_image(raw: bytes, max_side: int = MAX_IMAGE_SIDE, quality: int = JPEG_QUALITY) -> bytes:
    """
    Decode, downscale and re-encode an image as JPEG.

    Parameters
    ----------
    raw : bytes
        Encoded image (PNG, JPEG, or anything Pillow can open).

    Returns
    -------
    bytes
        JPEG bytes, longer side ≤ ``max_side``.

    Raises
    ------
    ImagePreparationError
        If the image cannot be decoded or encoded, or has zero size.
    """
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            width, height = img.size
            if width <= 0 or height <= 0:
                raise ImagePreparationError("invalid image size")

            target = scaled_size(width, height, max_side)
            # JPEG has no alpha channel
            rgb = img.convert("RGB")
            if target != (width, height):
                rgb = rgb.resize(target, Image.Resampling.BICUBIC)

            out = io.BytesIO()
            rgb.save(out, format="JPEG", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImagePreparationError(f"prepare image: {e}") from e

    logger.debug("Prepared image %dx%d → %dx%d", width, height, target[0], target[1])
    return out.getvalue()
