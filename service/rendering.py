"""Font loading and word rasterization for render_word_images."""

from __future__ import annotations

from io import BytesIO
import logging
from typing import Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from domain.word_images import (
    DEFAULT_MAX_WIDTH,
    EMPTY_IMAGE_CODE,
    FONT_LOAD_CODE,
    ZERO_DIMENSION_CODE,
    WordImageError,
    compute_canvas_size,
)

LOGGER = logging.getLogger("render_word_images.rendering")

BACKGROUND_RGB: Tuple[int, int, int] = (255, 255, 255)
TEXT_RGB: Tuple[int, int, int] = (0, 0, 0)


def load_font(font_path: str, font_size: int) -> ImageFont.FreeTypeFont:
    """Read a font file and parse it at the requested point size."""
    try:
        with open(font_path, "rb") as file_handle:
            font_bytes = file_handle.read()
    except OSError as exc:
        raise WordImageError(
            FONT_LOAD_CODE, f"failed to read font {font_path}: {exc.strerror or exc}"
        ) from exc

    try:
        return ImageFont.truetype(BytesIO(font_bytes), size=font_size)
    except (OSError, ValueError) as exc:
        raise WordImageError(
            FONT_LOAD_CODE, f"failed to load font {font_path}"
        ) from exc


def is_not_empty(image: Image.Image) -> bool:
    """Return True when any pixel differs from the white background."""
    pixels = np.asarray(image.convert("RGB"))
    return bool(np.any(pixels != np.array(BACKGROUND_RGB, dtype=pixels.dtype)))


def render_word_image(
    font: ImageFont.FreeTypeFont,
    word: str,
    font_size: int,
    max_width: int = DEFAULT_MAX_WIDTH,
) -> Image.Image | None:
    """Draw a word in black on a white canvas, or return None if nothing shows."""
    width, height = compute_canvas_size(word, font_size, max_width)
    if width == 0 or height == 0:
        LOGGER.error(
            "%s: image dimensions are zero for word %r", ZERO_DIMENSION_CODE, word
        )
        return None

    image = Image.new("RGB", (width, height), BACKGROUND_RGB)
    draw = ImageDraw.Draw(image)
    offset = font_size // 2
    draw.text((offset, offset), word, font=font, fill=TEXT_RGB)

    if not is_not_empty(image):
        LOGGER.warning("%s: skipping word %r, image is empty", EMPTY_IMAGE_CODE, word)
        return None

    return image
