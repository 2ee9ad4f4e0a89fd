"""Domain types and parsing for render_word_images."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Tuple

INVALID_CONFIG_CODE = "render_word_images.input.invalid_config"
FONT_DIR_CODE = "render_word_images.input.fonts_missing"
FONT_LOAD_CODE = "render_word_images.input.font_unloadable"
WORDS_FILE_CODE = "render_word_images.input.words_file"
IMAGES_DIR_CODE = "render_word_images.output.images_dir"
FONT_OUTPUT_DIR_CODE = "render_word_images.output.font_dir"
WORD_OUTPUT_CODE = "render_word_images.output.word_file"
EMPTY_IMAGE_CODE = "render_word_images.render.empty_image"
ZERO_DIMENSION_CODE = "render_word_images.render.zero_dimension"
FONT_NAME_COLLISION_CODE = "render_word_images.discovery.name_collision"

SUPPORTED_FONT_EXTENSIONS = (".ttf", ".otf", ".woff", ".woff2")
DEFAULT_FONTS_DIR = "./fonts"
DEFAULT_IMAGES_DIR = "./database/metadata"
DEFAULT_WORDS_FILE = "./words.txt"
DEFAULT_FONT_SIZE = 200
DEFAULT_BORDER_SIZE = 10
DEFAULT_MAX_WIDTH = 2000
TEMP_SUFFIX = "_temp"
OUTPUT_EXTENSION = ".png"


class WordImageError(ValueError):
    """Validation error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class BatchConfig:
    """Validated configuration for a word image batch."""

    fonts_dir: str
    words_file: str
    images_dir: str
    font_size: int = DEFAULT_FONT_SIZE
    border_size: int = DEFAULT_BORDER_SIZE
    max_width: int = DEFAULT_MAX_WIDTH

    def __post_init__(self) -> None:
        if not self.fonts_dir.strip():
            raise WordImageError(INVALID_CONFIG_CODE, "fonts_dir must be non-empty")
        if not self.words_file.strip():
            raise WordImageError(INVALID_CONFIG_CODE, "words_file must be non-empty")
        if not self.images_dir.strip():
            raise WordImageError(INVALID_CONFIG_CODE, "images_dir must be non-empty")
        if self.font_size <= 0:
            raise WordImageError(INVALID_CONFIG_CODE, "font_size must be positive")
        if self.border_size < 0:
            raise WordImageError(
                INVALID_CONFIG_CODE, "border_size must be non-negative"
            )
        if self.max_width <= 0:
            raise WordImageError(INVALID_CONFIG_CODE, "max_width must be positive")


@dataclass(frozen=True)
class FontEntry:
    """A font name and the font files rendered into its output directory."""

    name: str
    font_paths: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.name:
            raise WordImageError(INVALID_CONFIG_CODE, "font entry name is empty")
        if not self.font_paths:
            raise WordImageError(
                INVALID_CONFIG_CODE, f"font entry {self.name!r} has no font files"
            )


def is_supported_font_file(file_name: str) -> bool:
    """Return True when the file extension is a supported font format."""
    _, extension = os.path.splitext(file_name)
    return extension.lower() in SUPPORTED_FONT_EXTENSIONS


def compute_canvas_size(
    word: str, font_size: int, max_width: int = DEFAULT_MAX_WIDTH
) -> Tuple[int, int]:
    """Compute the canvas width and height for a word.

    Word length is counted in UTF-8 bytes, so non-ASCII words get wider
    canvases than their character count suggests.
    """
    width = min(font_size * len(word.encode("utf-8")) * 2, max_width)
    height = font_size * 2
    return width, height


def parse_word_list(text_value: str) -> Tuple[str, ...]:
    """Split word list content into one word per line.

    Only LF and CRLF end a line. Other Unicode line separators stay part
    of the word, and a trailing newline does not add an empty word.
    """
    pieces = text_value.split("\n")
    last_piece = pieces.pop()
    words = [piece[:-1] if piece.endswith("\r") else piece for piece in pieces]
    if last_piece:
        words.append(last_piece)
    return tuple(words)


def output_image_path(font_output_dir: str, word: str) -> str:
    """Return the final image path for a word."""
    return os.path.join(font_output_dir, word + OUTPUT_EXTENSION)


def temp_image_path(font_output_dir: str, word: str) -> str:
    """Return the transient raw image path for a word."""
    return os.path.join(font_output_dir, word + TEMP_SUFFIX + OUTPUT_EXTENSION)
