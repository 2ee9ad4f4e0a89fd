"""Font entry discovery for render_word_images."""

from __future__ import annotations

import logging
import os

from domain.word_images import (
    FONT_DIR_CODE,
    FONT_NAME_COLLISION_CODE,
    FontEntry,
    WordImageError,
    is_supported_font_file,
)

LOGGER = logging.getLogger("render_word_images.discovery")


def list_font_files(directory: str) -> list[str]:
    """List supported font files directly inside a directory."""
    font_files: list[str] = []
    for entry_name in sorted(os.listdir(directory)):
        entry_path = os.path.join(directory, entry_name)
        if os.path.isfile(entry_path) and is_supported_font_file(entry_name):
            font_files.append(entry_path)
    return font_files


def require_fonts_dir(fonts_dir: str) -> None:
    """Fail when the fonts root directory is missing."""
    if not os.path.isdir(fonts_dir):
        raise WordImageError(
            FONT_DIR_CODE, f"fonts directory does not exist: {fonts_dir}"
        )


def discover_font_entries(fonts_dir: str) -> tuple[FontEntry, ...]:
    """Map flat font files and font subdirectories to named font entries.

    A flat font file is named by its stem, a subdirectory by its own name.
    Subdirectories are scanned one level deep. Entries that resolve to the
    same name are merged so that a single worker owns each output directory.
    """
    require_fonts_dir(fonts_dir)

    paths_by_name: dict[str, list[str]] = {}
    for entry_name in sorted(os.listdir(fonts_dir)):
        entry_path = os.path.join(fonts_dir, entry_name)
        if os.path.isfile(entry_path):
            if not is_supported_font_file(entry_name):
                LOGGER.debug("ignoring non-font file %s", entry_path)
                continue
            font_name, _ = os.path.splitext(entry_name)
            font_paths = [entry_path]
        elif os.path.isdir(entry_path):
            font_name = entry_name
            try:
                font_paths = list_font_files(entry_path)
            except OSError as exc:
                LOGGER.error(
                    "%s: failed to list font directory %s (%s)",
                    FONT_DIR_CODE,
                    entry_path,
                    exc,
                )
                continue
            if not font_paths:
                LOGGER.debug("no font files in %s", entry_path)
                continue
        else:
            continue

        if font_name in paths_by_name:
            LOGGER.warning(
                "%s: %s shares the font name %r with an earlier entry; merging",
                FONT_NAME_COLLISION_CODE,
                entry_path,
                font_name,
            )
            paths_by_name[font_name].extend(font_paths)
        else:
            paths_by_name[font_name] = font_paths

    return tuple(
        FontEntry(name=font_name, font_paths=tuple(font_paths))
        for font_name, font_paths in paths_by_name.items()
    )
