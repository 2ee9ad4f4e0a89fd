"""Parallel batch orchestration for render_word_images."""

from __future__ import annotations

from concurrent.futures import Executor, Future, as_completed
from dataclasses import dataclass
from enum import Enum
import logging
import os
from typing import Sequence

from PIL import ImageFont

from domain.word_images import (
    FONT_OUTPUT_DIR_CODE,
    IMAGES_DIR_CODE,
    WORD_OUTPUT_CODE,
    WORDS_FILE_CODE,
    BatchConfig,
    FontEntry,
    WordImageError,
    output_image_path,
    parse_word_list,
    temp_image_path,
)
from service.font_discovery import discover_font_entries, require_fonts_dir
from service.post_processing import PostProcessError, PostProcessor
from service.rendering import load_font, render_word_image

LOGGER = logging.getLogger("render_word_images.batch")

UNHANDLED_FONT_CODE = "render_word_images.batch.unhandled_error"
FINISHED_MESSAGE = "Finished generating images."


class WordOutcome(str, Enum):
    """Result of processing a single word for a single font file."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class BatchSummary:
    """Counters accumulated over a batch run."""

    fonts_processed: int = 0
    fonts_failed: int = 0
    words_written: int = 0
    words_skipped: int = 0
    words_failed: int = 0

    def record_word(self, outcome: WordOutcome) -> None:
        if outcome == WordOutcome.WRITTEN:
            self.words_written += 1
        elif outcome == WordOutcome.SKIPPED:
            self.words_skipped += 1
        else:
            self.words_failed += 1

    def merge(self, other: "BatchSummary") -> None:
        self.fonts_processed += other.fonts_processed
        self.fonts_failed += other.fonts_failed
        self.words_written += other.words_written
        self.words_skipped += other.words_skipped
        self.words_failed += other.words_failed


def default_worker_count() -> int:
    """Return the number of logical processors available."""
    return os.cpu_count() or 1


def ensure_images_dir(images_dir: str) -> None:
    """Create the output root directory when missing."""
    try:
        os.makedirs(images_dir, exist_ok=True)
    except OSError as exc:
        raise WordImageError(
            IMAGES_DIR_CODE, f"failed to create images directory {images_dir}: {exc}"
        ) from exc


def read_word_list(words_file: str) -> tuple[str, ...]:
    """Read a UTF-8 word list with strict decoding."""
    try:
        with open(words_file, "rb") as file_handle:
            file_bytes = file_handle.read()
    except OSError as exc:
        raise WordImageError(
            WORDS_FILE_CODE, f"failed to read words file {words_file}: {exc}"
        ) from exc

    try:
        text_value = file_bytes.decode("utf-8", errors="strict")
    except UnicodeDecodeError as exc:
        raise WordImageError(
            WORDS_FILE_CODE,
            f"words file is not valid UTF-8 at byte offset {exc.start}",
        ) from exc
    return parse_word_list(text_value)


def remove_if_exists(file_path: str) -> bool:
    """Remove a file, returning False only when removal failed."""
    try:
        os.remove(file_path)
    except FileNotFoundError:
        return True
    except (OSError, ValueError) as exc:
        LOGGER.error("%s: failed to remove %s (%s)", WORD_OUTPUT_CODE, file_path, exc)
        return False
    return True


def is_unusable_file_name(word: str) -> bool:
    """Return True when a word cannot be used as a plain file name."""
    if "\x00" in word or os.sep in word:
        return True
    return bool(os.altsep) and os.altsep in word


def process_word(
    font: ImageFont.FreeTypeFont,
    word: str,
    font_output_dir: str,
    config: BatchConfig,
    post_processor: PostProcessor,
) -> WordOutcome:
    """Render, post-process and store one word for one font."""
    if is_unusable_file_name(word):
        LOGGER.error(
            "%s: word %r is not a valid file name; skipped", WORD_OUTPUT_CODE, word
        )
        return WordOutcome.FAILED

    output_path = output_image_path(font_output_dir, word)
    raw_path = temp_image_path(font_output_dir, word)

    image = render_word_image(font, word, config.font_size, config.max_width)
    if image is None:
        remove_if_exists(raw_path)
        return WordOutcome.SKIPPED

    try:
        try:
            image.save(raw_path, format="PNG")
        except (OSError, ValueError) as exc:
            LOGGER.error(
                "%s: failed to write %s (%s)", WORD_OUTPUT_CODE, raw_path, exc
            )
            return WordOutcome.FAILED

        try:
            post_processor.post_process(raw_path, output_path, config.border_size)
        except PostProcessError as exc:
            LOGGER.error("%s: %s", exc.code, str(exc).strip())
            return WordOutcome.FAILED
    finally:
        remove_if_exists(raw_path)

    LOGGER.debug("wrote %s", output_path)
    return WordOutcome.WRITTEN


def process_font_file(
    font_name: str,
    font_path: str,
    font_output_dir: str,
    words: Sequence[str],
    config: BatchConfig,
    post_processor: PostProcessor,
) -> BatchSummary:
    """Render every word with one font file, in word list order."""
    summary = BatchSummary()
    try:
        font = load_font(font_path, config.font_size)
    except WordImageError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        summary.fonts_failed += 1
        return summary

    LOGGER.info("Rendering %d words with %s (%s)", len(words), font_name, font_path)
    for word in words:
        summary.record_word(
            process_word(font, word, font_output_dir, config, post_processor)
        )
    summary.fonts_processed += 1
    return summary


def process_font_entry(
    entry: FontEntry,
    words: Sequence[str],
    config: BatchConfig,
    post_processor: PostProcessor,
) -> BatchSummary:
    """Render every word for each font file of an entry into its directory."""
    font_output_dir = os.path.join(config.images_dir, entry.name)
    try:
        os.makedirs(font_output_dir, exist_ok=True)
    except OSError as exc:
        LOGGER.error(
            "%s: failed to create %s (%s)", FONT_OUTPUT_DIR_CODE, font_output_dir, exc
        )
        return BatchSummary(fonts_failed=len(entry.font_paths))

    summary = BatchSummary()
    for font_path in entry.font_paths:
        summary.merge(
            process_font_file(
                entry.name, font_path, font_output_dir, words, config, post_processor
            )
        )
    return summary


def generate_word_images(
    config: BatchConfig,
    post_processor: PostProcessor,
    executor: Executor,
) -> BatchSummary:
    """Render the word list with every discovered font across the executor."""
    ensure_images_dir(config.images_dir)
    require_fonts_dir(config.fonts_dir)
    words = read_word_list(config.words_file)
    entries = discover_font_entries(config.fonts_dir)
    LOGGER.info(
        "Found %d font entries and %d words in %s",
        len(entries),
        len(words),
        config.words_file,
    )

    futures: dict[Future[BatchSummary], FontEntry] = {
        executor.submit(process_font_entry, entry, words, config, post_processor): entry
        for entry in entries
    }

    summary = BatchSummary()
    for future in as_completed(futures):
        entry = futures[future]
        try:
            summary.merge(future.result())
        except Exception as exc:
            LOGGER.error(
                "%s: font %s failed (%s)", UNHANDLED_FONT_CODE, entry.name, exc
            )
            summary.fonts_failed += len(entry.font_paths)

    LOGGER.info(
        "fonts processed=%d failed=%d, words written=%d skipped=%d failed=%d",
        summary.fonts_processed,
        summary.fonts_failed,
        summary.words_written,
        summary.words_skipped,
        summary.words_failed,
    )
    LOGGER.info(FINISHED_MESSAGE)
    return summary
