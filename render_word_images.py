#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "pillow>=10",
#   "numpy>=1.26"
# ]
# ///
"""Render every word of a word list into a trimmed PNG for each font."""

from __future__ import annotations

import argparse
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import sys
from typing import Sequence

from domain.word_images import (
    DEFAULT_BORDER_SIZE,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONTS_DIR,
    DEFAULT_IMAGES_DIR,
    DEFAULT_MAX_WIDTH,
    DEFAULT_WORDS_FILE,
    INVALID_CONFIG_CODE,
    BatchConfig,
    WordImageError,
)
from service.batch import BatchSummary, default_worker_count, generate_word_images
from service.post_processing import (
    POST_PROCESSOR_NAMES,
    PostProcessError,
    PostProcessor,
    build_post_processor,
)

LOGGER = logging.getLogger("render_word_images")


@dataclass(frozen=True)
class RunRequest:
    """Parsed CLI request and runtime options."""

    config: BatchConfig
    workers: int
    post_processor: str
    magick_timeout: float | None
    verbose: bool


class MaxLevelFilter(logging.Filter):
    """Pass records strictly below a level."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def configure_logging(verbose: bool = False) -> None:
    """Send progress to stdout and warnings or errors to stderr."""
    formatter = logging.Formatter("%(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )


def parse_args(argv: Sequence[str]) -> RunRequest:
    """Parse CLI arguments into a RunRequest."""
    parser = argparse.ArgumentParser(prog="render_word_images.py", add_help=True)
    parser.add_argument("--fonts-dir", default=DEFAULT_FONTS_DIR)
    parser.add_argument("--words-file", default=DEFAULT_WORDS_FILE)
    parser.add_argument("--images-dir", default=DEFAULT_IMAGES_DIR)
    parser.add_argument("--font-size", type=int, default=DEFAULT_FONT_SIZE)
    parser.add_argument("--border-size", type=int, default=DEFAULT_BORDER_SIZE)
    parser.add_argument("--max-width", type=int, default=DEFAULT_MAX_WIDTH)
    parser.add_argument(
        "--workers", type=int, default=None, help="defaults to the logical CPU count"
    )
    parser.add_argument(
        "--post-processor", choices=POST_PROCESSOR_NAMES, default="magick"
    )
    parser.add_argument("--magick-timeout", type=float, default=None)
    parser.add_argument("--verbose", action="store_true")

    parsed = parser.parse_args(argv)
    workers = parsed.workers if parsed.workers is not None else default_worker_count()
    if workers <= 0:
        raise WordImageError(INVALID_CONFIG_CODE, "workers must be positive")
    if parsed.magick_timeout is not None and parsed.magick_timeout <= 0:
        raise WordImageError(INVALID_CONFIG_CODE, "magick-timeout must be positive")

    config = BatchConfig(
        fonts_dir=parsed.fonts_dir,
        words_file=parsed.words_file,
        images_dir=parsed.images_dir,
        font_size=parsed.font_size,
        border_size=parsed.border_size,
        max_width=parsed.max_width,
    )
    return RunRequest(
        config=config,
        workers=workers,
        post_processor=parsed.post_processor,
        magick_timeout=parsed.magick_timeout,
        verbose=parsed.verbose,
    )


def run(
    config: BatchConfig, post_processor: PostProcessor, workers: int
) -> BatchSummary:
    """Run a batch on a thread pool of the requested size."""
    LOGGER.info("Using %d worker threads", workers)
    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="render_word_images"
    ) as executor:
        return generate_word_images(config, post_processor, executor)


def main() -> int:
    """CLI entrypoint."""
    configure_logging()

    try:
        request = parse_args(sys.argv[1:])
        if request.verbose:
            configure_logging(verbose=True)
        post_processor = build_post_processor(
            request.post_processor, request.magick_timeout
        )
        run(request.config, post_processor, request.workers)
        return 0
    except WordImageError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except PostProcessError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except Exception as exc:
        LOGGER.error("render_word_images.unhandled_error: %s", str(exc).strip())
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
