"""Trim and border post-processing for rendered word images."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Protocol, Tuple

from PIL import Image, ImageChops, ImageOps

from domain.word_images import INVALID_CONFIG_CODE, WordImageError

LOGGER = logging.getLogger("render_word_images.post_processing")

MAGICK_NOT_FOUND_CODE = "render_word_images.magick.not_found"
MAGICK_EXEC_CODE = "render_word_images.magick.exec_error"
POST_PROCESS_FAILED_CODE = "render_word_images.post_process.failed"
POST_PROCESS_TIMEOUT_CODE = "render_word_images.post_process.timeout"
MAGICK_BINARY = "magick"
BORDER_COLOR = "white"
BORDER_RGB: Tuple[int, int, int] = (255, 255, 255)
POST_PROCESSOR_NAMES = ("magick", "pillow")


class PostProcessError(RuntimeError):
    """Runtime error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class PostProcessor(Protocol):
    """Trims a raw render to its content and re-pads it with a white border."""

    def post_process(self, raw_path: str, output_path: str, border_size: int) -> None:
        ...


def ensure_magick_available() -> str:
    """Ensure ImageMagick is installed and executable, returning its path."""
    magick_path = shutil.which(MAGICK_BINARY)
    if not magick_path:
        raise PostProcessError(MAGICK_NOT_FOUND_CODE, "magick not on PATH")
    try:
        subprocess.run(
            [magick_path, "-version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except Exception as exc:
        raise PostProcessError(
            MAGICK_EXEC_CODE, "magick exists but could not be executed"
        ) from exc
    return magick_path


def build_magick_args(
    magick_path: str, raw_path: str, output_path: str, border_size: int
) -> list[str]:
    """Build the ImageMagick trim and border command line."""
    return [
        magick_path,
        raw_path,
        "-trim",
        "+repage",
        "-bordercolor",
        BORDER_COLOR,
        "-border",
        str(border_size),
        output_path,
    ]


class MagickPostProcessor:
    """Post-processor that shells out to ImageMagick."""

    def __init__(
        self, magick_path: str = MAGICK_BINARY, timeout_seconds: float | None = None
    ) -> None:
        self.magick_path = magick_path
        self.timeout_seconds = timeout_seconds

    def post_process(self, raw_path: str, output_path: str, border_size: int) -> None:
        args = build_magick_args(self.magick_path, raw_path, output_path, border_size)
        LOGGER.debug("running %s", " ".join(args))
        try:
            result = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise PostProcessError(
                MAGICK_NOT_FOUND_CODE, f"{self.magick_path} not found"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise PostProcessError(
                POST_PROCESS_TIMEOUT_CODE,
                f"magick timed out after {self.timeout_seconds}s for {raw_path}",
            ) from exc
        except OSError as exc:
            raise PostProcessError(
                MAGICK_EXEC_CODE, f"magick could not be executed: {exc}"
            ) from exc

        if result.returncode != 0:
            stderr_text = result.stderr.strip()
            raise PostProcessError(
                POST_PROCESS_FAILED_CODE,
                f"magick failed with exit code {result.returncode}. {stderr_text}",
            )

    def __repr__(self) -> str:
        return f"MagickPostProcessor({self.magick_path!r})"


def trim_to_content(image: Image.Image) -> Image.Image:
    """Crop an image to the bounding box of non-white pixels."""
    rgb_image = image.convert("RGB")
    background = Image.new("RGB", rgb_image.size, BORDER_RGB)
    bbox = ImageChops.difference(rgb_image, background).getbbox()
    if bbox is None:
        return rgb_image
    return rgb_image.crop(bbox)


class PillowPostProcessor:
    """In-process post-processor built on Pillow."""

    def post_process(self, raw_path: str, output_path: str, border_size: int) -> None:
        try:
            with Image.open(raw_path) as raw_image:
                trimmed = trim_to_content(raw_image)
            bordered = ImageOps.expand(trimmed, border=border_size, fill=BORDER_RGB)
            bordered.save(output_path, format="PNG")
        except OSError as exc:
            raise PostProcessError(
                POST_PROCESS_FAILED_CODE,
                f"failed to post-process {raw_path}: {exc}",
            ) from exc

    def __repr__(self) -> str:
        return "PillowPostProcessor()"


def build_post_processor(
    name: str, timeout_seconds: float | None = None
) -> PostProcessor:
    """Build a post-processor by name."""
    normalized = name.strip().lower()
    if normalized == "magick":
        try:
            magick_path = ensure_magick_available()
        except PostProcessError as exc:
            LOGGER.warning(
                "%s: %s; every word will fail post-processing", exc.code, exc
            )
            magick_path = MAGICK_BINARY
        return MagickPostProcessor(magick_path, timeout_seconds)
    if normalized == "pillow":
        return PillowPostProcessor()
    raise WordImageError(
        INVALID_CONFIG_CODE, f"invalid post-processor: {name!r}"
    )
