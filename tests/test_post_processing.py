"""Tests for the trim and border post-processors."""

from __future__ import annotations

import shutil
import stat
from pathlib import Path

import pytest
from PIL import Image

from domain.word_images import INVALID_CONFIG_CODE, WordImageError
from service.post_processing import (
    MAGICK_NOT_FOUND_CODE,
    POST_PROCESS_FAILED_CODE,
    POST_PROCESS_TIMEOUT_CODE,
    MagickPostProcessor,
    PillowPostProcessor,
    PostProcessError,
    build_magick_args,
    build_post_processor,
    trim_to_content,
)


def write_raw_image(target_path: Path) -> Path:
    """Write a white canvas with a 6x4 black block at (10, 20)."""
    image = Image.new("RGB", (50, 40), (255, 255, 255))
    for x_value in range(10, 16):
        for y_value in range(20, 24):
            image.putpixel((x_value, y_value), (0, 0, 0))
    image.save(target_path, format="PNG")
    return target_path


def write_script(target_path: Path, body: str) -> Path:
    """Write an executable shell script."""
    target_path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    target_path.chmod(target_path.stat().st_mode | stat.S_IXUSR)
    return target_path


def test_magick_args_trim_repage_border() -> None:
    """The command trims, resets the page and pads with a white border."""
    assert build_magick_args("magick", "raw.png", "out.png", 10) == [
        "magick",
        "raw.png",
        "-trim",
        "+repage",
        "-bordercolor",
        "white",
        "-border",
        "10",
        "out.png",
    ]


def test_trim_to_content_crops_to_ink() -> None:
    """Trimming keeps only the bounding box of non-white pixels."""
    image = Image.new("RGB", (30, 30), (255, 255, 255))
    image.putpixel((5, 7), (0, 0, 0))
    image.putpixel((12, 9), (0, 0, 0))
    assert trim_to_content(image).size == (8, 3)


def test_pillow_post_processor_trims_and_borders(tmp_path: Path) -> None:
    """The in-process post-processor writes a trimmed, bordered PNG."""
    raw_path = write_raw_image(tmp_path / "Hi_temp.png")
    output_path = tmp_path / "Hi.png"

    PillowPostProcessor().post_process(str(raw_path), str(output_path), 10)

    with Image.open(output_path) as result:
        assert result.size == (6 + 20, 4 + 20)
        assert result.getpixel((0, 0)) == (255, 255, 255)
        assert result.getpixel((10, 10)) == (0, 0, 0)


def test_pillow_post_processor_missing_input(tmp_path: Path) -> None:
    """A missing raw image is reported as a post-processing failure."""
    with pytest.raises(PostProcessError) as excinfo:
        PillowPostProcessor().post_process(
            str(tmp_path / "missing.png"), str(tmp_path / "out.png"), 10
        )
    assert excinfo.value.code == POST_PROCESS_FAILED_CODE


def test_magick_failure_exit_status(tmp_path: Path) -> None:
    """A non-zero exit status is raised instead of being ignored."""
    script = write_script(tmp_path / "magick", "echo boom >&2\nexit 3")
    raw_path = write_raw_image(tmp_path / "Hi_temp.png")

    with pytest.raises(PostProcessError) as excinfo:
        MagickPostProcessor(str(script)).post_process(
            str(raw_path), str(tmp_path / "Hi.png"), 10
        )

    assert excinfo.value.code == POST_PROCESS_FAILED_CODE
    assert "exit code 3" in str(excinfo.value)
    assert "boom" in str(excinfo.value)


def test_magick_missing_binary(tmp_path: Path) -> None:
    """A missing binary is a post-processing error, not a crash."""
    raw_path = write_raw_image(tmp_path / "Hi_temp.png")
    with pytest.raises(PostProcessError) as excinfo:
        MagickPostProcessor(str(tmp_path / "no-such-magick")).post_process(
            str(raw_path), str(tmp_path / "Hi.png"), 10
        )
    assert excinfo.value.code == MAGICK_NOT_FOUND_CODE


def test_magick_timeout(tmp_path: Path) -> None:
    """A hung post-processor is stopped after the timeout."""
    script = write_script(tmp_path / "magick", "exec sleep 5")
    raw_path = write_raw_image(tmp_path / "Hi_temp.png")

    with pytest.raises(PostProcessError) as excinfo:
        MagickPostProcessor(str(script), timeout_seconds=0.2).post_process(
            str(raw_path), str(tmp_path / "Hi.png"), 10
        )
    assert excinfo.value.code == POST_PROCESS_TIMEOUT_CODE


@pytest.mark.skipif(shutil.which("magick") is None, reason="ImageMagick not installed")
def test_magick_post_processor_matches_pillow(tmp_path: Path) -> None:
    """ImageMagick and Pillow produce the same trimmed, bordered geometry."""
    raw_path = write_raw_image(tmp_path / "Hi_temp.png")
    magick_output = tmp_path / "magick.png"
    pillow_output = tmp_path / "pillow.png"

    build_post_processor("magick").post_process(str(raw_path), str(magick_output), 10)
    PillowPostProcessor().post_process(str(raw_path), str(pillow_output), 10)

    with Image.open(magick_output) as magick_image, Image.open(
        pillow_output
    ) as pillow_image:
        assert magick_image.size == pillow_image.size
        assert magick_image.convert("RGB").getpixel((0, 0)) == (255, 255, 255)


def test_build_post_processor_rejects_unknown_name() -> None:
    """Only magick and pillow are accepted."""
    with pytest.raises(WordImageError) as excinfo:
        build_post_processor("gimp")
    assert excinfo.value.code == INVALID_CONFIG_CODE


def test_build_post_processor_without_magick(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A missing magick is a warning; each word then fails on its own."""
    monkeypatch.setenv("PATH", str(tmp_path))
    post_processor = build_post_processor("magick")

    assert isinstance(post_processor, MagickPostProcessor)
    assert MAGICK_NOT_FOUND_CODE in caplog.text
    raw_path = write_raw_image(tmp_path / "raw.png")
    with pytest.raises(PostProcessError) as excinfo:
        post_processor.post_process(str(raw_path), str(tmp_path / "out.png"), 10)
    assert excinfo.value.code == MAGICK_NOT_FOUND_CODE


def test_build_post_processor_pillow() -> None:
    """The pillow name builds the in-process post-processor."""
    assert isinstance(build_post_processor(" Pillow "), PillowPostProcessor)
