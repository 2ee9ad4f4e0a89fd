"""Shared fixtures for render_word_images tests."""

from __future__ import annotations

import string
from pathlib import Path
from typing import Callable

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

UNITS_PER_EM = 1000
ADVANCE_WIDTH = 600
ASCENT = 800
DESCENT = -200
MAPPED_CHARACTERS = string.ascii_letters + string.digits


def glyph_name_for(character: str) -> str:
    """Return the glyph name used for a mapped character."""
    return f"uni{ord(character):04X}"


def draw_box_glyph():
    """Draw a solid box glyph."""
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((500, 700))
    pen.lineTo((500, 0))
    pen.closePath()
    return pen.glyph()


def draw_empty_glyph():
    """Draw a glyph without contours."""
    return TTGlyphPen(None).glyph()


def write_test_font(target_path: Path, family_name: str = "Test") -> Path:
    """Write a TrueType font with box glyphs for ASCII letters and digits.

    The space and .notdef glyphs are empty, so words made of spaces or of
    unmapped characters render as blank canvases.
    """
    glyph_order = [".notdef", "space"] + [
        glyph_name_for(character) for character in MAPPED_CHARACTERS
    ]
    character_map = {ord(" "): "space"}
    character_map.update(
        {ord(character): glyph_name_for(character) for character in MAPPED_CHARACTERS}
    )
    glyphs = {".notdef": draw_empty_glyph(), "space": draw_empty_glyph()}
    for character in MAPPED_CHARACTERS:
        glyphs[glyph_name_for(character)] = draw_box_glyph()

    builder = FontBuilder(UNITS_PER_EM, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap(character_map)
    builder.setupGlyf(glyphs)
    glyph_table = builder.font["glyf"]
    builder.setupHorizontalMetrics(
        {
            glyph_name: (ADVANCE_WIDTH, getattr(glyph_table[glyph_name], "xMin", 0))
            for glyph_name in glyph_order
        }
    )
    builder.setupHorizontalHeader(ascent=ASCENT, descent=DESCENT)
    builder.setupNameTable({"familyName": family_name, "styleName": "Regular"})
    builder.setupOS2(
        sTypoAscender=ASCENT,
        sTypoDescender=DESCENT,
        usWinAscent=ASCENT,
        usWinDescent=-DESCENT,
    )
    builder.setupPost()
    target_path.parent.mkdir(parents=True, exist_ok=True)
    builder.save(str(target_path))
    return target_path


@pytest.fixture
def font_factory() -> Callable[..., Path]:
    """Return a factory that writes test fonts to a path."""
    return write_test_font


@pytest.fixture
def write_words() -> Callable[[Path, list[str]], Path]:
    """Return a helper that writes a newline-delimited word list."""

    def _write(target_path: Path, words: list[str]) -> Path:
        target_path.write_text("\n".join(words) + "\n", encoding="utf-8")
        return target_path

    return _write
