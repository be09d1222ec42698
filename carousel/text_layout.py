"""Approximate line wrapping without font metrics.

Glyph widths are not available when the overlay is built (the SVG is
rasterised later), so line widths are estimated as
``characters * font_size * multiplier`` where the multiplier is the
average character width for the font family, relative to its size.
"""

from __future__ import annotations

from typing import Dict, List

DEFAULT_CHAR_WIDTH = 0.55

# Bold and condensed display faces run wider per character.
CHAR_WIDTH_MULTIPLIERS: Dict[str, float] = {
    "Impact": 0.65,
    "Arial Black": 0.65,
    "Bebas Neue": 0.55,
    "Arial": 0.55,
    "Helvetica": 0.55,
    "Futura": 0.50,
    "Georgia": 0.55,
    "Times": 0.50,
}


def char_width_multiplier(font_family: str) -> float:
    """Average character width for ``font_family``.

    Unknown families, including ones that may not cover the glyphs of
    the text at all, use ``DEFAULT_CHAR_WIDTH``.
    """
    return CHAR_WIDTH_MULTIPLIERS.get(font_family, DEFAULT_CHAR_WIDTH)


def estimate_width(text: str, font_size: float, font_family: str) -> float:
    return len(text) * font_size * char_width_multiplier(font_family)


def wrap_text(text: str, max_width: float, font_size: float, font_family: str) -> List[str]:
    """Greedily fill lines with words until the estimated width exceeds ``max_width``.

    Words are split on single spaces and never broken, so a word wider
    than ``max_width`` gets a line of its own.

    Args:
        text: Text to wrap.
        max_width: Pixel budget per line.
        font_size: Font size in pixels.
        font_family: Family name used to pick the width multiplier.

    Returns:
        The wrapped lines. Empty for blank input, never empty otherwise.
    """
    if not text or not text.strip():
        return []

    lines: List[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if current and estimate_width(candidate, font_size, font_family) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)

    return lines or [text]
