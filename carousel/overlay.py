"""Vector text overlay for a slide.

The overlay is a transparent SVG the size of the canvas holding the
title and subtitle blocks. Layout values resolve in one order: an
explicit value on the ``SlideSpec`` wins, otherwise a default derived
from the canvas size is used (see ``resolve_layout``).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import SlideSpec
from .text_layout import wrap_text

TITLE_SIZE_RATIO = 0.055
SUBTITLE_SIZE_RATIO = 0.033
PADDING_RATIO = 0.05
TITLE_LINE_HEIGHT = 1.2
SUBTITLE_LINE_HEIGHT = 1.3
SHADOW_OFFSET = 2
SHADOW_FILL = "#000"
SHADOW_OPACITY = 0.5

TEXT_ANCHORS = {"left": "start", "center": "middle", "right": "end"}

FONT_STACKS: Dict[str, str] = {
    "Arial": "Arial, Helvetica, sans-serif",
    "Helvetica": "Helvetica, Arial, sans-serif",
    "Roboto": "Roboto, Arial, sans-serif",
    "Open Sans": "Open Sans, Arial, sans-serif",
    "Montserrat": "Montserrat, Arial, sans-serif",
    "Bebas Neue": "Bebas Neue, Impact, Arial, sans-serif",
    "Impact": "Impact, Arial Black, sans-serif",
    "Futura": "Futura, Trebuchet MS, Arial, sans-serif",
    "Georgia": "Georgia, serif",
    "Times": "Times New Roman, Times, serif",
}

_XML_ESCAPES = {"<": "&lt;", ">": "&gt;", "&": "&amp;", "'": "&apos;", '"': "&quot;"}
_XML_RESERVED = re.compile(r"[<>&'\"]")


def escape_xml(value: Optional[str]) -> str:
    """Escape the five XML reserved characters in a single pass."""
    if not value:
        return ""
    return _XML_RESERVED.sub(lambda m: _XML_ESCAPES[m.group(0)], str(value))


def font_stack(font_family: str) -> str:
    return FONT_STACKS.get(font_family, FONT_STACKS["Arial"])


def _num(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(round(value, 2))


@dataclass(frozen=True)
class TextLine:
    text: str
    x: float
    dy: float = 0.0


@dataclass(frozen=True)
class TextBlock:
    lines: List[TextLine]
    x: float
    y: float
    font_size: float
    font_weight: str
    stroke: str
    stroke_width: int


@dataclass(frozen=True)
class OverlayLayout:
    """Fully resolved layout for one slide on one canvas."""

    width: int
    height: int
    text_color: str
    font_family: str
    text_anchor: str
    title: Optional[TextBlock] = None
    subtitle: Optional[TextBlock] = None

    @property
    def blocks(self) -> List[TextBlock]:
        return [b for b in (self.title, self.subtitle) if b is not None]


def _block(text: str, *, x: float, y: float, font_size: float, max_width: float,
           line_height: float, font_family: str, font_weight: str,
           stroke: str, stroke_width: int) -> Optional[TextBlock]:
    wrapped = wrap_text(text, max_width, font_size, font_family)
    if not wrapped:
        return None
    lines = [TextLine(line, x, 0.0 if i == 0 else line_height) for i, line in enumerate(wrapped)]
    return TextBlock(lines, x, y, font_size, font_weight, stroke, stroke_width)


def resolve_layout(slide: SlideSpec, width: int, height: int) -> OverlayLayout:
    """Apply canvas-derived defaults to every layout field the slide leaves unset."""
    title_size = slide.title_size or math.floor(width * TITLE_SIZE_RATIO)
    subtitle_size = slide.subtitle_size or math.floor(width * SUBTITLE_SIZE_RATIO)
    padding = math.floor(width * PADDING_RATIO)
    default_max_width = width - padding * 2

    both = slide.has_title and slide.has_subtitle
    title_y = slide.title_y if slide.title_y is not None else (height * 0.35 if both else height / 2)
    subtitle_y = slide.subtitle_y if slide.subtitle_y is not None else (height * 0.65 if both else height / 2)
    title_x = slide.title_x if slide.title_x is not None else width / 2
    subtitle_x = slide.subtitle_x if slide.subtitle_x is not None else width / 2

    title = None
    if slide.has_title:
        title = _block(
            slide.title,
            x=title_x,
            y=title_y,
            font_size=title_size,
            max_width=slide.max_title_width or default_max_width,
            line_height=title_size * TITLE_LINE_HEIGHT,
            font_family=slide.font_family,
            font_weight="bold",
            stroke="rgba(0,0,0,0.4)",
            stroke_width=2,
        )
    subtitle = None
    if slide.has_subtitle:
        subtitle = _block(
            slide.subtitle,
            x=subtitle_x,
            y=subtitle_y,
            font_size=subtitle_size,
            max_width=slide.max_subtitle_width or default_max_width,
            line_height=subtitle_size * SUBTITLE_LINE_HEIGHT,
            font_family=slide.font_family,
            font_weight="normal",
            stroke="rgba(0,0,0,0.3)",
            stroke_width=1,
        )

    return OverlayLayout(
        width=width,
        height=height,
        text_color=slide.text_color,
        font_family=slide.font_family,
        text_anchor=TEXT_ANCHORS[slide.text_align],
        title=title,
        subtitle=subtitle,
    )


def _text_element(block: TextBlock, layout: OverlayLayout, paint: str, *, offset: float = 0) -> str:
    spans = []
    for i, line in enumerate(block.lines):
        if i == 0:
            spans.append(escape_xml(line.text))
        else:
            spans.append(f'<tspan x="{_num(line.x + offset)}" dy="{_num(line.dy)}">{escape_xml(line.text)}</tspan>')
    return (
        f'<text x="{_num(block.x + offset)}" y="{_num(block.y + offset)}" '
        f'text-anchor="{layout.text_anchor}" '
        f'font-family="{escape_xml(font_stack(layout.font_family))}" '
        f'font-size="{_num(block.font_size)}" '
        f'font-weight="{block.font_weight}" '
        f'{paint}>{"".join(spans)}</text>'
    )


def _render_block(block: TextBlock, layout: OverlayLayout) -> str:
    # Painted back to front: offset shadow, outline, then the fill on top.
    shadow = _text_element(
        block, layout,
        f'class="shadow" fill="{SHADOW_FILL}" fill-opacity="{SHADOW_OPACITY}" stroke="none"',
        offset=SHADOW_OFFSET,
    )
    outline = _text_element(
        block, layout,
        f'class="outline" fill="none" stroke="{block.stroke}" stroke-width="{block.stroke_width}"',
    )
    fill = _text_element(block, layout, f'class="fill" fill="{escape_xml(layout.text_color)}" stroke="none"')
    return f"  <g>\n    {shadow}\n    {outline}\n    {fill}\n  </g>"


def build_overlay_svg(slide: SlideSpec, width: int, height: int) -> bytes:
    """Build the transparent SVG overlay for ``slide`` on a ``width`` x ``height`` canvas.

    Each text block is a group of three ``<text>`` copies: a translucent
    black shadow offset down and right, a stroke-only outline, and the
    fill. A slide without a title or subtitle yields an empty
    canvas-sized SVG.
    """
    layout = resolve_layout(slide, width, height)
    if not layout.blocks:
        return f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg"></svg>'.encode("utf-8")

    body = "\n".join(_render_block(block, layout) for block in layout.blocks)
    svg = (
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">\n'
        f"{body}\n"
        "</svg>"
    )
    return svg.encode("utf-8")
