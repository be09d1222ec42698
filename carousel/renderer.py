"""Render one carousel slide from a background URL and a SlideSpec."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from . import image_ops
from .fetcher import ImageFetcher
from .models import SlideFailure, SlideSpec, SlideSuccess
from .overlay import build_overlay_svg

logger = logging.getLogger(__name__)

SlideResult = Union[SlideSuccess, SlideFailure]


def slide_filename(index: int) -> str:
    return f"carousel-slide-{index + 1}.png"


class SlideRenderer:
    def __init__(self, fetcher: Optional[ImageFetcher] = None):
        self.fetcher = fetcher or ImageFetcher()

    async def render(self, background: str, slide: SlideSpec, width: int, height: int, index: int) -> SlideResult:
        """Download, fit, overlay and encode a single slide.

        Any failure along the way becomes a ``SlideFailure`` so that one
        broken slide never takes its siblings down with it.
        """
        filename = slide_filename(index)
        try:
            background_bytes = await self.fetcher.fetch(background)
            overlay_svg = build_overlay_svg(slide, width, height) if slide.has_text else None
            png = await asyncio.to_thread(
                image_ops.compose_slide, background_bytes, width, height, overlay_svg
            )
        except Exception as e:
            logger.error("Error generating slide %d: %s", index + 1, e)
            return SlideFailure(error=str(e) or e.__class__.__name__, filename=filename)
        return SlideSuccess(base64=image_ops.to_data_uri(png), filename=filename)
