"""Image manipulation utilities.

This module wraps the raster operations a slide needs, using Pillow for
decoding, cover-fit resizing, compositing and PNG encoding, and
CairoSVG to rasterise the vector text overlay. Everything here is
blocking; callers on the event loop run it in a worker thread.
"""

from __future__ import annotations

import base64
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps  # type: ignore[import]

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


def _open_image(data: bytes) -> Image.Image:
    """Open raw image bytes with Pillow and convert to RGBA."""
    img = Image.open(BytesIO(data))
    img = ImageOps.exif_transpose(img)
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return img


def cover_fit(img: Image.Image, width: int, height: int) -> Image.Image:
    """Scale `img` to fill `width` x `height` and crop the overflow around the centre.

    The aspect ratio is preserved; the result is never letterboxed.
    """
    return ImageOps.fit(img, (width, height), method=Image.LANCZOS, centering=(0.5, 0.5))


def rasterize_svg(svg: bytes, width: int, height: int) -> Image.Image:
    """Render an SVG document to an RGBA image of exactly `width` x `height`."""
    import cairosvg  # type: ignore[import]

    png = cairosvg.svg2png(bytestring=svg, output_width=width, output_height=height)
    overlay = Image.open(BytesIO(png)).convert("RGBA")
    if overlay.size != (width, height):
        overlay = overlay.resize((width, height), Image.LANCZOS)
    return overlay


def encode_png(img: Image.Image) -> bytes:
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def compose_slide(background: bytes, width: int, height: int, overlay_svg: Optional[bytes] = None) -> bytes:
    """Build the finished slide.

    Args:
        background: Raw bytes of the downloaded background photo.
        width: Output width in pixels.
        height: Output height in pixels.
        overlay_svg: Optional transparent SVG composited at (0, 0).

    Returns:
        The slide as PNG bytes.
    """
    img = cover_fit(_open_image(background), width, height)
    if overlay_svg is not None:
        img = Image.alpha_composite(img, rasterize_svg(overlay_svg, width, height))
    return encode_png(img)


def to_data_uri(png: bytes) -> str:
    return PNG_DATA_URI_PREFIX + base64.b64encode(png).decode("ascii")


def from_data_uri(data_uri: str) -> bytes:
    """Decode a base64 image data URI (any image MIME type) back to bytes."""
    if data_uri.startswith("data:") and "," in data_uri:
        data_uri = data_uri.split(",", 1)[1]
    return base64.b64decode(data_uri)
