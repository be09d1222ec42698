"""Shared fixtures for the carousel tests.

Network access is never made: downloads go through ``httpx.MockTransport``
handlers that serve in-memory PNGs.
"""

import io

import httpx
import pytest
from PIL import Image  # type: ignore


def _cairo_available() -> bool:
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


@pytest.fixture
def requires_cairo():
    """Skip tests that rasterise text overlays when native cairo is missing."""
    if not _cairo_available():
        pytest.skip("cairosvg / libcairo not available")


@pytest.fixture
def make_png():
    def _make(width=640, height=480, color=(30, 60, 90)):
        img = Image.new("RGB", (width, height), color=color)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
    return _make


@pytest.fixture
def image_transport(make_png):
    """Serve a 640x480 PNG for any URL, except paths ending in ``missing.jpg``."""
    png = make_png()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("missing.jpg"):
            return httpx.Response(404)
        return httpx.Response(200, content=png, headers={"Content-Type": "image/png"})

    return httpx.MockTransport(handler)
