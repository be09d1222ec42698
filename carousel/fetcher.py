"""Background image downloader.

Redirects are followed by hand rather than through httpx's
``follow_redirects`` so that every hop gets its own timeout, the hop
count is bounded, and the body of each discarded response is closed
before moving on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from . import config
from .errors import (
    DownloadTimeoutError,
    EmptyResponseError,
    HTTPStatusError,
    InvalidContentTypeError,
    InvalidRedirectError,
    NetworkError,
    TooManyRedirectsError,
)

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class ImageFetcher:
    """Resolve a URL to raw image bytes over HTTP(S).

    Each ``fetch`` call opens its own ``httpx.AsyncClient`` so concurrent
    slide jobs never share a connection. ``transport`` is passed straight
    to the client, which lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        timeout: float = config.DOWNLOAD_TIMEOUT_SEC,
        max_redirects: int = config.MAX_REDIRECTS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.transport = transport

    async def fetch(self, url: str) -> bytes:
        redirects = 0
        async with httpx.AsyncClient(
            transport=self.transport,
            headers={"User-Agent": config.USER_AGENT},
            timeout=self.timeout,
            follow_redirects=False,
        ) as client:
            while True:
                try:
                    body, location = await asyncio.wait_for(
                        self._attempt(client, url), timeout=self.timeout
                    )
                except (asyncio.TimeoutError, httpx.TimeoutException):
                    raise DownloadTimeoutError(self.timeout) from None
                except httpx.InvalidURL as exc:
                    raise NetworkError(str(exc)) from exc
                except httpx.TransportError as exc:
                    raise NetworkError(str(exc) or exc.__class__.__name__) from exc

                if location is None:
                    return body

                redirects += 1
                if redirects > self.max_redirects:
                    raise TooManyRedirectsError(self.max_redirects)
                url = _resolve_redirect(url, location)
                logger.debug("Following redirect %d to %s", redirects, url)

    async def _attempt(self, client: httpx.AsyncClient, url: str) -> tuple[bytes, Optional[str]]:
        """Issue one request.

        Returns ``(body, None)`` for a usable image or ``(b"", location)``
        when the server asked us to go somewhere else.
        """
        async with client.stream("GET", url) as response:
            location = response.headers.get("location")
            if response.status_code in REDIRECT_STATUSES and location:
                await response.aclose()
                return b"", location

            if response.status_code != 200:
                await response.aclose()
                raise HTTPStatusError(response.status_code, response.reason_phrase or "")

            content_type = response.headers.get("content-type")
            if content_type and not content_type.startswith("image/"):
                await response.aclose()
                raise InvalidContentTypeError(content_type)

            body = await response.aread()
            if not body:
                raise EmptyResponseError()
            return body, None


def _resolve_redirect(current_url: str, location: str) -> str:
    try:
        resolved = httpx.URL(current_url).join(location)
    except (httpx.InvalidURL, ValueError):
        raise InvalidRedirectError(location) from None
    if resolved.scheme not in ("http", "https") or not resolved.host:
        raise InvalidRedirectError(location)
    return str(resolved)
