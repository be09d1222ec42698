"""Batch carousel generation.

``parse_request`` turns a decoded JSON body into a ``CarouselRequest``
or raises ``RequestValidationError`` before any work is scheduled.
``CarouselGenerator.run`` renders every slide concurrently, optionally
uploads the successes to Drive, and builds the response body, refusing
to return one larger than ``max_response_bytes``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import config
from .errors import PayloadTooLargeError, RequestValidationError
from .models import CarouselRequest, CarouselStats, Dimensions, SlideSpec, SlideSuccess, UploadResult
from .renderer import SlideRenderer, SlideResult
from .storage import DriveUploader

logger = logging.getLogger(__name__)

SUGGEST_RETURN_URLS = (
    'Set "returnUrls": true in your request to return Drive URLs instead of base64 data, '
    "or reduce the number of slides."
)
SUGGEST_REDUCE = (
    "Reduce the number of slides, use smaller dimensions, or enable Google Drive upload "
    'with "returnUrls": true to get URLs instead of base64 data.'
)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def _dimension(body: Dict[str, Any], key: str) -> int:
    value = body.get(key, config.DEFAULT_DIMENSION)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not float(value).is_integer():
        raise RequestValidationError(f"{key} must be an integer")
    return int(value)


def parse_request(body: Any) -> CarouselRequest:
    """Validate a decoded request body.

    Checks run in a fixed order and the first failure wins, so clients
    always see the most basic problem with their request first.
    """
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")

    backgrounds = body.get("backgrounds", [])
    slides = body.get("slides", [])
    if not isinstance(backgrounds, list) or len(backgrounds) == 0:
        raise RequestValidationError("backgrounds array is required and must not be empty")
    if not isinstance(slides, list) or len(slides) == 0:
        raise RequestValidationError("slides array is required and must not be empty")
    if len(backgrounds) != len(slides):
        raise RequestValidationError(
            "backgrounds and slides arrays must have the same length",
            details={"backgrounds": len(backgrounds), "slides": len(slides)},
        )

    width = _dimension(body, "width")
    height = _dimension(body, "height")
    if not (config.MIN_DIMENSION <= width <= config.MAX_DIMENSION and config.MIN_DIMENSION <= height <= config.MAX_DIMENSION):
        raise RequestValidationError(
            f"Width and height must be between {config.MIN_DIMENSION} and {config.MAX_DIMENSION} pixels"
        )

    for i, background in enumerate(backgrounds):
        if not isinstance(background, str) or not background.strip():
            raise RequestValidationError(f"backgrounds[{i}] must be a non-empty URL string")

    specs: List[SlideSpec] = []
    for i, slide in enumerate(slides):
        if not isinstance(slide, dict):
            raise RequestValidationError(f"slides[{i}] must be an object")
        try:
            specs.append(SlideSpec.model_validate(slide))
        except ValidationError as exc:
            raise RequestValidationError(f"Invalid slide at index {i}: {_first_error(exc)}") from exc

    try:
        return CarouselRequest.model_validate({
            "backgrounds": backgrounds,
            "slides": specs,
            "width": width,
            "height": height,
            "uploadToDrive": body.get("uploadToDrive", False),
            "driveToken": body.get("driveToken"),
            "driveFolderId": body.get("driveFolderId"),
            "returnUrls": body.get("returnUrls", False),
        })
    except ValidationError as exc:
        raise RequestValidationError(f"Invalid request: {_first_error(exc)}") from exc


def encode_body(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass
class CarouselResponse:
    payload: Dict[str, Any]
    body: bytes


class CarouselGenerator:
    def __init__(
        self,
        renderer: Optional[SlideRenderer] = None,
        uploader: Optional[DriveUploader] = None,
        *,
        max_response_bytes: int = config.MAX_RESPONSE_BYTES,
    ):
        self.renderer = renderer or SlideRenderer()
        self.uploader = uploader or DriveUploader()
        self.max_response_bytes = max_response_bytes

    async def render_all(self, request: CarouselRequest) -> List[SlideResult]:
        """Render every (background, slide) pair concurrently.

        Results come back in input order regardless of completion order.
        """
        jobs = [
            self.renderer.render(background, slide, request.width, request.height, index)
            for index, (background, slide) in enumerate(zip(request.backgrounds, request.slides))
        ]
        return list(await asyncio.gather(*jobs))

    async def upload_all(self, request: CarouselRequest, successes: List[SlideSuccess]) -> List[UploadResult]:
        if not (request.upload_to_drive and request.drive_token and successes):
            return []
        uploads = [
            self.uploader.upload(slide.base64, slide.filename, request.drive_token, request.drive_folder_id)
            for slide in successes
        ]
        return list(await asyncio.gather(*uploads))

    async def run(self, request: CarouselRequest) -> CarouselResponse:
        started = time.monotonic()
        results = await self.render_all(request)
        generation_ms = int((time.monotonic() - started) * 1000)

        successes = [r for r in results if isinstance(r, SlideSuccess)]
        failures = [r for r in results if not isinstance(r, SlideSuccess)]
        drive_urls = await self.upload_all(request, successes)

        if request.return_urls and drive_urls and all(u.success for u in drive_urls):
            images = [
                {"filename": slide.filename, "success": True, "driveUrl": upload.url}
                for slide, upload in zip(successes, drive_urls)
            ]
        else:
            images = [slide.model_dump() for slide in successes]

        stats = CarouselStats(
            total_slides=len(request.backgrounds),
            successful=len(successes),
            failed=len(failures),
            generation_time_ms=generation_ms,
            dimensions=Dimensions(width=request.width, height=request.height),
        ).model_dump(by_alias=True)

        payload: Dict[str, Any] = {"success": True, "images": images}
        if failures:
            payload["failed"] = [f.model_dump() for f in failures]
        if drive_urls:
            payload["driveUrls"] = [u.model_dump(by_alias=True, exclude_none=True) for u in drive_urls]
        payload["stats"] = stats

        body = encode_body(payload)
        if len(body) > self.max_response_bytes:
            suggestion = SUGGEST_RETURN_URLS if drive_urls else SUGGEST_REDUCE
            raise PayloadTooLargeError(len(body), self.max_response_bytes, suggestion, stats)

        logger.info(
            "Generated %d/%d slides in %dms (%dx%d)",
            len(successes), len(results), generation_ms, request.width, request.height,
        )
        return CarouselResponse(payload=payload, body=body)
