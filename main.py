import json
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from carousel import config
from carousel.errors import CarouselError, RequestValidationError
from carousel.orchestrator import CarouselGenerator, encode_body, parse_request
from carousel.rate_limit import RateLimiter, client_id_from_headers, create_store

# --- Logging ---
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("carousel")
logger.info("[startup] Carousel service starting (env=%s)", config.APP_ENV)

# --- Service Init ---
rate_limiter = RateLimiter(create_store())
generator = CarouselGenerator()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# --- App Init ---
app = FastAPI(title="Carousel Generator")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _json(payload, status_code: int = 200) -> Response:
    return _raw(encode_body(payload), status_code)


def _raw(body: bytes, status_code: int = 200) -> Response:
    return Response(content=body, status_code=status_code, media_type="application/json", headers=CORS_HEADERS)


# --- Carousel Endpoints ---
@app.options("/carousel")
async def carousel_preflight():
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return _json({"error": "Method not allowed. Use POST."}, 405)
    return await http_exception_handler(request, exc)


@app.post("/carousel")
async def generate_carousel_endpoint(request: Request):
    """Render a batch of carousel slides.

    The JSON body carries ``backgrounds`` (image URLs) and ``slides``
    (text and layout per slide), paired by position, plus optional
    ``width``/``height`` and Drive upload settings. Slides that fail to
    render are reported under ``failed`` without failing the request.
    """
    try:
        rate_limiter.check(client_id_from_headers(request.headers))
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise RequestValidationError("Request body must be valid JSON")
        carousel_request = parse_request(body)
        result = await generator.run(carousel_request)
        return _raw(result.body)
    except CarouselError as e:
        return _json(e.to_dict(), e.status_code)
    except Exception as e:
        logger.exception("Error in carousel handler")
        payload = {"success": False, "error": str(e) or "Internal server error"}
        if config.is_development():
            payload["stack"] = traceback.format_exc()
        return _json(payload, 500)
