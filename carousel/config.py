"""Runtime configuration for the carousel service.

All settings are read from environment variables once, at import time.

Environment variables:
    APP_ENV: 'production' (default) or 'development'. Development exposes
        stack traces in 500 responses.
    LOG_LEVEL: Root log level (default 'INFO').
    DOWNLOAD_TIMEOUT_SEC: Timeout applied to each download attempt,
        including every redirect hop (default 10).
    MAX_REDIRECTS: Maximum redirect hops followed per download (default 10).
    MAX_RESPONSE_BYTES: Ceiling for the serialized JSON response
        (default 6000000).
    RATE_LIMIT: Accepted requests per client per window (default 10).
    RATE_LIMIT_WINDOW_SEC: Length of the admission window (default 60).
    RATE_LIMIT_BACKEND: 'memory' (default) or 'redis'.
    REDIS_HOST, REDIS_PORT, REDIS_DB: Redis connection for the 'redis'
        rate limit backend.
"""

from __future__ import annotations

import os

APP_ENV: str = os.getenv("APP_ENV", "production").lower()
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

DOWNLOAD_TIMEOUT_SEC: float = float(os.getenv("DOWNLOAD_TIMEOUT_SEC", "10"))
MAX_REDIRECTS: int = int(os.getenv("MAX_REDIRECTS", "10"))
USER_AGENT = "Mozilla/5.0 (compatible; CarouselGenerator/1.0)"

MAX_RESPONSE_BYTES: int = int(os.getenv("MAX_RESPONSE_BYTES", "6000000"))

RATE_LIMIT: int = int(os.getenv("RATE_LIMIT", "10"))
RATE_LIMIT_WINDOW_SEC: float = float(os.getenv("RATE_LIMIT_WINDOW_SEC", "60"))
RATE_LIMIT_BACKEND: str = os.getenv("RATE_LIMIT_BACKEND", "memory").lower()

REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

DEFAULT_DIMENSION = 1080
MIN_DIMENSION = 200
MAX_DIMENSION = 4000


def is_development() -> bool:
    return APP_ENV == "development"
