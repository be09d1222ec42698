"""
Exception classes for the carousel service
"""
from typing import Any, Dict, Optional


class CarouselError(Exception):
    """Base exception class for carousel errors"""
    status_code = 500

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the JSON error body"""
        return {"error": self.message}


class RequestValidationError(CarouselError):
    """Raised when the request body is malformed or out of range"""
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class RateLimitExceededError(CarouselError):
    """Raised when a client exceeds its request quota for the window"""
    status_code = 429

    def __init__(self, client_id: str, limit: int):
        super().__init__(
            f"Rate limit exceeded. Maximum {limit} requests per minute.",
            code="RATE_LIMIT_EXCEEDED",
            details={"clientId": client_id},
        )


class PayloadTooLargeError(CarouselError):
    """Raised when the serialized response would exceed the size ceiling"""
    status_code = 413

    def __init__(self, size_bytes: int, max_bytes: int, suggestion: str, stats: Dict[str, Any]):
        size_mb = round(size_bytes / 1024 / 1024, 2)
        max_mb = round(max_bytes / 1000 / 1000)
        super().__init__(
            f"Response payload too large ({size_mb}MB). Maximum allowed: {max_mb}MB.",
            code="PAYLOAD_TOO_LARGE",
            details={"sizeBytes": size_bytes},
        )
        self.suggestion = suggestion
        self.stats = stats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "suggestion": self.suggestion,
            "stats": self.stats,
        }


class ImageFetchError(CarouselError):
    """Raised when a background image cannot be downloaded"""
    def __init__(self, message: str, code: str = "IMAGE_FETCH_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class TooManyRedirectsError(ImageFetchError):
    def __init__(self, max_redirects: int):
        super().__init__(
            f"Too many redirects (max {max_redirects}). Possible redirect loop.",
            code="TOO_MANY_REDIRECTS",
        )


class InvalidRedirectError(ImageFetchError):
    def __init__(self, location: str):
        super().__init__(f"Invalid redirect URL: {location}", code="INVALID_REDIRECT")


class DownloadTimeoutError(ImageFetchError):
    def __init__(self, timeout_sec: float):
        super().__init__(
            f"Image download timeout after {int(timeout_sec * 1000)}ms",
            code="TIMEOUT",
        )


class HTTPStatusError(ImageFetchError):
    """Raised when the final response is not a 200"""
    def __init__(self, status: int, reason: str = ""):
        super().__init__(
            f"Failed to download image: HTTP {status} {reason}".rstrip(),
            code="HTTP_ERROR",
            details={"status": status},
        )
        self.status = status
        self.reason = reason


class InvalidContentTypeError(ImageFetchError):
    def __init__(self, content_type: str):
        super().__init__(
            f"Invalid content type: {content_type}. Expected an image.",
            code="INVALID_CONTENT_TYPE",
        )
        self.content_type = content_type


class EmptyResponseError(ImageFetchError):
    def __init__(self):
        super().__init__("Empty response from image server", code="EMPTY_RESPONSE")


class NetworkError(ImageFetchError):
    def __init__(self, detail: str):
        super().__init__(f"Network error: {detail}", code="NETWORK_ERROR")
