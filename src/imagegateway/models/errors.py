"""Error code definitions and exceptions for ImageGateway."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error category codes for gateway operations."""

    # Retryable errors (retryable=True)
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_OVERLOADED = "PROVIDER_OVERLOADED"
    RATE_LIMITED = "RATE_LIMITED"

    # Not retryable errors (retryable=False)
    INVALID_INPUT = "INVALID_INPUT"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    NO_IMAGE_DATA = "NO_IMAGE_DATA"
    INVALID_DATA_URL = "INVALID_DATA_URL"
    FETCH_FAILED = "FETCH_FAILED"
    UNSUPPORTED_SHAPE = "UNSUPPORTED_SHAPE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Set of retryable error codes
RETRYABLE_ERRORS = {
    ErrorCode.PROVIDER_TIMEOUT,
    ErrorCode.PROVIDER_OVERLOADED,
    ErrorCode.RATE_LIMITED,
}


def is_retryable(code: ErrorCode) -> bool:
    """Check if an error code indicates a retryable error."""
    return code in RETRYABLE_ERRORS


class ImageGatewayError(Exception):
    """Base exception for everything the gateway raises."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, error_code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class NoImageDataError(ImageGatewayError):
    """An image reference carried nothing that could be turned into bytes."""

    error_code = ErrorCode.NO_IMAGE_DATA


class InvalidDataUrlError(ImageGatewayError):
    """A data URL did not match ``data:[<mime>][;base64],<data>``."""

    error_code = ErrorCode.INVALID_DATA_URL


class FetchError(ImageGatewayError):
    """A remote image URL answered with a non-2xx status."""

    error_code = ErrorCode.FETCH_FAILED

    def __init__(self, url: str, status_code: int, reason: str, body: str = ""):
        super().__init__(f"Failed to fetch {url}: {status_code} {reason}".rstrip())
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.body = body


class UnsupportedShapeError(ImageGatewayError):
    """The upstream body does not look like any response shape we understand."""

    error_code = ErrorCode.UNSUPPORTED_SHAPE
