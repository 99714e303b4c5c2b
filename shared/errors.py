"""
Shared error handling for the Search Suggestion Proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class SuggestProxyException(Exception):
    """Base exception for classified service errors.

    ``status_code`` is the HTTP status the request handler answers with when
    the exception aborts a request.
    """

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(SuggestProxyException):
    """Invalid or missing request input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(SuggestProxyException):
    """Required configuration is missing at call time."""

    status_code = 500

    def __init__(self, message: str = "Service misconfigured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class RateLimitError(SuggestProxyException):
    """Upstream rate limiting errors."""

    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)


class UpstreamResponseError(SuggestProxyException):
    """Upstream could not be reached or answered with an unexpected body."""

    status_code = 500

    def __init__(self, service: str, message: str = "Unexpected upstream response", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_RESPONSE_ERROR", f"{service}: {message}", details)


class UpstreamErrorEnvelope(UpstreamResponseError):
    """Upstream answered with an error envelope other than a rate limit."""

    def __init__(self, service: str, error_code: Optional[str] = None):
        super().__init__(service, f"Upstream error {error_code}", details={"code": error_code})
        self.error_code = error_code
