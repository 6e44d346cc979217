"""Error taxonomy shared by the service clients and the API layer.

Every service raises a ``DashboardError`` subclass; the FastAPI exception
handler in ``app.main`` turns it into the ``{error, details}`` envelope with
the subclass' HTTP status.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable error categories."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DashboardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InputValidationError(DashboardError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR


class UpstreamAuthError(DashboardError):
    status_code = 401
    code = ErrorCode.AUTH_ERROR


class UpstreamNotFoundError(DashboardError):
    status_code = 404
    code = ErrorCode.NOT_FOUND


class RateLimitedError(DashboardError):
    status_code = 429
    code = ErrorCode.RATE_LIMITED


class UpstreamError(DashboardError):
    """Any other non-2xx upstream answer. Status passes through when known."""

    status_code = 500
    code = ErrorCode.UPSTREAM_ERROR


class UpstreamNetworkError(DashboardError):
    """The upstream never answered (DNS, connect, timeout)."""

    status_code = 503
    code = ErrorCode.NETWORK_ERROR


class MalformedUpstreamResponse(DashboardError):
    status_code = 500
    code = ErrorCode.MALFORMED_RESPONSE


class ConfigurationError(DashboardError):
    status_code = 500
    code = ErrorCode.CONFIGURATION_ERROR


def error_for_status(
    status_code: int, message: str, details: Optional[str] = None
) -> DashboardError:
    """Build the taxonomy error matching an upstream HTTP status."""
    if status_code == 401:
        return UpstreamAuthError(message, details)
    if status_code == 404:
        return UpstreamNotFoundError(message, details)
    if status_code == 429:
        return RateLimitedError(message, details)
    if 400 <= status_code < 600:
        return UpstreamError(message, details, status_code=status_code)
    return UpstreamError(message, details)
