"""Failures raised by the Smartsheet client."""
from __future__ import annotations


class SmartsheetError(RuntimeError):
    """Base class for every failure surfaced by :class:`SmartsheetClient`."""

    kind = "upstream_error"

    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class AuthMissingError(SmartsheetError):
    """No bearer token was supplied; raised before any request is made."""

    kind = "auth_missing"

    def __init__(self, message: str = "API token is required.") -> None:
        super().__init__(message)


class UnauthorizedError(SmartsheetError):
    kind = "unauthorized"


class ForbiddenError(SmartsheetError):
    kind = "forbidden"


class NotFoundError(SmartsheetError):
    kind = "not_found"


class RateLimitedError(SmartsheetError):
    kind = "rate_limited"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = 429,
        detail: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, detail=detail)
        self.retry_after = retry_after


class UpstreamHTTPError(SmartsheetError):
    """Non-success status outside the explicitly classified ones."""

    kind = "http_error"


class UpstreamApplicationError(SmartsheetError):
    """Successful status whose body still carries an ``errorCode``."""

    kind = "application_error"

    def __init__(
        self,
        message: str,
        *,
        error_code: object = None,
        ref_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, detail=message)
        self.error_code = error_code
        self.ref_id = ref_id


class ProxyUnreachableError(SmartsheetError):
    """The request never completed, even through the fallback proxy."""

    kind = "proxy_unreachable"


class MalformedResponseError(SmartsheetError):
    kind = "malformed_response"


STATUS_ERRORS: dict[int, type[SmartsheetError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitedError,
}


__all__ = [
    "AuthMissingError",
    "ForbiddenError",
    "MalformedResponseError",
    "NotFoundError",
    "ProxyUnreachableError",
    "RateLimitedError",
    "STATUS_ERRORS",
    "SmartsheetError",
    "UnauthorizedError",
    "UpstreamApplicationError",
    "UpstreamHTTPError",
]
