"""Human readable explanations for fatal audit failures."""
from __future__ import annotations

from share_audit.infrastructure.errors import (
    AuthMissingError,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    ProxyUnreachableError,
    RateLimitedError,
    SmartsheetError,
    UnauthorizedError,
    UpstreamApplicationError,
)


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, AuthMissingError):
        return "API token is required. Enter a Smartsheet API access token and try again."
    if isinstance(exc, UnauthorizedError):
        return (
            "Smartsheet rejected the API token. Check that the token is correct, "
            "has not been revoked and has not expired."
        )
    if isinstance(exc, ForbiddenError):
        return (
            "The API token does not have permission to list workspaces. "
            "Use a token from an account with access to the workspaces you want to audit."
        )
    if isinstance(exc, RateLimitedError):
        wait = f" after about {int(exc.retry_after)} seconds" if exc.retry_after else " in a minute"
        return f"Smartsheet rate limit reached. Wait and run the audit again{wait}."
    if isinstance(exc, ProxyUnreachableError):
        return (
            "Could not reach Smartsheet. This may be due to a network issue or the "
            "proxy service being temporarily unavailable. Check your connection and try again."
        )
    if isinstance(exc, NotFoundError):
        return "The requested Smartsheet resource was not found. Check the API base address."
    if isinstance(exc, UpstreamApplicationError):
        return f"Smartsheet returned an error: {exc}. Check your API token and try again."
    if isinstance(exc, MalformedResponseError):
        return "Smartsheet returned an unexpected response. The proxy may be misbehaving; try again later."
    if isinstance(exc, SmartsheetError):
        return f"Failed to fetch data: {exc}. Please check your API token and network connection."
    return "An unknown error occurred."
