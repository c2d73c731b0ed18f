"""Read-only client for the Smartsheet 2.0 REST API."""
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from share_audit.core.settings import load_settings

from .errors import (
    STATUS_ERRORS,
    AuthMissingError,
    MalformedResponseError,
    ProxyUnreachableError,
    RateLimitedError,
    SmartsheetError,
    UpstreamApplicationError,
    UpstreamHTTPError,
)

logger = logging.getLogger(__name__)

_BODY_PREVIEW = 300


class SmartsheetClient:
    """Issue authenticated GET requests through a relay proxy.

    Every request goes out through ``proxy_url`` first.  When the request
    fails at the transport level (no response received) and a
    ``fallback_proxy_url`` is configured, it is repeated exactly once through
    the fallback.  Responses that did arrive are never retried, whatever their
    status.  An empty proxy string addresses the upstream directly.
    """

    def __init__(
        self,
        *,
        api_base: str = "https://api.smartsheet.com/2.0",
        proxy_url: str = "https://corsproxy.io/?url=",
        fallback_proxy_url: str | None = "https://api.allorigins.win/raw?url=",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = httpx.URL(api_base)
        if not parsed.scheme or not parsed.host:
            raise ValueError("api_base must include scheme and host")

        self._api_base = api_base.rstrip("/")
        self._proxy_url = proxy_url or ""
        self._fallback_proxy_url = fallback_proxy_url
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _upstream_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        url = httpx.URL(f"{self._api_base}{path}")
        if params:
            url = url.copy_merge_params(params)
        return str(url)

    @staticmethod
    def _route(url: str, proxy: str) -> str:
        if not proxy:
            return url
        return f"{proxy}{quote(url, safe='')}"

    def _routes(self) -> list[str]:
        routes = [self._proxy_url]
        if self._fallback_proxy_url is not None and self._fallback_proxy_url != self._proxy_url:
            routes.append(self._fallback_proxy_url)
        return routes

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    @staticmethod
    def _read_error_text(response: httpx.Response) -> str | None:
        try:
            text = response.text
        except (httpx.ResponseNotRead, UnicodeDecodeError, LookupError):
            return None
        text = text.strip()
        if not text:
            return None
        try:
            payload = json.loads(text)
        except ValueError:
            return text[:_BODY_PREVIEW]
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return text[:_BODY_PREVIEW]

    @staticmethod
    def _retry_after(response: httpx.Response) -> float | None:
        raw = response.headers.get("Retry-After")
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        detail = self._read_error_text(response)
        message = f"HTTP error {status}"
        if detail:
            message = f"{message}: {detail}"

        error_cls = STATUS_ERRORS.get(status, UpstreamHTTPError)
        if error_cls is RateLimitedError:
            raise RateLimitedError(
                message,
                status_code=status,
                detail=detail,
                retry_after=self._retry_after(response),
            )
        raise error_cls(message, status_code=status, detail=detail)

    def _parse_body(self, response: httpx.Response) -> Any:
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "Response body was not valid JSON",
                status_code=response.status_code,
                detail=self._read_error_text(response),
            ) from exc

        if isinstance(payload, dict) and payload.get("errorCode") is not None:
            message = str(payload.get("message") or f"Smartsheet error {payload['errorCode']}")
            raise UpstreamApplicationError(
                message,
                error_code=payload["errorCode"],
                ref_id=payload.get("refId"),
                status_code=response.status_code,
            )
        return payload

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def get_json(self, path: str, token: str | None, *, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` relative to the API base and return the decoded JSON."""

        if not token or not token.strip():
            raise AuthMissingError()

        upstream_url = self._upstream_url(path, params)
        headers = self._headers(token.strip())
        routes = self._routes()
        last_error: httpx.TransportError | None = None

        for attempt, proxy in enumerate(routes, start=1):
            try:
                response = await self._client.get(self._route(upstream_url, proxy), headers=headers)
            except httpx.TransportError as exc:
                last_error = exc
                if attempt < len(routes):
                    logger.warning(
                        "Transport failure via %s (%s); retrying through fallback proxy",
                        proxy or "direct connection",
                        type(exc).__name__,
                    )
                continue

            if not response.is_success:
                self._raise_for_status(response)
            return self._parse_body(response)

        raise ProxyUnreachableError(
            "Could not reach the Smartsheet API through the configured proxies",
            detail=str(last_error) if last_error else None,
        ) from last_error

    async def list_workspaces_page(self, token: str | None, page: int, page_size: int) -> dict[str, Any]:
        payload = await self.get_json("/workspaces", token, params={"page": page, "pageSize": page_size})
        if not isinstance(payload, dict):
            raise MalformedResponseError("Workspace listing was not a JSON object")
        return payload

    async def list_workspace_shares(self, token: str | None, workspace_id: int) -> list[Any]:
        payload = await self.get_json(f"/workspaces/{workspace_id}/shares", token)
        if not isinstance(payload, dict):
            raise MalformedResponseError("Share listing was not a JSON object")
        data = payload.get("data")
        return list(data) if isinstance(data, list) else []

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


_client: SmartsheetClient | None = None


def configure_smartsheet_client(client: SmartsheetClient | None) -> None:
    """Install the client used by the audit worker (``None`` rebuilds lazily)."""

    global _client
    _client = client


def get_smartsheet_client() -> SmartsheetClient:
    global _client
    if _client is None:
        settings = load_settings()
        _client = SmartsheetClient(
            api_base=settings.api_base,
            proxy_url=settings.proxy_url,
            fallback_proxy_url=settings.fallback_proxy_url or None,
            timeout=settings.timeout,
        )
    return _client


__all__ = [
    "SmartsheetClient",
    "SmartsheetError",
    "configure_smartsheet_client",
    "get_smartsheet_client",
]
