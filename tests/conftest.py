from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))


class FakeSmartsheet:
    """In-process stand-in for the Smartsheet API behind an httpx MockTransport.

    ``pages`` maps page number to the listing payload; ``shares`` maps a
    workspace id to either a list of share dicts or an ``httpx.Response`` to
    return verbatim.  Requests are accepted directly or through a relay that
    carries the upstream URL in its ``url`` query parameter.
    """

    def __init__(self, pages: dict[int, dict[str, Any]], shares: dict[int, Any] | None = None) -> None:
        self.pages = pages
        self.shares = shares or {}
        self.requests: list[httpx.Request] = []
        self.upstream_urls: list[httpx.URL] = []

    def _upstream(self, request: httpx.Request) -> httpx.URL:
        relayed = request.url.params.get("url")
        return httpx.URL(relayed) if relayed else request.url

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = self._upstream(request)
        self.upstream_urls.append(url)
        parts = [part for part in url.path.split("/") if part]
        # ["2.0", "workspaces"] or ["2.0", "workspaces", "<id>", "shares"]
        if parts[-1] == "workspaces":
            page = int(url.params.get("page", "1"))
            return httpx.Response(200, json=self.pages.get(page, {}))
        if parts[-1] == "shares":
            workspace_id = int(parts[-2])
            entry = self.shares.get(workspace_id)
            if isinstance(entry, httpx.Response):
                return entry
            if entry is None:
                return httpx.Response(404, json={"errorCode": 1006, "message": "Not Found"})
            return httpx.Response(200, json={"data": entry, "totalCount": len(entry)})
        return httpx.Response(404, json={"errorCode": 1006, "message": "Not Found"})

    def share_requests(self) -> list[str]:
        return [url.path for url in self.upstream_urls if url.path.endswith("/shares")]


@pytest.fixture()
def sample_upstream() -> FakeSmartsheet:
    """Two workspaces; the second one is forbidden."""

    return FakeSmartsheet(
        pages={
            1: {
                "pageNumber": 1,
                "pageSize": 100,
                "totalPages": 1,
                "totalCount": 2,
                "data": [{"id": 1, "name": "Alpha"}, {"id": 2, "name": "Beta"}],
            }
        },
        shares={
            1: [
                {"id": "s1", "type": "USER", "email": "a@x.com", "accessLevel": "OWNER"},
                {"id": "s2", "type": "USER", "name": "Bob", "accessLevel": "EDITOR"},
            ],
            2: httpx.Response(403, json={"errorCode": 1004, "message": "You are not authorized to perform this action."}),
        },
    )


@pytest.fixture()
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture()
def fake_smartsheet() -> type[FakeSmartsheet]:
    return FakeSmartsheet
