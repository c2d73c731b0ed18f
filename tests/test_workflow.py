import io
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from share_audit.application import get_audit_service, reset_audit_state
from share_audit.infrastructure import configure_report_generator, configure_smartsheet_client
from share_audit.infrastructure.report import GeminiReportGenerator, UnconfiguredReportGenerator
from share_audit.infrastructure.smartsheet import SmartsheetClient
from share_audit.workers.audit_worker import reset_audit_worker


@pytest.fixture(autouse=True)
def reset_state():
    reset_audit_state()
    reset_audit_worker()
    configure_report_generator(UnconfiguredReportGenerator())
    yield
    reset_audit_state()
    reset_audit_worker()
    configure_smartsheet_client(None)
    configure_report_generator(UnconfiguredReportGenerator())


@pytest.fixture()
def make_client(monkeypatch, mock_http):
    monkeypatch.setenv("AUDIT_REQUEST_DELAY", "0")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    def factory(upstream):
        configure_smartsheet_client(
            SmartsheetClient(proxy_url="", fallback_proxy_url=None, http_client=mock_http(upstream))
        )
        from share_audit.app import create_app

        return TestClient(create_app())

    return factory


class FakeModels:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(text="## Overall Summary\nTwo workspaces, one restricted.")


def test_end_to_end_workflow(make_client, sample_upstream):
    with make_client(sample_upstream) as client:
        # 1. run the audit
        response = client.post("/api/audits", json={"token": "abc123"})
        assert response.status_code == 200
        body = response.json()
        audit_id = body["audit_id"]
        assert body["status"] == "completed"
        assert body["count"] == 2
        alpha, beta = body["items"]
        assert alpha["workspace_name"] == "Alpha"
        assert alpha["owner"] == "a@x.com"
        assert alpha["members"] == ["Bob"]
        assert alpha["permissions"] == ["EDITOR"]
        assert alpha["restricted"] is False
        assert beta["owner"] == "Restricted access"
        assert beta["members"] == ["Could not fetch list"]
        assert beta["permissions"] == ["N/A"]
        assert beta["restricted"] is True

        # 2. progress was recorded in order
        response = client.get(f"/api/audits/{audit_id}/progress")
        progress = response.json()
        assert progress["job"]["status"] == "completed"
        assert progress["messages"] == [
            "Fetching workspace list...",
            "Retrieved page 1 of 1",
            "Analyzing 1 of 2: Alpha",
            "Analyzing 2 of 2: Beta",
        ]

        # 3. filter and sort the table
        response = client.get(f"/api/audits/{audit_id}", params={"owner": "A@X"})
        data = response.json()
        assert data["count"] == 2
        assert data["restricted"] == 1
        assert [item["workspace_name"] for item in data["items"]] == ["Alpha"]

        response = client.get(
            f"/api/audits/{audit_id}",
            params={"sort": "workspace_name", "direction": "descending"},
        )
        assert [item["workspace_name"] for item in response.json()["items"]] == ["Beta", "Alpha"]

        # 4. export
        response = client.get(f"/api/audits/{audit_id}/export")
        assert response.status_code == 200
        assert "smartsheet_workspaces.xlsx" in response.headers["content-disposition"]
        workbook = load_workbook(io.BytesIO(response.content))
        rows = list(workbook["Workspaces"].iter_rows(values_only=True))
        assert rows[1] == ("Alpha", "a@x.com", "Bob", "EDITOR")

        response = client.get(f"/api/audits/{audit_id}/export", params={"format": "csv", "workspace_name": "beta"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines == ["Workspace Name,Owner,Members,Permissions", "Beta,Restricted access,Could not fetch list,N/A"]

        # 5. management report
        models = FakeModels()
        configure_report_generator(GeminiReportGenerator(client=SimpleNamespace(aio=SimpleNamespace(models=models))))
        response = client.post(f"/api/audits/{audit_id}/report")
        assert response.status_code == 200
        assert response.json()["report"].startswith("## Overall Summary")
        assert len(models.calls) == 1
        assert client.get(f"/api/audits/{audit_id}").json()["report"].startswith("## Overall Summary")

        # 6. session listing
        sessions = client.get("/api/audits").json()["items"]
        assert [item["audit_id"] for item in sessions] == [audit_id]
        assert sessions[0]["records"] == 2
        assert sessions[0]["has_report"] is True


def test_token_can_be_sent_as_bearer_header(make_client, sample_upstream):
    with make_client(sample_upstream) as client:
        response = client.post("/api/audits", headers={"Authorization": "Bearer abc123"})
    assert response.status_code == 200
    assert all(request.headers["Authorization"] == "Bearer abc123" for request in sample_upstream.requests)


def test_missing_token_is_rejected_without_upstream_calls(make_client, sample_upstream):
    with make_client(sample_upstream) as client:
        response = client.post("/api/audits", json={"token": "  "})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "auth_missing"
        assert "token is required" in body["detail"]
        progress = client.get(f"/api/audits/{body['audit_id']}/progress").json()
        assert progress["job"]["status"] == "failed"
    assert sample_upstream.requests == []


def test_invalid_token_maps_to_unauthorized(make_client):
    def upstream(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"errorCode": 1002, "message": "Your Access Token is invalid."})

    with make_client(upstream) as client:
        response = client.post("/api/audits", json={"token": "bad"})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"
    assert "rejected the API token" in response.json()["detail"]
    assert get_audit_service().list_records(response.json()["audit_id"]) == []


def test_rate_limit_maps_to_429(make_client):
    def upstream(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "60"}, json={"errorCode": 4003, "message": "Rate limit exceeded."})

    with make_client(upstream) as client:
        response = client.post("/api/audits", json={"token": "abc123"})
    assert response.status_code == 429
    assert "60 seconds" in response.json()["detail"]


def test_unreachable_upstream_maps_to_bad_gateway(make_client):
    def upstream(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("proxy down", request=request)

    with make_client(upstream) as client:
        response = client.post("/api/audits", json={"token": "abc123"})
    assert response.status_code == 502
    assert response.json()["error"] == "proxy_unreachable"


def test_unknown_audit_is_404(make_client, sample_upstream):
    with make_client(sample_upstream) as client:
        assert client.get("/api/audits/audit-99999").status_code == 404
        assert client.get("/api/audits/audit-99999/progress").status_code == 404
        assert client.get("/api/audits/audit-99999/export").status_code == 404
        assert client.post("/api/audits/audit-99999/report").status_code == 404


def test_report_and_export_edge_cases(make_client, sample_upstream):
    with make_client(sample_upstream) as client:
        audit_id = client.post("/api/audits", json={"token": "abc123"}).json()["audit_id"]

        assert client.post(f"/api/audits/{audit_id}/report").status_code == 503
        assert client.get(f"/api/audits/{audit_id}/export", params={"format": "pdf"}).status_code == 400
        assert client.get(f"/api/audits/{audit_id}/export", params={"owner": "nobody"}).status_code == 400
        assert client.get(f"/api/audits/{audit_id}", params={"sort": "created_at"}).status_code == 400


def test_empty_account_returns_no_rows(make_client, fake_smartsheet):
    upstream = fake_smartsheet(pages={1: {"data": [], "totalPages": 0, "totalCount": 0}})
    with make_client(upstream) as client:
        response = client.post("/api/audits", json={"token": "abc123"})
        assert response.status_code == 200
        assert response.json()["items"] == []
        audit_id = response.json()["audit_id"]
        response = client.post(f"/api/audits/{audit_id}/report")
        assert response.status_code == 400
