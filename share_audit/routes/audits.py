from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Header, HTTPException, Query
from fastapi.responses import JSONResponse

from share_audit.application import get_audit_service
from share_audit.application.table import COLUMNS
from share_audit.core.settings import load_settings
from share_audit.infrastructure.errors import (
    AuthMissingError,
    ForbiddenError,
    RateLimitedError,
    UnauthorizedError,
)
from share_audit.workers.audit_worker import AuditRequest, AuditRunFailed, get_audit_worker

router = APIRouter(prefix="/audits", tags=["audit"])

FAILURE_STATUS: dict[type, int] = {
    AuthMissingError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    RateLimitedError: 429,
}


def _extract_token(payload: dict[str, Any], authorization: str | None) -> str | None:
    token = payload.get("token")
    if isinstance(token, str) and token.strip():
        return token.strip()
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def _serialise_rows(records) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for record in records:
        item: dict[str, Any] = record.model_dump(mode="json")
        item["display"] = record.display_row()
        item["restricted"] = record.is_restricted
        items.append(item)
    return items


def table_query(
    workspace_name: str | None,
    owner: str | None,
    members: str | None,
    permissions: str | None,
    sort: str | None,
    direction: str,
) -> dict[str, Any]:
    if sort is not None and sort not in COLUMNS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {', '.join(COLUMNS)}")
    if direction not in {"ascending", "descending"}:
        raise HTTPException(status_code=400, detail="direction must be ascending or descending")
    return {
        "filters": {
            "workspace_name": workspace_name,
            "owner": owner,
            "members": members,
            "permissions": permissions,
        },
        "sort": sort,
        "direction": direction,
    }


def require_audit(audit_id: str) -> None:
    if not get_audit_service().exists(audit_id):
        raise HTTPException(status_code=404, detail="audit not found")


@router.post("")
async def create_audit(
    payload: dict[str, Any] | None = None,
    authorization: str | None = Header(default=None),
) -> Any:
    """Run a full workspace audit for the supplied Smartsheet token."""
    settings = load_settings()
    request = AuditRequest(
        token=_extract_token(payload or {}, authorization),
        request_delay=settings.request_delay,
        page_size=settings.page_size,
    )
    try:
        job = await get_audit_worker().enqueue(request)
    except AuditRunFailed as exc:
        service = get_audit_service()
        overview = service.get_overview(exc.audit_id) or {}
        status_code = FAILURE_STATUS.get(type(exc.cause), 502)
        return JSONResponse(
            status_code=status_code,
            content={
                "audit_id": exc.audit_id,
                "status": "failed",
                "error": exc.cause.kind,
                "detail": overview.get("error"),
            },
        )
    return {
        "audit_id": job.audit_id,
        "status": job.status,
        "count": len(job.records),
        "items": _serialise_rows(job.records),
    }


@router.get("")
async def list_audits() -> dict:
    return {"items": get_audit_service().list_sessions()}


@router.get("/{audit_id}")
async def get_audit(
    audit_id: str,
    workspace_name: str | None = Query(default=None),
    owner: str | None = Query(default=None),
    members: str | None = Query(default=None),
    permissions: str | None = Query(default=None),
    sort: str | None = Query(default=None),
    direction: str = Query(default="ascending"),
) -> dict:
    require_audit(audit_id)
    query = table_query(workspace_name, owner, members, permissions, sort, direction)
    service = get_audit_service()
    rows = service.get_table(audit_id, **query)
    overview = service.get_overview(audit_id) or {}
    return {**overview, "items": _serialise_rows(rows), "filtered_count": len(rows)}


@router.get("/{audit_id}/progress")
async def get_audit_progress(audit_id: str) -> dict:
    progress = get_audit_service().get_progress(audit_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="audit not found")
    return progress
