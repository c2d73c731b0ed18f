from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from share_audit.application import get_audit_service
from share_audit.exporters.workspace_csv import workspaces_csv_text
from share_audit.exporters.workspace_xlsx import DEFAULT_FILENAME, workspaces_xlsx_bytes
from share_audit.routes.audits import require_audit, table_query

router = APIRouter(prefix="/audits", tags=["export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/{audit_id}/export")
async def export_audit(
    audit_id: str,
    format: str = Query(default="xlsx"),
    workspace_name: str | None = Query(default=None),
    owner: str | None = Query(default=None),
    members: str | None = Query(default=None),
    permissions: str | None = Query(default=None),
    sort: str | None = Query(default=None),
    direction: str = Query(default="ascending"),
) -> Response:
    """Download the filtered and sorted table as a spreadsheet."""
    require_audit(audit_id)
    if format not in {"xlsx", "csv"}:
        raise HTTPException(status_code=400, detail="format must be xlsx or csv")
    query = table_query(workspace_name, owner, members, permissions, sort, direction)
    rows = get_audit_service().get_table(audit_id, **query)
    if not rows:
        raise HTTPException(status_code=400, detail="no rows to export")

    if format == "csv":
        filename = DEFAULT_FILENAME.replace(".xlsx", ".csv")
        content: bytes = workspaces_csv_text(rows).encode("utf-8")
        media_type = "text/csv"
    else:
        filename = DEFAULT_FILENAME
        content = workspaces_xlsx_bytes(rows)
        media_type = XLSX_MEDIA_TYPE
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
