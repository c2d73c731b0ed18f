from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from share_audit.application import get_audit_service
from share_audit.infrastructure import get_report_generator
from share_audit.infrastructure.report import ReportGenerationError, ReportUnavailableError
from share_audit.routes.audits import require_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audits", tags=["report"])


@router.post("/{audit_id}/report")
async def generate_report(audit_id: str) -> dict:
    require_audit(audit_id)
    service = get_audit_service()
    records = service.list_records(audit_id)
    if not records:
        raise HTTPException(status_code=400, detail="No workspace data available to analyze.")

    try:
        report = await get_report_generator().generate(records)
    except ReportUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ReportGenerationError as exc:
        logger.warning("Report generation for %s failed: %s", audit_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    service.save_report(audit_id, report)
    return {"audit_id": audit_id, "report": report}
