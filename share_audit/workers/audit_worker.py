from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from share_audit.application import RequestPacer, audit_all, get_audit_service
from share_audit.application.audit import PAGE_SIZE, REQUEST_DELAY, WorkspaceSource
from share_audit.application.messages import describe_failure
from share_audit.core.schema import AuditRecord
from share_audit.infrastructure import get_smartsheet_client
from share_audit.infrastructure.errors import SmartsheetError

logger = logging.getLogger(__name__)


@dataclass
class AuditRequest:
    token: str | None = field(repr=False)
    request_delay: float = REQUEST_DELAY
    page_size: int = PAGE_SIZE


@dataclass
class AuditOutcome:
    audit_id: str
    status: str
    records: list[AuditRecord] = field(default_factory=list)


class AuditRunFailed(RuntimeError):
    """A fatal audit failure, tagged with the session it belongs to."""

    def __init__(self, audit_id: str, cause: SmartsheetError) -> None:
        super().__init__(str(cause))
        self.audit_id = audit_id
        self.cause = cause


class AuditWorker:
    """Runs audits one at a time against the shared upstream quota."""

    def __init__(self, source: WorkspaceSource | None = None) -> None:
        self._lock = asyncio.Lock()
        self._source = source

    @property
    def source(self) -> WorkspaceSource:
        return self._source if self._source is not None else get_smartsheet_client()

    async def enqueue(self, payload: AuditRequest) -> AuditOutcome:
        service = get_audit_service()
        audit_id = service.create_session()
        async with self._lock:
            service.mark_processing(audit_id)
            logger.info("Starting audit %s", audit_id)
            try:
                records = await audit_all(
                    self.source,
                    payload.token,
                    lambda message: service.record_progress(audit_id, message),
                    page_size=payload.page_size,
                    pacer=RequestPacer(payload.request_delay),
                )
            except SmartsheetError as exc:
                logger.warning("Audit %s failed: %s", audit_id, exc)
                service.mark_failed(audit_id, describe_failure(exc), kind=exc.kind)
                raise AuditRunFailed(audit_id, exc) from exc
            except Exception as exc:
                service.mark_failed(audit_id, describe_failure(exc))
                raise
            service.mark_completed(audit_id, records)
            return AuditOutcome(audit_id=audit_id, status="completed", records=records)


_worker: AuditWorker | None = None


def get_audit_worker() -> AuditWorker:
    global _worker
    if _worker is None:
        _worker = AuditWorker()
    return _worker


def reset_audit_worker() -> None:
    global _worker
    _worker = None
