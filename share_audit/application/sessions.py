"""Application service layer for audit sessions."""
from __future__ import annotations

from dataclasses import asdict
from typing import Iterable, Mapping

from share_audit.application.table import SortDirection, build_table
from share_audit.core.schema import AuditRecord
from share_audit.infrastructure import AuditSessionRepository, InMemoryAuditSessionRepository


class AuditSessionService:
    """Coordinates audit-session use cases."""

    def __init__(self, repository: AuditSessionRepository) -> None:
        self._repository = repository

    # ------------------------------------------------------------------
    # session lifecycle
    # ------------------------------------------------------------------
    def create_session(self) -> str:
        return self._repository.create_session()

    def exists(self, audit_id: str) -> bool:
        return self._repository.get_session(audit_id) is not None

    def mark_processing(self, audit_id: str) -> None:
        self._repository.update_status(audit_id, "processing")

    def mark_completed(self, audit_id: str, records: Iterable[AuditRecord]) -> None:
        self._repository.save_records(audit_id, records)
        self._repository.update_status(audit_id, "completed")

    def mark_failed(self, audit_id: str, message: str, *, kind: str | None = None) -> None:
        self._repository.update_status(audit_id, "failed", error=message, error_kind=kind)

    def record_progress(self, audit_id: str, message: str) -> None:
        self._repository.append_progress(audit_id, message)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def list_sessions(self) -> list[dict[str, object]]:
        return self._repository.list_sessions()

    def list_records(self, audit_id: str) -> list[AuditRecord]:
        return self._repository.list_records(audit_id)

    def get_table(
        self,
        audit_id: str,
        *,
        filters: Mapping[str, str | None] | None = None,
        sort: str | None = None,
        direction: SortDirection = "ascending",
    ) -> list[AuditRecord]:
        return build_table(self.list_records(audit_id), filters=filters, sort=sort, direction=direction)

    def get_progress(self, audit_id: str) -> dict[str, object] | None:
        session = self._repository.get_session(audit_id)
        if session is None:
            return None
        return {
            "audit_id": session.audit_id,
            "job": asdict(session.job),
            "messages": list(session.progress),
            "latest": session.progress[-1] if session.progress else None,
        }

    def get_overview(self, audit_id: str) -> dict[str, object] | None:
        session = self._repository.get_session(audit_id)
        if session is None:
            return None
        return {
            "audit_id": session.audit_id,
            "created_at": session.created_at,
            "status": session.job.status,
            "error": session.job.error,
            "count": len(session.records),
            "restricted": sum(1 for record in session.records if record.is_restricted),
            "report": session.report,
        }

    # ------------------------------------------------------------------
    # reports
    # ------------------------------------------------------------------
    def save_report(self, audit_id: str, report: str) -> None:
        self._repository.save_report(audit_id, report)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryAuditSessionRepository()
_service = AuditSessionService(_repository)


def get_audit_service() -> AuditSessionService:
    """Return the singleton audit session service for the process."""

    return _service


def reset_audit_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _service.reset()
