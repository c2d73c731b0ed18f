"""Infrastructure layer for audit session storage."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Iterable, Protocol

from share_audit.core.schema import AuditRecord
from share_audit.domain import AuditSession


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditSessionRepository(Protocol):
    """Storage contract for audit sessions."""

    def create_session(self) -> str: ...

    def get_session(self, audit_id: str) -> AuditSession | None: ...

    def update_status(
        self,
        audit_id: str,
        status: str,
        *,
        error: str | None = None,
        error_kind: str | None = None,
    ) -> None: ...

    def append_progress(self, audit_id: str, message: str) -> None: ...

    def save_records(self, audit_id: str, records: Iterable[AuditRecord]) -> None: ...

    def list_records(self, audit_id: str) -> list[AuditRecord]: ...

    def save_report(self, audit_id: str, report: str) -> None: ...

    def list_sessions(self) -> list[dict[str, object]]: ...

    def reset(self) -> None: ...


class InMemoryAuditSessionRepository:
    """Process-local repository; nothing outlives the interpreter."""

    def __init__(self) -> None:
        self._sessions: dict[str, AuditSession] = {}
        self._counter = 0

    def _require(self, audit_id: str) -> AuditSession:
        session = self._sessions.get(audit_id)
        if session is None:
            raise KeyError(audit_id)
        return session

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def create_session(self) -> str:
        self._counter += 1
        audit_id = f"audit-{self._counter:05d}"
        self._sessions[audit_id] = AuditSession(audit_id=audit_id, created_at=_now())
        return audit_id

    def get_session(self, audit_id: str) -> AuditSession | None:
        return self._sessions.get(audit_id)

    def update_status(
        self,
        audit_id: str,
        status: str,
        *,
        error: str | None = None,
        error_kind: str | None = None,
    ) -> None:
        job = self._require(audit_id).job
        job.status = status
        job.error = error
        job.error_kind = error_kind
        if status == "processing":
            job.started_at = _now()
        elif status in {"completed", "failed"}:
            job.finished_at = _now()

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def append_progress(self, audit_id: str, message: str) -> None:
        self._require(audit_id).progress.append(message)

    def save_records(self, audit_id: str, records: Iterable[AuditRecord]) -> None:
        self._require(audit_id).records = list(records)

    def list_records(self, audit_id: str) -> list[AuditRecord]:
        session = self._sessions.get(audit_id)
        return list(session.records) if session else []

    def save_report(self, audit_id: str, report: str) -> None:
        self._require(audit_id).report = report

    def list_sessions(self) -> list[dict[str, object]]:
        summaries: list[dict[str, object]] = []
        for session in self._sessions.values():
            summaries.append(
                {
                    "audit_id": session.audit_id,
                    "created_at": session.created_at,
                    "job": asdict(session.job),
                    "records": len(session.records),
                    "restricted": sum(1 for record in session.records if record.is_restricted),
                    "has_report": session.report is not None,
                }
            )
        summaries.sort(key=lambda item: str(item["audit_id"]), reverse=True)
        return summaries

    def reset(self) -> None:
        self._sessions.clear()
        self._counter = 0
