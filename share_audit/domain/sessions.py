"""Domain entities for audit sessions held in memory."""
from __future__ import annotations

from dataclasses import dataclass, field

from share_audit.core.schema import AuditRecord


@dataclass(slots=True)
class AuditJob:
    """Lifecycle of one audit run."""

    status: str = "queued"
    error: str | None = None
    error_kind: str | None = None
    started_at: str | None = None
    finished_at: str | None = None


@dataclass(slots=True)
class AuditSession:
    """Everything produced by a single audit, discarded with the process."""

    audit_id: str
    created_at: str
    job: AuditJob = field(default_factory=AuditJob)
    progress: list[str] = field(default_factory=list)
    records: list[AuditRecord] = field(default_factory=list)
    report: str | None = None
