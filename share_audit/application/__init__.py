"""Application services."""

from .audit import RequestPacer, audit_all, list_all_workspaces, reduce_shares
from .sessions import AuditSessionService, get_audit_service, reset_audit_state

__all__ = [
    "AuditSessionService",
    "RequestPacer",
    "audit_all",
    "get_audit_service",
    "list_all_workspaces",
    "reduce_shares",
    "reset_audit_state",
]
