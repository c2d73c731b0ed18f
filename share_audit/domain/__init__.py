"""Domain layer definitions."""

from .sessions import AuditJob, AuditSession

__all__ = [
    "AuditJob",
    "AuditSession",
]
