"""Infrastructure layer exports."""

from .report import (
    GeminiReportGenerator,
    ReportGenerator,
    configure_report_generator,
    get_report_generator,
)
from .sessions import AuditSessionRepository, InMemoryAuditSessionRepository
from .smartsheet import SmartsheetClient, configure_smartsheet_client, get_smartsheet_client

__all__ = [
    "AuditSessionRepository",
    "GeminiReportGenerator",
    "InMemoryAuditSessionRepository",
    "ReportGenerator",
    "SmartsheetClient",
    "configure_report_generator",
    "configure_smartsheet_client",
    "get_report_generator",
    "get_smartsheet_client",
]
