"""Management report generation backed by Google Gemini.

The audit table is handed to the model as JSON together with a fixed prompt;
the returned narrative is passed through untouched.  When no API key is
configured an :class:`UnconfiguredReportGenerator` is installed so callers get
a clear error instead of a half-initialised SDK client.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Protocol

from google import genai
from google.genai import types

from share_audit.core.schema import AuditRecord

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert Smartsheet administrator and data analyst. Your task is to analyze "
    "JSON data of Smartsheet workspaces and generate a helpful, well-structured management report."
)

REPORT_PROMPT = """Analyze the following Smartsheet workspace data and generate a concise management report with actionable insights. Use Markdown for clear formatting.

The report should include these sections:
1.  **Overall Summary:** Provide key metrics like the total number of workspaces, unique owners, and total shared members.
2.  **Collaboration Hotspots:** Identify workspaces with the highest number of members and owners who manage the most workspaces.
3.  **Potential Risks & Recommendations:** Highlight potential security or management risks (e.g., workspaces with many admins, single points of failure where one owner controls many critical items) and provide specific, actionable recommendations to improve management.
4.  **Data Hygiene Suggestions:** Offer tips for organizing and cleaning up the workspaces based on the data provided.

Here is the data in JSON format:
{data}
"""


class ReportError(RuntimeError):
    """Base class for report failures."""


class ReportUnavailableError(ReportError):
    """Raised when a report cannot be requested at all."""


class ReportGenerationError(ReportError):
    """Raised when the text-generation service call fails."""


class ReportGenerator(Protocol):
    async def generate(self, records: Iterable[AuditRecord]) -> str:
        """Return a narrative report for the given records."""


def build_prompt(records: Iterable[AuditRecord]) -> str:
    rows = [
        {
            "workspaceName": row["workspace_name"],
            "owner": row["owner"],
            "members": row["members"],
            "permissions": row["permissions"],
        }
        for row in (record.display_row() for record in records)
    ]
    if not rows:
        raise ReportUnavailableError("No workspace data available to analyze.")
    return REPORT_PROMPT.format(data=json.dumps(rows, indent=2, ensure_ascii=False))


class GeminiReportGenerator:
    """Generate the management report with the ``google-genai`` SDK."""

    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str | None = None,
        client: Any | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ReportUnavailableError("GOOGLE_API_KEY is not configured")
            client = genai.Client(api_key=api_key)
        self._client = client
        self._model = (model or self.DEFAULT_MODEL).strip()

    async def generate(self, records: Iterable[AuditRecord]) -> str:
        prompt = build_prompt(records)
        logger.info("Requesting workspace report from %s (%d chars)", self._model, len(prompt))
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=SYSTEM_INSTRUCTION),
            )
        except Exception as exc:
            raise ReportGenerationError(f"Failed to generate report: {exc}") from exc
        return response.text or ""


class UnconfiguredReportGenerator:
    """Placeholder used until a real generator is configured."""

    async def generate(self, records: Iterable[AuditRecord]) -> str:
        raise ReportUnavailableError("Report generation is not configured; set GOOGLE_API_KEY.")


_generator: ReportGenerator = UnconfiguredReportGenerator()


def configure_report_generator(generator: ReportGenerator) -> None:
    """Install the report generator used by the API."""

    global _generator
    _generator = generator


def get_report_generator() -> ReportGenerator:
    return _generator


__all__ = [
    "GeminiReportGenerator",
    "ReportError",
    "ReportGenerationError",
    "ReportGenerator",
    "ReportUnavailableError",
    "UnconfiguredReportGenerator",
    "build_prompt",
    "configure_report_generator",
    "get_report_generator",
]
