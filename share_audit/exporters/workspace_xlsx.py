"""Excel export of the audit table.

The workbook holds a single ``Workspaces`` sheet written through pandas with
the openpyxl engine.  Multi-line member and permission cells are switched to
wrapped text so every share stays visible when the file is opened.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable

import pandas as pd
from openpyxl.styles import Alignment

from share_audit.core.schema import AuditRecord
from share_audit.exporters.columns import records_to_frame

DEFAULT_FILENAME = "smartsheet_workspaces.xlsx"
SHEET_NAME = "Workspaces"


def _write(target, rows: Iterable[AuditRecord]) -> None:
    df = records_to_frame(rows)
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        sheet = writer.sheets[SHEET_NAME]
        for row in sheet.iter_rows(min_row=2):
            for cell in row:
                cell.alignment = Alignment(wrap_text=True, vertical="top")
        for column_cells in sheet.columns:
            width = max((len(line) for cell in column_cells for line in str(cell.value or "").splitlines()), default=0)
            sheet.column_dimensions[column_cells[0].column_letter].width = min(max(width + 2, 12), 60)


def export_workspaces_xlsx(path: Path, rows: Iterable[AuditRecord]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    _write(path, rows)
    return path


def workspaces_xlsx_bytes(rows: Iterable[AuditRecord]) -> bytes:
    buffer = io.BytesIO()
    _write(buffer, rows)
    return buffer.getvalue()
