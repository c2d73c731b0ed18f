from __future__ import annotations

from pathlib import Path
from typing import Iterable

from share_audit.core.schema import AuditRecord
from share_audit.exporters.columns import records_to_frame


def export_workspaces_csv(path: Path, rows: Iterable[AuditRecord]) -> Path:
    df = records_to_frame(rows)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def workspaces_csv_text(rows: Iterable[AuditRecord]) -> str:
    return records_to_frame(rows).to_csv(index=False)
