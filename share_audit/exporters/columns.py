from __future__ import annotations

from typing import Iterable

import pandas as pd

from share_audit.core.schema import AuditRecord

EXPORT_COLUMNS: dict[str, str] = {
    "workspace_name": "Workspace Name",
    "owner": "Owner",
    "members": "Members",
    "permissions": "Permissions",
}


def records_to_frame(rows: Iterable[AuditRecord]) -> pd.DataFrame:
    """One row per record, members and permissions joined with newlines."""

    records = [row.display_row() for row in rows]
    df = pd.DataFrame(records, columns=list(EXPORT_COLUMNS))
    return df.rename(columns=EXPORT_COLUMNS)
