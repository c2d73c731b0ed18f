"""Filtering and sorting of audit records for tabular display."""
from __future__ import annotations

from typing import Iterable, Literal, Mapping

from share_audit.core.schema import AuditRecord

COLUMNS: tuple[str, ...] = ("workspace_name", "owner", "members", "permissions")

SortDirection = Literal["ascending", "descending"]


def _check_column(column: str) -> str:
    if column not in COLUMNS:
        raise ValueError(f"unknown column {column!r}; expected one of {', '.join(COLUMNS)}")
    return column


def filter_records(records: Iterable[AuditRecord], filters: Mapping[str, str | None]) -> list[AuditRecord]:
    """Keep records whose display value contains every non-empty filter, ignoring case."""

    active = {
        _check_column(column): value.strip().lower()
        for column, value in filters.items()
        if value and value.strip()
    }
    if not active:
        return list(records)

    kept: list[AuditRecord] = []
    for record in records:
        row = record.display_row()
        if all(keyword in row[column].lower() for column, keyword in active.items()):
            kept.append(record)
    return kept


def sort_records(records: Iterable[AuditRecord], key: str, direction: SortDirection = "ascending") -> list[AuditRecord]:
    column = _check_column(key)
    if direction not in ("ascending", "descending"):
        raise ValueError("direction must be 'ascending' or 'descending'")
    return sorted(
        records,
        key=lambda record: record.display_row()[column],
        reverse=direction == "descending",
    )


def toggle_sort(current: tuple[str, SortDirection] | None, key: str) -> tuple[str, SortDirection]:
    """Next sort state after a column header is requested."""

    _check_column(key)
    if current is not None and current == (key, "ascending"):
        return key, "descending"
    return key, "ascending"


def build_table(
    records: Iterable[AuditRecord],
    *,
    filters: Mapping[str, str | None] | None = None,
    sort: str | None = None,
    direction: SortDirection = "ascending",
) -> list[AuditRecord]:
    rows = filter_records(records, filters or {})
    if sort:
        rows = sort_records(rows, sort, direction)
    return rows
