"""Workspace share audit: paginated listing, per-workspace expansion, reduction."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Protocol

from pydantic import ValidationError

from share_audit.core.schema import OWNER_NOT_FOUND, AccessLevel, AuditRecord, ShareEntry, WorkspaceRef
from share_audit.infrastructure.errors import AuthMissingError, MalformedResponseError, SmartsheetError

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], object]
Sleeper = Callable[[float], Awaitable[object]]

PAGE_SIZE = 100
REQUEST_DELAY = 0.15


class WorkspaceSource(Protocol):
    """The two upstream calls the audit needs."""

    async def list_workspaces_page(self, token: str | None, page: int, page_size: int) -> dict[str, Any]: ...

    async def list_workspace_shares(self, token: str | None, workspace_id: int) -> list[Any]: ...


def _notify(progress: ProgressSink | None, message: str) -> None:
    if progress is not None:
        progress(message)


class RequestPacer:
    """Fixed pause between consecutive upstream requests.

    Callers pause only between requests, never after the final one.
    """

    def __init__(self, delay: float = REQUEST_DELAY, sleep: Sleeper | None = None) -> None:
        self.delay = max(0.0, delay)
        self._sleep = sleep or asyncio.sleep

    async def pause(self) -> None:
        if self.delay > 0:
            await self._sleep(self.delay)


def reduce_shares(workspace_name: str, shares: Iterable[ShareEntry]) -> AuditRecord:
    """Flatten a share list into an :class:`AuditRecord`.

    OWNER entries set the owner (the last one seen wins) and are not listed
    as members; every other share contributes one member/permission pair in
    the order observed. Levels outside the known tiers are kept verbatim.
    """

    owner = OWNER_NOT_FOUND
    members: list[str] = []
    permissions: list[str] = []
    for share in shares:
        if share.level is AccessLevel.OWNER:
            owner = share.identity
            continue
        members.append(share.identity)
        permissions.append(share.access_level)
    return AuditRecord(
        workspace_name=workspace_name,
        owner=owner,
        members=tuple(members),
        permissions=tuple(permissions),
    )


def _parse_workspaces(items: list[Any], page: int) -> list[WorkspaceRef]:
    try:
        return [WorkspaceRef.model_validate(item) for item in items]
    except ValidationError as exc:
        raise MalformedResponseError(f"Workspace listing page {page} contained an invalid entry") from exc


def _parse_shares(items: list[Any]) -> list[ShareEntry]:
    try:
        return [ShareEntry.model_validate(item) for item in items]
    except ValidationError as exc:
        raise MalformedResponseError("Share list contained an invalid entry") from exc


async def list_all_workspaces(
    source: WorkspaceSource,
    token: str | None,
    progress: ProgressSink | None = None,
    *,
    page_size: int = PAGE_SIZE,
) -> list[WorkspaceRef]:
    """Walk every listing page and return the workspaces in upstream order.

    Errors propagate to the caller; no partial listing is returned.
    Workspaces repeated across pages are dropped, keeping the first one.
    """

    if not token or not token.strip():
        raise AuthMissingError()
    _notify(progress, "Fetching workspace list...")

    workspaces: list[WorkspaceRef] = []
    seen: set[int] = set()
    page = 1
    total_pages = 1
    while True:
        payload = await source.list_workspaces_page(token, page, page_size)
        data = payload.get("data")
        if not isinstance(data, list) or not data:
            break

        reported = payload.get("totalPages")
        if isinstance(reported, int) and not isinstance(reported, bool):
            total_pages = reported

        for workspace in _parse_workspaces(data, page):
            if workspace.id in seen:
                logger.warning("Dropping duplicate workspace %s (%r) from page %d", workspace.id, workspace.name, page)
                continue
            seen.add(workspace.id)
            workspaces.append(workspace)

        _notify(progress, f"Retrieved page {page} of {max(total_pages, page)}")
        if page >= total_pages:
            break
        page += 1

    return workspaces


async def audit_workspace(source: WorkspaceSource, token: str | None, workspace: WorkspaceRef) -> AuditRecord:
    """Audit a single workspace, degrading to a restricted record on failure."""

    try:
        items = await source.list_workspace_shares(token, workspace.id)
        shares = _parse_shares(items)
    except SmartsheetError as exc:
        logger.warning(
            "Could not fetch shares for workspace %s (%r): %s",
            workspace.id,
            workspace.name,
            exc,
        )
        return AuditRecord.restricted(workspace.name)
    return reduce_shares(workspace.name, shares)


async def audit_all(
    source: WorkspaceSource,
    token: str | None,
    progress: ProgressSink | None = None,
    *,
    page_size: int = PAGE_SIZE,
    pacer: RequestPacer | None = None,
) -> list[AuditRecord]:
    """Audit every workspace visible to ``token``.

    The listing stage is all-or-nothing.  Detail fetches run one at a time in
    listing order with a fixed pause between them (none after the last
    workspace), and a failing workspace yields a restricted-access record
    instead of aborting the batch.
    """

    pacer = pacer or RequestPacer()
    workspaces = await list_all_workspaces(source, token, progress, page_size=page_size)
    total = len(workspaces)
    logger.info("Auditing %d workspaces", total)

    records: list[AuditRecord] = []
    for index, workspace in enumerate(workspaces, start=1):
        _notify(progress, f"Analyzing {index} of {total}: {workspace.name}")
        records.append(await audit_workspace(source, token, workspace))
        if index < total:
            await pacer.pause()

    restricted = sum(1 for record in records if record.is_restricted)
    logger.info("Audit finished: %d workspaces, %d restricted", total, restricted)
    return records


__all__ = [
    "PAGE_SIZE",
    "ProgressSink",
    "REQUEST_DELAY",
    "RequestPacer",
    "WorkspaceSource",
    "audit_all",
    "audit_workspace",
    "list_all_workspaces",
    "reduce_shares",
]
