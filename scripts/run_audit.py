#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from share_audit.application import RequestPacer, audit_all
from share_audit.application.messages import describe_failure
from share_audit.application.table import COLUMNS, build_table
from share_audit.core.settings import configure_logging, load_settings
from share_audit.exporters.workspace_csv import export_workspaces_csv
from share_audit.exporters.workspace_xlsx import DEFAULT_FILENAME, export_workspaces_xlsx
from share_audit.infrastructure import SmartsheetClient
from share_audit.infrastructure.errors import SmartsheetError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Audit Smartsheet workspace sharing and export the table")
    parser.add_argument("--token", default=None, help="Smartsheet API token (default: $SMARTSHEET_ACCESS_TOKEN)")
    parser.add_argument("--output", default=DEFAULT_FILENAME, help="Output file (.xlsx or .csv)")
    parser.add_argument("--owner", default=None, help="Only keep workspaces whose owner contains this text")
    parser.add_argument("--name", default=None, help="Only keep workspaces whose name contains this text")
    parser.add_argument("--sort", choices=COLUMNS, default=None, help="Column to sort by")
    parser.add_argument("--descending", action="store_true", help="Sort in descending order")
    parser.add_argument("--direct", action="store_true", help="Call the API directly instead of through the proxy")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = load_settings()
    configure_logging(settings.log_level)
    token = args.token or os.getenv("SMARTSHEET_ACCESS_TOKEN")

    client = SmartsheetClient(
        api_base=settings.api_base,
        proxy_url="" if args.direct else settings.proxy_url,
        fallback_proxy_url=None if args.direct else (settings.fallback_proxy_url or None),
        timeout=settings.timeout,
    )
    try:
        records = await audit_all(
            client,
            token,
            lambda message: print(message, file=sys.stderr),
            page_size=settings.page_size,
            pacer=RequestPacer(settings.request_delay),
        )
    except SmartsheetError as exc:
        print(describe_failure(exc), file=sys.stderr)
        return 1
    finally:
        await client.aclose()

    rows = build_table(
        records,
        filters={"owner": args.owner, "workspace_name": args.name},
        sort=args.sort,
        direction="descending" if args.descending else "ascending",
    )
    if not rows:
        print("No workspaces to export.", file=sys.stderr)
        return 0

    output = Path(args.output)
    if output.suffix.lower() == ".csv":
        export_workspaces_csv(output, rows)
    else:
        export_workspaces_xlsx(output, rows)
    print(f"Exported {len(rows)} workspaces to {output}")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
