"""Command line entry point.

Usage:
    python -m datalens data.csv
    python -m datalens messy.txt --repair
    cat data.json | python -m datalens - --format csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from datalens.config import check_config_security, resolve_config
from datalens.core.exceptions import DataLensError
from datalens.export import to_csv
from datalens.ingest import accept_text
from datalens.orchestrator import ParseSession, Phase

# ruff: noqa: T201


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect the format of a text blob and show it as a table",
        prog="python -m datalens",
    )
    parser.add_argument("source", help="File to read, or '-' for stdin")
    parser.add_argument(
        "--repair",
        action="store_true",
        help="On a parse failure, ask Gemini once to fix the input and retry",
    )
    parser.add_argument(
        "--format",
        choices=("table", "csv", "json"),
        default="table",
        help="Output format for the parsed rows",
    )
    parser.add_argument("--max-rows", type=int, help="Override the row cap")
    parser.add_argument("--api-key", help="Gemini API key (defaults to config/env)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _render_table(columns: tuple[str, ...], rows: list[list[str]]) -> str:
    widths = [len(c) for c in columns]
    for row in rows:
        widths = [max(w, len(v)) for w, v in zip(widths, row, strict=True)]
    lines = [
        " | ".join(c.ljust(w) for c, w in zip(columns, widths, strict=True)),
        "-+-".join("-" * w for w in widths),
    ]
    lines.extend(
        " | ".join(v.ljust(w) for v, w in zip(row, widths, strict=True)) for row in rows
    )
    return "\n".join(lines)


async def _repair_once(session: ParseSession) -> None:
    try:
        await session.repair()
    finally:
        await session.aclose()


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.max_rows is not None:
        overrides["max_rows"] = args.max_rows
    if args.api_key:
        overrides["api_key"] = args.api_key

    try:
        config = resolve_config(overrides).to_frozen()
        for warning in check_config_security(config):
            print(f"warning: {warning}", file=sys.stderr)
        session = ParseSession(config)
        if args.source == "-":
            session.load(accept_text(sys.stdin.read(), max_bytes=config.max_file_size))
        else:
            session.load_file(args.source)
    except DataLensError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if session.state.phase is Phase.FAILED and args.repair:
        print(f"{session.state.error_message} Trying AI correction...", file=sys.stderr)
        asyncio.run(_repair_once(session))

    state = session.state
    result = state.result
    if result is None:
        if state.phase is Phase.IDLE:
            print("error: input is empty", file=sys.stderr)
        else:
            print(f"error: {state.error_message}", file=sys.stderr)
        return 1

    summary = f"{result.row_count} rows, {len(result.columns)} columns ({result.kind.label})"
    if result.truncated:
        summary += f", showing first {result.row_count} of {result.source_row_count}"
    print(summary, file=sys.stderr)

    if args.format == "csv":
        print(to_csv(result))
    elif args.format == "json":
        print(json.dumps([dict(r) for r in result.records], indent=2, ensure_ascii=False))
    else:
        print(_render_table(result.columns, result.rows()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
