"""Structural normalization stage.

Turns detected raw structure into a ``ParseResult``: an ordered tuple of
records over a first-seen, de-duplicated column list. Every record exposes
every column; absent cells are empty strings.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from datalens.constants import MAX_ROWS
from datalens.core.exceptions import NormalizationError
from datalens.core.types import (
    DelimitedFormat,
    Failure,
    FormatKind,
    JsonFormat,
    ParseResult,
    Result,
    Success,
    make_record,
)
from datalens.pipeline.text import (
    NUMBER_HOOKS,
    JsonNumber,
    header_names,
    load_json,
    non_blank_lines,
    split_fields,
)

log = logging.getLogger(__name__)


def normalize(
    text: str, kind: FormatKind, *, max_rows: int = MAX_ROWS
) -> Result[ParseResult, NormalizationError]:
    """Normalize ``text`` already detected as ``kind``.

    Rows beyond ``max_rows`` are dropped silently; ``source_row_count`` on the
    result still reports how many rows there were.
    """
    if max_rows < 0:
        raise ValueError("max_rows must be >= 0")
    trimmed = text.strip()
    match kind:
        case JsonFormat():
            return _normalize_json(trimmed, kind, max_rows)
        case DelimitedFormat():
            return _normalize_delimited(trimmed, kind, max_rows)
        case _:
            raise TypeError(f"Unsupported format kind: {kind!r}")


def _normalize_json(
    text: str, kind: JsonFormat, max_rows: int
) -> Result[ParseResult, NormalizationError]:
    try:
        root = load_json(text, **NUMBER_HOOKS)
    except ValueError as e:
        return Failure(NormalizationError(f"Invalid JSON: {e}"))

    elements = root if isinstance(root, list) else [root]
    kept = elements[:max_rows]
    if not kept:
        return Failure(NormalizationError("JSON data contains no rows"))

    columns: dict[str, None] = {}
    for element in kept:
        if isinstance(element, dict):
            columns.update(dict.fromkeys(element))
    if not columns:
        # Arrays of scalars, scalar roots and empty objects have no fields
        return Failure(
            NormalizationError("JSON data contains no objects with named fields")
        )

    records = tuple(
        make_record(
            columns,
            {k: _cell(v) for k, v in element.items()}
            if isinstance(element, dict)
            else {},
        )
        for element in kept
    )
    return Success(
        ParseResult(
            records=records,
            columns=tuple(columns),
            kind=kind,
            source_row_count=len(elements),
        )
    )


def _normalize_delimited(
    text: str, kind: DelimitedFormat, max_rows: int
) -> Result[ParseResult, NormalizationError]:
    delimiter = kind.delimiter.value
    lines = non_blank_lines(text)
    if not lines:
        return Failure(NormalizationError("No lines to normalize"))

    headers = header_names(lines[0], delimiter)
    if len(headers) < 2:
        return Failure(
            NormalizationError("Header line has fewer than two named columns")
        )
    columns = tuple(dict.fromkeys(headers))

    data_lines = lines[1:]
    records = []
    for line in data_lines[:max_rows]:
        values = split_fields(line, delimiter)
        # Zip positionally: short rows pad with "", long rows drop extras
        row = {
            header: values[idx] if idx < len(values) else ""
            for idx, header in enumerate(headers)
        }
        records.append(make_record(columns, row))

    if not records:
        return Failure(NormalizationError(f"{kind.label} data contains no rows"))

    if len(data_lines) > max_rows:
        log.debug("Truncated %d rows to %d", len(data_lines), max_rows)
    return Success(
        ParseResult(
            records=tuple(records),
            columns=columns,
            kind=kind,
            source_row_count=len(data_lines),
        )
    )


def _cell(value: Any) -> str:
    """Render a JSON value as a table cell."""
    if value is None:
        return ""
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return _compact(value)


def _compact(value: Any) -> str:
    """Compact JSON text for nested values, numbers in source spelling."""
    if isinstance(value, JsonNumber):
        return str(value)
    if isinstance(value, dict):
        items = ",".join(
            f"{json.dumps(k, ensure_ascii=False)}:{_compact(v)}" for k, v in value.items()
        )
        return "{" + items + "}"
    if isinstance(value, list):
        return "[" + ",".join(_compact(v) for v in value) + "]"
    return json.dumps(value, ensure_ascii=False)
