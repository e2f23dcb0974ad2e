"""Pure projections of a ``ParseResult`` back to text.

Nothing here writes files; callers decide where the text goes.
"""

from __future__ import annotations

from datalens.core.types import Delimiter, DelimitedFormat, ParseResult


def to_delimited(result: ParseResult, delimiter: Delimiter | None = None) -> str:
    """Canonical re-serialization: columns then one row per line, unquoted.

    Defaults to the result's own delimiter, or comma for JSON results.
    Values containing the delimiter do not survive a re-parse.
    """
    if delimiter is None:
        delimiter = (
            result.kind.delimiter
            if isinstance(result.kind, DelimitedFormat)
            else Delimiter.COMMA
        )
    sep = delimiter.value
    lines = [sep.join(result.columns)]
    lines.extend(sep.join(row) for row in result.rows())
    return "\n".join(lines)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(result: ParseResult) -> str:
    """CSV text with every data field quoted and embedded quotes doubled."""
    lines = [",".join(result.columns)]
    lines.extend(",".join(_quote(value) for value in row) for row in result.rows())
    return "\n".join(lines)
