"""Text helpers shared by the detector and the normalizer.

Header and row fields must be cleaned identically, so both stages go through
``split_fields``.
"""

from __future__ import annotations

import json
import re
from typing import Any

_SCRIPT_BLOCK = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
_QUOTES = ("'", '"')


def sanitize_text(text: str) -> str:
    """Remove ``<script>`` blocks from pasted or uploaded text."""
    return _SCRIPT_BLOCK.sub("", text)


def non_blank_lines(text: str) -> list[str]:
    """Lines that contain something other than whitespace, CRLF tolerated."""
    return [line.rstrip("\r") for line in text.split("\n") if line.strip()]


def clean_field(field: str) -> str:
    """Trim a field and strip one layer of matching surrounding quotes."""
    field = field.strip()
    if len(field) >= 2 and field[0] in _QUOTES and field[-1] == field[0]:
        return field[1:-1]
    return field


def split_fields(line: str, delimiter: str) -> list[str]:
    """Split ``line`` on ``delimiter`` and clean every field."""
    return [clean_field(field) for field in line.split(delimiter)]


def header_names(line: str, delimiter: str) -> list[str]:
    """Cleaned header names with empty ones dropped."""
    return [name for name in split_fields(line, delimiter) if name]


class JsonNumber(str):
    """A JSON number kept in its source spelling."""

    __slots__ = ()


# Numbers stay text, so huge integer literals never hit int() conversion limits
NUMBER_HOOKS: dict[str, Any] = {"parse_int": JsonNumber, "parse_float": JsonNumber}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def load_json(text: str, **hooks: Any) -> Any:
    """Parse ``text`` as one strict JSON value.

    ``NaN`` and ``Infinity`` literals are rejected. Raises ``ValueError`` on
    any failure, including nesting too deep to parse.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant, **hooks)
    except RecursionError as e:
        raise ValueError("JSON nesting is too deep") from e
