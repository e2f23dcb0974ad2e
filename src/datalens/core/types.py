"""Core data types that flow through the parsing pipeline.

This module defines the immutable data structures produced by each stage:
the detected ``FormatKind``, the normalized ``ParseResult`` and the request
sent to the repair service. Each stage returns a new value wrapped in a
``Result`` instead of raising, which keeps every failure an explicit part of
the data flow.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from types import MappingProxyType
import typing

from datalens.constants import REPAIR_TIMEOUT
from datalens.core.exceptions import ParseError, RepairError

if typing.TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad for Robust Error Handling ---

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Formats ---


class Delimiter(Enum):
    """Delimiter candidates in sniffing priority order.

    Earlier members win ties when counting occurrences in a header line.
    """

    COMMA = ","
    TAB = "\t"
    PIPE = "|"
    SEMICOLON = ";"

    @property
    def label(self) -> str:
        """Stable display label for the delimited format."""
        return _DELIMITER_LABELS[self]


_DELIMITER_LABELS: dict[Delimiter, str] = {
    Delimiter.COMMA: "CSV",
    Delimiter.TAB: "TSV",
    Delimiter.PIPE: "Pipe-separated",
    Delimiter.SEMICOLON: "Semicolon-separated",
}


@dataclasses.dataclass(frozen=True, slots=True)
class JsonFormat:
    """The blob is a single JSON value."""

    @property
    def label(self) -> str:  # noqa: D102
        return "JSON"


@dataclasses.dataclass(frozen=True, slots=True)
class DelimitedFormat:
    """The blob is a header line plus rows split by ``delimiter``."""

    delimiter: Delimiter

    def __post_init__(self) -> None:
        """Validate the delimiter type."""
        _require(
            condition=isinstance(self.delimiter, Delimiter),
            message="must be a Delimiter",
            field_name="delimiter",
            exc=TypeError,
        )

    @property
    def label(self) -> str:  # noqa: D102
        return self.delimiter.label


FormatKind = JsonFormat | DelimitedFormat

SUPPORTED_FORMATS: tuple[str, ...] = ("JSON", *(d.label for d in Delimiter))

# --- Records and results ---

Record = typing.Mapping[str, str]


def make_record(columns: Iterable[str], values: Mapping[str, str]) -> Record:
    """Build a read-only record exposing every column, absent cells as ``""``."""
    return MappingProxyType({col: values.get(col, "") for col in columns})


@dataclasses.dataclass(frozen=True, slots=True)
class ParseResult:
    """Uniform table produced by the normalizer.

    ``source_row_count`` is the number of rows present before truncation, so
    callers can tell when ``records`` was capped.
    """

    records: tuple[Record, ...]
    columns: tuple[str, ...]
    kind: FormatKind
    source_row_count: int = -1

    def __post_init__(self) -> None:
        """Validate the record/column invariant."""
        _require(
            condition=isinstance(self.records, tuple),
            message="must be a tuple",
            field_name="records",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.columns, tuple)
            and all(isinstance(c, str) for c in self.columns),
            message="must be a tuple[str, ...]",
            field_name="columns",
            exc=TypeError,
        )
        _require(
            condition=len(set(self.columns)) == len(self.columns),
            message="must not contain duplicates",
            field_name="columns",
        )
        expected = set(self.columns)
        for idx, record in enumerate(self.records):
            _require(
                condition=len(record) == len(self.columns)
                and set(record.keys()) == expected,
                message="keys must equal columns exactly",
                field_name=f"records[{idx}]",
            )
        if self.source_row_count < 0:
            object.__setattr__(self, "source_row_count", len(self.records))
        _require(
            condition=self.source_row_count >= len(self.records),
            message="cannot be smaller than the number of records",
            field_name="source_row_count",
        )

    @property
    def row_count(self) -> int:
        """Number of records actually kept."""
        return len(self.records)

    @property
    def truncated(self) -> bool:
        """True when rows were dropped to honor the row cap."""
        return self.source_row_count > len(self.records)

    def rows(self) -> list[list[str]]:
        """Records as positional value lists in column order."""
        return [[record[col] for col in self.columns] for record in self.records]


ParseOutcome = Success[ParseResult] | Failure[ParseError]
RepairOutcome = Success[str] | Failure[RepairError]

# --- Repair ---


@dataclasses.dataclass(frozen=True, slots=True)
class RepairRequest:
    """One repair attempt: the raw text and the wall-clock budget in seconds."""

    raw_text: str
    deadline: float = REPAIR_TIMEOUT

    def __post_init__(self) -> None:
        """Validate request invariants."""
        _require(
            condition=isinstance(self.raw_text, str),
            message="must be str",
            field_name="raw_text",
            exc=TypeError,
        )
        _require(
            condition=self.raw_text.strip() != "",
            message="cannot be empty (after stripping whitespace)",
            field_name="raw_text",
        )
        _require(
            condition=isinstance(self.deadline, int | float) and self.deadline > 0,
            message="must be a positive number of seconds",
            field_name="deadline",
        )
