"""Format detection stage.

Detection is an ordered list of strategies; the first one that recognizes the
text wins. JSON is tried before delimited text, so a blob that happens to be
valid JSON is always treated as JSON.

Delimiter sniffing only looks at the first non-blank line. Messier input is
left to the repair step rather than to a statistical sniffer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from datalens.core.exceptions import DetectionError
from datalens.core.types import (
    Delimiter,
    DelimitedFormat,
    Failure,
    FormatKind,
    JsonFormat,
    Result,
    Success,
)
from datalens.pipeline.text import (
    NUMBER_HOOKS,
    header_names,
    load_json,
    non_blank_lines,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from datalens.pipeline.base import DetectorStrategy

log = logging.getLogger(__name__)

UNRECOGNIZED_MESSAGE = (
    "Unrecognized format. Please use JSON, CSV, TSV, or other delimited data."
)


class JsonStrategy:
    """Recognizes any single JSON value, including scalars."""

    name = "json"

    def detect(self, text: str) -> FormatKind | None:  # noqa: D102
        try:
            load_json(text, **NUMBER_HOOKS)
        except ValueError:
            return None
        return JsonFormat()


class DelimitedStrategy:
    """Recognizes a header line plus at least one row split by a delimiter."""

    name = "delimited"

    def detect(self, text: str) -> FormatKind | None:  # noqa: D102
        lines = non_blank_lines(text)
        if len(lines) < 2:
            log.debug("Delimited: need at least 2 non-blank lines, got %d", len(lines))
            return None

        delimiter = sniff_delimiter(lines[0])
        if delimiter is None:
            log.debug("Delimited: no delimiter candidate in header line")
            return None

        if len(header_names(lines[0], delimiter.value)) < 2:
            log.debug("Delimited: fewer than 2 named columns for %s", delimiter.name)
            return None
        return DelimitedFormat(delimiter)


def sniff_delimiter(header_line: str) -> Delimiter | None:
    """Pick the delimiter occurring most often in ``header_line``.

    Ties keep the earlier candidate in ``Delimiter`` order. Returns None when
    no candidate occurs at all.
    """
    best: Delimiter | None = None
    best_count = 0
    for candidate in Delimiter:
        count = header_line.count(candidate.value)
        if count > best_count:
            best, best_count = candidate, count
    return best


DEFAULT_STRATEGIES: tuple[DetectorStrategy, ...] = (JsonStrategy(), DelimitedStrategy())


def detect(
    text: str, strategies: Sequence[DetectorStrategy] = DEFAULT_STRATEGIES
) -> Result[FormatKind, DetectionError]:
    """Decide which structured format ``text`` is.

    Returns:
        ``Success(FormatKind)`` from the first matching strategy, or
        ``Failure(DetectionError)`` when none matches.
    """
    trimmed = text.strip()
    if trimmed:
        for strategy in strategies:
            kind = strategy.detect(trimmed)
            if kind is not None:
                log.debug("Detected %s via %s strategy", kind.label, strategy.name)
                return Success(kind)
    return Failure(DetectionError(UNRECOGNIZED_MESSAGE))
