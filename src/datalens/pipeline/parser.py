"""Detect-then-normalize composition used by the orchestrator.

``parse_text`` never raises for bad input; every failure comes back as a
``Failure`` carrying a ``ParseError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from datalens.constants import MAX_ROWS
from datalens.core.types import Failure, ParseOutcome, Success
from datalens.pipeline.detector import detect
from datalens.pipeline.normalizer import normalize
from datalens.pipeline.text import sanitize_text
from datalens.telemetry import TelemetryContext

if TYPE_CHECKING:
    from datalens.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


def parse_text(
    text: str,
    *,
    max_rows: int = MAX_ROWS,
    telemetry: TelemetryContextProtocol | None = None,
) -> ParseOutcome:
    """Sanitize, detect and normalize ``text`` into a ``ParseOutcome``."""
    tele = telemetry or TelemetryContext()
    cleaned = sanitize_text(text).strip()

    with tele("parse.detect"):
        detected = detect(cleaned)
    if isinstance(detected, Failure):
        return detected

    with tele("parse.normalize", kind=detected.value.label):
        normalized = normalize(cleaned, detected.value, max_rows=max_rows)
    if isinstance(normalized, Success):
        result = normalized.value
        tele.metric("parse.rows", result.row_count, kind=result.kind.label)
        if result.truncated:
            log.info(
                "Showing first %d of %d rows", result.row_count, result.source_row_count
            )
    return normalized
