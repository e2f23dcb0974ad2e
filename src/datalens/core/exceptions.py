"""Exception hierarchy and error kinds for datalens.

Pipeline stages do not raise these across the orchestrator boundary; they
return them wrapped in ``Failure`` so every failure is an explicit value.
"""

from __future__ import annotations

from enum import Enum


class ParseErrorKind(str, Enum):
    """Why a blob could not be turned into a table."""

    UNRECOGNIZED = "unrecognized"
    NO_ROWS_PRODUCED = "no_rows_produced"


class RepairErrorKind(str, Enum):
    """Why a repair attempt did not produce corrected text."""

    INVALID_CREDENTIAL = "invalid_credential"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    TRANSPORT_FAILURE = "transport_failure"
    SERVICE_ERROR = "service_error"
    BUSY = "busy"  # Another repair is still outstanding
    NOTHING_TO_REPAIR = "nothing_to_repair"


class DataLensError(Exception):
    """Base exception for datalens errors"""  # noqa: D415


class ConfigurationError(DataLensError, ValueError):
    """Raised when configuration cannot be resolved or validated"""  # noqa: D415


class SourceError(DataLensError):
    """Raised when inbound text is rejected at the ingestion boundary"""  # noqa: D415


class ParseError(DataLensError):
    """A recoverable failure to detect or normalize a blob."""

    kind: ParseErrorKind = ParseErrorKind.UNRECOGNIZED

    def __init__(self, message: str) -> None:  # noqa: D107
        self.message = message
        super().__init__(message)


class DetectionError(ParseError):
    """No known format matched the text."""

    kind = ParseErrorKind.UNRECOGNIZED


class NormalizationError(ParseError):
    """A format matched but yielded no usable rows."""

    kind = ParseErrorKind.NO_ROWS_PRODUCED


class RepairError(DataLensError):
    """A repair attempt failed.

    ``code`` carries the provider status code for ``SERVICE_ERROR`` failures
    and is ``None`` otherwise.
    """

    def __init__(
        self, kind: RepairErrorKind, message: str, *, code: int | None = None
    ) -> None:
        """Initialize with a failure kind, user-facing message and optional code."""
        self.kind = kind
        self.message = message
        self.code = code
        super().__init__(message)

    def __repr__(self) -> str:  # noqa: D105
        return f"RepairError(kind={self.kind.value!r}, message={self.message!r}, code={self.code!r})"
