"""Turn text blobs of unknown structure into uniform tables."""

import importlib.metadata
import logging

from datalens.config import FrozenConfig, ResolvedConfig, resolve_config
from datalens.core.exceptions import (
    ConfigurationError,
    DataLensError,
    DetectionError,
    NormalizationError,
    ParseError,
    ParseErrorKind,
    RepairError,
    RepairErrorKind,
    SourceError,
)
from datalens.core.types import (
    SUPPORTED_FORMATS,
    DelimitedFormat,
    Delimiter,
    Failure,
    FormatKind,
    JsonFormat,
    ParseOutcome,
    ParseResult,
    Record,
    RepairOutcome,
    RepairRequest,
    Result,
    Success,
)
from datalens.export import to_csv, to_delimited
from datalens.ingest import InboundText, format_file_size
from datalens.orchestrator import (
    LoggingObserver,
    OutcomeObserver,
    ParseSession,
    Phase,
    ViewerState,
)
from datalens.pipeline import RepairClient, detect, normalize, parse_text
from datalens.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("datalens")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Prevent 'No handler found' warnings when the consuming app has no logging configured
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Session and state machine
    "ParseSession",
    "ViewerState",
    "Phase",
    "OutcomeObserver",
    "LoggingObserver",
    # Pipeline stages
    "detect",
    "normalize",
    "parse_text",
    "RepairClient",
    # Data model
    "Delimiter",
    "JsonFormat",
    "DelimitedFormat",
    "FormatKind",
    "Record",
    "ParseResult",
    "ParseOutcome",
    "RepairRequest",
    "RepairOutcome",
    "Result",
    "Success",
    "Failure",
    "SUPPORTED_FORMATS",
    # Boundaries
    "InboundText",
    "format_file_size",
    "to_csv",
    "to_delimited",
    # Configuration
    "resolve_config",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "DataLensError",
    "ConfigurationError",
    "SourceError",
    "ParseError",
    "ParseErrorKind",
    "DetectionError",
    "NormalizationError",
    "RepairError",
    "RepairErrorKind",
]
