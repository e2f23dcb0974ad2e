"""Base protocol for format detection strategies."""

from typing import Protocol, runtime_checkable

from datalens.core.types import FormatKind


@runtime_checkable
class DetectorStrategy(Protocol):
    """One way of recognizing a blob.

    Strategies are tried in order and the first one that returns a
    ``FormatKind`` wins. Implementations must be pure: no shared state, safe
    to call on every edit.
    """

    name: str

    def detect(self, text: str) -> FormatKind | None:
        """Return the recognized format, or None to let the next strategy try.

        Args:
            text: The trimmed, sanitized blob.
        """
        ...
