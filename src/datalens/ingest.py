"""Inbound text boundary.

Uploaded files and pasted text are size-checked and decoded here before they
reach the parsing core.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from datalens.constants import MAX_FILE_SIZE, SIZE_UNITS
from datalens.core.exceptions import SourceError

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InboundText:
    """Decoded text plus an optional display filename."""

    text: str
    filename: str | None = None
    size_bytes: int = 0


def format_file_size(num_bytes: int) -> str:
    """Human-readable size, e.g. ``1.5 KB`` or ``10 MB``."""
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    idx = 0
    while value >= 1024 and idx < len(SIZE_UNITS) - 1:
        value /= 1024
        idx += 1
    return f"{round(value, 2):g} {SIZE_UNITS[idx]}"


def _check_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        raise SourceError(
            f"File size ({format_file_size(size)}) exceeds maximum allowed size "
            f"({format_file_size(max_bytes)})"
        )


def load_bytes(
    data: bytes, *, filename: str | None = None, max_bytes: int = MAX_FILE_SIZE
) -> InboundText:
    """Decode uploaded bytes as UTF-8 after enforcing the size cap.

    A leading BOM is dropped and undecodable bytes are replaced.

    Raises:
        SourceError: If ``data`` is larger than ``max_bytes``.
    """
    _check_size(len(data), max_bytes)
    text = data.decode("utf-8-sig", errors="replace")
    return InboundText(text=text, filename=filename, size_bytes=len(data))


def load_path(
    path: str | os.PathLike[str], *, max_bytes: int = MAX_FILE_SIZE
) -> InboundText:
    """Read a file from disk, checking its size before reading it.

    Raises:
        SourceError: If the file is missing, unreadable or too large.
    """
    file_path = Path(path)
    try:
        size = file_path.stat().st_size
        _check_size(size, max_bytes)
        data = file_path.read_bytes()
    except OSError as e:
        raise SourceError(f"Error reading file {file_path}: {e}") from e
    log.debug("Loaded %s (%s)", file_path.name, format_file_size(size))
    return load_bytes(data, filename=file_path.name, max_bytes=max_bytes)


def accept_text(text: str, *, max_bytes: int = MAX_FILE_SIZE) -> InboundText:
    """Accept pasted text, applying the same cap as uploads."""
    size = len(text.encode("utf-8"))
    _check_size(size, max_bytes)
    return InboundText(text=text, size_bytes=size)
