"""Optional timings and counters for the parse and repair stages.

Stages open named scopes (``parse.detect``, ``repair.generate``) and record
metrics (``parse.rows``, ``repair.failures``). Nothing is collected unless
``DATALENS_TELEMETRY=1`` or ``DEBUG=1`` is set and at least one reporter is
passed to ``TelemetryContext``; otherwise every call hits a shared no-op.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

# Open scope names for the current task; nested scopes join with "."
_open_scopes: ContextVar[tuple[str, ...]] = ContextVar("datalens_scopes", default=())


def telemetry_enabled() -> bool:
    """Read the enable flag from the environment on every call."""
    return os.getenv("DATALENS_TELEMETRY") == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Sink for scope durations and metric values."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Accepts every telemetry call and records nothing."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


def _position(stack: tuple[str, ...]) -> dict[str, Any]:
    return {"depth": len(stack), "parent_scope": ".".join(stack) or None}


class _EnabledTelemetryContext:
    """Times scopes and forwards metrics to every reporter.

    A broken reporter is logged and skipped; it never fails the stage that
    is being measured.
    """

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")
        return self._scope(name, metadata)

    @contextmanager
    def _scope(
        self, name: str, metadata: dict[str, Any]
    ) -> Iterator["_EnabledTelemetryContext"]:
        outer = _open_scopes.get()
        token = _open_scopes.set((*outer, name))
        started = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - started
            _open_scopes.reset(token)
            self._emit(
                "record_timing",
                ".".join((*outer, name)),
                elapsed,
                {**_position(outer), **metadata},
            )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record ``value`` under ``name`` inside the current scope path."""
        stack = _open_scopes.get()
        self._emit(
            "record_metric", ".".join((*stack, name)), value, {**_position(stack), **metadata}
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        """Shorthand for a counter-typed metric."""
        self.metric(name, increment, metric_type="counter", **metadata)

    def _emit(self, method: str, scope: str, value: Any, metadata: dict[str, Any]) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception:
                log.exception("Telemetry reporter %s failed", type(reporter).__name__)


_NO_OP = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Build a context for the given reporters.

    Without reporters, or with the flag unset, the shared no-op is returned.
    """
    if reporters and telemetry_enabled():
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP


class InMemoryReporter:
    """Keeps a bounded history per scope for inspection in tests or a REPL."""

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def _bucket(self, store: dict[str, deque], scope: str) -> deque:
        return store.setdefault(scope, deque(maxlen=self.max_entries))

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:  # noqa: D102
        self._bucket(self.timings, scope).append((duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:  # noqa: D102
        self._bucket(self.metrics, scope).append((value, metadata))

    def get_report(self) -> str:
        """Plain-text summary: call count and total seconds per scope, then metric totals."""
        lines = ["datalens telemetry"]
        for scope in sorted(self.timings):
            durations = [d for d, _ in self.timings[scope]]
            lines.append(f"  {scope}: {len(durations)} calls, {sum(durations):.4f}s")
        for scope in sorted(self.metrics):
            values = [v for v, _ in self.metrics[scope]]
            total = sum(v for v in values if isinstance(v, int | float))
            lines.append(f"  {scope}: {len(values)} samples, total {total:g}")
        return "\n".join(lines)
