"""Parse orchestration as an explicit state machine.

State lives in an immutable ``ViewerState`` snapshot. Transitions are pure
functions that take a snapshot and return a new one, so every path through
the machine can be tested without a session or a network:

- ``apply_edit``: IDLE/any --edit--> DETECTING --> PARSED | FAILED
- ``begin_repair``: FAILED | REPAIR_FAILED --> REPAIRING (one at a time)
- ``complete_repair``: REPAIRING --Success--> DETECTING --> PARSED | FAILED
  and REPAIRING --Failure--> REPAIR_FAILED

``ParseSession`` owns the current snapshot, swaps it atomically on every
transition and drives the single asynchronous step, the repair call.
"""

from __future__ import annotations

import asyncio
import dataclasses
from enum import Enum
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from datalens.constants import MAX_ROWS
from datalens.core.exceptions import ParseError, RepairError, RepairErrorKind
from datalens.core.types import (
    Failure,
    ParseOutcome,
    ParseResult,
    RepairOutcome,
    RepairRequest,
    Result,
    Success,
)
from datalens.ingest import InboundText, load_bytes, load_path
from datalens.pipeline.parser import parse_text
from datalens.pipeline.repair import RepairClient
from datalens.telemetry import TelemetryContext

if TYPE_CHECKING:
    import os

    from datalens.config import FrozenConfig
    from datalens.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


class Phase(str, Enum):
    """Where a session is in the detect/repair cycle."""

    IDLE = "idle"
    DETECTING = "detecting"  # Transient; detection runs synchronously
    PARSED = "parsed"
    FAILED = "failed"
    REPAIRING = "repairing"
    REPAIR_FAILED = "repair_failed"


@dataclasses.dataclass(frozen=True, slots=True)
class ViewerState:
    """Immutable snapshot of one session.

    ``epoch`` increases on every edit. A repair remembers the epoch it started
    from so a result that arrives after a newer edit is discarded.
    """

    phase: Phase = Phase.IDLE
    raw_text: str = ""
    outcome: ParseOutcome | None = None
    error_message: str = ""
    filename: str | None = None
    epoch: int = 0
    tickets_issued: int = 0
    pending_ticket: int | None = None
    pending_epoch: int | None = None

    @property
    def repair_in_flight(self) -> bool:
        """The single outstanding-repair guard."""
        return self.pending_ticket is not None

    @property
    def result(self) -> ParseResult | None:
        """The current table, if the last parse succeeded."""
        if isinstance(self.outcome, Success):
            return self.outcome.value
        return None

    @property
    def parse_error(self) -> ParseError | None:
        """The current parse failure, if any."""
        if isinstance(self.outcome, Failure):
            return self.outcome.error
        return None


# --- Pure transitions ---


def enter_detecting(
    state: ViewerState, text: str, *, filename: str | None = None
) -> ViewerState:
    """Record a fresh blob, discarding the previous outcome."""
    return dataclasses.replace(
        state,
        phase=Phase.DETECTING,
        raw_text=text,
        outcome=None,
        error_message="",
        filename=filename,
        epoch=state.epoch + 1,
    )


def finish_detecting(
    state: ViewerState,
    *,
    max_rows: int = MAX_ROWS,
    telemetry: TelemetryContextProtocol | None = None,
) -> ViewerState:
    """Run detection and normalization on the snapshot's blob."""
    if state.phase is not Phase.DETECTING:
        raise ValueError(f"Cannot finish detection from phase {state.phase.value!r}")
    if not state.raw_text.strip():
        return dataclasses.replace(state, phase=Phase.IDLE)

    outcome = parse_text(state.raw_text, max_rows=max_rows, telemetry=telemetry)
    if isinstance(outcome, Success):
        return dataclasses.replace(
            state, phase=Phase.PARSED, outcome=outcome, error_message=""
        )
    return dataclasses.replace(
        state,
        phase=Phase.FAILED,
        outcome=outcome,
        error_message=outcome.error.message,
    )


def apply_edit(
    state: ViewerState,
    text: str,
    *,
    filename: str | None = None,
    max_rows: int = MAX_ROWS,
    telemetry: TelemetryContextProtocol | None = None,
) -> ViewerState:
    """Handle a user edit or upload.

    Whitespace-only text returns to IDLE with no result. An outstanding
    repair keeps its guard; its result will be discarded on arrival.
    """
    detecting = enter_detecting(state, text, filename=filename)
    return finish_detecting(detecting, max_rows=max_rows, telemetry=telemetry)


def begin_repair(
    state: ViewerState, *, credential_valid: bool
) -> tuple[ViewerState, Result[int, RepairError]]:
    """Try to start a repair.

    Returns:
        The next snapshot and either ``Success(ticket)`` or the rejection.
        A busy or inapplicable request leaves the snapshot unchanged; an
        invalid credential moves to REPAIR_FAILED with the message shown.
    """
    if state.repair_in_flight:
        return state, Failure(
            RepairError(RepairErrorKind.BUSY, "A repair is already in progress")
        )
    if state.phase not in (Phase.FAILED, Phase.REPAIR_FAILED):
        return state, Failure(
            RepairError(
                RepairErrorKind.NOTHING_TO_REPAIR,
                "Repair is only available after a parse failure",
            )
        )
    if not credential_valid:
        error = RepairError(
            RepairErrorKind.INVALID_CREDENTIAL,
            "Please enter a valid Gemini API key first",
        )
        return dataclasses.replace(
            state, phase=Phase.REPAIR_FAILED, error_message=error.message
        ), Failure(error)

    ticket = state.tickets_issued + 1
    return dataclasses.replace(
        state,
        phase=Phase.REPAIRING,
        tickets_issued=ticket,
        pending_ticket=ticket,
        pending_epoch=state.epoch,
    ), Success(ticket)


def complete_repair(
    state: ViewerState,
    ticket: int,
    outcome: RepairOutcome,
    *,
    max_rows: int = MAX_ROWS,
    telemetry: TelemetryContextProtocol | None = None,
) -> ViewerState:
    """Apply a finished repair.

    A ticket that is not the outstanding one is ignored. The guard is
    released for the outstanding ticket; if the user edited since the repair
    started, the outcome is dropped. A corrected text re-enters detection
    exactly once.
    """
    if ticket != state.pending_ticket:
        log.debug("Ignoring result for stale repair ticket %d", ticket)
        return state

    released = dataclasses.replace(state, pending_ticket=None, pending_epoch=None)
    if state.pending_epoch != state.epoch:
        log.info("Discarding repair result superseded by a newer edit")
        return released

    match outcome:
        case Success(value=corrected):
            return apply_edit(
                released,
                corrected,
                filename=state.filename,
                max_rows=max_rows,
                telemetry=telemetry,
            )
        case Failure(error=error):
            return dataclasses.replace(
                released, phase=Phase.REPAIR_FAILED, error_message=error.message
            )
    raise TypeError(f"Unexpected repair outcome: {outcome!r}")


def abandon_repair(state: ViewerState, ticket: int) -> ViewerState:
    """Release the guard for a repair that never completed."""
    if ticket != state.pending_ticket:
        return state
    phase = Phase.FAILED if state.phase is Phase.REPAIRING else state.phase
    return dataclasses.replace(
        state, phase=phase, pending_ticket=None, pending_epoch=None
    )


# --- Observability ---


@runtime_checkable
class OutcomeObserver(Protocol):
    """Receives parse and repair outcomes for display or metrics."""

    def on_parsed(self, row_count: int, label: str) -> None: ...  # noqa: D102
    def on_failed(self, kind: str, message: str) -> None: ...  # noqa: D102


class LoggingObserver:
    """Default observer that writes outcomes to the module logger."""

    def on_parsed(self, row_count: int, label: str) -> None:  # noqa: D102
        log.info("Successfully parsed %d rows as %s", row_count, label)

    def on_failed(self, kind: str, message: str) -> None:  # noqa: D102
        log.warning("Parse cycle failed (%s): %s", kind, message)


# --- Session ---


class ParseSession:
    """One user's working copy: current blob, outcome and repair guard.

    Not thread-safe; a session belongs to a single event loop.
    """

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        repair_client: RepairClient | None = None,
        observer: OutcomeObserver | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Create an idle session.

        Without ``config`` the package defaults are used; without
        ``repair_client`` one is built from ``config``.
        """
        if config is None:
            from datalens.config import resolve_config

            config = resolve_config().to_frozen()
        self._config = config
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._client = repair_client or RepairClient.from_config(
            config, telemetry=self._telemetry
        )
        self._observer: OutcomeObserver = observer or LoggingObserver()
        self._state = ViewerState()

    @property
    def state(self) -> ViewerState:
        """The current snapshot."""
        return self._state

    @property
    def config(self) -> FrozenConfig:  # noqa: D102
        return self._config

    def edit(self, text: str, *, filename: str | None = None) -> ViewerState:
        """Replace the blob with ``text`` and parse it."""
        previous = self._state
        self._state = apply_edit(
            previous,
            text,
            filename=filename,
            max_rows=self._config.max_rows,
            telemetry=self._telemetry,
        )
        self._report(previous, self._state)
        return self._state

    def load(self, inbound: InboundText) -> ViewerState:
        """Parse text delivered by the ingestion boundary."""
        return self.edit(inbound.text, filename=inbound.filename)

    def load_file(self, path: str | os.PathLike[str]) -> ViewerState:
        """Read, size-check and parse a file.

        Raises:
            SourceError: If the file is rejected at the ingestion boundary.
        """
        return self.load(load_path(path, max_bytes=self._config.max_file_size))

    def load_upload(self, data: bytes, *, filename: str | None = None) -> ViewerState:
        """Size-check, decode and parse uploaded bytes.

        Raises:
            SourceError: If the payload is larger than the configured cap.
        """
        return self.load(
            load_bytes(data, filename=filename, max_bytes=self._config.max_file_size)
        )

    async def repair(self) -> RepairOutcome:
        """Run one repair cycle for the current failed blob.

        Returns the repair outcome. Rejections (busy, nothing to repair,
        invalid credential) come back as ``Failure`` without a service call.
        """
        previous = self._state
        self._state, admitted = begin_repair(
            previous, credential_valid=self._client.has_valid_credential
        )
        if isinstance(admitted, Failure):
            if admitted.error.kind is RepairErrorKind.INVALID_CREDENTIAL:
                self._observer.on_failed(admitted.error.kind.value, admitted.error.message)
            return admitted

        ticket = admitted.value
        request = RepairRequest(
            raw_text=self._state.raw_text, deadline=self._config.repair_timeout
        )
        try:
            outcome = await self._client.repair(request)
        except asyncio.CancelledError:
            self._state = abandon_repair(self._state, ticket)
            raise

        before = self._state
        self._state = complete_repair(
            before,
            ticket,
            outcome,
            max_rows=self._config.max_rows,
            telemetry=self._telemetry,
        )
        if isinstance(outcome, Failure) and self._state.phase is Phase.REPAIR_FAILED:
            self._observer.on_failed(outcome.error.kind.value, outcome.error.message)
        else:
            self._report(before, self._state)
        return outcome

    async def aclose(self) -> None:
        """Release the repair provider connection, if one was opened."""
        await self._client.aclose()

    def _report(self, before: ViewerState, after: ViewerState) -> None:
        if after.outcome is None or after.outcome is before.outcome:
            return
        match after.outcome:
            case Success(value=result):
                self._observer.on_parsed(result.row_count, result.kind.label)
            case Failure(error=error):
                self._observer.on_failed(error.kind.value, error.message)
