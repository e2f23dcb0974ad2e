"""Repair client for malformed input.

Sends the raw text once to a text-generation service with a fixed
instructional prompt and returns the corrected text. The client:

- checks the credential syntactically before any network call
- makes exactly one call with deterministic sampling parameters
- enforces a hard deadline and cancels the call when it expires
- strips one layer of markdown code fencing from the answer

It never mutates shared state; committing the corrected text is the
caller's job.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING

from datalens.config.validation import validate_api_key
from datalens.constants import (
    DEFAULT_MODEL,
    REPAIR_MAX_OUTPUT_TOKENS,
    REPAIR_TEMPERATURE,
    REPAIR_TOP_K,
    REPAIR_TOP_P,
    SAFETY_CATEGORIES,
    SAFETY_THRESHOLD,
)
from datalens.core.exceptions import RepairError, RepairErrorKind
from datalens.core.types import Failure, RepairOutcome, RepairRequest, Success
from datalens.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Callable

    from datalens.config import FrozenConfig
    from datalens.pipeline.adapters.base import GenerationAdapter
    from datalens.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

REPAIR_PROMPT_TEMPLATE = """You are a data format expert. Fix this malformed data to make it valid JSON or CSV format.

Rules:
1. If it looks like JSON, return valid JSON
2. If it looks like CSV/tabular, return proper CSV format
3. Add missing quotes, brackets, commas as needed
4. Fix common syntax errors
5. Preserve the original data structure and values
6. Return ONLY the corrected data, no explanations

Data to fix:
"""

_FENCE_OPEN = re.compile(r"^```\w*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def build_prompt(raw_text: str) -> str:
    """Embed ``raw_text`` verbatim in the instructional prompt."""
    return REPAIR_PROMPT_TEMPLATE + raw_text


def strip_code_fence(text: str) -> str:
    """Remove one leading fence line (with optional language tag) and one trailing fence."""
    stripped = _FENCE_OPEN.sub("", text.strip(), count=1)
    return _FENCE_CLOSE.sub("", stripped, count=1).strip()


def default_api_config() -> dict[str, object]:
    """Deterministic sampling plus medium-and-above blocking in every category."""
    return {
        "temperature": REPAIR_TEMPERATURE,
        "top_k": REPAIR_TOP_K,
        "top_p": REPAIR_TOP_P,
        "max_output_tokens": REPAIR_MAX_OUTPUT_TOKENS,
        "safety_settings": dict.fromkeys(SAFETY_CATEGORIES, SAFETY_THRESHOLD),
    }


class RepairClient:
    """Single-shot repair of malformed text through a generation adapter.

    The default adapter is ``GoogleGenAIAdapter``, created on first use.
    Tests and alternative providers inject ``adapter`` or ``adapter_factory``.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        api_config: dict[str, object] | None = None,
        adapter: GenerationAdapter | None = None,
        adapter_factory: Callable[[str], GenerationAdapter] | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the client; no network activity happens here."""
        self._api_key = api_key
        self._model = model
        self._api_config = api_config or default_api_config()
        self._adapter = adapter
        self._adapter_factory = adapter_factory
        self._owns_adapter = False
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    @classmethod
    def from_config(
        cls,
        config: FrozenConfig,
        *,
        api_key: str | None = None,
        **kwargs: object,
    ) -> RepairClient:
        """Build a client from frozen configuration.

        ``api_key`` overrides the configured key, e.g. one typed by the user.
        """
        api_config = {
            **config.generation_config(),
            "safety_settings": dict.fromkeys(SAFETY_CATEGORIES, SAFETY_THRESHOLD),
        }
        return cls(
            api_key if api_key is not None else config.api_key,
            model=config.model,
            api_config=api_config,
            **kwargs,  # type: ignore[arg-type]
        )

    @property
    def has_valid_credential(self) -> bool:
        """Whether the configured key passes the syntactic pre-check."""
        return validate_api_key(self._api_key)

    async def repair(self, request: RepairRequest) -> RepairOutcome:
        """Ask the service to coerce ``request.raw_text`` into JSON or CSV.

        Returns:
            ``Success(corrected_text)`` or ``Failure(RepairError)``; this
            method does not raise for service, transport or timeout errors.
        """
        if not self.has_valid_credential:
            return Failure(
                RepairError(
                    RepairErrorKind.INVALID_CREDENTIAL,
                    "Please enter a valid Gemini API key first",
                )
            )

        prompt = build_prompt(request.raw_text)
        try:
            adapter = self._select_adapter()
            with self._telemetry("repair.generate", model=self._model):
                async with asyncio.timeout(request.deadline):
                    candidates = await adapter.generate(
                        model_name=self._model,
                        prompt=prompt,
                        api_config=dict(self._api_config),
                    )
        except TimeoutError:
            log.warning("Repair call exceeded %.1fs deadline", request.deadline)
            return self._failed(
                RepairError(
                    RepairErrorKind.TIMEOUT, "Request timed out. Please try again."
                )
            )
        except RepairError as e:
            return self._failed(e)
        except OSError as e:
            return self._failed(
                RepairError(
                    RepairErrorKind.TRANSPORT_FAILURE, f"AI correction failed: {e}"
                )
            )
        except Exception as e:
            return self._failed(
                RepairError(RepairErrorKind.SERVICE_ERROR, f"AI correction failed: {e}")
            )

        corrected = strip_code_fence(candidates[0]) if candidates else ""
        if not corrected:
            return self._failed(
                RepairError(
                    RepairErrorKind.EMPTY_RESPONSE, "No response from Gemini API"
                )
            )
        log.debug("Repair returned %d characters", len(corrected))
        return Success(corrected)

    def _select_adapter(self) -> GenerationAdapter:
        if self._adapter is not None:
            return self._adapter
        if self._adapter_factory is None:
            # Deferred import keeps the SDK off the parsing path
            from datalens.pipeline.adapters.gemini import GoogleGenAIAdapter

            self._adapter_factory = GoogleGenAIAdapter
        try:
            self._adapter = self._adapter_factory(str(self._api_key))
        except Exception as e:
            raise RepairError(
                RepairErrorKind.SERVICE_ERROR, f"Failed to initialize provider: {e}"
            ) from e
        self._owns_adapter = True
        return self._adapter

    async def aclose(self) -> None:
        """Release an adapter this client created; injected adapters are left alone.

        A later ``repair`` creates a fresh adapter.
        """
        if not self._owns_adapter or self._adapter is None:
            return
        adapter, self._adapter, self._owns_adapter = self._adapter, None, False
        close = getattr(adapter, "aclose", None)
        if close is not None:
            await close()

    def _failed(self, error: RepairError) -> RepairOutcome:
        log.warning("Repair failed (%s): %s", error.kind.value, error.message)
        self._telemetry.count("repair.failures", kind=error.kind.value)
        return Failure(error)
