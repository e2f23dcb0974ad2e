"""Google GenAI adapter for the repair service."""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import errors, types
import httpx

from datalens.core.exceptions import RepairError, RepairErrorKind

log = logging.getLogger(__name__)


class GoogleGenAIAdapter:
    """Calls Gemini ``generateContent`` through the async google-genai client."""

    def __init__(self, api_key: str, *, client: Any | None = None) -> None:
        """Create an adapter bound to ``api_key``.

        ``client`` may be supplied to reuse an existing ``genai.Client``; the
        caller then owns it and ``aclose`` leaves it open.
        """
        self._owns_client = client is None
        self._client = client or genai.Client(api_key=api_key)

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        api_config: dict[str, object],
    ) -> list[str]:
        """Generate candidates for ``prompt``; see ``GenerationAdapter``."""
        config = build_generate_config(api_config)
        try:
            response = await self._client.aio.models.generate_content(
                model=model_name,
                contents=prompt,
                config=config,
            )
        except errors.APIError as e:
            message = e.message or str(e)
            raise RepairError(
                RepairErrorKind.SERVICE_ERROR,
                f"AI correction failed: {message}",
                code=e.code,
            ) from e
        except httpx.TransportError as e:
            raise RepairError(
                RepairErrorKind.TRANSPORT_FAILURE,
                f"AI correction failed: could not reach the service ({e})",
            ) from e

        return [_candidate_text(c) for c in (response.candidates or [])]

    async def aclose(self) -> None:
        """Close the async transport of a client this adapter created."""
        if self._owns_client:
            self._owns_client = False
            await self._client.aio.aclose()


def build_generate_config(api_config: dict[str, object]) -> types.GenerateContentConfig:
    """Translate neutral api_config keys into a ``GenerateContentConfig``."""
    config = dict(api_config)
    safety = config.pop("safety_settings", {}) or {}
    safety_settings = [
        types.SafetySetting(
            category=types.HarmCategory(category),
            threshold=types.HarmBlockThreshold(threshold),
        )
        for category, threshold in dict(safety).items()  # type: ignore[call-overload]
    ]
    return types.GenerateContentConfig(
        **config,  # type: ignore[arg-type]
        safety_settings=safety_settings or None,
        response_mime_type="text/plain",
    )


def _candidate_text(candidate: Any) -> str:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(part.text for part in parts if getattr(part, "text", None))
