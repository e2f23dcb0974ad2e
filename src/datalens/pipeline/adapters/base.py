"""Provider adapter protocol for the repair service.

Adapters hide provider SDK details from the repair client. They translate
provider failures into ``RepairError`` so the client only needs to know about
deadlines and empty answers.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class GenerationAdapter(Protocol):
    """Minimal text-generation surface used by ``RepairClient``."""

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        api_config: dict[str, object],
    ) -> list[str]:
        """Issue exactly one generation call.

        Args:
            model_name: Provider model identifier.
            prompt: Full prompt text.
            api_config: Sampling parameters plus ``safety_settings``.

        Returns:
            Candidate texts in provider order; a candidate without text is
            returned as an empty string. An empty list means the service
            declined to answer.

        Raises:
            RepairError: For provider or transport failures.
        """
        ...
