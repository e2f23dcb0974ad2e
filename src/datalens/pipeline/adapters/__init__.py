"""Provider adapters for the repair service.

``GoogleGenAIAdapter`` lives in ``datalens.pipeline.adapters.gemini`` and is
imported lazily so parsing never loads the SDK.
"""

from datalens.pipeline.adapters.base import GenerationAdapter

__all__ = ["GenerationAdapter"]
