"""Parsing pipeline stages: detection, normalization and repair."""

from datalens.pipeline.detector import (
    DEFAULT_STRATEGIES,
    DelimitedStrategy,
    JsonStrategy,
    detect,
    sniff_delimiter,
)
from datalens.pipeline.normalizer import normalize
from datalens.pipeline.parser import parse_text
from datalens.pipeline.repair import RepairClient, build_prompt, strip_code_fence
from datalens.pipeline.text import sanitize_text

__all__ = [
    "DEFAULT_STRATEGIES",
    "DelimitedStrategy",
    "JsonStrategy",
    "RepairClient",
    "build_prompt",
    "detect",
    "normalize",
    "parse_text",
    "sanitize_text",
    "sniff_delimiter",
    "strip_code_fence",
]
