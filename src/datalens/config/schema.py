"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from the environment, files and programmatic overrides into the correct
types with proper defaults.
"""

from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from datalens.constants import (
    DEFAULT_MODEL,
    MAX_FILE_SIZE,
    MAX_ROWS,
    REPAIR_MAX_OUTPUT_TOKENS,
    REPAIR_TEMPERATURE,
    REPAIR_TIMEOUT,
    REPAIR_TOP_K,
    REPAIR_TOP_P,
)

FIELD_ORDER: tuple[str, ...] = (
    "api_key",
    "model",
    "max_rows",
    "max_file_size",
    "repair_timeout",
    "temperature",
    "top_k",
    "top_p",
    "max_output_tokens",
)


class DataLensSettings(BaseSettings):
    """Pydantic settings schema for datalens.

    Environment variables use the ``DATALENS_`` prefix; the API key is also
    picked up from ``GEMINI_API_KEY``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATALENS_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    api_key: str | None = Field(
        default=None,
        description="Gemini API key used for repair calls",
        validation_alias=AliasChoices("DATALENS_API_KEY", "GEMINI_API_KEY"),
    )

    model: str = Field(
        default=DEFAULT_MODEL,
        description="Gemini model used for repair",
        min_length=1,
    )

    max_rows: int = Field(
        default=MAX_ROWS,
        description="Maximum records kept per parse",
        ge=1,
    )

    max_file_size: int = Field(
        default=MAX_FILE_SIZE,
        description="Maximum inbound blob size in bytes",
        ge=1,
    )

    repair_timeout: float = Field(
        default=REPAIR_TIMEOUT,
        description="Hard deadline for a repair call in seconds",
        gt=0,
    )

    temperature: float = Field(default=REPAIR_TEMPERATURE, ge=0, le=2)
    top_k: int = Field(default=REPAIR_TOP_K, ge=1)
    top_p: float = Field(default=REPAIR_TOP_P, gt=0, le=1)
    max_output_tokens: int = Field(default=REPAIR_MAX_OUTPUT_TOKENS, ge=1)

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v: Any) -> Any:
        """Treat an empty or whitespace-only key as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary in display order."""
        return {name: getattr(self, name) for name in FIELD_ORDER}
