"""Configuration resolution with precedence handling.

Sources are merged in this order, later ones winning:
Defaults < Home file < Project file < Environment < Programmatic
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from datalens.core.exceptions import ConfigurationError

from .file_loader import ConfigFileError, FileConfigLoader
from .schema import FIELD_ORDER, DataLensSettings
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self, file_loader: FileConfigLoader | None = None) -> None:
        """Initialize the configuration resolver."""
        self.file_loader = file_loader or FileConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources with proper precedence.

        Args:
            programmatic: Programmatic overrides (highest precedence).
            project_root: Directory to search for pyproject.toml.

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If the merged values fail validation.
            ConfigFileError: If the project file exists but is malformed
                (a ``ConfigurationError`` subclass).
        """
        merged: dict[str, Any] = {}
        origin: dict[str, ConfigOrigin] = {}

        def _apply(values: dict[str, Any], source: ConfigOrigin) -> None:
            for field, value in values.items():
                if field in FIELD_ORDER:  # Only override known fields
                    merged[field] = value
                    origin[field] = source

        _apply(
            {name: DataLensSettings.model_fields[name].default for name in FIELD_ORDER},
            "default",
        )

        try:
            _apply(self.file_loader.load_home_config(), "file")
        except ConfigFileError as e:
            # Home config errors are non-fatal
            log.warning("Ignoring unreadable home config: %s", e)

        _apply(self.file_loader.load_project_config(project_root), "file")
        _apply(self._load_env_config(), "env")
        _apply(programmatic or {}, "programmatic")

        try:
            validated = DataLensSettings.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        return ResolvedConfig(**validated.to_dict(), origin=origin)

    def _load_env_config(self) -> dict[str, Any]:
        """Values actually set in the environment, excluding defaults."""
        try:
            settings = DataLensSettings()
        except ValidationError as e:
            raise ConfigurationError(f"Environment configuration error: {e}") from e
        return {name: getattr(settings, name) for name in settings.model_fields_set}
