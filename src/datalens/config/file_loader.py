"""File-based configuration loading.

Configuration may live in the project's ``pyproject.toml`` under
``[tool.datalens]`` or in a home-level ``~/.config/datalens.toml``. The home
location can be redirected with ``DATALENS_CONFIG_HOME``.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from datalens.core.exceptions import ConfigurationError


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file exists but cannot be used."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        """Initialize with file path, message, and optional cause."""
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"Config file error in {file_path}: {message}")


class FileConfigLoader:
    """Loads configuration from TOML files."""

    def load_project_config(self, project_root: Path | None = None) -> dict[str, Any]:
        """Load ``[tool.datalens]`` from the nearest pyproject.toml.

        Args:
            project_root: Directory to start searching from. If None,
                searches the current directory and its parents.

        Returns:
            Configuration values, or an empty dict when there is no file or
            no ``datalens`` table.

        Raises:
            ConfigFileError: If the file exists but cannot be parsed or the
                table has the wrong shape.
        """
        pyproject_path = self._find_pyproject_toml(project_root)
        if not pyproject_path:
            return {}

        data = self._read_toml(pyproject_path)
        section = data.get("tool", {}).get("datalens", {})
        if not isinstance(section, dict):
            raise ConfigFileError(pyproject_path, "[tool.datalens] must be a table")
        return dict(section)

    def load_home_config(self) -> dict[str, Any]:
        """Load configuration from the home config file, if present."""
        home_config_path = self.home_config_path()
        if not home_config_path.exists():
            return {}
        return dict(self._read_toml(home_config_path))

    def home_config_path(self) -> Path:
        """Path to the home configuration file."""
        override = os.getenv("DATALENS_CONFIG_HOME")
        if override:
            return Path(override)
        return Path.home() / ".config" / "datalens.toml"

    def _read_toml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(mode="rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(path, f"Failed to parse TOML: {e}", cause=e) from e

    def _find_pyproject_toml(self, start_dir: Path | None = None) -> Path | None:
        current = Path(start_dir or Path.cwd()).resolve()
        while True:
            pyproject_path = current / "pyproject.toml"
            if pyproject_path.exists():
                return pyproject_path
            if current == current.parent:  # Filesystem root
                return None
            current = current.parent
