"""Configuration management for datalens.

Resolve once, freeze, then flow:

- ``resolve_config()`` merges defaults, home/project files, environment and
  programmatic overrides into a ``ResolvedConfig`` with an audit trail.
- ``ResolvedConfig.to_frozen()`` produces the immutable ``FrozenConfig``
  consumed by sessions and the repair client.
"""

from pathlib import Path
from typing import Any

from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import DataLensSettings
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap
from .validation import check_config_security, validate_api_key

_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Precedence: Programmatic > Environment > Project file > Home file > Defaults

    Example:
        config = resolve_config({"max_rows": 250})
        frozen = config.to_frozen()
    """
    return _resolver.resolve(programmatic=programmatic, project_root=project_root)


__all__ = [  # noqa: RUF022
    "resolve_config",
    "ResolvedConfig",
    "FrozenConfig",
    "SourceMap",
    "ConfigOrigin",
    "DataLensSettings",
    "ConfigResolver",
    "FileConfigLoader",
    "ConfigFileError",
    "validate_api_key",
    "check_config_security",
]
