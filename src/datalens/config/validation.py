"""Validation rules beyond the Pydantic schema.

The credential check here is purely syntactic; a key that passes may still
be rejected by the service.
"""

from datalens.constants import API_KEY_PREFIX, MIN_API_KEY_LENGTH

from .types import FrozenConfig, ResolvedConfig


def validate_api_key(key: str | None) -> bool:
    """Return True if ``key`` looks like a Gemini API key.

    The key must be non-empty, longer than 20 characters after trimming and
    start with the vendor prefix.
    """
    if not key:
        return False
    return len(key.strip()) >= MIN_API_KEY_LENGTH and key.startswith(API_KEY_PREFIX)


def check_config_security(config: ResolvedConfig | FrozenConfig) -> list[str]:
    """Check configuration for likely problems.

    Returns:
        List of warnings (empty if no issues found).
    """
    warnings = []

    if config.api_key and not validate_api_key(config.api_key):
        warnings.append(
            f"API key does not look like a Gemini key (expected '{API_KEY_PREFIX}...')"
        )

    if config.repair_timeout > 120:
        warnings.append(
            f"Very long repair timeout configured: {config.repair_timeout} seconds"
        )

    if config.temperature > 0.5:
        warnings.append(
            "High temperature makes repair more likely to rewrite data instead of fixing it"
        )

    return warnings
