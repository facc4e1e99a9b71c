"""
Configuration validation utilities.

Environment lookups with placeholder detection and readable error messages.
"""
import os
import warnings
from typing import Optional
from .exceptions import ConfigurationError


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def get_required_env(key: str, description: str = None) -> str:
    """
    Get required environment variable with validation.

    :param key: Environment variable name
    :param description: Human-readable description for error messages
    :return: Environment variable value
    :raises: ConfigurationError if not set or invalid
    """
    value = os.getenv(key)

    if not value:
        desc = description or key
        raise ConfigurationError(
            f"{key} is required but not set.\n"
            f"Please set it using one of these methods:\n"
            f"  1. Environment variable: export {key}='your-value'\n"
            f"  2. .env file: Create .env in project root with {key}=your-value\n\n"
            f"Description: {desc}"
        )

    if _is_placeholder(value):
        raise ConfigurationError(
            f"{key} appears to be a placeholder value.\n"
            f"Please set a real value. Current value: {_mask_secret(value)}"
        )

    return value


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get optional environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :return: Environment variable value or default
    """
    value = os.getenv(key, default)

    if value and _is_placeholder(value):
        # Warn but don't fail for optional configs
        warnings.warn(
            f"{key} appears to be a placeholder. Using default or None.",
            UserWarning
        )
        return default

    return value


def get_int_env(key: str, default: Optional[int]) -> Optional[int]:
    """Read an integer env var, raising ConfigurationError on garbage."""
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'")


def get_float_env(key: str, default: float) -> float:
    """Read a float env var, raising ConfigurationError on garbage."""
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'")


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """
    Parse a boolean flag from an env-style string.

    :raises: ConfigurationError for values that are neither truthy nor falsy
    """
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Cannot interpret '{value}' as a boolean")


def validate_api_key(key: str, key_name: str, min_length: int = 20) -> str:
    """
    Validate API key format.

    :param key: API key to validate
    :param key_name: Name of the key (for error messages)
    :param min_length: Minimum expected length
    :return: Validated key
    :raises: ConfigurationError if invalid
    """
    if not key:
        raise ConfigurationError(f"{key_name} is required.")

    if _is_placeholder(key):
        raise ConfigurationError(
            f"{key_name} appears to be a placeholder. "
            f"Please set a real API key."
        )

    if len(key) < min_length:
        raise ConfigurationError(
            f"{key_name} appears to be invalid (too short: {len(key)} chars). "
            f"Expected at least {min_length} characters."
        )

    return key


def _is_placeholder(value: str) -> bool:
    """Check if value is a placeholder."""
    if not value:
        return False

    placeholder_patterns = [
        "your_",
        "placeholder",
        "xxx",
        "sk-0000",
        "replace_me",
        "changeme",
    ]

    value_lower = value.lower()
    return any(pattern in value_lower for pattern in placeholder_patterns)


def _mask_secret(secret: str, show_chars: int = 4) -> str:
    """
    Mask secret for safe display in error messages.

    :param secret: Secret to mask
    :param show_chars: Number of characters to show at start/end
    :return: Masked secret
    """
    if not secret or len(secret) <= show_chars * 2:
        return "***"

    return f"{secret[:show_chars]}...{secret[-show_chars:]}"
