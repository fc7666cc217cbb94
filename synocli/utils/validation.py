"""
Input validation utilities for synocli.
"""

from typing import Any
from urllib.parse import urlparse

from ..exceptions import ValidationError


def validate_required(value: Any) -> bool:
    """
    Check that a required value is a non-empty string.

    Args:
        value: The value to validate

    Returns:
        True if value is valid, False otherwise
    """
    if not isinstance(value, str):
        return False

    return len(value) > 0


def get_validation_error_message(field: str, value: Any) -> str:
    """
    Get a descriptive error message for an invalid required value.

    Args:
        field: Human readable name of the field
        value: The invalid value

    Returns:
        Error message describing why the value is invalid
    """
    if value is None:
        return f"{field} is required"

    if not isinstance(value, str):
        return f"{field} must be a string"

    if len(value) == 0:
        return f"{field} cannot be empty"

    return f"{field} is invalid"


def require(field: str, value: Any) -> str:
    """
    Return value if it is a non-empty string, raise ValidationError otherwise.

    Raises:
        ValidationError: If value is missing, empty or not a string
    """
    if not validate_required(value):
        raise ValidationError(get_validation_error_message(field, value))
    return value


def normalize_base_url(base_url: Any) -> str:
    """
    Validate and normalize the NAS base URL.

    Args:
        base_url: URL such as https://nas.example.net:5001

    Returns:
        The URL without trailing slashes

    Raises:
        ValidationError: If the URL is empty or not an absolute http(s) URL
    """
    require("Base URL", base_url)

    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            f"Base URL must be an absolute http(s) URL, got '{base_url}'"
        )

    return base_url.rstrip("/")
