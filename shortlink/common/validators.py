"""Validation utilities for short links."""

from typing import Tuple

from ..identifier import URL_SAFE_ALPHABET, IdentifierGenerator


def is_valid_target(url: str) -> Tuple[bool, str]:
    """Validate a target URL.

    Targets are stored verbatim: the only requirement is a non-empty string.
    Whitespace, length and scheme are not restricted.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(url, str):
        return False, "URL must be a string"

    if not url:
        return False, "URL is required"

    return True, ""


def is_valid_identifier(identifier: str, alphabet: str = URL_SAFE_ALPHABET) -> Tuple[bool, str]:
    """Validate the shape of a short identifier taken from a request path.

    Args:
        identifier: The identifier to validate
        alphabet: Allowed characters

    Returns:
        Tuple of (is_valid, error_message)
    """
    if IdentifierGenerator.is_valid_format(identifier, alphabet):
        return True, ""

    if not identifier or not isinstance(identifier, str):
        return False, "Identifier is required"

    bad = sorted({c for c in identifier if c not in alphabet})
    return False, f"Identifier contains invalid characters: {''.join(bad)}"
