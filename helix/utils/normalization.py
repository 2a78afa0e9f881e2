"""Data normalization utilities for consistent data quality."""

from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased, trimmed email or None if empty
    """
    if not email:
        return None
    normalized = email.strip().lower()
    return normalized or None


def mask_email(email: str | None) -> str:
    """Partially hide an address for display (``ab...@example.com``)."""
    if not email:
        return ""
    local, _, domain = email.partition("@")
    prefix = local[:2] if local else ""
    return f"{prefix}...@{domain}" if domain else f"{prefix}..."


def parse_optional_number(value, *, integer: bool = False) -> int | float | None:
    """
    Coerce an optional numeric input.

    ``None`` and empty strings mean "no value". Anything else must parse as a
    number; booleans and non-numeric strings raise ValueError instead of being
    silently coerced.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"Expected a number, got {value!r}")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(f"Expected a finite number, got {value!r}")
    if integer:
        if not number.is_integer():
            raise ValueError(f"Expected a whole number, got {value!r}")
        return int(number)
    return number
