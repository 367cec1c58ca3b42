"""Shared validation utilities"""

import re
from typing import Optional

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_required_text(value: Optional[str], field_name: str) -> str:
    """Strip and reject empty strings"""
    if value is None or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    if not color:
        return color
    if not HEX_COLOR_PATTERN.match(color):
        raise ValueError("Color must be in #RRGGBB format")
    return color.upper()


def validate_choice(value: Optional[str], choices, field_name: str) -> Optional[str]:
    if value is None:
        return value
    if value not in choices:
        raise ValueError(f"{field_name} must be one of: {', '.join(choices)}")
    return value
