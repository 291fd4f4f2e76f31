"""Data normalization utilities for client intake."""

import re
from typing import Optional


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize phone to digits with an optional leading "+".

    Accepts spaces, dots, dashes and parentheses as separators:
    - "06 12 34 56 78" → "0612345678"
    - "+33 6 12 34 56 78" → "+33612345678"

    Raises:
        ValueError: If fewer than 6 or more than 15 digits remain
    """
    if not phone:
        return None

    cleaned = phone.strip()
    prefix = "+" if cleaned.startswith("+") else ""
    digits = re.sub(r"\D", "", cleaned)
    if not digits:
        return None
    if not 6 <= len(digits) <= 15:
        raise ValueError(f"Invalid phone number '{phone}'")
    return f"{prefix}{digits}"


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Normalize email to lowercase, None if empty."""
    if not email:
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Strip whitespace and collapse multiple spaces, None if empty."""
    if not name:
        return None
    cleaned = " ".join(name.split())
    return cleaned or None
