from __future__ import annotations

import re

from ..models import IdentifierKind


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
_PHONE_RE = re.compile(r"^\d{10}$")


def classify_identifier(value: str) -> IdentifierKind:
    """
    Classify a login identifier:
    - "user@example.com" -> email
    - "9876543210" -> phone (exactly 10 digits)
    - anything else -> unknown (rejected before it reaches the browser)
    """
    s = (value or "").strip()
    if _EMAIL_RE.match(s):
        return IdentifierKind.EMAIL
    if _PHONE_RE.match(s):
        return IdentifierKind.PHONE
    return IdentifierKind.UNKNOWN


def validate_secret(value: str) -> bool:
    return bool((value or "").strip())


def mask_code(code: str) -> str:
    return "*" * len(code or "")
