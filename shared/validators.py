"""
Input validators: framework-agnostic, pure functions.

Request DTOs call these from field validators so malformed input is
rejected at the boundary, before any service logic runs.
"""

from __future__ import annotations

import re
from typing import Optional

OTP_CODE_RE = re.compile(r"^[0-9]{6}$")

# Deliberately loose: the identity store owns real deliverability checks.
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def is_valid_otp_code(code: Optional[str]) -> bool:
    """Return True only for exactly six ASCII digits.

    ``str.isdigit`` accepts non-ASCII digits (``"١٢٣٤٥٦"``), so a regex is
    used instead.
    """
    if not isinstance(code, str):
        return False
    return bool(OTP_CODE_RE.fullmatch(code))


def normalize_email(email: str) -> str:
    """Trim and lower-case *email*."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def normalize_month_name(month: str) -> Optional[str]:
    """Return the canonical month name for *month* (case-insensitive), or None."""
    candidate = month.strip().capitalize()
    return candidate if candidate in MONTH_NAMES else None
