"""
Random code and token generators: pure, side-effect-free functions.

All generators use cryptographically secure sources (``secrets`` module)
except the receipt suffix, which only needs to be unique-ish.
"""

from __future__ import annotations

import random
import secrets
import string
import time
from typing import Optional


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Every digit is drawn uniformly, so leading zeros are as likely as any
    other digit (``"017000"`` is a valid code).

    Args:
        length: Number of digits (default 6).

    Returns:
        String of random decimal digits.
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_receipt_id(now: Optional[float] = None) -> str:
    """Build a gateway receipt id, ``rcpt_<epoch_ms>_<6 base36 chars>``.

    Gateways cap receipt ids at 40 characters; this stays well below.
    """
    epoch_ms = int((now if now is not None else time.time()) * 1000)
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(random.choice(alphabet) for _ in range(6))
    return f"rcpt_{epoch_ms}_{suffix}"
