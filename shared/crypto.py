"""
Cryptographic helpers: token hashing and payment signatures.

SHA-256 for OTP hashing (the plain code is never persisted) and
HMAC-SHA256 for payment-gateway callback signatures.
"""

from __future__ import annotations

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash OTP codes before storing them in the database so the
    plaintext is never persisted.

    Args:
        token: The plaintext token string to hash.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def sign_payment(order_id: str, payment_id: str, secret: str) -> str:
    """Return the gateway signature for an ``(order_id, payment_id)`` pair.

    The signed message is ``"<order_id>|<payment_id>"``; the digest is
    HMAC-SHA256 keyed with the gateway key secret, hex-encoded.
    """
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    order_id: str, payment_id: str, signature: str, secret: str
) -> bool:
    """Constant-time comparison of *signature* against the expected digest.

    Returns:
        ``False`` for a mismatch or when *secret* is empty.
    """
    if not secret or not signature:
        return False
    expected = sign_payment(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
