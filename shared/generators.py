"""
Random token and code generators — pure, side-effect-free functions.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets
import string


def generate_token(byte_length: int = 32) -> str:
    """Generate a cryptographically secure hex token.

    Args:
        byte_length: Number of random bytes (default 32 → 64 hex characters).

    Returns:
        Lowercase hex string of ``2 * byte_length`` characters.
    """
    return secrets.token_hex(byte_length)


def generate_numeric_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Every digit is drawn independently, so leading zeros are kept and the
    result always has exactly *length* characters.
    """
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(string.digits) for _ in range(length))
