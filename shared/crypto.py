"""
Cryptographic helpers — password hashing and secret hashing.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for verification
tokens and OTP codes. Secrets are only ever compared by re-hashing the
candidate and checking the digest; they are never reversed.
"""

from __future__ import annotations

import hashlib
import hmac

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for a wrong password or
        a malformed stored hash.
    """
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def hash_secret(secret: str) -> str:
    """Return the hex-encoded SHA-256 digest of *secret*.

    Used for both random tokens and OTP codes so the plaintext is never
    persisted.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def secrets_match(digest_a: str, digest_b: str) -> bool:
    """Constant-time comparison of two hex digests."""
    return hmac.compare_digest(digest_a.encode("ascii"), digest_b.encode("ascii"))
