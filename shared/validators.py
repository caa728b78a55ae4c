"""
Input validators and normalisers — framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from typing import List, Optional

TOKEN_PATTERN = re.compile(r"^[a-f0-9]{64}$")
CODE_PATTERN = re.compile(r"^[0-9]{4,10}$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,30}$")

# Whitespace plus zero-width space/joiners and BOM, which survive copy-paste
_TOKEN_JUNK = re.compile(r"[\s\u200b-\u200d\ufeff]+")


def normalize_token(raw: Optional[str]) -> str:
    """Strip whitespace and zero-width characters and lower-case the token."""
    if raw is None:
        return ""
    return _TOKEN_JUNK.sub("", str(raw)).lower()


def is_valid_token(token: str) -> bool:
    """Return True if *token* is a 64-character lowercase hex string."""
    return bool(TOKEN_PATTERN.match(token))


def normalize_code(raw: Optional[str]) -> str:
    if raw is None:
        return ""
    return _TOKEN_JUNK.sub("", str(raw))


def is_valid_code(code: str) -> bool:
    """Return True if *code* is 4–10 ASCII digits."""
    return bool(CODE_PATTERN.match(code))


def validate_username(username: str) -> bool:
    """Letters, digits and underscores, 3–30 characters."""
    return bool(USERNAME_PATTERN.match(username))


def password_problems(password: str) -> List[str]:
    """Return the unmet password requirements (empty list when strong).

    Rules: at least 8 characters, one uppercase letter, one lowercase letter
    and one digit.
    """
    if not password:
        return ["Password is required"]

    missing = []
    if len(password) < 8:
        missing.append("At least 8 characters")
    if len(password) > 128:
        missing.append("Maximum 128 characters")
    if not re.search(r"[A-Z]", password):
        missing.append("At least one uppercase letter")
    if not re.search(r"[a-z]", password):
        missing.append("At least one lowercase letter")
    if not re.search(r"[0-9]", password):
        missing.append("At least one number")
    return missing


def escape_regex(text: Optional[str]) -> str:
    """Escape user input for use inside a MongoDB ``$regex``."""
    return re.escape(str(text or "").strip())
