"""Password hashing helpers for account credentials."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from ..config import get_settings

_ALGORITHM = "pbkdf2-sha256"


def hash_password(password: str, iterations: int | None = None) -> str:
    """Return a salted PBKDF2-SHA256 hash encoded as ``algorithm$iterations$salt$digest``."""
    rounds = iterations or get_settings().password_hash_iterations
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), rounds)
    return f"{_ALGORITHM}${rounds}${salt}${digest.hex()}"


def verify_password(password: str, credentials_source: str) -> bool:
    """Check a plain password against a stored hash produced by :func:`hash_password`."""
    try:
        algorithm, rounds, salt, expected = credentials_source.split("$")
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(rounds))
    return hmac.compare_digest(digest.hex(), expected)
