"""Utilities for issuing and validating backend session JWTs."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..config import get_settings
from ..domain.user import Account


def issue_access_token(account: Account) -> tuple[str, int]:
    """Create a signed JWT representing an authenticated backend account.

    Parameters
    ----------
    account:
        Account that passed authentication; its id becomes the ``sub`` claim.

    Returns
    -------
    tuple[str, int]
        A tuple containing the encoded JWT string and its TTL (in seconds).
    """

    settings = get_settings()
    now = int(time.time())
    expires_in = settings.jwt_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": account.account_id,
        "account_identifier": account.account_identifier,
        "provider": account.authentication_provider_name,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256"), expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is invalid, expired, or signed by another issuer.
    """

    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
    )
