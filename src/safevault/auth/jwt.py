"""
JWT access token management.

HS256 with a shared secret is the default. Setting ``jwt_algorithm`` to an
asymmetric algorithm (RS256/ES256) switches to PEM key files on disk.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import jwt

from safevault.config import get_settings

_private_key: str | None = None
_public_key: str | None = None


def _load_keys() -> tuple[str, str]:
    """Return (signing key, verification key), cached after first call."""
    global _private_key, _public_key  # noqa: PLW0603
    if _private_key is None or _public_key is None:
        settings = get_settings()
        if settings.jwt_algorithm.startswith("HS"):
            _private_key = _public_key = settings.jwt_secret
        else:
            _private_key = Path(settings.jwt_private_key_path).read_text()
            _public_key = Path(settings.jwt_public_key_path).read_text()
    return _private_key, _public_key


def reset_keys() -> None:
    """Reset cached keys (useful for testing)."""
    global _private_key, _public_key  # noqa: PLW0603
    _private_key = None
    _public_key = None


def create_access_token(account_id: int, role: str = "user") -> str:
    """
    Create an access token.

    Args:
        account_id: The account's database ID.
        role: "user" or "admin"; informational, the role is re-read from the
            database on every request.

    Returns:
        Encoded JWT string.
    """
    private_key, _ = _load_keys()
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(account_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, private_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Decode a token and check its signature, expiry, issuer and type.

    ``sub`` must be a numeric account id.

    Raises:
        jwt.InvalidTokenError: The token fails any of the checks.
    """
    _, public_key = _load_keys()
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            public_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "iat", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not str(payload["sub"]).isdigit():
        msg = "Token subject is not an account id"
        raise jwt.InvalidTokenError(msg)

    return payload
