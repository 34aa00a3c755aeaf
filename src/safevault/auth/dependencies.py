"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.jwt import verify_token
from safevault.auth.service import get_account_by_id
from safevault.database import get_session
from safevault.db.models import Account
from safevault.exceptions import AuthError, Forbidden

_bearer = HTTPBearer()


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Account:
    """
    Extract and verify JWT, return the Account.

    Raises:
        AuthError: Invalid token or unknown account (401).
        Forbidden: Blocked account (403).
    """
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e)) from e

    account = await get_account_by_id(db, int(payload["sub"]))
    if account is None:
        msg = "Invalid token"
        raise AuthError(msg)
    if account.status == "blocked":
        msg = "Account is blocked"
        raise Forbidden(msg)
    return account


async def get_current_admin(
    account: Account = Depends(get_current_account),
) -> Account:
    """Same as get_current_account but additionally requires the admin role."""
    if account.role != "admin":
        msg = "Admin access required"
        raise Forbidden(msg)
    return account
