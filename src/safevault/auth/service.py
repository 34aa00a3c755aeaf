"""
Authentication business logic.

Handles account creation, credential checks and password changes. Functions
flush but never commit; routers own the transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from safevault.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from safevault.config import get_settings
from safevault.db.models import Account
from safevault.exceptions import Forbidden, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Account queries
# ---------------------------------------------------------------------------


async def get_account_by_id(db: AsyncSession, account_id: int) -> Account | None:
    """Fetch an account by ID."""
    result = await db.execute(select(Account).where(Account.id == account_id))
    return result.scalar_one_or_none()


async def get_account_by_email(db: AsyncSession, email: str) -> Account | None:
    """Fetch an account by email (case-insensitive)."""
    result = await db.execute(select(Account).where(func.lower(Account.email) == email.lower()))
    return result.scalar_one_or_none()


def check_password(password: str) -> None:
    """Run strength validation, re-raising as a domain ValidationError."""
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e)) from e


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_account(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
) -> Account:
    """
    Register a new user account.

    The account starts ``pending`` when admin approval is required, otherwise
    ``approved``.

    Raises:
        ValidationError: If the email is taken or the password is too weak.
    """
    check_password(password)

    if await get_account_by_email(db, email) is not None:
        msg = "User with this email already exists"
        raise ValidationError(msg)

    settings = get_settings()
    account = Account(
        first_name=first_name,
        last_name=last_name,
        email=email.lower(),
        password_hash=hash_password(password),
        account_status="pending" if settings.require_account_approval else "approved",
    )
    db.add(account)
    await db.flush()
    logger.info("account_registered", account_id=account.id, account_status=account.account_status)
    return account


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate(db: AsyncSession, email: str, password: str) -> Account:
    """
    Check credentials and account state for a user login.

    Raises:
        ValidationError: Unknown email or wrong password.
        Forbidden: Blocked, pending or rejected account.
    """
    account = await get_account_by_email(db, email)
    if account is None or not verify_password(password, account.password_hash):
        logger.info("login_failed", email=email)
        msg = "Invalid credentials"
        raise ValidationError(msg)

    if account.status == "blocked":
        msg = "Account is blocked"
        raise Forbidden(msg)

    if account.role != "admin" and account.account_status != "approved":
        if account.account_status == "rejected":
            msg = "Your account registration was rejected. Please contact support."
        else:
            msg = "Your account is pending admin approval."
        raise Forbidden(msg, account_status=account.account_status)

    if check_needs_rehash(account.password_hash):
        account.password_hash = hash_password(password)
        await db.flush()

    logger.info("login_succeeded", account_id=account.id, role=account.role)
    return account


async def authenticate_admin(db: AsyncSession, email: str, password: str) -> Account:
    """Same as authenticate, restricted to admin accounts."""
    account = await get_account_by_email(db, email)
    if account is None or account.role != "admin" or not verify_password(password, account.password_hash):
        logger.info("admin_login_failed", email=email)
        msg = "Invalid admin credentials"
        raise ValidationError(msg)
    if account.status == "blocked":
        msg = "Account is blocked"
        raise Forbidden(msg)
    return account


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------


async def change_password(db: AsyncSession, account: Account, old_password: str, new_password: str) -> None:
    """
    Change password after confirming the current one.

    Raises:
        ValidationError: Wrong current password, unchanged or weak new password.
    """
    if not verify_password(old_password, account.password_hash):
        msg = "Current password is incorrect"
        raise ValidationError(msg)
    if old_password == new_password:
        msg = "New password must be different from the current password"
        raise ValidationError(msg)
    check_password(new_password)

    account.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("password_changed", account_id=account.id)
