"""Profile management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from safevault.auth.password import hash_password
from safevault.auth.service import check_password
from safevault.db.models import Account
from safevault.exceptions import ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def email_taken(db: AsyncSession, email: str, exclude_id: int) -> bool:
    result = await db.execute(
        select(Account.id).where(func.lower(Account.email) == email.lower(), Account.id != exclude_id)
    )
    return result.first() is not None


async def update_profile(
    db: AsyncSession,
    account: Account,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> Account:
    """
    Update profile fields. ``None`` leaves a field unchanged.

    Raises:
        ValidationError: If the email belongs to another account or the password is too weak.
    """
    if email is not None and email.lower() != account.email:
        if await email_taken(db, email, account.id):
            msg = "Email is already taken"
            raise ValidationError(msg)
        account.email = email.lower()

    if first_name is not None:
        account.first_name = first_name.strip()
    if last_name is not None:
        account.last_name = last_name.strip()
    if password is not None:
        check_password(password)
        account.password_hash = hash_password(password)

    await db.flush()
    logger.info("profile_updated", account_id=account.id)
    return account


async def set_profile_image(db: AsyncSession, account: Account, url: str | None) -> Account:
    """Point the profile at a new image URL, or clear it with ``None``."""
    account.profile_image = url
    await db.flush()
    return account
