"""Admin account seeding from configuration."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.password import hash_password
from safevault.auth.service import get_account_by_email
from safevault.db.models import Account

logger = structlog.get_logger()


async def seed_admin(db: AsyncSession, email: str, password: str) -> Account | None:
    """
    Create the admin account if it does not exist yet.

    An existing account with the same email is promoted to admin and approved;
    its password is left alone. Returns None when no credentials are configured.
    """
    if not email or not password:
        return None

    account = await get_account_by_email(db, email)
    if account is None:
        account = Account(
            first_name="Admin",
            last_name="User",
            email=email.lower(),
            password_hash=hash_password(password),
            role="admin",
            account_status="approved",
        )
        db.add(account)
        await db.flush()
        logger.info("admin_seeded", account_id=account.id)
    elif account.role != "admin" or account.account_status != "approved":
        account.role = "admin"
        account.account_status = "approved"
        await db.flush()
        logger.info("admin_promoted", account_id=account.id)

    await db.commit()
    return account
