"""
Admin business logic: reporting, account moderation and platform settings.

Deposit/withdrawal settlement lives with the ledger services; balance
overrides go through ``safevault.wallet.balance``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select

from safevault.auth.password import generate_temporary_password, hash_password
from safevault.config import get_settings
from safevault.db.models import (
    ACCOUNT_STATUSES,
    APPROVAL_STATUSES,
    Account,
    Deposit,
    PlatformSetting,
    ProfitLog,
    Withdrawal,
)
from safevault.exceptions import NotFound, StateConflict, ValidationError
from safevault.notifications.service import create_notification
from safevault.pagination import Pagination, paginate

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

WALLET_ADDRESS_KEY = "deposit_wallet_address"


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


async def _approved_sum(db: AsyncSession, model: type[Deposit] | type[Withdrawal]) -> Decimal:
    result = await db.execute(select(func.coalesce(func.sum(model.amount), 0)).where(model.status == "approved"))
    return Decimal(result.scalar_one())


async def _count(db: AsyncSession, model: type, *criteria: object) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def dashboard_stats(db: AsyncSession) -> dict[str, int | float]:
    """Headline numbers for the admin dashboard."""
    return {
        "total_users": await _count(db, Account, Account.role == "user"),
        "total_deposits": float(await _approved_sum(db, Deposit)),
        "total_withdrawals": float(await _approved_sum(db, Withdrawal)),
        "pending_deposits": await _count(db, Deposit, Deposit.status == "pending"),
        "pending_withdrawals": await _count(db, Withdrawal, Withdrawal.status == "pending"),
    }


async def summary_report(db: AsyncSession) -> dict[str, int | float]:
    """Dashboard numbers plus account and profit breakdowns."""
    stats = await dashboard_stats(db)
    profit = await db.execute(select(func.coalesce(func.sum(ProfitLog.amount), 0)))
    stats.update(
        {
            "active_users": await _count(db, Account, Account.role == "user", Account.status == "active"),
            "blocked_users": await _count(db, Account, Account.role == "user", Account.status == "blocked"),
            "pending_accounts": await _count(db, Account, Account.account_status == "pending"),
            "total_profit_credited": float(Decimal(profit.scalar_one())),
        }
    )
    return stats


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


async def get_account_or_404(db: AsyncSession, account_id: int) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        msg = "User not found"
        raise NotFound(msg)
    return account


async def list_accounts(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 20,
    search: str | None = None,
    status: str | None = None,
) -> tuple[list[Account], Pagination]:
    """
    Accounts newest first.

    ``search`` matches first name, last name or email (case-insensitive);
    ``status`` filters on either the active/blocked flag or the approval state.
    """
    query = select(Account)
    if search:
        escaped = search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.where(
            or_(
                func.lower(Account.first_name).like(pattern, escape="\\"),
                func.lower(Account.last_name).like(pattern, escape="\\"),
                func.lower(Account.email).like(pattern, escape="\\"),
            )
        )
    if status in ACCOUNT_STATUSES:
        query = query.where(Account.status == status)
    elif status in APPROVAL_STATUSES:
        query = query.where(Account.account_status == status)
    elif status is not None:
        msg = f"Unknown status filter: {status}"
        raise ValidationError(msg)
    query = query.order_by(Account.created_at.desc(), Account.id.desc())
    return await paginate(db, query, page, per_page)


async def account_activity(db: AsyncSession, account_id: int) -> dict[str, int | float]:
    """Ledger counts shown on the admin user detail page."""
    profit = await db.execute(
        select(func.coalesce(func.sum(ProfitLog.amount), 0)).where(ProfitLog.user_id == account_id)
    )
    return {
        "deposit_count": await _count(db, Deposit, Deposit.user_id == account_id),
        "withdrawal_count": await _count(db, Withdrawal, Withdrawal.user_id == account_id),
        "total_profit_credited": float(Decimal(profit.scalar_one())),
    }


async def set_account_blocked(db: AsyncSession, account_id: int, *, blocked: bool) -> Account:
    """Block or unblock an account. Admin accounts cannot be blocked."""
    account = await get_account_or_404(db, account_id)
    if blocked and account.role == "admin":
        msg = "Admin accounts cannot be blocked"
        raise ValidationError(msg)

    account.status = "blocked" if blocked else "active"
    await db.flush()
    logger.info("account_blocked" if blocked else "account_unblocked", account_id=account.id)
    return account


async def reset_password(db: AsyncSession, account_id: int) -> tuple[Account, str]:
    """Replace the password with a generated one. The plain password is returned once."""
    account = await get_account_or_404(db, account_id)
    temporary = generate_temporary_password()
    account.password_hash = hash_password(temporary)
    await db.flush()

    await create_notification(
        db,
        account.id,
        "Your password has been reset by an administrator. Please change it after logging in.",
        "general",
    )
    logger.info("password_reset_by_admin", account_id=account.id)
    return account, temporary


async def approve_account(db: AsyncSession, account_id: int) -> Account:
    """Approve a pending registration."""
    account = await get_account_or_404(db, account_id)
    if account.account_status != "pending":
        msg = "User account is not pending approval"
        raise StateConflict(msg)

    account.account_status = "approved"
    await db.flush()
    await create_notification(
        db,
        account.id,
        "Congratulations! Your account has been approved. You can now access all features of SafeVault.",
        "general",
    )
    logger.info("account_approved", account_id=account.id)
    return account


async def reject_account(db: AsyncSession, account_id: int, reason: str) -> Account:
    """Reject a pending registration. A reason is mandatory."""
    if not reason or not reason.strip():
        msg = "Reason for rejection is required"
        raise ValidationError(msg)
    account = await get_account_or_404(db, account_id)
    if account.account_status != "pending":
        msg = "User account is not pending approval"
        raise StateConflict(msg)

    account.account_status = "rejected"
    await db.flush()
    message = (
        f"Your account has been rejected. Reason: {reason.strip()}. "
        "Please contact support if you have any questions."
    )
    await create_notification(db, account.id, message[:500], "general")
    logger.info("account_rejected", account_id=account.id)
    return account


async def send_notification(
    db: AsyncSession,
    user_id: int,
    message: str,
    type_: str = "general",
    action_url: str | None = None,
) -> None:
    """Admin message to one account's inbox."""
    await get_account_or_404(db, user_id)
    await create_notification(db, user_id, message, type_, action_url)
    logger.info("admin_notification_sent", account_id=user_id, notification_type=type_)


# ---------------------------------------------------------------------------
# Platform settings
# ---------------------------------------------------------------------------


async def get_deposit_wallet_address(db: AsyncSession) -> str:
    """Address users are told to deposit to. Falls back to the configured default."""
    row = await db.get(PlatformSetting, WALLET_ADDRESS_KEY)
    return row.value if row is not None else get_settings().deposit_wallet_address


async def set_deposit_wallet_address(db: AsyncSession, address: str) -> str:
    address = address.strip()
    if len(address) < 10:
        msg = "Wallet address must be at least 10 characters"
        raise ValidationError(msg)

    row = await db.get(PlatformSetting, WALLET_ADDRESS_KEY)
    if row is None:
        db.add(PlatformSetting(key=WALLET_ADDRESS_KEY, value=address))
    else:
        row.value = address
    await db.flush()
    logger.info("deposit_wallet_address_updated")
    return address


async def platform_settings(db: AsyncSession) -> dict[str, str | bool | float]:
    """Settings panel values. ``profit_rate`` is the rate the accrual job uses."""
    settings = get_settings()
    return {
        "wallet_address": await get_deposit_wallet_address(db),
        "system_status": "active",
        "maintenance_mode": False,
        "profit_rate": float(settings.profit_rate),
        "minimum_deposit": float(settings.minimum_deposit),
        "maximum_withdrawal": float(settings.maximum_withdrawal),
    }
