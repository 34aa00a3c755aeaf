"""Deposit requests and their settlement."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from safevault.db.models import Account, Deposit
from safevault.exceptions import NotFound, ValidationError
from safevault.notifications.service import create_notification
from safevault.pagination import Pagination, paginate
from safevault.wallet.balance import mutate_balance
from safevault.wallet.settlement import flush_settlement, settle

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def create_deposit(db: AsyncSession, account: Account, amount: Decimal, screenshot_url: str) -> Deposit:
    """Record a pending deposit and notify the admins through the inbox."""
    if amount <= 0:
        msg = "Valid amount is required"
        raise ValidationError(msg)

    deposit = Deposit(user_id=account.id, amount=amount, screenshot_url=screenshot_url)
    db.add(deposit)
    await db.flush()

    await create_notification(
        db,
        account.id,
        f"Your deposit request of ${amount:.2f} has been submitted and is pending review",
        "deposit",
        action_url=f"/admin/deposits/{deposit.id}",
    )
    logger.info("deposit_requested", account_id=account.id, deposit_id=deposit.id, amount=str(amount))
    return deposit


async def list_deposits(
    db: AsyncSession,
    user_id: int | None = None,
    page: int = 1,
    per_page: int = 10,
    status: str | None = None,
) -> tuple[list[Deposit], Pagination]:
    """Deposits newest first. ``user_id=None`` lists every account's deposits."""
    query = select(Deposit)
    if user_id is not None:
        query = query.where(Deposit.user_id == user_id)
    if status is not None:
        query = query.where(Deposit.status == status)
    query = query.order_by(Deposit.created_at.desc(), Deposit.id.desc())
    return await paginate(db, query, page, per_page)


async def get_deposit(db: AsyncSession, deposit_id: int, user_id: int | None = None) -> Deposit:
    """Fetch a deposit, scoped to its owner when ``user_id`` is given."""
    query = select(Deposit).where(Deposit.id == deposit_id)
    if user_id is not None:
        query = query.where(Deposit.user_id == user_id)
    deposit = (await db.execute(query)).scalar_one_or_none()
    if deposit is None:
        msg = "Deposit not found"
        raise NotFound(msg)
    return deposit


async def approve_deposit(db: AsyncSession, deposit_id: int, admin_notes: str | None = None) -> Deposit:
    """Settle a pending deposit as approved and credit its amount to the deposit balance."""
    deposit = await get_deposit(db, deposit_id)
    settle(deposit, "approved", admin_notes)
    await flush_settlement(db, deposit)

    account = await db.get(Account, deposit.user_id)
    if account is None:
        msg = "User not found"
        raise NotFound(msg)

    await mutate_balance(
        db,
        account,
        deposit_delta=deposit.amount,
        message=f"Your deposit of ${deposit.amount:.2f} has been approved and added to your balance",
        type_="deposit",
        action_url=f"/admin/deposits/{deposit.id}",
    )
    logger.info("deposit_approved", deposit_id=deposit.id, account_id=account.id, amount=str(deposit.amount))
    return deposit


async def reject_deposit(db: AsyncSession, deposit_id: int, admin_notes: str | None = None) -> Deposit:
    """Settle a pending deposit as rejected. Balances are untouched."""
    deposit = await get_deposit(db, deposit_id)
    settle(deposit, "rejected", admin_notes)
    await flush_settlement(db, deposit)

    message = f"Your deposit of ${deposit.amount:.2f} has been rejected"
    if admin_notes:
        message = f"{message}. Reason: {admin_notes}"
    await create_notification(
        db,
        deposit.user_id,
        message[:500],
        "deposit",
        action_url=f"/admin/deposits/{deposit.id}",
    )
    logger.info("deposit_rejected", deposit_id=deposit.id, account_id=deposit.user_id)
    return deposit
