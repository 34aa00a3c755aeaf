"""Withdrawal requests and their settlement."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from safevault.db.models import WITHDRAWAL_PLATFORMS, Account, Withdrawal
from safevault.exceptions import InsufficientBalance, NotFound, ValidationError
from safevault.notifications.service import create_notification
from safevault.pagination import Pagination, paginate
from safevault.wallet.balance import mutate_balance, split_debit
from safevault.wallet.settlement import ensure_pending, flush_settlement, settle

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MIN_WALLET_ADDRESS_LENGTH = 10


async def create_withdrawal(
    db: AsyncSession,
    account: Account,
    amount: Decimal,
    platform: str,
    wallet_address: str,
) -> Withdrawal:
    """
    Record a pending withdrawal.

    Raises:
        ValidationError: Bad amount, platform or wallet address.
        InsufficientBalance: ``amount`` exceeds the total balance. No record is created.
    """
    if amount <= 0:
        msg = "Amount must be greater than 0"
        raise ValidationError(msg)
    if platform not in WITHDRAWAL_PLATFORMS:
        msg = "Platform must be Binance, Trust Wallet, or Other"
        raise ValidationError(msg)
    wallet_address = wallet_address.strip()
    if len(wallet_address) < MIN_WALLET_ADDRESS_LENGTH:
        msg = f"Wallet address must be at least {MIN_WALLET_ADDRESS_LENGTH} characters"
        raise ValidationError(msg)

    if account.total_amount < amount:
        logger.info("withdrawal_refused", account_id=account.id, amount=str(amount))
        msg = "Insufficient balance"
        raise InsufficientBalance(msg, available_balance=account.total_amount)

    withdrawal = Withdrawal(
        user_id=account.id,
        amount=amount,
        platform=platform,
        wallet_address=wallet_address,
    )
    db.add(withdrawal)
    await db.flush()

    await create_notification(
        db,
        account.id,
        f"Your withdrawal request of ${amount:.2f} to {platform} has been submitted and is pending review",
        "withdrawal",
        action_url=f"/admin/withdrawals/{withdrawal.id}",
    )
    logger.info("withdrawal_requested", account_id=account.id, withdrawal_id=withdrawal.id, amount=str(amount))
    return withdrawal


async def list_withdrawals(
    db: AsyncSession,
    user_id: int | None = None,
    page: int = 1,
    per_page: int = 10,
    status: str | None = None,
) -> tuple[list[Withdrawal], Pagination]:
    """Withdrawals newest first. ``user_id=None`` lists every account's withdrawals."""
    query = select(Withdrawal)
    if user_id is not None:
        query = query.where(Withdrawal.user_id == user_id)
    if status is not None:
        query = query.where(Withdrawal.status == status)
    query = query.order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
    return await paginate(db, query, page, per_page)


async def get_withdrawal(db: AsyncSession, withdrawal_id: int, user_id: int | None = None) -> Withdrawal:
    query = select(Withdrawal).where(Withdrawal.id == withdrawal_id)
    if user_id is not None:
        query = query.where(Withdrawal.user_id == user_id)
    withdrawal = (await db.execute(query)).scalar_one_or_none()
    if withdrawal is None:
        msg = "Withdrawal not found"
        raise NotFound(msg)
    return withdrawal


async def approve_withdrawal(db: AsyncSession, withdrawal_id: int, admin_notes: str | None = None) -> Withdrawal:
    """
    Settle a pending withdrawal as approved and debit the account.

    Profit is debited before deposit.

    Raises:
        StateConflict: The withdrawal was already settled.
        InsufficientBalance: The balance no longer covers the amount; nothing changes.
    """
    withdrawal = await get_withdrawal(db, withdrawal_id)
    ensure_pending(withdrawal)

    account = await db.get(Account, withdrawal.user_id)
    if account is None:
        msg = "User not found"
        raise NotFound(msg)

    deposit_delta, profit_delta = split_debit(account, withdrawal.amount)
    settle(withdrawal, "approved", admin_notes)
    await flush_settlement(db, withdrawal)
    await mutate_balance(
        db,
        account,
        deposit_delta=deposit_delta,
        profit_delta=profit_delta,
        message=f"Your withdrawal of ${withdrawal.amount:.2f} to {withdrawal.platform} has been approved",
        type_="withdrawal",
        action_url=f"/admin/withdrawals/{withdrawal.id}",
    )
    logger.info(
        "withdrawal_approved",
        withdrawal_id=withdrawal.id,
        account_id=account.id,
        amount=str(withdrawal.amount),
    )
    return withdrawal


async def reject_withdrawal(db: AsyncSession, withdrawal_id: int, admin_notes: str | None = None) -> Withdrawal:
    """Settle a pending withdrawal as rejected. Balances are untouched."""
    withdrawal = await get_withdrawal(db, withdrawal_id)
    settle(withdrawal, "rejected", admin_notes)
    await flush_settlement(db, withdrawal)

    message = f"Your withdrawal of ${withdrawal.amount:.2f} has been rejected"
    if admin_notes:
        message = f"{message}. Reason: {admin_notes}"
    await create_notification(
        db,
        withdrawal.user_id,
        message[:500],
        "withdrawal",
        action_url=f"/admin/withdrawals/{withdrawal.id}",
    )
    logger.info("withdrawal_rejected", withdrawal_id=withdrawal.id, account_id=withdrawal.user_id)
    return withdrawal
