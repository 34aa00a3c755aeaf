"""
Balance mutator.

The only code path allowed to change an account's balance fields. Each
mutation runs in the caller's transaction:

1. validate that neither component would go negative
2. apply the deltas
3. recompute ``total_amount = deposit_amount + profit_amount``
4. flush, which runs the optimistic ``version`` check on the UPDATE
5. append exactly one notification describing the change

Callers commit; a lost version race surfaces as ``StateConflict`` and the
caller's transaction must be rolled back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.orm.exc import StaleDataError

from safevault.exceptions import InsufficientBalance, StateConflict, ValidationError
from safevault.notifications.service import create_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from safevault.db.models import Account, Notification

logger = structlog.get_logger()

ZERO = Decimal("0")


def recompute_total(account: Account) -> Decimal:
    """Set and return ``total_amount`` from its two components."""
    account.total_amount = (account.deposit_amount or ZERO) + (account.profit_amount or ZERO)
    return account.total_amount


def split_debit(account: Account, amount: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split a withdrawal debit across the balance components.

    Profit is drawn down first, the remainder comes out of the deposit.

    Returns:
        Tuple of (deposit_delta, profit_delta), both zero or negative.

    Raises:
        InsufficientBalance: If the total balance does not cover ``amount``.
    """
    total = (account.deposit_amount or ZERO) + (account.profit_amount or ZERO)
    if total < amount:
        msg = "Insufficient balance"
        raise InsufficientBalance(msg, available_balance=total)

    from_profit = min(account.profit_amount or ZERO, amount)
    from_deposit = amount - from_profit
    return -from_deposit, -from_profit


async def mutate_balance(
    db: AsyncSession,
    account: Account,
    *,
    deposit_delta: Decimal = ZERO,
    profit_delta: Decimal = ZERO,
    message: str,
    type_: str,
    action_url: str | None = None,
) -> Notification:
    """
    Apply balance deltas to ``account`` and record one notification for it.

    Raises:
        InsufficientBalance: If either component would become negative.
        StateConflict: If another writer updated the account first.
    """
    new_deposit = (account.deposit_amount or ZERO) + deposit_delta
    new_profit = (account.profit_amount or ZERO) + profit_delta
    if new_deposit < ZERO or new_profit < ZERO:
        msg = "Insufficient balance"
        raise InsufficientBalance(msg, available_balance=account.total_amount or ZERO)

    account.deposit_amount = new_deposit
    account.profit_amount = new_profit
    recompute_total(account)

    try:
        await db.flush()
    except StaleDataError as e:
        logger.warning("balance_update_conflict", account_id=account.id)
        msg = "The record was modified concurrently. Retry the operation."
        raise StateConflict(msg) from e

    notification = await create_notification(db, account.id, message, type_, action_url)
    logger.info(
        "balance_mutated",
        account_id=account.id,
        deposit_delta=str(deposit_delta),
        profit_delta=str(profit_delta),
        total_amount=str(account.total_amount),
        notification_type=type_,
    )
    return notification


async def set_deposit_amount(
    db: AsyncSession,
    account: Account,
    new_amount: Decimal,
    reason: str,
) -> Notification:
    """
    Admin override of the deposit component.

    The notification type reflects the direction of the change:
    ``balance_increase``, ``balance_decrease`` or ``balance_adjustment``
    when the amount is unchanged.
    """
    if new_amount < ZERO:
        msg = "Balance cannot be negative"
        raise ValidationError(msg)
    if not reason or not reason.strip():
        msg = "A reason is required for balance changes"
        raise ValidationError(msg)

    old_amount = account.deposit_amount or ZERO
    delta = new_amount - old_amount
    if delta > ZERO:
        type_ = "balance_increase"
        message = f"Your balance has been increased by ${delta:.2f}. Reason: {reason}"
    elif delta < ZERO:
        type_ = "balance_decrease"
        message = f"Your balance has been decreased by ${-delta:.2f}. Reason: {reason}"
    else:
        type_ = "balance_adjustment"
        message = f"Your balance has been reviewed by an admin. Reason: {reason}"

    return await mutate_balance(
        db,
        account,
        deposit_delta=delta,
        message=message[:500],
        type_=type_,
    )
