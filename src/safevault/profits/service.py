"""Daily profit accrual.

Every active account with a positive deposit earns ``deposit_amount *
profit_rate`` once per UTC day. The credit is recorded as a ProfitLog and
applied through the balance mutator, which also appends the user-facing
notification. ``(user_id, accrual_date)`` is unique, so an accrual can never
be applied twice for the same day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from safevault.config import get_settings
from safevault.db.models import Account, ProfitLog
from safevault.exceptions import AccrualAlreadyApplied, NotFound, UserIneligible
from safevault.notifications.service import create_notification
from safevault.wallet.balance import mutate_balance

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = structlog.get_logger()

_QUANTUM = Decimal("0.00000001")


@dataclass
class AccrualResult:
    """Outcome of a single account's accrual."""

    profit_amount: Decimal
    new_total_amount: Decimal


@dataclass
class AccrualSummary:
    """Counts for one batch run."""

    accrual_date: date
    credited: int = 0
    skipped: int = 0
    failed: int = 0
    total_profit: Decimal = Decimal("0")


def is_eligible(account: Account | None) -> bool:
    """Active accounts with a positive deposit accrue profit."""
    return account is not None and account.status == "active" and (account.deposit_amount or 0) > 0


def _accrual_date(now: datetime) -> date:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


async def already_accrued(db: AsyncSession, account_id: int, accrual_date: date) -> bool:
    result = await db.execute(
        select(ProfitLog.id).where(ProfitLog.user_id == account_id, ProfitLog.accrual_date == accrual_date)
    )
    return result.first() is not None


async def accrue_profit(
    db: AsyncSession,
    account: Account,
    *,
    rate: Decimal | None = None,
    now: datetime | None = None,
) -> AccrualResult:
    """
    Credit one day of profit to ``account``.

    Flushes but does not commit.

    Raises:
        UserIneligible: The account is blocked or has no deposit.
        AccrualAlreadyApplied: Profit was already credited for this UTC date.
    """
    if not is_eligible(account):
        msg = "User is not eligible for profit accrual"
        raise UserIneligible(msg)

    rate = get_settings().profit_rate if rate is None else rate
    now = now or datetime.now(timezone.utc)
    accrual_date = _accrual_date(now)

    if await already_accrued(db, account.id, accrual_date):
        msg = f"Profit already credited for {accrual_date.isoformat()}"
        raise AccrualAlreadyApplied(msg)

    deposit = account.deposit_amount
    profit = (deposit * rate).quantize(_QUANTUM)

    db.add(
        ProfitLog(
            user_id=account.id,
            amount=profit,
            deposit_amount=deposit,
            profit_rate=rate,
            accrual_date=accrual_date,
            date=now,
        )
    )
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with another accrual for the same day.
        msg = f"Profit already credited for {accrual_date.isoformat()}"
        raise AccrualAlreadyApplied(msg) from e

    await mutate_balance(
        db,
        account,
        profit_delta=profit,
        message=f"Daily profit of ${profit:.2f} has been credited to your account",
        type_="profit",
    )
    logger.info(
        "profit_accrued",
        account_id=account.id,
        profit=str(profit),
        deposit_amount=str(deposit),
        accrual_date=accrual_date.isoformat(),
    )
    return AccrualResult(profit_amount=profit, new_total_amount=account.total_amount)


async def accrue_profit_for_account(
    db: AsyncSession,
    account_id: int,
    *,
    now: datetime | None = None,
) -> AccrualResult:
    """
    On-demand accrual for a single account.

    Raises:
        NotFound: No such account.
        UserIneligible: The account is blocked or has no deposit.
        AccrualAlreadyApplied: Already credited today.
    """
    account = await db.get(Account, account_id)
    if account is None:
        msg = "User not found"
        raise NotFound(msg)
    return await accrue_profit(db, account, now=now)


async def _eligible_account_ids(db: AsyncSession) -> list[int]:
    result = await db.execute(
        select(Account.id)
        .where(Account.status == "active", Account.deposit_amount > 0)
        .order_by(Account.id)
    )
    return list(result.scalars().all())


async def run_daily_accrual(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    now: datetime | None = None,
) -> AccrualSummary:
    """
    Accrue profit for every eligible account.

    Each account is processed in its own session and transaction so that a
    failure only affects that account. Accounts already credited for the day,
    or no longer eligible when reached, are skipped. Other errors are logged
    and counted; the batch carries on.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    summary = AccrualSummary(accrual_date=_accrual_date(now))

    async with session_factory() as db:
        account_ids = await _eligible_account_ids(db)

    logger.info("accrual_batch_started", accounts=len(account_ids), accrual_date=summary.accrual_date.isoformat())

    for account_id in account_ids:
        async with session_factory() as db:
            try:
                account = await db.get(Account, account_id)
                if not is_eligible(account):
                    summary.skipped += 1
                    continue
                result = await accrue_profit(db, account, rate=settings.profit_rate, now=now)
                await db.commit()
            except AccrualAlreadyApplied:
                await db.rollback()
                summary.skipped += 1
                logger.info("accrual_account_skipped", account_id=account_id, reason="already_accrued")
            except Exception:
                await db.rollback()
                summary.failed += 1
                logger.exception("accrual_account_failed", account_id=account_id)
            else:
                summary.credited += 1
                summary.total_profit += result.profit_amount

    async with session_factory() as db:
        await create_notification(
            db,
            None,
            (
                f"Daily profit accrual for {summary.accrual_date.isoformat()}: "
                f"{summary.credited} credited, {summary.skipped} skipped, {summary.failed} failed, "
                f"total ${summary.total_profit:.2f}"
            ),
            "general",
        )
        await db.commit()

    logger.info(
        "accrual_batch_complete",
        accrual_date=summary.accrual_date.isoformat(),
        credited=summary.credited,
        skipped=summary.skipped,
        failed=summary.failed,
        total_profit=str(summary.total_profit),
    )
    return summary
