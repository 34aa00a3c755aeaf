"""Wallet read model: balance view and transaction history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select

from safevault.db.models import Account, Deposit, ProfitLog, Withdrawal
from safevault.pagination import Pagination, build_pagination, paginate
from safevault.wallet.schemas import Balance, TransactionItem, WalletResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def wallet_view(account: Account) -> WalletResponse:
    return WalletResponse(
        balance=Balance(
            deposit=float(account.deposit_amount),
            profit=float(account.profit_amount),
            total=float(account.total_amount),
        ),
        last_updated=account.updated_at,
    )


def _sort_key(item: TransactionItem) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC so they compare.
    if item.date.tzinfo is None:
        return item.date.replace(tzinfo=timezone.utc)
    return item.date


async def transaction_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[TransactionItem], Pagination]:
    """Deposits, withdrawals and profit credits merged into one list, newest first."""
    deposits = (await db.execute(select(Deposit).where(Deposit.user_id == user_id))).scalars().all()
    withdrawals = (await db.execute(select(Withdrawal).where(Withdrawal.user_id == user_id))).scalars().all()
    profits = (await db.execute(select(ProfitLog).where(ProfitLog.user_id == user_id))).scalars().all()

    items = [
        TransactionItem(
            id=d.id,
            type="deposit",
            amount=float(d.amount),
            status=d.status,
            date=d.created_at,
            details={"screenshot_url": d.screenshot_url, "admin_notes": d.admin_notes},
        )
        for d in deposits
    ]
    items += [
        TransactionItem(
            id=w.id,
            type="withdrawal",
            amount=float(w.amount),
            status=w.status,
            date=w.created_at,
            details={"platform": w.platform, "wallet_address": w.wallet_address, "admin_notes": w.admin_notes},
        )
        for w in withdrawals
    ]
    items += [
        TransactionItem(
            id=p.id,
            type="profit",
            amount=float(p.amount),
            status="approved",
            date=p.date,
            details={"deposit_amount": float(p.deposit_amount), "profit_rate": float(p.profit_rate)},
        )
        for p in profits
    ]
    items.sort(key=_sort_key, reverse=True)

    start = (page - 1) * per_page
    return items[start : start + per_page], build_pagination(page, per_page, len(items))


async def profit_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[ProfitLog], Pagination]:
    query = (
        select(ProfitLog)
        .where(ProfitLog.user_id == user_id)
        .order_by(ProfitLog.date.desc(), ProfitLog.id.desc())
    )
    return await paginate(db, query, page, per_page)
