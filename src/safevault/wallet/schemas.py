"""Response schemas for the wallet and ledger entries."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from safevault.db.models import Deposit, ProfitLog, Withdrawal
from safevault.pagination import Pagination


class DepositResponse(BaseModel):
    id: int
    user_id: int
    amount: float
    status: str
    screenshot_url: str
    admin_notes: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, deposit: Deposit) -> DepositResponse:
        return cls(
            id=deposit.id,
            user_id=deposit.user_id,
            amount=float(deposit.amount),
            status=deposit.status,
            screenshot_url=deposit.screenshot_url,
            admin_notes=deposit.admin_notes,
            created_at=deposit.created_at,
            updated_at=deposit.updated_at,
        )


class WithdrawalResponse(BaseModel):
    id: int
    user_id: int
    amount: float
    platform: str
    wallet_address: str
    status: str
    admin_notes: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, withdrawal: Withdrawal) -> WithdrawalResponse:
        return cls(
            id=withdrawal.id,
            user_id=withdrawal.user_id,
            amount=float(withdrawal.amount),
            platform=withdrawal.platform,
            wallet_address=withdrawal.wallet_address,
            status=withdrawal.status,
            admin_notes=withdrawal.admin_notes,
            created_at=withdrawal.created_at,
            updated_at=withdrawal.updated_at,
        )


class ProfitLogResponse(BaseModel):
    id: int
    amount: float
    deposit_amount: float
    profit_rate: float
    accrual_date: str
    date: datetime

    @classmethod
    def from_model(cls, log: ProfitLog) -> ProfitLogResponse:
        return cls(
            id=log.id,
            amount=float(log.amount),
            deposit_amount=float(log.deposit_amount),
            profit_rate=float(log.profit_rate),
            accrual_date=log.accrual_date.isoformat(),
            date=log.date,
        )


class DepositListResponse(BaseModel):
    deposits: list[DepositResponse]
    pagination: Pagination


class WithdrawalListResponse(BaseModel):
    withdrawals: list[WithdrawalResponse]
    pagination: Pagination


class ProfitListResponse(BaseModel):
    profits: list[ProfitLogResponse]
    pagination: Pagination


class Balance(BaseModel):
    deposit: float
    profit: float
    total: float


class WalletResponse(BaseModel):
    balance: Balance
    last_updated: datetime | None = None


class TransactionItem(BaseModel):
    """One row of the merged transaction history."""

    id: int
    type: str
    amount: float
    status: str
    date: datetime
    details: dict[str, str | float | None]


class TransactionListResponse(BaseModel):
    transactions: list[TransactionItem]
    pagination: Pagination
