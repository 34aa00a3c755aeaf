"""Admin request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from safevault.db.models import Account
from safevault.pagination import Pagination
from safevault.wallet.schemas import DepositResponse, WithdrawalResponse


class SettleRequest(BaseModel):
    admin_notes: str | None = Field(None, max_length=1000)


class RejectAccountRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=400)


class BalanceOverrideRequest(BaseModel):
    new_balance: Decimal = Field(..., ge=0, max_digits=20, decimal_places=8)
    reason: str = Field(..., min_length=1, max_length=400)


class WalletAddressRequest(BaseModel):
    address: str = Field(..., min_length=10, max_length=256)


class UserSummary(BaseModel):
    """Row of the admin user listing."""

    id: int
    first_name: str
    last_name: str
    email: str
    deposit_amount: float
    profit_amount: float
    total_amount: float
    status: str
    account_status: str
    role: str
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> UserSummary:
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            deposit_amount=float(account.deposit_amount),
            profit_amount=float(account.profit_amount),
            total_amount=float(account.total_amount),
            status=account.status,
            account_status=account.account_status,
            role=account.role,
            created_at=account.created_at,
        )


class UserListResponse(BaseModel):
    users: list[UserSummary]
    pagination: Pagination


class UserDetailResponse(UserSummary):
    profile_image: str | None = None
    deposit_count: int
    withdrawal_count: int
    total_profit_credited: float


class AccountActionResponse(BaseModel):
    message: str
    user: UserSummary


class PasswordResetResponse(BaseModel):
    message: str
    temporary_password: str


class BalanceOverrideResponse(BaseModel):
    message: str
    user: UserSummary
    previous_deposit_amount: float


class DashboardStats(BaseModel):
    total_users: int
    total_deposits: float
    total_withdrawals: float
    pending_deposits: int
    pending_withdrawals: int


class SummaryReport(DashboardStats):
    active_users: int
    blocked_users: int
    pending_accounts: int
    total_profit_credited: float


class PlatformSettingsResponse(BaseModel):
    wallet_address: str
    system_status: str
    maintenance_mode: bool
    profit_rate: float
    minimum_deposit: float
    maximum_withdrawal: float


class AccrualRunResponse(BaseModel):
    accrual_date: date
    credited: int
    skipped: int
    failed: int
    total_profit: float


class AccountAccrualResponse(BaseModel):
    message: str
    profit_amount: float
    new_total_amount: float


class SchedulerJob(BaseModel):
    id: str
    name: str
    next_run_time: datetime | None = None


class SchedulerStatusResponse(BaseModel):
    enabled: bool
    running: bool
    next_run_time: datetime | None = None
    jobs: list[SchedulerJob] = []
    last_run: AccrualRunResponse | None = None


class Owner(BaseModel):
    id: int
    email: str
    full_name: str


class AdminDepositResponse(DepositResponse):
    user: Owner | None = None


class AdminWithdrawalResponse(WithdrawalResponse):
    user: Owner | None = None


class AdminDepositListResponse(BaseModel):
    deposits: list[AdminDepositResponse]
    pagination: Pagination


class AdminWithdrawalListResponse(BaseModel):
    withdrawals: list[AdminWithdrawalResponse]
    pagination: Pagination
