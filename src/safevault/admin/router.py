"""Admin router: all /api/v1/admin/* endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.admin.schemas import (
    AccountAccrualResponse,
    AccountActionResponse,
    AccrualRunResponse,
    AdminDepositListResponse,
    AdminDepositResponse,
    AdminWithdrawalListResponse,
    AdminWithdrawalResponse,
    BalanceOverrideRequest,
    BalanceOverrideResponse,
    DashboardStats,
    Owner,
    PasswordResetResponse,
    PlatformSettingsResponse,
    RejectAccountRequest,
    SchedulerJob,
    SchedulerStatusResponse,
    SettleRequest,
    SummaryReport,
    UserDetailResponse,
    UserListResponse,
    UserSummary,
    WalletAddressRequest,
)
from safevault.admin.service import (
    account_activity,
    approve_account,
    dashboard_stats,
    get_account_or_404,
    list_accounts,
    platform_settings,
    reject_account,
    reset_password,
    send_notification,
    set_account_blocked,
    set_deposit_wallet_address,
    summary_report,
)
from safevault.auth.dependencies import get_current_admin
from safevault.auth.schemas import AccountResponse, ProfileUpdateRequest
from safevault.database import get_session, get_session_factory
from safevault.db.models import Account
from safevault.deposits.service import approve_deposit, list_deposits, reject_deposit
from safevault.notifications.schemas import (
    NotificationListResponse,
    NotificationResponse,
    SendNotificationRequest,
)
from safevault.notifications.service import (
    get_admin_unread_count,
    list_admin_notifications,
    mark_admin_read,
    mark_all_admin_read,
)
from safevault.profits.scheduler import AccrualScheduler
from safevault.profits.service import AccrualSummary, accrue_profit_for_account, run_daily_accrual
from safevault.users.service import update_profile
from safevault.wallet.balance import set_deposit_amount
from safevault.withdrawals.service import approve_withdrawal, list_withdrawals, reject_withdrawal

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])

LedgerStatus = Literal["pending", "approved", "rejected"]


async def _owners(db: AsyncSession, user_ids: set[int]) -> dict[int, Owner]:
    """Owner summaries for a page of ledger entries, in one query."""
    if not user_ids:
        return {}
    result = await db.execute(select(Account).where(Account.id.in_(user_ids)))
    return {a.id: Owner(id=a.id, email=a.email, full_name=a.full_name) for a in result.scalars().all()}


def _run_response(summary: AccrualSummary) -> AccrualRunResponse:
    return AccrualRunResponse(
        accrual_date=summary.accrual_date,
        credited=summary.credited,
        skipped=summary.skipped,
        failed=summary.failed,
        total_profit=float(summary.total_profit),
    )


def _scheduler(request: Request) -> AccrualScheduler | None:
    return getattr(request.app.state, "accrual_scheduler", None)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.get("/dashboard-stats", response_model=DashboardStats)
async def get_dashboard_stats(
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> DashboardStats:
    return DashboardStats(**await dashboard_stats(db))


@router.get("/reports/summary", response_model=SummaryReport)
async def get_summary_report(
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> SummaryReport:
    return SummaryReport(**await summary_report(db))


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


@router.get("/deposits", response_model=AdminDepositListResponse)
async def get_deposits(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: LedgerStatus | None = Query(None),
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminDepositListResponse:
    """All deposit requests, newest first."""
    deposits, pagination = await list_deposits(db, None, page, limit, status)
    owners = await _owners(db, {d.user_id for d in deposits})
    items = []
    for deposit in deposits:
        item = AdminDepositResponse.from_model(deposit)
        item.user = owners.get(deposit.user_id)
        items.append(item)
    return AdminDepositListResponse(deposits=items, pagination=pagination)


@router.put("/deposits/{deposit_id}/approve", response_model=AdminDepositResponse)
async def approve_deposit_endpoint(
    deposit_id: int,
    body: SettleRequest | None = None,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminDepositResponse:
    """Approve a pending deposit and credit the account."""
    deposit = await approve_deposit(db, deposit_id, body.admin_notes if body else None)
    await db.commit()
    return AdminDepositResponse.from_model(deposit)


@router.put("/deposits/{deposit_id}/reject", response_model=AdminDepositResponse)
async def reject_deposit_endpoint(
    deposit_id: int,
    body: SettleRequest | None = None,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminDepositResponse:
    deposit = await reject_deposit(db, deposit_id, body.admin_notes if body else None)
    await db.commit()
    return AdminDepositResponse.from_model(deposit)


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


@router.get("/withdrawals", response_model=AdminWithdrawalListResponse)
async def get_withdrawals(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: LedgerStatus | None = Query(None),
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminWithdrawalListResponse:
    """All withdrawal requests, newest first."""
    withdrawals, pagination = await list_withdrawals(db, None, page, limit, status)
    owners = await _owners(db, {w.user_id for w in withdrawals})
    items = []
    for withdrawal in withdrawals:
        item = AdminWithdrawalResponse.from_model(withdrawal)
        item.user = owners.get(withdrawal.user_id)
        items.append(item)
    return AdminWithdrawalListResponse(withdrawals=items, pagination=pagination)


@router.put("/withdrawals/{withdrawal_id}/approve", response_model=AdminWithdrawalResponse)
async def approve_withdrawal_endpoint(
    withdrawal_id: int,
    body: SettleRequest | None = None,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminWithdrawalResponse:
    """Approve a pending withdrawal and debit the account (profit first)."""
    withdrawal = await approve_withdrawal(db, withdrawal_id, body.admin_notes if body else None)
    await db.commit()
    return AdminWithdrawalResponse.from_model(withdrawal)


@router.put("/withdrawals/{withdrawal_id}/reject", response_model=AdminWithdrawalResponse)
async def reject_withdrawal_endpoint(
    withdrawal_id: int,
    body: SettleRequest | None = None,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AdminWithdrawalResponse:
    withdrawal = await reject_withdrawal(db, withdrawal_id, body.admin_notes if body else None)
    await db.commit()
    return AdminWithdrawalResponse.from_model(withdrawal)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
async def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    status: str | None = Query(None),
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """Search accounts by name or email."""
    accounts, pagination = await list_accounts(db, page, limit, search, status)
    return UserListResponse(users=[UserSummary.from_account(a) for a in accounts], pagination=pagination)


@router.get("/pending-users", response_model=UserListResponse)
async def get_pending_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """Registrations waiting for approval."""
    accounts, pagination = await list_accounts(db, page, limit, status="pending")
    return UserListResponse(users=[UserSummary.from_account(a) for a in accounts], pagination=pagination)


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> UserDetailResponse:
    account = await get_account_or_404(db, user_id)
    activity = await account_activity(db, user_id)
    return UserDetailResponse(
        **UserSummary.from_account(account).model_dump(),
        profile_image=account.profile_image,
        **activity,
    )


@router.put("/users/{user_id}/block", response_model=AccountActionResponse)
async def block_user(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountActionResponse:
    account = await set_account_blocked(db, user_id, blocked=True)
    await db.commit()
    return AccountActionResponse(message="User blocked successfully", user=UserSummary.from_account(account))


@router.put("/users/{user_id}/unblock", response_model=AccountActionResponse)
async def unblock_user(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountActionResponse:
    account = await set_account_blocked(db, user_id, blocked=False)
    await db.commit()
    return AccountActionResponse(message="User unblocked successfully", user=UserSummary.from_account(account))


@router.put("/users/{user_id}/reset-password", response_model=PasswordResetResponse)
async def reset_user_password(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> PasswordResetResponse:
    """Generate a temporary password. It is shown only in this response."""
    _account, temporary = await reset_password(db, user_id)
    await db.commit()
    return PasswordResetResponse(message="Password reset successfully", temporary_password=temporary)


@router.put("/users/{user_id}/approve", response_model=AccountActionResponse)
async def approve_user(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountActionResponse:
    account = await approve_account(db, user_id)
    await db.commit()
    return AccountActionResponse(
        message="User account approved successfully",
        user=UserSummary.from_account(account),
    )


@router.put("/users/{user_id}/reject", response_model=AccountActionResponse)
async def reject_user(
    user_id: int,
    body: RejectAccountRequest,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountActionResponse:
    account = await reject_account(db, user_id, body.reason)
    await db.commit()
    return AccountActionResponse(
        message="User account rejected successfully",
        user=UserSummary.from_account(account),
    )


@router.put("/users/{user_id}/balance", response_model=BalanceOverrideResponse)
async def override_balance(
    user_id: int,
    body: BalanceOverrideRequest,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> BalanceOverrideResponse:
    """Set the deposit component of an account's balance."""
    account = await get_account_or_404(db, user_id)
    previous = account.deposit_amount
    await set_deposit_amount(db, account, body.new_balance, body.reason)
    await db.commit()
    return BalanceOverrideResponse(
        message="User balance updated successfully",
        user=UserSummary.from_account(account),
        previous_deposit_amount=float(previous),
    )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@router.get("/notifications", response_model=NotificationListResponse)
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Literal["read", "unread"] | None = Query(None),
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """Every notification in the system, filtered on the admin read flag."""
    notifications, pagination = await list_admin_notifications(db, page, limit, status)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        pagination=pagination,
        unread_count=await get_admin_unread_count(db),
    )


@router.post("/notifications", status_code=201)
async def post_notification(
    body: SendNotificationRequest,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    await send_notification(db, body.user_id, body.message, body.type, body.action_url)
    await db.commit()
    return {"detail": "Notification sent successfully"}


@router.put("/notifications/read-all")
async def mark_all_notifications_read(
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str | int]:
    count = await mark_all_admin_read(db)
    await db.commit()
    return {"detail": f"Marked {count} notifications as read", "updated": count}


@router.put("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    changed = await mark_admin_read(db, notification_id)
    if not changed:
        return {"detail": "Notification already read"}
    await db.commit()
    return {"detail": "Notification marked as read"}


# ---------------------------------------------------------------------------
# Settings and profile
# ---------------------------------------------------------------------------


@router.get("/settings", response_model=PlatformSettingsResponse)
async def get_platform_settings(
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> PlatformSettingsResponse:
    return PlatformSettingsResponse(**await platform_settings(db))


@router.put("/settings/wallet-address")
async def update_wallet_address(
    body: WalletAddressRequest,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    address = await set_deposit_wallet_address(db, body.address)
    await db.commit()
    return {"detail": "Wallet address updated successfully", "wallet_address": address}


@router.get("/profile", response_model=AccountResponse)
async def get_admin_profile(admin: Account = Depends(get_current_admin)) -> AccountResponse:
    return AccountResponse.from_account(admin)


@router.put("/profile", response_model=AccountResponse)
async def update_admin_profile(
    body: ProfileUpdateRequest,
    admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountResponse:
    await update_profile(
        db,
        admin,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
    )
    await db.commit()
    return AccountResponse.from_account(admin)


# ---------------------------------------------------------------------------
# Profit accrual
# ---------------------------------------------------------------------------


@router.post("/profits/run", response_model=AccrualRunResponse)
async def run_accrual_now(
    request: Request,
    _admin: Account = Depends(get_current_admin),
) -> AccrualRunResponse:
    """Run the daily accrual batch immediately. Accounts already credited today are skipped."""
    scheduler = _scheduler(request)
    if scheduler is not None:
        summary = await scheduler.run_now()
    else:
        summary = await run_daily_accrual(get_session_factory())
    return _run_response(summary)


@router.post("/profits/accounts/{user_id}", response_model=AccountAccrualResponse)
async def accrue_for_account(
    user_id: int,
    _admin: Account = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> AccountAccrualResponse:
    """Credit today's profit to a single account."""
    result = await accrue_profit_for_account(db, user_id)
    await db.commit()
    return AccountAccrualResponse(
        message="Profit credited successfully",
        profit_amount=float(result.profit_amount),
        new_total_amount=float(result.new_total_amount),
    )


@router.get("/profits/scheduler", response_model=SchedulerStatusResponse)
async def scheduler_status(
    request: Request,
    _admin: Account = Depends(get_current_admin),
) -> SchedulerStatusResponse:
    scheduler = _scheduler(request)
    if scheduler is None:
        return SchedulerStatusResponse(enabled=False, running=False)

    status = scheduler.status()
    return SchedulerStatusResponse(
        enabled=True,
        running=status.running,
        next_run_time=status.next_run_time,
        jobs=[SchedulerJob(**job) for job in status.jobs],
        last_run=_run_response(scheduler.last_summary) if scheduler.last_summary else None,
    )
