"""Wallet endpoints: balance and transaction history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.admin.service import get_deposit_wallet_address
from safevault.auth.dependencies import get_current_account
from safevault.database import get_session
from safevault.db.models import Account
from safevault.deposits.service import list_deposits
from safevault.wallet.schemas import (
    DepositListResponse,
    DepositResponse,
    ProfitListResponse,
    ProfitLogResponse,
    TransactionListResponse,
    WalletResponse,
    WithdrawalListResponse,
    WithdrawalResponse,
)
from safevault.wallet.service import profit_history, transaction_history, wallet_view
from safevault.withdrawals.service import list_withdrawals

router = APIRouter(prefix="/api/v1/wallet", tags=["Wallet"])


@router.get("", response_model=WalletResponse)
async def get_wallet(account: Account = Depends(get_current_account)) -> WalletResponse:
    """Current balance split into deposit and profit."""
    return wallet_view(account)


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """All ledger activity, newest first."""
    items, pagination = await transaction_history(db, account.id, page, limit)
    return TransactionListResponse(transactions=items, pagination=pagination)


@router.get("/transactions/deposits", response_model=DepositListResponse)
async def get_deposit_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> DepositListResponse:
    deposits, pagination = await list_deposits(db, account.id, page, limit)
    return DepositListResponse(deposits=[DepositResponse.from_model(d) for d in deposits], pagination=pagination)


@router.get("/transactions/withdrawals", response_model=WithdrawalListResponse)
async def get_withdrawal_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> WithdrawalListResponse:
    withdrawals, pagination = await list_withdrawals(db, account.id, page, limit)
    return WithdrawalListResponse(
        withdrawals=[WithdrawalResponse.from_model(w) for w in withdrawals],
        pagination=pagination,
    )


@router.get("/transactions/profits", response_model=ProfitListResponse)
async def get_profit_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> ProfitListResponse:
    logs, pagination = await profit_history(db, account.id, page, limit)
    return ProfitListResponse(profits=[ProfitLogResponse.from_model(p) for p in logs], pagination=pagination)


@router.get("/deposit-address")
async def get_deposit_address(
    _account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Platform wallet address that deposits should be sent to."""
    return {"wallet_address": await get_deposit_wallet_address(db)}
