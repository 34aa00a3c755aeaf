"""Withdrawal endpoints for the account owner."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.dependencies import get_current_account
from safevault.database import get_session
from safevault.db.models import Account
from safevault.wallet.schemas import WithdrawalListResponse, WithdrawalResponse
from safevault.withdrawals.service import create_withdrawal, get_withdrawal, list_withdrawals

router = APIRouter(prefix="/api/v1/withdrawals", tags=["Withdrawals"])


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)
    platform: Literal["Binance", "Trust Wallet", "Other"]
    wallet_address: str = Field(..., min_length=10, max_length=256)

    @field_validator("wallet_address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            msg = "Wallet address must be at least 10 characters"
            raise ValueError(msg)
        return v


class WithdrawalCreatedResponse(BaseModel):
    message: str
    withdrawal: WithdrawalResponse


@router.post("", response_model=WithdrawalCreatedResponse, status_code=201)
async def request_withdrawal(
    body: WithdrawalRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> WithdrawalCreatedResponse:
    """Request a payout. Refused outright when the balance does not cover it."""
    withdrawal = await create_withdrawal(db, account, body.amount, body.platform, body.wallet_address)
    await db.commit()
    return WithdrawalCreatedResponse(
        message="Withdrawal request submitted successfully",
        withdrawal=WithdrawalResponse.from_model(withdrawal),
    )


@router.get("", response_model=WithdrawalListResponse)
async def withdrawal_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> WithdrawalListResponse:
    """The caller's withdrawals, newest first."""
    withdrawals, pagination = await list_withdrawals(db, account.id, page, limit)
    return WithdrawalListResponse(
        withdrawals=[WithdrawalResponse.from_model(w) for w in withdrawals],
        pagination=pagination,
    )


@router.get("/{withdrawal_id}", response_model=WithdrawalResponse)
async def withdrawal_detail(
    withdrawal_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> WithdrawalResponse:
    withdrawal = await get_withdrawal(db, withdrawal_id, user_id=account.id)
    return WithdrawalResponse.from_model(withdrawal)
