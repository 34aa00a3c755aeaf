"""Deposit endpoints for the account owner."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.dependencies import get_current_account
from safevault.config import get_settings
from safevault.database import get_session
from safevault.db.models import Account
from safevault.deposits.service import create_deposit, get_deposit, list_deposits
from safevault.media.service import MediaHost, get_media_host, validate_image
from safevault.wallet.schemas import DepositListResponse, DepositResponse

router = APIRouter(prefix="/api/v1/deposits", tags=["Deposits"])


class DepositCreatedResponse(BaseModel):
    message: str
    deposit: DepositResponse


@router.post("", response_model=DepositCreatedResponse, status_code=201)
async def submit_deposit(
    amount: Decimal = Form(..., gt=0, max_digits=20, decimal_places=8),
    screenshot: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    media: MediaHost = Depends(get_media_host),
    db: AsyncSession = Depends(get_session),
) -> DepositCreatedResponse:
    """Submit a deposit with a payment screenshot for admin review."""
    content = await screenshot.read()
    validate_image(
        screenshot.filename or "",
        screenshot.content_type,
        len(content),
        get_settings().max_deposit_image_bytes,
    )
    screenshot_url = await media.upload(content, screenshot.filename or "screenshot.jpg", "deposit-proofs")

    deposit = await create_deposit(db, account, amount, screenshot_url)
    await db.commit()
    return DepositCreatedResponse(
        message="Deposit request submitted successfully",
        deposit=DepositResponse.from_model(deposit),
    )


@router.get("", response_model=DepositListResponse)
async def deposit_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> DepositListResponse:
    """The caller's deposits, newest first."""
    deposits, pagination = await list_deposits(db, account.id, page, limit)
    return DepositListResponse(
        deposits=[DepositResponse.from_model(d) for d in deposits],
        pagination=pagination,
    )


@router.get("/{deposit_id}", response_model=DepositResponse)
async def deposit_detail(
    deposit_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> DepositResponse:
    deposit = await get_deposit(db, deposit_id, user_id=account.id)
    return DepositResponse.from_model(deposit)
