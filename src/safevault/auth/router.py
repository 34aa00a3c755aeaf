"""Authentication router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.dependencies import get_current_account
from safevault.auth.jwt import create_access_token
from safevault.auth.schemas import (
    AccountResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from safevault.auth.service import (
    authenticate,
    authenticate_admin,
    change_password,
    register_account,
)
from safevault.config import get_settings
from safevault.database import get_session
from safevault.db.models import Account

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _token_response(account: Account, message: str) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        message=message,
        access_token=create_access_token(account.id, account.role),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=AccountResponse.from_account(account),
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> RegisterResponse:
    """Register a new account. A token is only issued when no approval is pending."""
    account = await register_account(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
    )
    await db.commit()

    if account.account_status == "approved":
        return RegisterResponse(
            message="Registration successful",
            user=AccountResponse.from_account(account),
            access_token=create_access_token(account.id, account.role),
        )
    return RegisterResponse(
        message="Registration successful. Your account is pending admin approval.",
        user=AccountResponse.from_account(account),
        requires_approval=True,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login with email + password."""
    account = await authenticate(db, body.email, body.password)
    await db.commit()
    return _token_response(account, "Login successful")


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login restricted to admin accounts."""
    account = await authenticate_admin(db, body.email, body.password)
    return _token_response(account, "Admin login successful")


@router.post("/verify", response_model=AccountResponse)
async def verify(account: Account = Depends(get_current_account)) -> AccountResponse:
    """Return the account behind the bearer token."""
    return AccountResponse.from_account(account)


@router.put("/change-password", response_model=MessageResponse)
async def change_password_endpoint(
    body: ChangePasswordRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Change password (requires the current password)."""
    await change_password(db, account, body.old_password, body.new_password)
    await db.commit()
    return MessageResponse(detail="Password changed successfully")
