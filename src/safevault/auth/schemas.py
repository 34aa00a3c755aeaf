"""Request/response schemas for authentication and profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from safevault.db.models import Account


def _normalize_email(v: str) -> str:
    return v.lower().strip()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Registration with name, email and password."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Names are trimmed and must not be blank."""
        v = v.strip()
        if not v:
            msg = "Name must not be blank"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class ChangePasswordRequest(BaseModel):
    """Change password (requires current password)."""

    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class ProfileUpdateRequest(BaseModel):
    """Partial profile update. Omitted fields are left unchanged."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        """Normalize email to lowercase."""
        return _normalize_email(v) if v is not None else None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    """Full account view returned to the account owner."""

    id: int
    first_name: str
    last_name: str
    email: str
    profile_image: str | None = None
    deposit_amount: float
    profit_amount: float
    total_amount: float
    status: str
    account_status: str
    role: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_account(cls, account: Account) -> AccountResponse:
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            profile_image=account.profile_image,
            deposit_amount=float(account.deposit_amount),
            profit_amount=float(account.profit_amount),
            total_amount=float(account.total_amount),
            status=account.status,
            account_status=account.account_status,
            role=account.role,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class TokenResponse(BaseModel):
    """Successful login."""

    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse


class RegisterResponse(BaseModel):
    """Registration result. ``access_token`` is only issued to approved accounts."""

    message: str
    user: AccountResponse
    access_token: str | None = None
    requires_approval: bool = False


class MessageResponse(BaseModel):
    detail: str
