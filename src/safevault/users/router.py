"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from safevault.auth.dependencies import get_current_account
from safevault.auth.schemas import AccountResponse, ProfileUpdateRequest
from safevault.config import get_settings
from safevault.database import get_session
from safevault.db.models import Account
from safevault.media.service import MediaHost, get_media_host, validate_image
from safevault.users.service import set_profile_image, update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


class ProfileImageResponse(BaseModel):
    message: str
    profile_image: str | None


@router.get("/profile", response_model=AccountResponse)
async def get_profile(account: Account = Depends(get_current_account)) -> AccountResponse:
    return AccountResponse.from_account(account)


@router.put("/profile", response_model=AccountResponse)
async def update_profile_endpoint(
    body: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Update name, email or password."""
    await update_profile(
        db,
        account,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
    )
    await db.commit()
    return AccountResponse.from_account(account)


@router.post("/profile-image", response_model=ProfileImageResponse)
async def upload_profile_image(
    image: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    media: MediaHost = Depends(get_media_host),
    db: AsyncSession = Depends(get_session),
) -> ProfileImageResponse:
    """Upload a new profile picture (max 5MB)."""
    content = await image.read()
    validate_image(image.filename or "", image.content_type, len(content), get_settings().max_profile_image_bytes)
    url = await media.upload(content, image.filename or "profile.jpg", "profile-images")

    await set_profile_image(db, account, url)
    await db.commit()
    return ProfileImageResponse(message="Profile image updated successfully", profile_image=url)


@router.delete("/profile-image", response_model=ProfileImageResponse)
async def remove_profile_image(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_session),
) -> ProfileImageResponse:
    """Clear the profile picture. The file itself stays on the media host."""
    await set_profile_image(db, account, None)
    await db.commit()
    return ProfileImageResponse(message="Profile image removed successfully", profile_image=None)
