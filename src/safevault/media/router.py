"""Media endpoints: direct base64 upload and client-side upload credentials."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from safevault.auth.dependencies import get_current_account
from safevault.config import get_settings
from safevault.db.models import Account
from safevault.exceptions import ValidationError
from safevault.media.service import MediaHost, get_media_host, validate_image

router = APIRouter(prefix="/api/v1/media", tags=["Media"])


class UploadRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Base64-encoded image bytes")
    file_name: str = Field(..., min_length=1, max_length=255)
    folder: str = Field("deposit-proofs", pattern=r"^[a-zA-Z0-9_-]{1,64}$")


class UploadResponse(BaseModel):
    url: str
    message: str = "Image uploaded successfully"


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    body: UploadRequest,
    _account: Account = Depends(get_current_account),
    media: MediaHost = Depends(get_media_host),
) -> UploadResponse:
    """Upload a base64-encoded image and return its URL."""
    try:
        content = base64.b64decode(body.image, validate=True)
    except (binascii.Error, ValueError) as e:
        msg = "Image must be valid base64"
        raise ValidationError(msg) from e

    validate_image(body.file_name, None, len(content), get_settings().max_deposit_image_bytes)
    url = await media.upload(content, body.file_name, body.folder)
    return UploadResponse(url=url)


@router.get("/auth")
async def authentication_parameters(
    _account: Account = Depends(get_current_account),
    media: MediaHost = Depends(get_media_host),
) -> dict[str, Any]:
    """Authentication parameters for client-side uploads."""
    return media.authentication_parameters()
