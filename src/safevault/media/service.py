"""
Media host with provider abstraction.

Deposit proofs and profile pictures are stored on ImageKit. Without ImageKit
credentials a mock host is used that returns plausible URLs and stores
nothing, which keeps local development and tests offline.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import secrets
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from safevault.config import get_settings
from safevault.exceptions import MediaUploadError, ValidationError

logger = structlog.get_logger()

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
AUTH_PARAMS_TTL_SECONDS = 30 * 60


def validate_image(filename: str, content_type: str | None, size: int, max_bytes: int) -> None:
    """
    Check an uploaded image's type and size.

    Raises:
        ValidationError: Unsupported type, empty file or file too large.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS or (content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES):
        msg = "Only image files are allowed (jpeg, jpg, png, gif)"
        raise ValidationError(msg)
    if size == 0:
        msg = "Uploaded file is empty"
        raise ValidationError(msg)
    if size > max_bytes:
        msg = f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB"
        raise ValidationError(msg)


def _unique_name(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


class MediaHost(ABC):
    """Abstract base class for image hosts."""

    @abstractmethod
    async def upload(self, content: bytes, filename: str, folder: str) -> str:
        """Store an image and return its public URL."""
        ...

    @abstractmethod
    def authentication_parameters(self) -> dict[str, Any]:
        """Parameters a browser needs to upload directly to the host."""
        ...


class ImageKitHost(MediaHost):
    """Upload images through the ImageKit REST API using httpx."""

    def __init__(self, public_key: str, private_key: str, url_endpoint: str) -> None:
        self.public_key = public_key
        self.private_key = private_key
        self.url_endpoint = url_endpoint

    async def upload(self, content: bytes, filename: str, folder: str) -> str:
        """Upload via ImageKit. Raises MediaUploadError on any failure."""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    IMAGEKIT_UPLOAD_URL,
                    auth=(self.private_key, ""),
                    files={"file": (filename, content)},
                    data={
                        "fileName": _unique_name(filename),
                        "folder": folder,
                        "useUniqueFileName": "true",
                        "responseFields": "url,fileId,name",
                    },
                    timeout=30.0,
                )
                response.raise_for_status()
                url: str = response.json()["url"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.exception("media_upload_failed", folder=folder, provider="imagekit")
            msg = "Failed to upload image"
            raise MediaUploadError(msg) from e

        logger.info("media_uploaded", folder=folder, provider="imagekit", url=url)
        return url

    def authentication_parameters(self) -> dict[str, Any]:
        """Token, expiry and HMAC-SHA1 signature for client-side uploads."""
        token = str(uuid.uuid4())
        expire = int(time.time()) + AUTH_PARAMS_TTL_SECONDS
        signature = hmac.new(
            self.private_key.encode(),
            f"{token}{expire}".encode(),
            hashlib.sha1,
        ).hexdigest()
        return {"token": token, "expire": expire, "signature": signature, "public_key": self.public_key}


class MockMediaHost(MediaHost):
    """Development host: returns mock URLs and stores nothing."""

    base_url = "https://ik.imagekit.io/mock-id"

    async def upload(self, content: bytes, filename: str, folder: str) -> str:
        url = f"{self.base_url}/{folder}/{_unique_name(filename)}"
        logger.info("media_uploaded", folder=folder, provider="mock", size=len(content), url=url)
        return url

    def authentication_parameters(self) -> dict[str, Any]:
        return {
            "token": "mock-token",
            "expire": int(time.time()) + AUTH_PARAMS_TTL_SECONDS,
            "signature": "mock-signature",
            "public_key": "public_placeholder",
        }


def get_media_host() -> MediaHost:
    """Create the media host from configuration (FastAPI dependency)."""
    settings = get_settings()
    if settings.imagekit_public_key and settings.imagekit_private_key:
        return ImageKitHost(
            public_key=settings.imagekit_public_key,
            private_key=settings.imagekit_private_key,
            url_endpoint=settings.imagekit_url_endpoint,
        )
    return MockMediaHost()
