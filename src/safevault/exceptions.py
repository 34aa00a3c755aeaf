"""Domain error taxonomy.

Every error carries the HTTP status it maps to; the global handler in
``safevault.middleware.error_handler`` renders them as ``{"detail": ...}``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class SafeVaultError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, **extra: Any) -> None:  # noqa: ANN401
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_content(self) -> dict[str, Any]:
        """JSON body for the error response."""
        return {"detail": self.message, **self.extra}


class ValidationError(SafeVaultError):
    """Malformed input that passed schema validation but fails a business rule."""


class AuthError(SafeVaultError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class Forbidden(SafeVaultError):
    """Authenticated but not allowed (blocked, pending, non-admin)."""

    status_code = 403


class NotFound(SafeVaultError):
    """Referenced account, ledger entry or notification does not exist."""

    status_code = 404


class StateConflict(SafeVaultError):
    """Record is not in the status the operation expects, or a concurrent write won."""

    status_code = 409


class AccrualAlreadyApplied(StateConflict):
    """Profit was already credited to the account for this accrual date."""


class InsufficientBalance(SafeVaultError):
    """Requested debit exceeds the available balance."""

    def __init__(self, message: str, available_balance: Decimal) -> None:
        super().__init__(message, available_balance=float(available_balance))
        self.available_balance = available_balance


class UserIneligible(SafeVaultError):
    """Account cannot accrue profit (missing, blocked, or no deposit)."""


class PersistenceError(SafeVaultError):
    """Opaque failure in a lower layer."""

    status_code = 500


class MediaUploadError(PersistenceError):
    """The media host rejected or failed an upload."""

    status_code = 502
