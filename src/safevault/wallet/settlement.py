"""Settlement of deposit and withdrawal requests.

Ledger entries only ever move ``pending -> approved`` or
``pending -> rejected``. A settled entry is final. Entries carry an
optimistic ``version``, so an admin acting on a stale copy of an entry
that someone else already settled gets ``StateConflict`` on flush.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.orm.exc import StaleDataError

from safevault.exceptions import StateConflict, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from safevault.db.models import Deposit, Withdrawal

logger = structlog.get_logger()

SETTLED_STATUSES = ("approved", "rejected")


def ensure_pending(entry: Deposit | Withdrawal) -> None:
    """Raise StateConflict unless ``entry`` is still pending."""
    if entry.status != "pending":
        msg = f"{type(entry).__name__} has already been {entry.status}"
        raise StateConflict(msg)


def settle(entry: Deposit | Withdrawal, status: str, admin_notes: str | None = None) -> None:
    """Move a pending entry to ``status``.

    Raises:
        ValidationError: ``status`` is not a settled status.
        StateConflict: The entry was already settled.
    """
    if status not in SETTLED_STATUSES:
        msg = f"Invalid settlement status: {status}"
        raise ValidationError(msg)
    ensure_pending(entry)

    entry.status = status
    if admin_notes is not None:
        entry.admin_notes = admin_notes


async def flush_settlement(db: AsyncSession, entry: Deposit | Withdrawal) -> None:
    """Flush a settled entry, turning a lost version race into StateConflict."""
    try:
        await db.flush()
    except StaleDataError as e:
        logger.warning("settlement_conflict", entry=type(entry).__name__, entry_id=entry.id)
        msg = f"{type(entry).__name__} was settled concurrently. Reload and retry."
        raise StateConflict(msg) from e
