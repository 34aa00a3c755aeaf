"""ORM models for accounts, the ledger and the notification inbox.

Accounts are the root entities. Deposits, withdrawals, profit logs and
notifications each belong to exactly one account (admin-only system
notifications carry no owner).
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safevault.db.base import Base, BigIntPK, Money, utcnow

ACCOUNT_STATUSES = ("active", "blocked")
APPROVAL_STATUSES = ("pending", "approved", "rejected")
ROLES = ("user", "admin")
LEDGER_STATUSES = ("pending", "approved", "rejected")
WITHDRAWAL_PLATFORMS = ("Binance", "Trust Wallet", "Other")
NOTIFICATION_TYPES = (
    "deposit",
    "withdrawal",
    "profit",
    "general",
    "balance_increase",
    "balance_decrease",
    "balance_adjustment",
)
READ_FLAGS = ("read", "unread")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class Account(Base):
    """Registered user or admin with running balances.

    ``total_amount`` always equals ``deposit_amount + profit_amount`` once a
    mutation settles; see ``safevault.wallet.balance``. ``version`` is an
    optimistic revision counter checked on every UPDATE.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    deposit_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    profit_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    account_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}  # noqa: RUF012

    deposits: Mapped[list[Deposit]] = relationship("Deposit", back_populates="account")
    withdrawals: Mapped[list[Withdrawal]] = relationship("Withdrawal", back_populates="account")
    profit_logs: Mapped[list[ProfitLog]] = relationship("ProfitLog", back_populates="account")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class Deposit(Base):
    """User-submitted deposit awaiting admin settlement.

    ``version`` guards settlement: two admins acting on the same pending
    entry cannot both win.
    """

    __tablename__ = "deposits"
    __table_args__ = (Index("idx_deposits_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    screenshot_url: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    admin_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}  # noqa: RUF012

    account: Mapped[Account] = relationship("Account", back_populates="deposits")


class Withdrawal(Base):
    """User-requested payout to an external wallet, awaiting admin settlement.

    ``version`` guards settlement the same way as on ``Deposit``.
    """

    __tablename__ = "withdrawals"
    __table_args__ = (Index("idx_withdrawals_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(256), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    admin_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}  # noqa: RUF012

    account: Mapped[Account] = relationship("Account", back_populates="withdrawals")


class ProfitLog(Base):
    """Settled profit credit. At most one per account per accrual date."""

    __tablename__ = "profit_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "accrual_date", name="uq_profit_logs_user_date"),
        Index("idx_profit_logs_user_date", "user_id", "date"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    profit_rate: Mapped[Decimal] = mapped_column(Money, nullable=False)
    accrual_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    account: Mapped[Account] = relationship("Account", back_populates="profit_logs")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Inbox entry with independent read flags for the owner and for admins."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_user_status", "user_id", "user_status", "created_at"),
        Index("idx_notifications_admin_status", "admin_status", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True
    )
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    user_status: Mapped[str] = mapped_column(String(8), nullable=False, default="unread")
    admin_status: Mapped[str] = mapped_column(String(8), nullable=False, default="unread")
    action_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Platform settings
# ---------------------------------------------------------------------------


class PlatformSetting(Base):
    """Admin-editable key/value settings (e.g. the deposit wallet address)."""

    __tablename__ = "platform_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
