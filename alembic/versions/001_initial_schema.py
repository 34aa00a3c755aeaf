"""Initial schema: accounts, ledger, profit logs, notifications, settings.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

MONEY = sa.Numeric(20, 8)


def upgrade() -> None:
    """Create all tables."""
    # --- accounts ---
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("profile_image", sa.Text(), nullable=True),
        sa.Column("deposit_amount", MONEY, server_default="0", nullable=False),
        sa.Column("profit_amount", MONEY, server_default="0", nullable=False),
        sa.Column("total_amount", MONEY, server_default="0", nullable=False),
        sa.Column("status", sa.String(16), server_default="active", nullable=False),
        sa.Column("account_status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)
    op.execute(
        "ALTER TABLE accounts ADD CONSTRAINT ck_accounts_status "
        "CHECK (status IN ('active', 'blocked'))"
    )
    op.execute(
        "ALTER TABLE accounts ADD CONSTRAINT ck_accounts_account_status "
        "CHECK (account_status IN ('pending', 'approved', 'rejected'))"
    )
    op.execute("ALTER TABLE accounts ADD CONSTRAINT ck_accounts_role CHECK (role IN ('user', 'admin'))")
    op.execute(
        "ALTER TABLE accounts ADD CONSTRAINT ck_accounts_balances "
        "CHECK (deposit_amount >= 0 AND profit_amount >= 0 AND total_amount = deposit_amount + profit_amount)"
    )

    # --- deposits ---
    op.create_table(
        "deposits",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("screenshot_url", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("admin_notes", sa.Text(), server_default="", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_deposits_user_created", "deposits", ["user_id", "created_at"])
    op.execute(
        "ALTER TABLE deposits ADD CONSTRAINT ck_deposits_status "
        "CHECK (status IN ('pending', 'approved', 'rejected'))"
    )
    op.execute("ALTER TABLE deposits ADD CONSTRAINT ck_deposits_amount CHECK (amount > 0)")

    # --- withdrawals ---
    op.create_table(
        "withdrawals",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("wallet_address", sa.String(256), nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("admin_notes", sa.Text(), server_default="", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_withdrawals_user_created", "withdrawals", ["user_id", "created_at"])
    op.execute(
        "ALTER TABLE withdrawals ADD CONSTRAINT ck_withdrawals_status "
        "CHECK (status IN ('pending', 'approved', 'rejected'))"
    )
    op.execute(
        "ALTER TABLE withdrawals ADD CONSTRAINT ck_withdrawals_platform "
        "CHECK (platform IN ('Binance', 'Trust Wallet', 'Other'))"
    )
    op.execute("ALTER TABLE withdrawals ADD CONSTRAINT ck_withdrawals_amount CHECK (amount > 0)")

    # --- profit_logs ---
    op.create_table(
        "profit_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("deposit_amount", MONEY, nullable=False),
        sa.Column("profit_rate", MONEY, nullable=False),
        sa.Column("accrual_date", sa.Date(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "accrual_date", name="uq_profit_logs_user_date"),
    )
    op.create_index("idx_profit_logs_user_date", "profit_logs", ["user_id", "date"])
    op.execute("ALTER TABLE profit_logs ADD CONSTRAINT ck_profit_logs_amount CHECK (amount >= 0)")

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("user_status", sa.String(8), server_default="unread", nullable=False),
        sa.Column("admin_status", sa.String(8), server_default="unread", nullable=False),
        sa.Column("action_url", sa.String(256), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_notifications_user_status", "notifications", ["user_id", "user_status", "created_at"])
    op.create_index("idx_notifications_admin_status", "notifications", ["admin_status", "created_at"])
    op.execute(
        "ALTER TABLE notifications ADD CONSTRAINT ck_notifications_type "
        "CHECK (type IN ('deposit', 'withdrawal', 'profit', 'general', "
        "'balance_increase', 'balance_decrease', 'balance_adjustment'))"
    )
    op.execute(
        "ALTER TABLE notifications ADD CONSTRAINT ck_notifications_flags "
        "CHECK (user_status IN ('read', 'unread') AND admin_status IN ('read', 'unread'))"
    )

    # --- platform_settings ---
    op.create_table(
        "platform_settings",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("platform_settings")
    op.drop_table("notifications")
    op.drop_table("profit_logs")
    op.drop_table("withdrawals")
    op.drop_table("deposits")
    op.drop_table("accounts")
