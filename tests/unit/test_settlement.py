"""Tests for ledger entry settlement."""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from safevault.db.models import Account, Deposit, Withdrawal
from safevault.deposits.service import approve_deposit, reject_deposit
from safevault.exceptions import StateConflict, ValidationError
from safevault.wallet.settlement import ensure_pending, settle
from safevault.withdrawals.service import approve_withdrawal, reject_withdrawal
from tests.conftest import make_account


def _deposit(status: str = "pending") -> Deposit:
    return Deposit(user_id=1, amount=Decimal("10"), screenshot_url="https://x/y.png", status=status, admin_notes="")


class TestSettle:
    def test_pending_to_approved(self):
        deposit = _deposit()
        settle(deposit, "approved", "looks good")
        assert deposit.status == "approved"
        assert deposit.admin_notes == "looks good"

    def test_pending_to_rejected_keeps_notes_when_none(self):
        withdrawal = Withdrawal(
            user_id=1, amount=Decimal("5"), platform="Binance", wallet_address="x" * 12, status="pending", admin_notes=""
        )
        settle(withdrawal, "rejected")
        assert withdrawal.status == "rejected"
        assert withdrawal.admin_notes == ""

    @pytest.mark.parametrize("current", ["approved", "rejected"])
    @pytest.mark.parametrize("target", ["approved", "rejected"])
    def test_settled_entry_is_final(self, current, target):
        deposit = _deposit(current)
        with pytest.raises(StateConflict):
            settle(deposit, target)
        assert deposit.status == current

    def test_pending_is_not_a_target(self):
        with pytest.raises(ValidationError):
            settle(_deposit(), "pending")

    def test_ensure_pending_message(self):
        with pytest.raises(StateConflict, match="Deposit has already been approved"):
            ensure_pending(_deposit("approved"))


class TestConcurrentSettlement:
    """Two admins holding the same pending entry: only the first settlement lands."""

    @pytest.mark.asyncio
    async def test_stale_reject_after_approve(self, session_factory: async_sessionmaker[AsyncSession]):
        async with session_factory() as setup:
            account = await make_account(setup)
            deposit = Deposit(user_id=account.id, amount=Decimal("100"), screenshot_url="https://x/y.png")
            setup.add(deposit)
            await setup.commit()
            account_id, deposit_id = account.id, deposit.id

        async with session_factory() as first, session_factory() as second:
            stale = await second.get(Deposit, deposit_id)
            assert stale.status == "pending"

            await approve_deposit(first, deposit_id)
            await first.commit()

            with pytest.raises(StateConflict):
                await reject_deposit(second, deposit_id, "duplicate")
            await second.rollback()

        async with session_factory() as check:
            fresh = await check.get(Deposit, deposit_id)
            assert fresh.status == "approved"
            assert fresh.version == 2
            owner = await check.get(Account, account_id)
            assert owner.deposit_amount == Decimal("100")

    @pytest.mark.asyncio
    async def test_stale_approve_after_reject(self, session_factory: async_sessionmaker[AsyncSession]):
        async with session_factory() as setup:
            account = await make_account(setup, deposit="200")
            withdrawal = Withdrawal(
                user_id=account.id, amount=Decimal("50"), platform="Binance", wallet_address="x" * 12
            )
            setup.add(withdrawal)
            await setup.commit()
            account_id, withdrawal_id = account.id, withdrawal.id

        async with session_factory() as first, session_factory() as second:
            await second.get(Withdrawal, withdrawal_id)

            await reject_withdrawal(first, withdrawal_id, "wrong address")
            await first.commit()

            with pytest.raises(StateConflict):
                await approve_withdrawal(second, withdrawal_id)
            await second.rollback()

        async with session_factory() as check:
            fresh = await check.get(Withdrawal, withdrawal_id)
            assert fresh.status == "rejected"
            owner = await check.get(Account, account_id)
            assert owner.deposit_amount == Decimal("200")
            assert owner.total_amount == Decimal("200")
