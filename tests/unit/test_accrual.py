"""Tests for daily profit accrual."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from safevault.db.models import Account, Notification, ProfitLog
from safevault.exceptions import AccrualAlreadyApplied, NotFound, PersistenceError, UserIneligible
from safevault.profits import service as profit_service
from safevault.profits.service import accrue_profit, accrue_profit_for_account, is_eligible, run_daily_accrual
from tests.conftest import make_account

NOW = datetime(2026, 3, 14, 0, 0, 5, tzinfo=timezone.utc)


class TestEligibility:
    def test_active_with_deposit(self):
        assert is_eligible(Account(status="active", deposit_amount=Decimal("1")))

    def test_blocked(self):
        assert not is_eligible(Account(status="blocked", deposit_amount=Decimal("100")))

    def test_no_deposit(self):
        assert not is_eligible(Account(status="active", deposit_amount=Decimal("0")))

    def test_missing(self):
        assert not is_eligible(None)


class TestAccrueProfit:
    @pytest.mark.asyncio
    async def test_credits_one_percent(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="1000")
        result = await accrue_profit(db_session, account, now=NOW)
        await db_session.commit()

        assert result.profit_amount == Decimal("10")
        assert result.new_total_amount == Decimal("1010")
        assert account.profit_amount == Decimal("10")
        assert account.deposit_amount == Decimal("1000")

        logs = (await db_session.execute(select(ProfitLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].amount == Decimal("10")
        assert logs[0].deposit_amount == Decimal("1000")
        assert logs[0].profit_rate == Decimal("0.01")
        assert logs[0].accrual_date == NOW.date()

        notifications = (await db_session.execute(select(Notification))).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == "profit"
        assert notifications[0].user_id == account.id
        assert "$10.00" in notifications[0].message

    @pytest.mark.asyncio
    async def test_profit_is_not_compounded(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="200", profit="50")
        result = await accrue_profit(db_session, account, now=NOW)
        assert result.profit_amount == Decimal("2")
        assert account.total_amount == Decimal("252")

    @pytest.mark.asyncio
    async def test_fractional_amount_is_kept(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="123.45")
        result = await accrue_profit(db_session, account, now=NOW)
        assert result.profit_amount == Decimal("1.2345")

    @pytest.mark.asyncio
    async def test_same_day_twice_rejected(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="1000")
        await accrue_profit(db_session, account, now=NOW)
        await db_session.commit()

        with pytest.raises(AccrualAlreadyApplied):
            await accrue_profit(db_session, account, now=NOW + timedelta(hours=5))
        assert account.profit_amount == Decimal("10")

    @pytest.mark.asyncio
    async def test_next_day_accrues_again(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="1000")
        await accrue_profit(db_session, account, now=NOW)
        await accrue_profit(db_session, account, now=NOW + timedelta(days=1))
        await db_session.commit()
        assert account.profit_amount == Decimal("20")

    @pytest.mark.asyncio
    async def test_blocked_account_ineligible(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="1000", status="blocked")
        with pytest.raises(UserIneligible):
            await accrue_profit(db_session, account, now=NOW)

    @pytest.mark.asyncio
    async def test_zero_deposit_ineligible(self, db_session: AsyncSession):
        account = await make_account(db_session, profit="5")
        with pytest.raises(UserIneligible):
            await accrue_profit(db_session, account, now=NOW)


class TestAccrueForAccount:
    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session: AsyncSession):
        with pytest.raises(NotFound, match="User not found"):
            await accrue_profit_for_account(db_session, 9999, now=NOW)

    @pytest.mark.asyncio
    async def test_by_id(self, db_session: AsyncSession):
        account = await make_account(db_session, deposit="500")
        result = await accrue_profit_for_account(db_session, account.id, now=NOW)
        assert result.profit_amount == Decimal("5")


class TestDailyBatch:
    @pytest.mark.asyncio
    async def test_batch_counts_and_summary(
        self, session_factory: async_sessionmaker[AsyncSession], db_session: AsyncSession
    ):
        await make_account(db_session, "a@example.com", deposit="1000")
        await make_account(db_session, "b@example.com", deposit="250")
        await make_account(db_session, "blocked@example.com", deposit="1000", status="blocked")
        await make_account(db_session, "empty@example.com")

        summary = await run_daily_accrual(session_factory, now=NOW)

        assert summary.accrual_date == NOW.date()
        assert summary.credited == 2
        assert summary.skipped == 0
        assert summary.failed == 0
        assert summary.total_profit == Decimal("12.5")

        async with session_factory() as check:
            logs = (await check.execute(select(ProfitLog))).scalars().all()
            assert len(logs) == 2

            admin_only = (
                (await check.execute(select(Notification).where(Notification.user_id.is_(None)))).scalars().all()
            )
            assert len(admin_only) == 1
            assert admin_only[0].type == "general"
            assert "2 credited" in admin_only[0].message

    @pytest.mark.asyncio
    async def test_rerun_same_day_skips(
        self, session_factory: async_sessionmaker[AsyncSession], db_session: AsyncSession
    ):
        account = await make_account(db_session, deposit="1000")
        await run_daily_accrual(session_factory, now=NOW)
        summary = await run_daily_accrual(session_factory, now=NOW + timedelta(hours=1))

        assert summary.credited == 0
        assert summary.skipped == 1

        async with session_factory() as check:
            fresh = await check.get(Account, account.id)
            assert fresh.profit_amount == Decimal("10")
            assert fresh.total_amount == Decimal("1010")

    @pytest.mark.asyncio
    async def test_empty_batch(self, session_factory: async_sessionmaker[AsyncSession]):
        summary = await run_daily_accrual(session_factory, now=NOW)
        assert summary.credited == 0
        assert summary.total_profit == Decimal("0")

    @pytest.mark.asyncio
    async def test_failed_account_does_not_stop_batch(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        broken = await make_account(db_session, "broken@example.com", deposit="1000")
        healthy = await make_account(db_session, "healthy@example.com", deposit="500")
        broken_id, healthy_id = broken.id, healthy.id
        real_mutate = profit_service.mutate_balance

        async def flaky_mutate(db, account, **kwargs):
            if account.id == broken_id:
                msg = "write failed"
                raise PersistenceError(msg)
            return await real_mutate(db, account, **kwargs)

        monkeypatch.setattr(profit_service, "mutate_balance", flaky_mutate)

        summary = await run_daily_accrual(session_factory, now=NOW)

        assert summary.credited == 1
        assert summary.failed == 1
        assert summary.skipped == 0
        assert summary.total_profit == Decimal("5")

        async with session_factory() as check:
            logs = (await check.execute(select(ProfitLog))).scalars().all()
            assert [log.user_id for log in logs] == [healthy_id]

            fresh = await check.get(Account, broken_id)
            assert fresh.profit_amount == Decimal("0")
            assert fresh.total_amount == Decimal("1000")

            summary_note = (
                await check.execute(select(Notification).where(Notification.user_id.is_(None)))
            ).scalar_one()
            assert "1 failed" in summary_note.message

    @pytest.mark.asyncio
    async def test_account_blocked_before_its_turn_is_skipped(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        account = await make_account(db_session, deposit="1000")
        account_id = account.id
        real_ids = profit_service._eligible_account_ids

        async def ids_then_block(db):
            ids = await real_ids(db)
            async with session_factory() as other:
                target = await other.get(Account, account_id)
                target.status = "blocked"
                await other.commit()
            return ids

        monkeypatch.setattr(profit_service, "_eligible_account_ids", ids_then_block)

        summary = await run_daily_accrual(session_factory, now=NOW)

        assert summary.credited == 0
        assert summary.skipped == 1
        assert summary.failed == 0

        async with session_factory() as check:
            assert (await check.execute(select(ProfitLog))).scalars().all() == []
            fresh = await check.get(Account, account_id)
            assert fresh.profit_amount == Decimal("0")
