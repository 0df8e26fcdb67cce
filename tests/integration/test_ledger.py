"""Integration: balance mutator, ledger reads and audit."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select, update

from wander.db.models import CoinTransaction, ExpTransaction, User
from wander.errors import InsufficientFunds, UserNotFound, ValidationError
from wander.ledger.causes import Cause, CauseKind, Currency
from wander.ledger.service import (
    add_coins,
    add_exp,
    admin_grant,
    apply_delta,
    audit_balance,
    ledger_balance,
    list_ledger_entries,
    use_coins,
    use_exp,
)


async def _count(db, model, user_id: int) -> int:
    return await db.scalar(select(func.count()).select_from(model).where(model.user_id == user_id))


class TestBalanceMutator:
    @pytest.mark.asyncio
    async def test_credit_appends_one_entry(self, db_session, make_user):
        user = await make_user()
        entry = await add_coins(db_session, user.id, 25, Cause(CauseKind.CHECKIN, 1))

        assert entry.amount == 25
        assert entry.balance_after == 25
        assert entry.cause_kind == CauseKind.CHECKIN
        assert entry.cause_id == 1

        await db_session.refresh(user)
        assert user.total_coin == 25
        assert await _count(db_session, CoinTransaction, user.id) == 1
        assert await _count(db_session, ExpTransaction, user.id) == 0

    @pytest.mark.asyncio
    async def test_debit_records_negative_amount(self, db_session, make_user):
        user = await make_user(coins=50)
        entry = await use_coins(db_session, user.id, 30, Cause(CauseKind.REWARD, 9))

        assert entry.amount == -30
        assert entry.balance_after == 20

    @pytest.mark.asyncio
    async def test_conservation_over_sequence(self, db_session, make_user):
        """Cached balance equals the ledger sum after any sequence of deltas."""
        user = await make_user()
        cause = Cause(CauseKind.ADMIN_GRANT, 0)
        for amount in (10, 5, -3, 40, -12, 1):
            await apply_delta(db_session, user.id, Currency.COIN, amount, cause)
        await add_exp(db_session, user.id, 7, cause)
        await use_exp(db_session, user.id, 2, cause)

        coin_audit = await audit_balance(db_session, user.id, Currency.COIN)
        exp_audit = await audit_balance(db_session, user.id, Currency.EXP)
        assert coin_audit.cached == coin_audit.ledger == 41
        assert coin_audit.consistent
        assert exp_audit.cached == exp_audit.ledger == 5

    @pytest.mark.asyncio
    async def test_underflow_leaves_balance_and_ledger_untouched(self, db_session, make_user):
        user = await make_user(coins=5)

        with pytest.raises(InsufficientFunds):
            await use_coins(db_session, user.id, 10, Cause(CauseKind.REWARD, 1))

        await db_session.refresh(user)
        assert user.total_coin == 5
        assert await _count(db_session, CoinTransaction, user.id) == 1
        assert await ledger_balance(db_session, user.id, Currency.COIN) == 5

    @pytest.mark.asyncio
    async def test_spend_to_exactly_zero(self, db_session, make_user):
        user = await make_user(coins=8)
        entry = await use_coins(db_session, user.id, 8, Cause(CauseKind.REWARD, 1))
        assert entry.balance_after == 0

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await apply_delta(db_session, user.id, Currency.COIN, 0, Cause(CauseKind.CHECKIN, 1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_wrappers_require_positive_amounts(self, db_session, make_user, amount):
        user = await make_user()
        with pytest.raises(ValidationError):
            await add_coins(db_session, user.id, amount, Cause(CauseKind.CHECKIN, 1))

    @pytest.mark.asyncio
    async def test_missing_user(self, db_session):
        with pytest.raises(UserNotFound):
            await add_coins(db_session, 424242, 10, Cause(CauseKind.CHECKIN, 1))

    @pytest.mark.asyncio
    async def test_admin_grant_can_deduct(self, db_session, make_user):
        user = await make_user(coins=20)
        entry = await admin_grant(db_session, user.id, "coin", -7, admin_id=99)
        assert entry.cause_kind == CauseKind.ADMIN_GRANT
        assert entry.cause_id == 99
        assert entry.balance_after == 13

    @pytest.mark.asyncio
    async def test_concurrent_spends_never_overdraw(self, session_factory, make_user):
        """Two spends of 8 against a balance of 10: exactly one succeeds."""
        user = await make_user(coins=10)

        async def spend() -> object:
            async with session_factory() as db:
                return await use_coins(db, user.id, 8, Cause(CauseKind.REWARD, 1))

        results = await asyncio.gather(spend(), spend(), return_exceptions=True)
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientFunds)

        async with session_factory() as db:
            audit = await audit_balance(db, user.id, Currency.COIN)
        assert audit.cached == audit.ledger == 2


class TestLedgerImmutability:
    @pytest.mark.asyncio
    async def test_update_rejected(self, db_session, make_user):
        user = await make_user(coins=10)
        entry = (await db_session.execute(
            select(CoinTransaction).where(CoinTransaction.user_id == user.id)
        )).scalar_one()

        entry.amount = 1_000
        with pytest.raises(RuntimeError, match="append-only"):
            await db_session.flush()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_delete_rejected(self, db_session, make_user):
        user = await make_user(coins=10)
        entry = (await db_session.execute(
            select(CoinTransaction).where(CoinTransaction.user_id == user.id)
        )).scalar_one()

        await db_session.delete(entry)
        with pytest.raises(RuntimeError, match="append-only"):
            await db_session.flush()
        await db_session.rollback()


class TestLedgerReads:
    @pytest.mark.asyncio
    async def test_pagination_newest_first(self, db_session, make_user):
        user = await make_user()
        for i in range(1, 6):
            await add_coins(db_session, user.id, i, Cause(CauseKind.CHECKIN, i))

        page1, total = await list_ledger_entries(db_session, user.id, Currency.COIN, page=1, per_page=2)
        page3, _ = await list_ledger_entries(db_session, user.id, Currency.COIN, page=3, per_page=2)

        assert total == 5
        assert [e.amount for e in page1] == [5, 4]
        assert [e.amount for e in page3] == [1]

    @pytest.mark.asyncio
    async def test_filter_by_cause(self, db_session, make_user):
        user = await make_user(coins=3)
        await add_coins(db_session, user.id, 10, Cause(CauseKind.CHECKIN, 1))
        await add_coins(db_session, user.id, 4, Cause(CauseKind.REVIEW, 1))

        entries, total = await list_ledger_entries(
            db_session, user.id, "coin", cause_kind=CauseKind.CHECKIN,
        )
        assert total == 1
        assert entries[0].amount == 10

    @pytest.mark.asyncio
    async def test_audit_detects_drift(self, db_session, make_user):
        user = await make_user(coins=10)
        await db_session.execute(update(User).where(User.id == user.id).values(total_coin=99))
        await db_session.commit()

        audit = await audit_balance(db_session, user.id, Currency.COIN)
        assert audit.cached == 99
        assert audit.ledger == 10
        assert not audit.consistent
