"""Integration: reviews, place rating recomputation and review payouts."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from wander.activity.review_service import create_review, delete_review, update_review
from wander.db.models import CoinTransaction, Review
from wander.errors import AlreadyActedThisPeriod, Forbidden, PlaceNotFound, ReviewNotFound, ValidationError
from wander.ledger.causes import CauseKind
from wander.places.stats_service import recompute_place_rating

UTC = timezone.utc
MAY = datetime(2026, 5, 12, 10, 0, tzinfo=UTC)


class TestRatingRecompute:
    @pytest.mark.asyncio
    async def test_average_and_soft_delete(self, db_session, make_user, make_place):
        """[4, 5, 3] -> 4.00; soft-deleting the 3 -> 4.50 with two reviews."""
        place = await make_place()
        reviews = []
        for rating in (4, 5, 3):
            user = await make_user()
            reviews.append(await create_review(db_session, user.id, place.id, rating, as_of=MAY))

        await db_session.refresh(place)
        assert place.avg_rating == Decimal("4.00")
        assert place.total_review == 3

        await delete_review(db_session, reviews[2].id, reviews[2].user_id)

        await db_session.refresh(place)
        assert place.avg_rating == Decimal("4.50")
        assert place.total_review == 2

    @pytest.mark.asyncio
    async def test_rounds_half_up(self, db_session, make_user, make_place):
        place = await make_place()
        for rating in (5, 5, 4):
            user = await make_user()
            await create_review(db_session, user.id, place.id, rating, as_of=MAY)

        await db_session.refresh(place)
        assert place.avg_rating == Decimal("4.67")

    @pytest.mark.asyncio
    async def test_no_active_reviews_is_zero(self, db_session, make_user, make_place):
        place = await make_place()
        user = await make_user()
        review = await create_review(db_session, user.id, place.id, 2, as_of=MAY)
        await delete_review(db_session, review.id, user.id)

        await db_session.refresh(place)
        assert place.avg_rating == Decimal("0.00")
        assert place.total_review == 0

    @pytest.mark.asyncio
    async def test_rating_update_recomputes(self, db_session, make_user, make_place):
        place = await make_place()
        alice = await make_user()
        bob = await make_user()
        await create_review(db_session, alice.id, place.id, 2, as_of=MAY)
        review = await create_review(db_session, bob.id, place.id, 4, as_of=MAY)

        await update_review(db_session, review.id, bob.id, rating=5)

        await db_session.refresh(place)
        assert place.avg_rating == Decimal("3.50")
        assert place.total_review == 2

    @pytest.mark.asyncio
    async def test_recompute_missing_place(self, db_session):
        with pytest.raises(PlaceNotFound):
            await recompute_place_rating(db_session, 31337)


class TestReviewFlow:
    @pytest.mark.asyncio
    async def test_pays_place_rewards(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place(coin_reward=15, exp_reward=20)

        review = await create_review(db_session, user.id, place.id, 5, content="Lovely view", as_of=MAY)

        await db_session.refresh(user)
        assert user.total_coin == 15
        assert user.total_exp == 20
        assert user.total_review == 1

        entry = (await db_session.execute(
            select(CoinTransaction).where(CoinTransaction.user_id == user.id)
        )).scalar_one()
        assert entry.cause_kind == CauseKind.REVIEW
        assert entry.cause_id == review.id

    @pytest.mark.asyncio
    async def test_zero_reward_place_writes_no_ledger(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place()
        await create_review(db_session, user.id, place.id, 3, as_of=MAY)

        rows = (await db_session.execute(select(CoinTransaction))).scalars().all()
        assert rows == []

    @pytest.mark.asyncio
    async def test_once_per_month(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place(coin_reward=5)
        user_id, place_id = user.id, place.id
        await create_review(db_session, user_id, place_id, 4, as_of=MAY)

        with pytest.raises(AlreadyActedThisPeriod):
            await create_review(db_session, user_id, place_id, 5, as_of=datetime(2026, 5, 31, tzinfo=UTC))

        await create_review(db_session, user_id, place_id, 5, as_of=datetime(2026, 6, 1, tzinfo=UTC))
        await db_session.refresh(user)
        assert user.total_review == 2
        assert user.total_coin == 10

    @pytest.mark.asyncio
    async def test_deleted_review_still_consumes_month(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place()
        review = await create_review(db_session, user.id, place.id, 1, as_of=MAY)
        await delete_review(db_session, review.id, user.id)

        with pytest.raises(AlreadyActedThisPeriod):
            await create_review(db_session, user.id, place.id, 4, as_of=MAY)

    @pytest.mark.asyncio
    async def test_invalid_rating_rejected(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place()
        with pytest.raises(ValidationError):
            await create_review(db_session, user.id, place.id, 6, as_of=MAY)
        assert (await db_session.execute(select(Review))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_only_owner_may_edit(self, db_session, make_user, make_place):
        owner = await make_user()
        other = await make_user()
        place = await make_place()
        review = await create_review(db_session, owner.id, place.id, 4, as_of=MAY)
        review_id, other_id = review.id, other.id

        with pytest.raises(Forbidden):
            await update_review(db_session, review_id, other_id, content="hijacked")
        with pytest.raises(Forbidden):
            await delete_review(db_session, review_id, other_id)

    @pytest.mark.asyncio
    async def test_content_update_keeps_rating(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place()
        review = await create_review(db_session, user.id, place.id, 4, content="ok", as_of=MAY)

        updated = await update_review(db_session, review.id, user.id, content="better than ok")

        assert updated.content == "better than ok"
        assert updated.rating == 4

    @pytest.mark.asyncio
    async def test_deleted_review_cannot_be_deleted_again(self, db_session, make_user, make_place):
        user = await make_user()
        place = await make_place()
        review = await create_review(db_session, user.id, place.id, 4, as_of=MAY)
        await delete_review(db_session, review.id, user.id)

        with pytest.raises(ReviewNotFound):
            await delete_review(db_session, review.id, user.id)

        await db_session.refresh(user)
        assert user.total_review == 0
