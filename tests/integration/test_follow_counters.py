"""Integration: follow graph and denormalized follower counters."""

from __future__ import annotations

import pytest
from sqlalchemy import update

from wander.db.models import User
from wander.errors import AlreadyFollowing, NotFollowing, UserNotFound, ValidationError
from wander.social.follow_service import follow_user, is_following, unfollow_user


class TestFollow:
    @pytest.mark.asyncio
    async def test_follow_bumps_both_counters(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()

        counts = await follow_user(db_session, alice.id, bob.id)

        assert counts.following_count == 1
        assert counts.follower_count == 1
        assert await is_following(db_session, alice.id, bob.id)
        assert not await is_following(db_session, bob.id, alice.id)

    @pytest.mark.asyncio
    async def test_follow_twice_rejected(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()
        alice_id, bob_id = alice.id, bob.id
        await follow_user(db_session, alice_id, bob_id)

        with pytest.raises(AlreadyFollowing):
            await follow_user(db_session, alice_id, bob_id)

        await db_session.refresh(bob)
        assert bob.total_follower == 1

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, db_session, make_user):
        alice = await make_user()
        with pytest.raises(ValidationError):
            await follow_user(db_session, alice.id, alice.id)

    @pytest.mark.asyncio
    async def test_missing_target(self, db_session, make_user):
        alice = await make_user()
        with pytest.raises(UserNotFound):
            await follow_user(db_session, alice.id, 5050)

    @pytest.mark.asyncio
    async def test_unfollow_decrements(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()
        await follow_user(db_session, alice.id, bob.id)

        counts = await unfollow_user(db_session, alice.id, bob.id)

        assert counts.following_count == 0
        assert counts.follower_count == 0
        assert not await is_following(db_session, alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_unfollow_without_edge(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()
        with pytest.raises(NotFollowing):
            await unfollow_user(db_session, alice.id, bob.id)

    @pytest.mark.asyncio
    async def test_counter_floor_at_zero(self, db_session, make_user):
        """A drifted counter never goes negative on unfollow."""
        alice = await make_user()
        bob = await make_user()
        await follow_user(db_session, alice.id, bob.id)
        await db_session.execute(update(User).where(User.id == bob.id).values(total_follower=0))
        await db_session.commit()

        counts = await unfollow_user(db_session, alice.id, bob.id)

        assert counts.follower_count == 0
        assert counts.following_count == 0
