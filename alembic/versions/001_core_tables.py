"""Core tables: users, places, activity, ledgers, catalogs and grants.

Revision ID: 001_core_tables
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_core_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_CAUSE_KINDS = "'Checkin', 'Review', 'Achievement', 'Challenge', 'Reward', 'AdminGrant'"


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(50) UNIQUE NOT NULL,
            name VARCHAR(100) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            image_url TEXT,
            status BOOLEAN NOT NULL DEFAULT true,
            total_coin INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_users_total_coin_non_negative CHECK (total_coin >= 0),
            total_exp INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_users_total_exp_non_negative CHECK (total_exp >= 0),
            total_following INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_following_non_negative CHECK (total_following >= 0),
            total_follower INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_follower_non_negative CHECK (total_follower >= 0),
            total_checkin INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_checkin_non_negative CHECK (total_checkin >= 0),
            total_review INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_review_non_negative CHECK (total_review >= 0),
            total_achievement INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_achievement_non_negative CHECK (total_achievement >= 0),
            total_challenge INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_challenge_non_negative CHECK (total_challenge >= 0),
            total_reward INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_users_total_reward_non_negative CHECK (total_reward >= 0),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_follows (
            id BIGSERIAL PRIMARY KEY,
            follower_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            following_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_follows_pair UNIQUE (follower_id, following_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_follows_following ON user_follows(following_id)")

    # --- Places ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS places (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            coin_reward INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_places_coin_reward_non_negative CHECK (coin_reward >= 0),
            exp_reward INTEGER NOT NULL DEFAULT 0 CONSTRAINT ck_places_exp_reward_non_negative CHECK (exp_reward >= 0),
            avg_rating NUMERIC(3, 2) NOT NULL DEFAULT 0
                CONSTRAINT ck_places_avg_rating_range CHECK (avg_rating >= 0 AND avg_rating <= 5),
            total_review INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_places_total_review_non_negative CHECK (total_review >= 0),
            total_checkin INTEGER NOT NULL DEFAULT 0
                CONSTRAINT ck_places_total_checkin_non_negative CHECK (total_checkin >= 0),
            status BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Activity ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS checkins (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            place_id BIGINT NOT NULL REFERENCES places(id) ON DELETE CASCADE,
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            image_url TEXT,
            additional_info JSONB NOT NULL DEFAULT '{}',
            period_key VARCHAR(7) NOT NULL,
            status BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_checkins_user_place_period UNIQUE (user_id, place_id, period_key)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_checkins_user_id ON checkins(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_checkins_place_id ON checkins(place_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS reviews (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            place_id BIGINT NOT NULL REFERENCES places(id) ON DELETE CASCADE,
            rating INTEGER NOT NULL CONSTRAINT ck_reviews_rating_range CHECK (rating >= 1 AND rating <= 5),
            content TEXT,
            image_urls JSONB,
            additional_info JSONB NOT NULL DEFAULT '{}',
            total_like INTEGER NOT NULL DEFAULT 0,
            period_key VARCHAR(7) NOT NULL,
            status BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_reviews_user_place_period UNIQUE (user_id, place_id, period_key)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_reviews_user_id ON reviews(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_reviews_place_id ON reviews(place_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_reviews_place_active ON reviews(place_id) WHERE status")

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_likes (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            related_to_type VARCHAR(32) NOT NULL,
            related_to_id BIGINT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_likes_target UNIQUE (user_id, related_to_type, related_to_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_likes_related_to_id ON user_likes(related_to_id)")

    # --- Ledgers (append-only) ---
    for table in ("coin_transactions", "exp_transactions"):
        op.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id BIGSERIAL PRIMARY KEY,
                user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                amount INTEGER NOT NULL CHECK (amount <> 0),
                cause_kind VARCHAR(32) NOT NULL CHECK (cause_kind IN ({_CAUSE_KINDS})),
                cause_id BIGINT NOT NULL,
                balance_after INTEGER NOT NULL CHECK (balance_after >= 0),
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_user_id ON {table}(user_id)")
        op.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_cause ON {table}(cause_kind, cause_id)")

    # --- Catalogs ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(255) UNIQUE NOT NULL,
            description TEXT,
            image_url VARCHAR(512),
            coin_reward INTEGER NOT NULL DEFAULT 0,
            exp_reward INTEGER NOT NULL DEFAULT 0,
            status BOOLEAN NOT NULL DEFAULT true,
            additional_info JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenges (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(255) UNIQUE NOT NULL,
            description TEXT,
            image_url VARCHAR(512),
            challenge_type VARCHAR(16) NOT NULL DEFAULT 'special',
            coin_reward INTEGER NOT NULL DEFAULT 0,
            exp_reward INTEGER NOT NULL DEFAULT 0,
            status BOOLEAN NOT NULL DEFAULT true,
            started_at TIMESTAMPTZ,
            ended_at TIMESTAMPTZ,
            additional_info JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS rewards (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(255) UNIQUE NOT NULL,
            description TEXT,
            image_url VARCHAR(512),
            coin_requirement INTEGER NOT NULL
                CONSTRAINT ck_rewards_coin_requirement_non_negative CHECK (coin_requirement >= 0),
            stock INTEGER CONSTRAINT ck_rewards_stock_non_negative CHECK (stock IS NULL OR stock >= 0),
            status BOOLEAN NOT NULL DEFAULT true,
            started_at TIMESTAMPTZ,
            ended_at TIMESTAMPTZ,
            additional_info JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Grants ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id BIGINT NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            status BOOLEAN NOT NULL DEFAULT false,
            additional_info JSONB NOT NULL DEFAULT '{}',
            completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_achievements_pair UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_challenges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            challenge_id BIGINT NOT NULL REFERENCES challenges(id) ON DELETE CASCADE,
            status BOOLEAN NOT NULL DEFAULT false,
            additional_info JSONB NOT NULL DEFAULT '{}',
            completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_challenges_pair UNIQUE (user_id, challenge_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_rewards (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            reward_id BIGINT NOT NULL REFERENCES rewards(id) ON DELETE CASCADE,
            redemption_code VARCHAR(64) UNIQUE NOT NULL,
            status BOOLEAN NOT NULL DEFAULT true,
            additional_info JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_rewards_pair UNIQUE (user_id, reward_id)
        )
    """)


def downgrade() -> None:
    for table in (
        "user_rewards",
        "user_challenges",
        "user_achievements",
        "rewards",
        "challenges",
        "achievements",
        "exp_transactions",
        "coin_transactions",
        "user_likes",
        "reviews",
        "checkins",
        "places",
        "user_follows",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
