"""Typed error taxonomy for the gamification core.

Every error carries a stable machine-readable ``kind`` and the HTTP status
the API layer maps it to. Business-rule errors raised inside a unit of work
roll the whole unit back.
"""

from __future__ import annotations


class WanderError(Exception):
    """Base class for all domain errors."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message())
        self.message = str(self)

    @classmethod
    def default_message(cls) -> str:
        return cls.kind.replace("_", " ").capitalize()


# --- 404 ---


class NotFound(WanderError):
    kind = "not_found"
    status_code = 404


class UserNotFound(NotFound):
    kind = "user_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "User not found"


class PlaceNotFound(NotFound):
    kind = "place_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Place not found"


class ReviewNotFound(NotFound):
    kind = "review_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Review not found"


class AchievementNotFound(NotFound):
    kind = "achievement_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Achievement not found"


class ChallengeNotFound(NotFound):
    kind = "challenge_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Challenge not found"


class RewardNotFound(NotFound):
    kind = "reward_not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Reward not found"


# --- 400 ---


class ValidationError(WanderError):
    """Malformed input, rejected before any transaction opens."""

    kind = "validation_error"
    status_code = 400


class AlreadyActedThisPeriod(WanderError):
    kind = "already_acted_this_period"
    status_code = 400


class PlaceInactive(WanderError):
    kind = "place_inactive"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "This place is currently not active."


class AlreadyGranted(WanderError):
    kind = "already_granted"
    status_code = 400


class InsufficientFunds(WanderError):
    kind = "insufficient_funds"
    status_code = 400


class InsufficientCoins(InsufficientFunds):
    kind = "insufficient_coins"

    @classmethod
    def default_message(cls) -> str:
        return "Not enough coins."


class OutOfStock(WanderError):
    kind = "out_of_stock"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "This reward is out of stock."


class RewardInactive(WanderError):
    kind = "reward_inactive"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "This reward is not active."


class AlreadyFollowing(WanderError):
    kind = "already_following"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "You are already following this user"


class NotFollowing(WanderError):
    kind = "not_following"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "You are not following this user"


class AlreadyLiked(WanderError):
    kind = "already_liked"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "You have already liked this"


class NotLiked(WanderError):
    kind = "not_liked"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "You have not liked this"


# --- 403 ---


class Forbidden(WanderError):
    kind = "forbidden"
    status_code = 403


# --- Infrastructure ---


class TransactionFailed(WanderError):
    """Database-level failure. The unit of work was rolled back; safe to retry."""

    kind = "transaction_failed"
    status_code = 503

    @classmethod
    def default_message(cls) -> str:
        return "The operation could not be completed. Please retry."
