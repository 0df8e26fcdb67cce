"""Balance mutator and append-only ledger.

Every balance change is one guarded ``UPDATE`` on the user row plus one
immutable ledger row, inside a single unit of work:

1. Lock the user row (``SELECT ... FOR UPDATE``)
2. ``UPDATE users SET total_x = total_x + :amount WHERE total_x + :amount >= 0``
3. Insert the ledger entry with the signed amount, its cause and the new balance

The guarded UPDATE re-validates the balance under the transaction, so two
concurrent spends can never both pass an earlier read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wander.db.models import CoinTransaction, ExpTransaction, LedgerEntryMixin, User
from wander.db.unit_of_work import atomic
from wander.errors import InsufficientFunds, ValidationError
from wander.ledger.causes import Cause, CauseKind, Currency
from wander.users.service import require_user

logger = logging.getLogger(__name__)

LEDGER_MODELS: dict[Currency, type[CoinTransaction] | type[ExpTransaction]] = {
    Currency.COIN: CoinTransaction,
    Currency.EXP: ExpTransaction,
}

BALANCE_FIELDS: dict[Currency, str] = {
    Currency.COIN: "total_coin",
    Currency.EXP: "total_exp",
}


@dataclass(frozen=True)
class BalanceAudit:
    currency: Currency
    cached: int
    ledger: int

    @property
    def consistent(self) -> bool:
        return self.cached == self.ledger


async def apply_delta(
    db: AsyncSession,
    user_id: int,
    currency: Currency | str,
    amount: int,
    cause: Cause,
) -> LedgerEntryMixin:
    """Apply a signed delta to a user's balance and append the ledger entry.

    Raises ValidationError for a zero amount, UserNotFound for a missing
    user and InsufficientFunds when the balance would go negative.
    """
    currency = Currency(currency)
    if amount == 0:
        raise ValidationError("Amount must be non-zero")

    field = BALANCE_FIELDS[currency]
    column = getattr(User, field)

    async with atomic(db):
        user = await require_user(db, user_id, for_update=True)

        result = await db.execute(
            update(User)
            .where(User.id == user_id, column + amount >= 0)
            .values({field: column + amount})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InsufficientFunds(
                f"Insufficient {currency.value} balance: cannot apply {amount}"
            )

        await db.refresh(user, attribute_names=[field])
        balance = getattr(user, field)

        entry = LEDGER_MODELS[currency](
            user_id=user_id,
            amount=amount,
            cause_kind=cause.kind,
            cause_id=cause.id,
            balance_after=balance,
            created_at=datetime.now(timezone.utc),
        )
        db.add(entry)
        await db.flush()

    logger.info(
        "Applied %+d %s to user %s (cause=%s:%s, balance=%s)",
        amount, currency.value, user_id, cause.kind.value, cause.id, balance,
    )
    return entry


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")


async def add_coins(db: AsyncSession, user_id: int, amount: int, cause: Cause) -> LedgerEntryMixin:
    """Credit coins."""
    _require_positive(amount)
    return await apply_delta(db, user_id, Currency.COIN, amount, cause)


async def use_coins(db: AsyncSession, user_id: int, amount: int, cause: Cause) -> LedgerEntryMixin:
    """Debit coins. The balance check happens under the transaction."""
    _require_positive(amount)
    return await apply_delta(db, user_id, Currency.COIN, -amount, cause)


async def add_exp(db: AsyncSession, user_id: int, amount: int, cause: Cause) -> LedgerEntryMixin:
    """Credit experience."""
    _require_positive(amount)
    return await apply_delta(db, user_id, Currency.EXP, amount, cause)


async def use_exp(db: AsyncSession, user_id: int, amount: int, cause: Cause) -> LedgerEntryMixin:
    _require_positive(amount)
    return await apply_delta(db, user_id, Currency.EXP, -amount, cause)


async def admin_grant(
    db: AsyncSession,
    user_id: int,
    currency: Currency | str,
    amount: int,
    admin_id: int,
) -> LedgerEntryMixin:
    """Manual signed adjustment, attributed to the acting admin."""
    entry = await apply_delta(db, user_id, currency, amount, Cause(CauseKind.ADMIN_GRANT, admin_id))
    logger.warning(
        "Admin %s adjusted %s balance of user %s by %+d", admin_id, Currency(currency).value, user_id, amount,
    )
    return entry


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_ledger_entries(
    db: AsyncSession,
    user_id: int,
    currency: Currency | str,
    page: int = 1,
    per_page: int = 20,
    cause_kind: CauseKind | None = None,
) -> tuple[list[LedgerEntryMixin], int]:
    """Paginated ledger history for one currency, newest first."""
    model = LEDGER_MODELS[Currency(currency)]
    filters = [model.user_id == user_id]
    if cause_kind is not None:
        filters.append(model.cause_kind == cause_kind)

    total = await db.scalar(select(func.count()).select_from(model).where(*filters))

    result = await db.execute(
        select(model)
        .where(*filters)
        .order_by(model.created_at.desc(), model.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), int(total or 0)


async def ledger_balance(db: AsyncSession, user_id: int, currency: Currency | str) -> int:
    """Sum of the user's ledger amounts for one currency."""
    model = LEDGER_MODELS[Currency(currency)]
    total = await db.scalar(
        select(func.coalesce(func.sum(model.amount), 0)).where(model.user_id == user_id)
    )
    return int(total or 0)


async def audit_balance(db: AsyncSession, user_id: int, currency: Currency | str) -> BalanceAudit:
    """Compare the cached balance on the user row with the ledger sum."""
    currency = Currency(currency)
    user = await require_user(db, user_id)
    await db.refresh(user, attribute_names=[BALANCE_FIELDS[currency]])
    ledger = await ledger_balance(db, user_id, currency)
    audit = BalanceAudit(currency=currency, cached=getattr(user, BALANCE_FIELDS[currency]), ledger=ledger)
    if not audit.consistent:
        logger.error(
            "Balance drift for user %s (%s): cached=%s ledger=%s",
            user_id, currency.value, audit.cached, audit.ledger,
        )
    return audit
