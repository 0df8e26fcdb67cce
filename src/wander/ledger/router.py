"""Ledger history and balance audit endpoints: 2 routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wander.database import get_session
from wander.ledger.causes import CauseKind, Currency
from wander.ledger.schemas import BalanceAuditResponse, LedgerEntryResponse, LedgerPageResponse
from wander.ledger.service import audit_balance, list_ledger_entries
from wander.users.service import require_user

router = APIRouter(prefix="/api/v1", tags=["Ledger"])


@router.get("/users/{user_id}/transactions/{currency}", response_model=LedgerPageResponse)
async def list_transactions(
    user_id: int,
    currency: Currency,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    cause_kind: CauseKind | None = Query(None),
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Paginated coin or exp history, newest first."""
    await require_user(db, user_id)
    entries, total = await list_ledger_entries(db, user_id, currency, page, per_page, cause_kind)
    return LedgerPageResponse(
        currency=currency.value,
        entries=[
            LedgerEntryResponse(
                id=e.id,
                amount=e.amount,
                cause_kind=CauseKind(e.cause_kind).value,
                cause_id=e.cause_id,
                balance_after=e.balance_after,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/users/{user_id}/balance-audit/{currency}", response_model=BalanceAuditResponse)
async def balance_audit(
    user_id: int,
    currency: Currency,
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Compare the cached balance with the ledger sum."""
    audit = await audit_balance(db, user_id, currency)
    return BalanceAuditResponse(
        user_id=user_id,
        currency=audit.currency.value,
        cached=audit.cached,
        ledger=audit.ledger,
        consistent=audit.consistent,
    )
