"""Pydantic schemas for ledger endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LedgerEntryResponse(BaseModel):
    id: int
    amount: int
    cause_kind: str
    cause_id: int
    balance_after: int
    created_at: datetime


class LedgerPageResponse(BaseModel):
    currency: str
    entries: list[LedgerEntryResponse]
    total: int
    page: int
    per_page: int


class BalanceAuditResponse(BaseModel):
    user_id: int
    currency: str
    cached: int
    ledger: int
    consistent: bool
