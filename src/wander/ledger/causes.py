"""Currencies and causal references for ledger entries."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Currency(str, enum.Enum):
    COIN = "coin"
    EXP = "exp"


class CauseKind(str, enum.Enum):
    """Closed set of events that may move a balance."""

    CHECKIN = "Checkin"
    REVIEW = "Review"
    ACHIEVEMENT = "Achievement"
    CHALLENGE = "Challenge"
    REWARD = "Reward"
    ADMIN_GRANT = "AdminGrant"


@dataclass(frozen=True)
class Cause:
    """Tagged reference to the entity that produced a balance change."""

    kind: CauseKind
    id: int

    def as_dict(self) -> dict:
        return {"kind": self.kind.value, "id": self.id}
