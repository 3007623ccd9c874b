from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from modules.brl_currency.core.denominations import DenominationCount
from modules.change_calculator.core.change import ChangeResult


@dataclass(frozen=True)
class ChangeRecord:
    id: str
    created_at: datetime
    purchase_amount: int
    paid_amount: int
    change_amount: int
    exact_change: int
    rounding_applied: int
    breakdown: Tuple[DenominationCount, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "purchase_amount": self.purchase_amount,
            "paid_amount": self.paid_amount,
            "change_amount": self.change_amount,
            "exact_change": self.exact_change,
            "rounding_applied": self.rounding_applied,
            "breakdown": [item.as_dict() for item in self.breakdown],
        }


def create_change_record(
    purchase_cents: int,
    paid_cents: int,
    result: ChangeResult,
    *,
    now: datetime | None = None,
    record_id: str | None = None,
) -> ChangeRecord:
    return ChangeRecord(
        id=record_id or f"change-{uuid.uuid4().hex}",
        created_at=now or datetime.now(timezone.utc),
        purchase_amount=purchase_cents,
        paid_amount=paid_cents,
        change_amount=result.rounded_amount,
        exact_change=result.exact_amount,
        rounding_applied=result.rounding_delta,
        breakdown=result.breakdown,
    )


__all__ = ["ChangeRecord", "create_change_record"]
