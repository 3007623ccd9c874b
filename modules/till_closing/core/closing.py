from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence, Tuple

import structlog

from modules.brl_currency.core.denominations import (
    BRL_CATALOG,
    Denomination,
    DenominationCount,
    TILL_CLOSING_FILTER,
    counts_total,
    filter_catalog,
    find_denomination,
    piece_count,
    separate_notes_and_coins,
)
from modules.brl_currency.core.money import format_brl, to_minor_units
from trokito.errors import InvalidAmount

logger = structlog.get_logger(__name__)

PAIR_RE = re.compile(r"([0-9.,]+)\s*(?:x|\*)\s*([0-9-]+)")

MAX_COUNT = 9999
HIGH_VALUE_THRESHOLD = 5000
HIGH_VALUE_MAX_COUNT = 100
LOW_VALUE_MAX_COUNT = 500

NOTHING_COUNTED = "Nothing was counted."
ONLY_COINS = "Only coins were counted."
ONLY_NOTES = "Only notes were counted."
HIGH_COUNT = "Unusually high quantity detected; check the count."


@dataclass(frozen=True)
class ClosingSummary:
    total_notes: int
    total_coins: int
    total_amount: int
    total_piece_count: int
    counted_denominations: Tuple[DenominationCount, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_notes": self.total_notes,
            "total_coins": self.total_coins,
            "total_amount": self.total_amount,
            "total_piece_count": self.total_piece_count,
            "counted_denominations": [
                item.as_dict() for item in self.counted_denominations
            ],
            "formatted": {
                "total_notes": format_brl(self.total_notes),
                "total_coins": format_brl(self.total_coins),
                "total_amount": format_brl(self.total_amount),
            },
        }


@dataclass(frozen=True)
class ClosingValidation:
    is_valid: bool
    warnings: Tuple[str, ...] = ()
    notices: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "warnings": list(self.warnings),
            "notices": list(self.notices),
        }


@dataclass(frozen=True)
class ClosingRecord:
    id: str
    created_at: datetime
    summary: ClosingSummary
    operator: str | None = None
    notes: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "operator": self.operator,
            "notes": self.notes,
            "summary": self.summary.as_dict(),
        }


def initial_counts(
    catalog: Sequence[Denomination] = BRL_CATALOG,
) -> List[DenominationCount]:
    return [
        DenominationCount(denom, 0)
        for denom in filter_catalog(catalog, TILL_CLOSING_FILTER)
    ]


def update_count(
    counts: Sequence[DenominationCount], value: int, new_count: int
) -> List[DenominationCount]:
    """Return ``counts`` with the entry for ``value`` replaced.

    The new count is clamped to ``0..MAX_COUNT``.
    """
    try:
        count = int(new_count)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Count '{new_count}' must be a whole number.") from None
    clamped = min(max(0, count), MAX_COUNT)
    return [
        DenominationCount(item.denomination, clamped)
        if item.denomination.value == value
        else item
        for item in counts
    ]


def _parse_count(raw: str) -> int:
    text = raw.strip()
    try:
        count = int(text)
    except ValueError:
        raise InvalidAmount(f"Count '{text}' must be a whole number.") from None
    if count < 0:
        raise InvalidAmount("Counts must be non-negative.")
    if count > MAX_COUNT:
        raise InvalidAmount(f"Count is too high (limit {MAX_COUNT}).")
    return count


def parse_count_pairs(
    raw: str | None, catalog: Sequence[Denomination] = BRL_CATALOG
) -> List[DenominationCount]:
    """Parse ``"100x2; 0,50:3"`` style entries into denomination counts.

    Entries are separated by ``;`` or new lines; a ``,`` is a decimal
    separator so pt-BR values can be typed as they are printed.
    """
    if not raw:
        return []
    counts: Dict[int, int] = {}
    order: List[Denomination] = []
    for chunk in re.split(r"[;\n]", raw):
        item = chunk.strip()
        if not item:
            continue
        if ":" in item:
            left, right = item.split(":", 1)
        else:
            match = PAIR_RE.fullmatch(item)
            if not match:
                raise InvalidAmount(f"Cannot read count entry '{item}'.")
            left, right = match.group(1), match.group(2)

        value = to_minor_units(left, label="Denomination")
        denom = find_denomination(value, catalog)
        if denom is None:
            raise InvalidAmount(f"Unknown denomination '{left.strip()}'.")
        if value not in counts:
            order.append(denom)
            counts[value] = 0
        counts[value] += _parse_count(right)

    return [DenominationCount(denom, counts[denom.value]) for denom in order]


def summarize(counts: Sequence[DenominationCount]) -> ClosingSummary:
    notes, coins = separate_notes_and_coins(counts)
    total_notes = counts_total(notes)
    total_coins = counts_total(coins)
    return ClosingSummary(
        total_notes=total_notes,
        total_coins=total_coins,
        total_amount=total_notes + total_coins,
        total_piece_count=piece_count(counts),
        counted_denominations=tuple(item for item in counts if item.count > 0),
    )


def _is_high_count(item: DenominationCount) -> bool:
    if item.denomination.value >= HIGH_VALUE_THRESHOLD:
        return item.count > HIGH_VALUE_MAX_COUNT
    return item.count > LOW_VALUE_MAX_COUNT


def validate(summary: ClosingSummary) -> ClosingValidation:
    """Advisory checks on a closing count. Nothing here blocks saving."""
    warnings: List[str] = []
    notices: List[str] = []

    if summary.total_amount == 0:
        warnings.append(NOTHING_COUNTED)
    elif summary.total_notes == 0:
        notices.append(ONLY_COINS)
    elif summary.total_coins == 0:
        notices.append(ONLY_NOTES)

    if any(_is_high_count(item) for item in summary.counted_denominations):
        warnings.append(HIGH_COUNT)

    if warnings:
        logger.warning("closing_warnings", warnings=warnings, total=summary.total_amount)
    return ClosingValidation(
        is_valid=not warnings, warnings=tuple(warnings), notices=tuple(notices)
    )


def create_record(
    counts: Sequence[DenominationCount],
    operator: str | None = None,
    notes: str | None = None,
    *,
    now: datetime | None = None,
    record_id: str | None = None,
) -> ClosingRecord:
    summary = summarize(counts)
    return ClosingRecord(
        id=record_id or f"closing-{uuid.uuid4().hex}",
        created_at=now or datetime.now(timezone.utc),
        summary=summary,
        operator=(operator or "").strip() or None,
        notes=(notes or "").strip(),
    )


def quick_count_options(value: int) -> List[int]:
    if value >= 5000:
        return [5, 10, 20, 50]
    if value >= 1000:
        return [5, 10, 25, 50]
    if value >= 100:
        return [10, 20, 50, 100]
    return [10, 25, 50, 100]


__all__ = [
    "ClosingRecord",
    "ClosingSummary",
    "ClosingValidation",
    "create_record",
    "initial_counts",
    "parse_count_pairs",
    "quick_count_options",
    "summarize",
    "update_count",
    "validate",
]
