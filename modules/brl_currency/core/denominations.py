from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Protocol, Sequence, Tuple, TypeVar

from trokito.errors import InvalidAmount, InvalidConfiguration

NOTE = "note"
COIN = "coin"
KINDS = (NOTE, COIN)

FULL_FILTER = "full"
TILL_CLOSING_FILTER = "till_closing"

# Largest note still counted when closing the till.
TILL_CLOSING_MAX_NOTE = 2000


@dataclass(frozen=True)
class Denomination:
    value: int
    kind: str
    label: str
    active: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value <= 0:
            raise ValueError(f"Denomination value must be a positive integer, got {self.value!r}.")
        if self.kind not in KINDS:
            raise ValueError(f"Denomination kind must be one of {KINDS}, got {self.kind!r}.")

    @property
    def is_note(self) -> bool:
        return self.kind == NOTE

    def as_dict(self) -> Dict[str, object]:
        return {
            "value": self.value,
            "kind": self.kind,
            "label": self.label,
            "active": self.active,
        }


BRL_CATALOG: Tuple[Denomination, ...] = (
    Denomination(20000, NOTE, "R$ 200"),
    Denomination(10000, NOTE, "R$ 100"),
    Denomination(5000, NOTE, "R$ 50"),
    Denomination(2000, NOTE, "R$ 20"),
    Denomination(1000, NOTE, "R$ 10"),
    Denomination(500, NOTE, "R$ 5"),
    Denomination(200, NOTE, "R$ 2"),
    Denomination(100, COIN, "R$ 1"),
    Denomination(50, COIN, "R$ 0,50"),
    Denomination(25, COIN, "R$ 0,25"),
    Denomination(10, COIN, "R$ 0,10"),
    Denomination(5, COIN, "R$ 0,05"),
    Denomination(1, COIN, "R$ 0,01", active=False),
)

DEFAULT_ACTIVE_VALUES: Tuple[int, ...] = tuple(
    denom.value for denom in BRL_CATALOG if denom.active
)

CATALOG_FILTERS: Dict[str, Callable[[Denomination], bool]] = {
    FULL_FILTER: lambda denom: True,
    TILL_CLOSING_FILTER: lambda denom: denom.kind == COIN
    or denom.value <= TILL_CLOSING_MAX_NOTE,
}


def filter_catalog(
    catalog: Sequence[Denomination] = BRL_CATALOG,
    name: str = FULL_FILTER,
) -> List[Denomination]:
    predicate = CATALOG_FILTERS.get(name)
    if predicate is None:
        raise InvalidConfiguration(f"Unknown catalog filter '{name}'.")
    return [denom for denom in catalog if predicate(denom)]


def find_denomination(
    value: int, catalog: Sequence[Denomination] = BRL_CATALOG
) -> Denomination | None:
    for denom in catalog:
        if denom.value == value:
            return denom
    return None


def with_active_values(
    catalog: Sequence[Denomination], values: Iterable[int]
) -> List[Denomination]:
    """Copy of ``catalog`` where exactly ``values`` are active."""
    wanted = set(values)
    known = {denom.value for denom in catalog}
    unknown = sorted(wanted - known, reverse=True)
    if unknown:
        listed = ", ".join(str(value) for value in unknown)
        raise InvalidConfiguration(f"Unknown denomination value(s): {listed}.")
    return [replace(denom, active=denom.value in wanted) for denom in catalog]


def active_denominations(
    catalog: Sequence[Denomination] = BRL_CATALOG,
    active_values: Iterable[int] | None = None,
) -> List[Denomination]:
    """Active entries sorted from the largest value down."""
    entries = (
        with_active_values(catalog, active_values)
        if active_values is not None
        else list(catalog)
    )
    return sorted(
        (denom for denom in entries if denom.active),
        key=lambda denom: denom.value,
        reverse=True,
    )


@lru_cache(maxsize=32)
def _greedy_is_optimal(values: Tuple[int, ...]) -> bool:
    # A counterexample, if one exists, is smaller than the two largest values
    # combined (Kozen & Zaks), so checking below that bound is exhaustive.
    if len(values) < 2:
        return True
    limit = values[0] + values[1]
    unreachable = limit + 1
    fewest = [0] + [unreachable] * (limit - 1)
    for amount in range(1, limit):
        for value in values:
            if value <= amount and fewest[amount - value] + 1 < fewest[amount]:
                fewest[amount] = fewest[amount - value] + 1
        if fewest[amount] == unreachable:
            continue
        pieces, remaining = 0, amount
        for value in values:
            pieces += remaining // value
            remaining %= value
        if remaining or pieces > fewest[amount]:
            return False
    return True


def is_canonical(denominations: Sequence[Denomination]) -> bool:
    """True when largest-first selection always yields the fewest pieces."""
    values = tuple(sorted({denom.value for denom in denominations}, reverse=True))
    return _greedy_is_optimal(values)


@dataclass(frozen=True)
class DenominationCount:
    denomination: Denomination
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidAmount("Count must be a whole number.")
        if self.count < 0:
            raise InvalidAmount("Count must be non-negative.")

    @property
    def total(self) -> int:
        return self.denomination.value * self.count

    def as_dict(self) -> Dict[str, object]:
        return {
            **self.denomination.as_dict(),
            "count": self.count,
            "total": self.total,
        }


class HasDenomination(Protocol):
    @property
    def denomination(self) -> Denomination: ...


T = TypeVar("T", bound=HasDenomination)


def counts_total(counts: Iterable[DenominationCount]) -> int:
    return sum(item.total for item in counts)


def piece_count(counts: Iterable[DenominationCount]) -> int:
    return sum(item.count for item in counts)


def separate_notes_and_coins(items: Iterable[T]) -> Tuple[List[T], List[T]]:
    """Split anything carrying a denomination into ``(notes, coins)``."""
    notes: List[T] = []
    coins: List[T] = []
    for item in items:
        if item.denomination.kind == NOTE:
            notes.append(item)
        else:
            coins.append(item)
    return notes, coins


__all__ = [
    "BRL_CATALOG",
    "COIN",
    "DEFAULT_ACTIVE_VALUES",
    "Denomination",
    "DenominationCount",
    "HasDenomination",
    "FULL_FILTER",
    "NOTE",
    "TILL_CLOSING_FILTER",
    "active_denominations",
    "counts_total",
    "filter_catalog",
    "find_denomination",
    "is_canonical",
    "piece_count",
    "separate_notes_and_coins",
    "with_active_values",
]
