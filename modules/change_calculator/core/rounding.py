from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from trokito.errors import InvalidConfiguration

SMALLEST_COIN = 5
DEFAULT_TOLERANCE_CENTS = 4


class RoundingMode(str, Enum):
    NEAREST_5_CENTS = "nearest-5-cents"
    NEAREST_10_CENTS = "nearest-10-cents"
    ALLOW_OWING = "allow-owing"


_MODE_ALIASES: Dict[str, RoundingMode] = {
    "nearest-5-cents": RoundingMode.NEAREST_5_CENTS,
    "nearest-0.05": RoundingMode.NEAREST_5_CENTS,
    "nearest-10-cents": RoundingMode.NEAREST_10_CENTS,
    "nearest-0.10": RoundingMode.NEAREST_10_CENTS,
    "allow-owing": RoundingMode.ALLOW_OWING,
    "allow-owing-up-to-0.04": RoundingMode.ALLOW_OWING,
}


@dataclass(frozen=True)
class RoundingPolicy:
    mode: RoundingMode = RoundingMode.ALLOW_OWING
    tolerance_cents: int = DEFAULT_TOLERANCE_CENTS

    def __post_init__(self) -> None:
        if not isinstance(self.mode, RoundingMode):
            object.__setattr__(self, "mode", RoundingMode(self.mode))

    @classmethod
    def parse(
        cls, name: str, tolerance_cents: int = DEFAULT_TOLERANCE_CENTS
    ) -> "RoundingPolicy":
        key = (name or "").strip().lower()
        if key.startswith("allow-owing-up-to-") and key.endswith("-cents"):
            number = key[len("allow-owing-up-to-") : -len("-cents")]
            if number.isdigit():
                return cls(RoundingMode.ALLOW_OWING, int(number))
        mode = _MODE_ALIASES.get(key)
        if mode is None:
            raise InvalidConfiguration(f"Unknown rounding policy '{name}'.")
        return cls(mode, tolerance_cents)

    def as_dict(self) -> Dict[str, object]:
        return {"mode": self.mode.value, "tolerance_cents": self.tolerance_cents}


def _round_half_up(value: int, step: int) -> int:
    # floor(value / step + 1/2) * step, in integers
    return (2 * value + step) // (2 * step) * step


def round_to_nearest(value: int, step: int) -> int:
    return _round_half_up(value, step)


def round_down(value: int, step: int) -> int:
    return value - value % step


def apply_rounding(exact: int, policy: RoundingPolicy) -> Tuple[int, int]:
    """Map an exact change amount to a payable one.

    Returns ``(rounded, delta)`` where ``delta = rounded - exact``. A negative
    delta means that many cents less change is handed over than is due.
    """
    if exact == 0:
        return 0, 0

    if policy.mode == RoundingMode.NEAREST_10_CENTS:
        rounded = round_to_nearest(exact, 10)
    elif policy.mode == RoundingMode.NEAREST_5_CENTS:
        rounded = round_to_nearest(exact, SMALLEST_COIN)
    else:
        lower = round_down(exact, SMALLEST_COIN)
        if lower == exact:
            rounded = exact
        elif exact - lower <= policy.tolerance_cents:
            rounded = lower
        else:
            rounded = round_to_nearest(exact, SMALLEST_COIN)

    return rounded, rounded - exact


__all__ = [
    "DEFAULT_TOLERANCE_CENTS",
    "RoundingMode",
    "RoundingPolicy",
    "apply_rounding",
    "round_down",
    "round_to_nearest",
]
