from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import structlog

from modules.brl_currency.core.denominations import (
    BRL_CATALOG,
    DEFAULT_ACTIVE_VALUES,
    Denomination,
    DenominationCount,
    active_denominations,
    counts_total,
    is_canonical,
    piece_count,
    separate_notes_and_coins,
)
from modules.brl_currency.core.money import (
    ensure_minor_units,
    format_brl,
    format_cents,
    to_minor_units,
)
from modules.change_calculator.core.breakdown import greedy_breakdown, min_piece_breakdown
from modules.change_calculator.core.rounding import RoundingMode, RoundingPolicy, apply_rounding
from trokito.errors import InsufficientPayment, InvalidConfiguration

logger = structlog.get_logger(__name__)

NO_CHANGE_MESSAGE = "No change due."


@dataclass(frozen=True)
class ChangeConfig:
    rounding_policy: RoundingPolicy = field(default_factory=RoundingPolicy)
    active_denominations: Tuple[int, ...] = DEFAULT_ACTIVE_VALUES
    # Only matters for non-canonical sets, where it selects the fewest-pieces solver.
    prioritize_less_coins: bool = True
    catalog: Tuple[Denomination, ...] = BRL_CATALOG


DEFAULT_CONFIG = ChangeConfig()


@dataclass(frozen=True)
class ChangeResult:
    exact_amount: int
    rounded_amount: int
    breakdown: Tuple[DenominationCount, ...] = ()
    explanation: str | None = None

    @property
    def rounding_delta(self) -> int:
        return self.rounded_amount - self.exact_amount

    @property
    def is_exactly_representable(self) -> bool:
        return self.rounding_delta == 0

    @property
    def piece_count(self) -> int:
        return piece_count(self.breakdown)

    @property
    def notes(self) -> List[DenominationCount]:
        return separate_notes_and_coins(self.breakdown)[0]

    @property
    def coins(self) -> List[DenominationCount]:
        return separate_notes_and_coins(self.breakdown)[1]

    def as_dict(self) -> Dict[str, object]:
        return {
            "exact_amount": self.exact_amount,
            "rounded_amount": self.rounded_amount,
            "rounding_delta": self.rounding_delta,
            "is_exactly_representable": self.is_exactly_representable,
            "piece_count": self.piece_count,
            "breakdown": [item.as_dict() for item in self.breakdown],
            "explanation": self.explanation,
            "formatted": {
                "exact_amount": format_brl(self.exact_amount),
                "rounded_amount": format_brl(self.rounded_amount),
            },
        }


def validate_config(config: ChangeConfig) -> List[Denomination]:
    """Check ``config`` and return its active denominations, largest first."""
    if config.rounding_policy.tolerance_cents < 0:
        raise InvalidConfiguration("Rounding tolerance must be zero or higher.")
    if not config.active_denominations:
        raise InvalidConfiguration("At least one denomination must be active.")
    active = active_denominations(config.catalog, config.active_denominations)
    if not active:
        raise InvalidConfiguration("At least one denomination must be active.")
    return active


def _explain(policy: RoundingPolicy, policy_delta: int, shortfall: int) -> str | None:
    parts: List[str] = []
    if policy_delta > 0:
        parts.append(f"Change rounded up by {format_cents(policy_delta)}.")
    elif policy_delta < 0:
        if policy.mode == RoundingMode.ALLOW_OWING and -policy_delta <= policy.tolerance_cents:
            parts.append(f"Customer owes {format_cents(policy_delta)} within tolerance.")
        else:
            parts.append(f"Change rounded down by {format_cents(policy_delta)}.")
    if shortfall:
        parts.append(
            f"Active denominations cannot cover the last {format_cents(shortfall)}; "
            "change reduced accordingly."
        )
    return " ".join(parts) or None


def calculate_change_cents(
    exact: int, config: ChangeConfig | None = None
) -> ChangeResult:
    """Break an exact change amount (in cents) into notes and coins."""
    exact = ensure_minor_units(exact, label="Change amount")
    config = config or DEFAULT_CONFIG
    active = validate_config(config)

    if exact == 0:
        return ChangeResult(0, 0, (), NO_CHANGE_MESSAGE)

    rounded, policy_delta = apply_rounding(exact, config.rounding_policy)
    if is_canonical(active):
        breakdown = greedy_breakdown(rounded, active)
    elif config.prioritize_less_coins:
        logger.info("min_piece_breakdown", active=[denom.value for denom in active])
        breakdown = min_piece_breakdown(rounded, active)
    else:
        logger.warning("greedy_not_optimal", active=[denom.value for denom in active])
        breakdown = greedy_breakdown(rounded, active)
    covered = counts_total(breakdown)
    shortfall = rounded - covered

    result = ChangeResult(
        exact_amount=exact,
        rounded_amount=covered,
        breakdown=tuple(breakdown),
        explanation=_explain(config.rounding_policy, policy_delta, shortfall),
    )
    logger.debug(
        "change_calculated",
        exact=exact,
        rounded=result.rounded_amount,
        delta=result.rounding_delta,
        pieces=result.piece_count,
        policy=config.rounding_policy.mode.value,
    )
    return result


def calculate_change(
    purchase_amount: object,
    paid_amount: object,
    config: ChangeConfig | None = None,
) -> ChangeResult:
    purchase = to_minor_units(purchase_amount, label="Purchase amount")
    paid = to_minor_units(paid_amount, label="Paid amount")
    if paid < purchase:
        raise InsufficientPayment(
            f"Paid amount {format_brl(paid)} is less than the purchase amount "
            f"{format_brl(purchase)}."
        )
    return calculate_change_cents(paid - purchase, config)


def calculate_pdv_change(
    change_amount: object, config: ChangeConfig | None = None
) -> ChangeResult:
    """Breakdown for a change value already computed by the point of sale."""
    return calculate_change_cents(
        to_minor_units(change_amount, label="Change amount"), config
    )


__all__ = [
    "ChangeConfig",
    "ChangeResult",
    "DEFAULT_CONFIG",
    "NO_CHANGE_MESSAGE",
    "calculate_change",
    "calculate_change_cents",
    "calculate_pdv_change",
    "validate_config",
]
