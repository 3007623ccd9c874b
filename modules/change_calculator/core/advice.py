from __future__ import annotations

from typing import List

from modules.brl_currency.core.money import format_cents


def suggest_customer_coins(change_cents: int) -> List[str]:
    """Hints for the operator on which small coins to ask the customer for.

    Purely advisory: the hints make the change easier to hand over, they
    never alter a calculation.
    """
    if change_cents <= 0:
        return []

    cents = change_cents % 100
    if 0 < cents <= 4:
        return [f"Ask the customer for {format_cents(cents)} to round the change down."]
    if cents >= 96:
        return [f"Ask the customer for {format_cents(100 - cents)} to round the change up."]
    if 46 <= cents <= 54:
        return ["Ask the customer for R$ 0,50 to simplify the change."]
    if 21 <= cents <= 29:
        return ["Ask the customer for R$ 0,25 to simplify the change."]
    return []


__all__ = ["suggest_customer_coins"]
