from __future__ import annotations

from math import gcd
from typing import List, Sequence

from modules.brl_currency.core.denominations import Denomination, DenominationCount


def greedy_breakdown(
    amount: int, denominations: Sequence[Denomination]
) -> List[DenominationCount]:
    """Largest-first change breakdown.

    ``denominations`` must already be sorted from the largest value down.
    Greedy selection is only piece-optimal for canonical sets such as the
    Real's (see ``is_canonical``). Whatever cannot be covered is left out
    of the result.
    """
    result: List[DenominationCount] = []
    remaining = amount
    for denom in denominations:
        if remaining <= 0:
            break
        count = remaining // denom.value
        if count:
            result.append(DenominationCount(denom, count))
            remaining -= count * denom.value
    return result


def min_piece_breakdown(
    amount: int, denominations: Sequence[Denomination]
) -> List[DenominationCount]:
    """Breakdown that covers as much of ``amount`` as possible in the fewest pieces.

    Used for sets where greedy selection is not optimal. A smaller value
    ``v`` never appears ``top // gcd(v, top)`` times or more in an optimal
    answer, since that many pieces can be swapped for fewer pieces of the
    largest value ``top``. That caps the part of the amount paid in smaller
    values, so the table only spans that part and the rest is paid in
    ``top``.
    """
    if amount <= 0 or not denominations:
        return []
    ordered = sorted(denominations, key=lambda denom: denom.value, reverse=True)
    largest, smaller = ordered[0], ordered[1:]
    top = largest.value
    limit = min(
        amount, sum((top // gcd(denom.value, top) - 1) * denom.value for denom in smaller)
    )

    unreachable = limit + 1
    fewest = [0] + [unreachable] * limit
    last = [-1] * (limit + 1)
    for subtotal in range(1, limit + 1):
        for index, denom in enumerate(smaller):
            previous = subtotal - denom.value
            if previous >= 0 and fewest[previous] + 1 < fewest[subtotal]:
                fewest[subtotal] = fewest[previous] + 1
                last[subtotal] = index

    best_subtotal, best_key = 0, (amount // top * top, -(amount // top))
    for subtotal in range(1, limit + 1):
        if fewest[subtotal] == unreachable:
            continue
        tops = (amount - subtotal) // top
        key = (subtotal + tops * top, -(fewest[subtotal] + tops))
        if key > best_key:
            best_subtotal, best_key = subtotal, key

    tally = [0] * len(smaller)
    subtotal = best_subtotal
    while subtotal:
        index = last[subtotal]
        tally[index] += 1
        subtotal -= smaller[index].value

    result: List[DenominationCount] = []
    tops = (amount - best_subtotal) // top
    if tops:
        result.append(DenominationCount(largest, tops))
    result.extend(
        DenominationCount(denom, count) for denom, count in zip(smaller, tally) if count
    )
    return result


__all__ = ["greedy_breakdown", "min_piece_breakdown"]
