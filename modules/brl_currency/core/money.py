from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from trokito.errors import InvalidAmount

CENTS_PER_REAL = 100
MAX_AMOUNT_MINOR = 99_999_999
CURRENCY_SYMBOL = "R$"

_CENT = Decimal("0.01")


def _normalize_text(raw: str) -> str:
    compact = raw.replace(CURRENCY_SYMBOL, "").replace(" ", "").replace("\u00a0", "")
    if "," in compact and "." in compact:
        last_comma = compact.rfind(",")
        last_dot = compact.rfind(".")
        if last_comma > last_dot:
            compact = compact.replace(".", "")
            compact = compact.replace(",", ".")
        else:
            compact = compact.replace(",", "")
    elif "," in compact:
        compact = compact.replace(",", ".")
    return compact


def parse_amount(value: object, *, label: str = "Amount") -> Decimal:
    """Read a currency value typed by a user (``"R$ 12,35"``) or passed as a number.

    Raises ``InvalidAmount`` for missing, unparsable, non-finite or negative input.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"{label} is required.")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        raw = str(value).strip()
        if not raw:
            raise InvalidAmount(f"{label} is required.")
        try:
            amount = Decimal(_normalize_text(raw))
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f"{label} must be a number.") from None

    if not amount.is_finite():
        raise InvalidAmount(f"{label} must be a finite number.")
    if amount < 0:
        raise InvalidAmount(f"{label} must be zero or higher.")
    return amount


def to_minor_units(value: object, *, label: str = "Amount") -> int:
    amount = parse_amount(value, label=label) * CENTS_PER_REAL
    # checked before quantize, which fails on values beyond the context precision
    if amount >= MAX_AMOUNT_MINOR + Decimal("0.5"):
        raise InvalidAmount(f"{label} is too large (limit {format_brl(MAX_AMOUNT_MINOR)}).")
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def ensure_minor_units(value: object, *, label: str = "Amount") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{label} must be a whole number of cents.")
    if value < 0:
        raise InvalidAmount(f"{label} must be zero or higher.")
    if value > MAX_AMOUNT_MINOR:
        raise InvalidAmount(f"{label} is too large (limit {format_brl(MAX_AMOUNT_MINOR)}).")
    return value


def from_minor_units(cents: int) -> Decimal:
    return (Decimal(cents) / CENTS_PER_REAL).quantize(_CENT)


def _group_thousands(value: str, sep: str) -> str:
    parts = []
    while value:
        parts.append(value[-3:])
        value = value[:-3]
    return sep.join(reversed(parts)) or "0"


def format_decimal(cents: int, *, thousand_sep: str = "") -> str:
    """Two-decimal, comma-separated rendering used by exports (``1234,56``)."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), CENTS_PER_REAL)
    integer_part = _group_thousands(str(reais), thousand_sep) if thousand_sep else str(reais)
    return f"{sign}{integer_part},{centavos:02d}"


def format_brl(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL} {format_decimal(abs(cents), thousand_sep='.')}"


def format_cents(cents: int) -> str:
    unit = "cent" if abs(cents) == 1 else "cents"
    return f"{abs(cents)} {unit}"


__all__ = [
    "CENTS_PER_REAL",
    "MAX_AMOUNT_MINOR",
    "ensure_minor_units",
    "format_brl",
    "format_cents",
    "format_decimal",
    "from_minor_units",
    "parse_amount",
    "to_minor_units",
]
