from __future__ import annotations

import csv
import io
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Sequence

from modules.brl_currency.core.money import format_decimal
from modules.change_calculator.core.history import ChangeRecord
from modules.till_closing.core.closing import ClosingRecord

EXPORT_VERSION = "1.0.0"
DATE_FORMAT = "%d/%m/%Y %H:%M:%S"
MISSING_OPERATOR = "N/A"

CLOSING_HEADERS = [
    "Data/Hora",
    "Operador",
    "Total (R$)",
    "Total Notas (R$)",
    "Total Moedas (R$)",
    "Total Peças",
    "Observações",
]

CHANGE_HEADERS = [
    "Data/Hora",
    "Valor Compra (R$)",
    "Valor Pago (R$)",
    "Troco (R$)",
    "Troco Exato (R$)",
    "Arredondamento (R$)",
]


def _write_rows(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def _format_timestamp(value: datetime, tz: tzinfo | None) -> str:
    # local time when tz is None
    return value.astimezone(tz).strftime(DATE_FORMAT)


def closings_to_csv(
    records: Iterable[ClosingRecord], *, tz: tzinfo | None = None
) -> str:
    rows: List[List[str]] = []
    for record in records:
        summary = record.summary
        rows.append(
            [
                _format_timestamp(record.created_at, tz),
                record.operator or MISSING_OPERATOR,
                format_decimal(summary.total_amount),
                format_decimal(summary.total_notes),
                format_decimal(summary.total_coins),
                str(summary.total_piece_count),
                record.notes or "",
            ]
        )
    return _write_rows(CLOSING_HEADERS, rows)


def change_history_to_csv(
    records: Iterable[ChangeRecord], *, tz: tzinfo | None = None
) -> str:
    rows = [
        [
            _format_timestamp(record.created_at, tz),
            format_decimal(record.purchase_amount),
            format_decimal(record.paid_amount),
            format_decimal(record.change_amount),
            format_decimal(record.exact_change),
            format_decimal(record.rounding_applied),
        ]
        for record in records
    ]
    return _write_rows(CHANGE_HEADERS, rows)


def build_export_bundle(
    closings: Iterable[ClosingRecord],
    change_history: Iterable[ChangeRecord],
    settings: Dict[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> Dict[str, Any]:
    return {
        "closings": [record.as_dict() for record in closings],
        "changeHistory": [record.as_dict() for record in change_history],
        "settings": settings or {},
        "exportDate": (now or datetime.now(timezone.utc)).isoformat(),
        "version": EXPORT_VERSION,
    }


__all__ = [
    "CHANGE_HEADERS",
    "CLOSING_HEADERS",
    "build_export_bundle",
    "change_history_to_csv",
    "closings_to_csv",
]
