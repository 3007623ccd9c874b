from __future__ import annotations

import io
from datetime import datetime
from typing import List

from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from modules.cash_export.core.export import (
    build_export_bundle,
    change_history_to_csv,
    closings_to_csv,
)
from modules.change_calculator.core.history import ChangeRecord
from modules.till_closing.core.closing import ClosingRecord, ClosingSummary
from trokito.errors import install_error_handling
from trokito.flows import resolve_flow_links
from trokito.settings import get_settings

app = FastAPI(title="Cash Export")
install_error_handling(app)

EXPORTED_SETTINGS = {
    "rounding_policy",
    "tolerance_cents",
    "active_denominations",
    "prioritize_less_coins",
    "operator_name",
}


class ClosingRow(BaseModel):
    id: str = ""
    created_at: datetime
    operator: str | None = None
    notes: str = ""
    total_notes: int = Field(ge=0)
    total_coins: int = Field(ge=0)
    total_piece_count: int = Field(ge=0)

    def to_record(self) -> ClosingRecord:
        summary = ClosingSummary(
            total_notes=self.total_notes,
            total_coins=self.total_coins,
            total_amount=self.total_notes + self.total_coins,
            total_piece_count=self.total_piece_count,
        )
        return ClosingRecord(
            id=self.id,
            created_at=self.created_at,
            summary=summary,
            operator=self.operator,
            notes=self.notes,
        )


class ChangeRow(BaseModel):
    id: str = ""
    created_at: datetime
    purchase_amount: int = Field(ge=0)
    paid_amount: int = Field(ge=0)
    change_amount: int = Field(ge=0)
    exact_change: int = Field(ge=0)
    rounding_applied: int = 0

    def to_record(self) -> ChangeRecord:
        return ChangeRecord(**self.model_dump())


class ExportRequest(BaseModel):
    closings: List[ClosingRow] = []
    change_history: List[ChangeRow] = []


def _csv_response(text: str, filename: str, rows: int) -> StreamingResponse:
    headers = {
        "Content-Disposition": f"attachment; filename={filename}",
        "X-Row-Count": str(rows),
    }
    return StreamingResponse(
        io.BytesIO(text.encode("utf-8")),
        media_type="text/csv",
        headers=headers,
    )


@app.get("/")
def index():
    return {
        "module": "cash_export",
        "exports": ["closings.csv", "changes.csv", "bundle"],
        "flow_links": resolve_flow_links("cash_export"),
    }


@app.post("/closings.csv")
def export_closings(rows: List[ClosingRow]):
    text = closings_to_csv(row.to_record() for row in rows)
    return _csv_response(text, "fechamentos.csv", len(rows))


@app.post("/changes.csv")
def export_changes(rows: List[ChangeRow]):
    text = change_history_to_csv(row.to_record() for row in rows)
    return _csv_response(text, "historico-troco.csv", len(rows))


@app.post("/bundle")
def export_bundle(payload: ExportRequest):
    settings = get_settings()
    return build_export_bundle(
        (row.to_record() for row in payload.closings),
        (row.to_record() for row in payload.change_history),
        settings.model_dump(include=EXPORTED_SETTINGS),
    )
