from __future__ import annotations

import os

from fastapi import FastAPI, Form

from modules.till_closing.core.closing import (
    create_record,
    initial_counts,
    parse_count_pairs,
    quick_count_options,
    summarize,
    validate,
)
from trokito.errors import install_error_handling
from trokito.flows import resolve_flow_links
from trokito.settings import get_settings

app = FastAPI(title="Till Closing")
install_error_handling(app)

FLOW_BASE_URL = os.getenv("TROKITO_FLOW_BASE_URL")


@app.get("/")
def index():
    return {
        "module": "till_closing",
        "flow_links": resolve_flow_links("till_closing", base_url=FLOW_BASE_URL),
    }


@app.get("/denominations")
def denominations():
    return {
        "denominations": [
            {
                **item.denomination.as_dict(),
                "count": item.count,
                "quick_counts": quick_count_options(item.denomination.value),
            }
            for item in initial_counts()
        ]
    }


@app.post("/summary")
def summary(counts: str | None = Form(None)):
    closing = summarize(parse_count_pairs(counts))
    return {
        "summary": closing.as_dict(),
        "validation": validate(closing).as_dict(),
    }


@app.post("/record")
def record(
    counts: str | None = Form(None),
    operator: str | None = Form(None),
    notes: str | None = Form(None),
):
    parsed = parse_count_pairs(counts)
    closing = create_record(
        parsed,
        operator=operator or get_settings().operator_name,
        notes=notes,
    )
    return {
        "record": closing.as_dict(),
        "validation": validate(closing.summary).as_dict(),
    }
