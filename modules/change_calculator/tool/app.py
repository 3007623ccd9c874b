from __future__ import annotations

import os
from dataclasses import replace

from fastapi import FastAPI, Form

from modules.brl_currency.core.denominations import counts_total, piece_count
from modules.brl_currency.core.money import format_brl, to_minor_units
from modules.change_calculator.core.advice import suggest_customer_coins
from modules.change_calculator.core.breakdown import greedy_breakdown
from modules.change_calculator.core.change import (
    ChangeConfig,
    calculate_change,
    calculate_pdv_change,
    validate_config,
)
from modules.change_calculator.core.history import create_change_record
from modules.change_calculator.core.rounding import RoundingPolicy
from trokito.errors import install_error_handling
from trokito.flows import resolve_flow_links
from trokito.settings import get_settings

app = FastAPI(title="Change Calculator")
install_error_handling(app)

FLOW_BASE_URL = os.getenv("TROKITO_FLOW_BASE_URL")


def _config(rounding_policy: str | None, tolerance_cents: int | None) -> ChangeConfig:
    config = get_settings().change_config()
    if rounding_policy is None and tolerance_cents is None:
        return config
    current = config.rounding_policy
    policy = RoundingPolicy.parse(
        rounding_policy or current.mode.value,
        current.tolerance_cents if tolerance_cents is None else tolerance_cents,
    )
    return replace(config, rounding_policy=policy)


@app.get("/")
def index():
    config = get_settings().change_config()
    return {
        "module": "change_calculator",
        "rounding_policy": config.rounding_policy.as_dict(),
        "active_denominations": list(config.active_denominations),
        "flow_links": resolve_flow_links("change_calculator", base_url=FLOW_BASE_URL),
    }


@app.post("/calculate")
def calculate(
    purchase: str | None = Form(None),
    paid: str | None = Form(None),
    change: str | None = Form(None),
    rounding_policy: str | None = Form(None),
    tolerance_cents: int | None = Form(None),
):
    config = _config(rounding_policy, tolerance_cents)

    if change is not None and change.strip():
        result = calculate_pdv_change(change, config)
        payload = result.as_dict()
    else:
        result = calculate_change(purchase, paid, config)
        payload = result.as_dict()
        record = create_change_record(
            to_minor_units(purchase, label="Purchase amount"),
            to_minor_units(paid, label="Paid amount"),
            result,
        )
        payload["record"] = record.as_dict()

    payload["suggestions"] = suggest_customer_coins(result.exact_amount)
    return payload


@app.post("/breakdown")
def breakdown(amount: str | None = Form(None)):
    config = get_settings().change_config()
    amount_cents = to_minor_units(amount)
    counts = greedy_breakdown(amount_cents, validate_config(config))
    covered = counts_total(counts)
    return {
        "amount": amount_cents,
        "breakdown": [item.as_dict() for item in counts],
        "piece_count": piece_count(counts),
        "remainder": amount_cents - covered,
        "formatted": {
            "amount": format_brl(amount_cents),
            "remainder": format_brl(amount_cents - covered),
        },
    }


@app.post("/suggest")
def suggest(change: str | None = Form(None)):
    return {"suggestions": suggest_customer_coins(to_minor_units(change, label="Change amount"))}
