from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from trokito.engine import build_app


@pytest.fixture
def client():
    return TestClient(build_app())


class TestIndex:
    def test_public_modules_grouped(self, client):
        response = client.get("/")
        assert response.status_code == 200
        categories = response.json()["categories"]
        assert [c["name"] for c in categories] == ["Cashier", "Data"]
        names = [m["name"] for c in categories for m in c["modules"]]
        assert "brl_currency" not in names
        assert set(names) == {"change_calculator", "till_closing", "cash_export"}

    def test_category(self, client):
        response = client.get("/category/cashier")
        assert response.status_code == 200
        assert [m["mount"] for m in response.json()["modules"]] == ["/troco", "/fechamento"]

    def test_unknown_category(self, client):
        assert client.get("/category/nope").status_code == 404


class TestChangeCalculatorApi:
    def test_module_index_links_to_till_closing(self, client):
        body = client.get("/troco/").json()
        assert body["rounding_policy"] == {"mode": "allow-owing", "tolerance_cents": 4}
        assert body["flow_links"] == [{"label": "Close the till", "href": "/fechamento"}]

    def test_calculate(self, client):
        response = client.post("/troco/calculate", data={"purchase": "10,04", "paid": "20,00"})
        assert response.status_code == 200
        body = response.json()
        assert body["exact_amount"] == 996
        assert body["rounded_amount"] == 995
        assert sum(item["total"] for item in body["breakdown"]) == 995
        assert body["record"]["purchase_amount"] == 1004
        assert body["record"]["rounding_applied"] == -1
        assert body["suggestions"] == ["Ask the customer for 4 cents to round the change up."]

    def test_calculate_with_policy_override(self, client):
        response = client.post(
            "/troco/calculate",
            data={"purchase": "10,04", "paid": "20,00", "rounding_policy": "nearest-0.10"},
        )
        assert response.json()["rounded_amount"] == 1000

    def test_point_of_sale_change(self, client):
        body = client.post("/troco/calculate", data={"change": "R$ 9,96"}).json()
        assert body["exact_amount"] == 996
        assert "record" not in body

    def test_insufficient_payment(self, client):
        response = client.post("/troco/calculate", data={"purchase": "20,00", "paid": "10,00"})
        assert response.status_code == 400
        assert response.json()["code"] == "insufficient_payment"

    def test_invalid_amount(self, client):
        response = client.post("/troco/calculate", data={"purchase": "abc", "paid": "10,00"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_amount"

    def test_unknown_policy(self, client):
        response = client.post(
            "/troco/calculate",
            data={"purchase": "1", "paid": "2", "rounding_policy": "banker"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_configuration"

    def test_form_validation_is_normalized(self, client):
        response = client.post(
            "/troco/calculate",
            data={"purchase": "1", "paid": "2", "tolerance_cents": "abc"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid input.", "code": "invalid_input"}

    def test_breakdown_reports_remainder(self, client):
        body = client.post("/troco/breakdown", data={"amount": "0,03"}).json()
        assert body["breakdown"] == []
        assert body["remainder"] == 3

        body = client.post("/troco/breakdown", data={"amount": "R$ 1.234,56"}).json()
        assert body["remainder"] == 1
        assert body["formatted"]["amount"] == "R$ 1.234,56"

        body = client.post("/troco/breakdown", data={"amount": "R$ 1.234,55"}).json()
        assert body["remainder"] == 0
        assert body["piece_count"] == 12

    def test_suggest(self, client):
        body = client.post("/troco/suggest", data={"change": "10,02"}).json()
        assert body == {"suggestions": ["Ask the customer for 2 cents to round the change down."]}


class TestTillClosingApi:
    def test_denominations(self, client):
        items = client.get("/fechamento/denominations").json()["denominations"]
        assert len(items) == 10
        assert items[0]["value"] == 2000
        assert items[0]["quick_counts"] == [5, 10, 25, 50]

    def test_summary(self, client):
        body = client.post("/fechamento/summary", data={"counts": "100x2; 50x1; 5x1"}).json()
        assert body["summary"]["total_amount"] == 25500
        assert body["validation"]["is_valid"] is True
        assert body["validation"]["warnings"] == []
        assert body["validation"]["notices"] == ["Only notes were counted."]

    def test_empty_summary_warns(self, client):
        body = client.post("/fechamento/summary", data={}).json()
        assert body["validation"]["warnings"] == ["Nothing was counted."]

    def test_record_uses_configured_operator(self, client, monkeypatch):
        monkeypatch.setenv("TROKITO_OPERATOR_NAME", "Bia")
        from trokito.settings import get_settings

        get_settings.cache_clear()
        body = client.post("/fechamento/record", data={"counts": "1:3"}).json()
        assert body["record"]["operator"] == "Bia"
        assert body["record"]["summary"]["total_coins"] == 300

    def test_bad_entry(self, client):
        response = client.post("/fechamento/summary", data={"counts": "3x1"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_amount"


class TestExportApi:
    def test_closings_csv(self, client):
        rows = [
            {
                "created_at": "2026-10-18T14:30:05+00:00",
                "operator": "Ana",
                "total_notes": 25500,
                "total_coins": 0,
                "total_piece_count": 4,
            }
        ]
        response = client.post("/export/closings.csv", json=rows)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["x-row-count"] == "1"
        assert "fechamentos.csv" in response.headers["content-disposition"]
        lines = response.text.splitlines()
        stamp = datetime(2026, 10, 18, 14, 30, 5, tzinfo=timezone.utc).astimezone()
        assert lines[1] == f'"{stamp:%d/%m/%Y %H:%M:%S}","Ana","255,00","255,00","0,00","4",""'

    def test_changes_csv(self, client):
        rows = [
            {
                "created_at": "2026-10-18T14:30:05+00:00",
                "purchase_amount": 1004,
                "paid_amount": 2000,
                "change_amount": 995,
                "exact_change": 996,
                "rounding_applied": -1,
            }
        ]
        response = client.post("/export/changes.csv", json=rows)
        assert response.text.splitlines()[1].endswith('"9,95","9,96","-0,01"')

    def test_bundle(self, client):
        body = client.post("/export/bundle", json={"closings": [], "change_history": []}).json()
        assert body["version"] == "1.0.0"
        assert body["settings"]["rounding_policy"] == "allow-owing"
        assert body["settings"]["active_denominations"][0] == 20000

    def test_invalid_rows(self, client):
        response = client.post("/export/closings.csv", json=[{"total_notes": -1}])
        assert response.status_code == 400

    def test_module_index(self, client):
        body = client.get("/export/").json()
        assert body["module"] == "cash_export"
        assert body["flow_links"] == []
