"""Holdings table and month-listing routes."""

from __future__ import annotations

from starlette.testclient import TestClient

from rollup.core.errors import UpstreamError
from rollup.core.months import MonthKey

URL = "/api/clients/assets/holdings"
MONTHS_URL = "/api/clients/assets/holdings/months"


class TestHoldings:
    def test_latest_month_normalized(self, test_client: TestClient, source, july_blocks, june_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        source.add_month(2025, 6, june_blocks)

        resp = test_client.get(URL, params={"client_id": 7})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        [entry] = body["overview_data"]
        assert entry["month_date"] == "2025-07-01T00:00:00.000Z"
        assert entry["pie_chart_data"] == {"charts": []}
        ubs, jb = entry["table_data"]["tableData"]
        equity = ubs["direct_equities"][0]
        assert (equity["ticker"], equity["isin"], equity["balance"]) == ("AAPL", "US0378331005", 2000.0)
        assert [r["balance"] for r in jb["cash_equivalents"]] == [250.0, 100.0]

    def test_explicit_month(self, test_client: TestClient, source, july_blocks, june_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        source.add_month(2025, 6, june_blocks)
        body = test_client.post(URL, json={"client_id": 7, "year": 2025, "month": 6}).json()
        [entry] = body["overview_data"]
        assert entry["month_date"] == "2025-06-01T00:00:00.000Z"
        assert len(entry["table_data"]["tableData"]) == 1

    def test_filters_ignored(self, test_client: TestClient, source, july_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        test_client.get(URL, params={"client_id": 7, "custodian": "UBS", "from": "2025-01-01"})
        assert source.calls_of("range") == []

    def test_no_data(self, test_client: TestClient) -> None:
        body = test_client.get(URL, params={"client_id": 7}).json()
        assert body["overview_data"] == [
            {"month_date": None, "pie_chart_data": {"charts": []}, "table_data": {"tableData": []}},
        ]

    def test_missing_client(self, test_client: TestClient) -> None:
        resp = test_client.post(URL, json={})
        assert resp.status_code == 400
        assert resp.json()["message"] == "client_id is required"


class TestMonths:
    def test_newest_first(self, test_client: TestClient, source) -> None:
        source.recent = [MonthKey(2025, 7), MonthKey(2025, 6), MonthKey(2024, 12)]
        resp = test_client.get(MONTHS_URL, params={"client_id": 7})
        assert resp.status_code == 200
        assert resp.json() == {"months": ["2025-07", "2025-06", "2024-12"]}
        assert source.calls == [("recent", 7, 240)]

    def test_post(self, test_client: TestClient, source) -> None:
        source.recent = [MonthKey(2025, 7)]
        assert test_client.post(MONTHS_URL, json={"client_id": 7}).json() == {"months": ["2025-07"]}

    def test_missing_client(self, test_client: TestClient) -> None:
        assert test_client.get(MONTHS_URL).status_code == 400

    def test_upstream_failure(self, test_client: TestClient, source) -> None:
        source.error = UpstreamError("timeout")
        resp = test_client.get(MONTHS_URL, params={"client_id": 7})
        assert resp.status_code == 500
        assert resp.json()["message"] == "failed to load"
