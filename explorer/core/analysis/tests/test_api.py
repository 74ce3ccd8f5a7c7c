"""
Tabular Explorer API — Endpoint Tests
=======================================
Drives the FastAPI app end to end with an isolated in-memory session store.

Run: pytest explorer/ -v
"""

import json

import pytest
from fastapi.testclient import TestClient

from explorer.core.session_store import SessionStore, get_store
from main import app

BASE = "/api/v1/explorer"


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

def make_upload(file_name="sales.csv"):
    return {
        "file_name": file_name,
        "records": [
            {"region": "north", "units": "1", "revenue": "10"},
            {"region": "south", "units": "2", "revenue": "20"},
            {"region": "north", "units": "3", "revenue": "30"},
            {"region": "east", "units": "4", "revenue": "40"},
            {"region": "north", "units": "5", "revenue": "50"},
            {"region": "south", "units": "6", "revenue": ""},
        ],
    }


@pytest.fixture
def store():
    return SessionStore(max_size=10)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    response = client.post(f"{BASE}/sessions", json=make_upload())
    assert response.status_code == 201
    return response.json()["session_id"]


# ═══════════════════════════════════════════════════════════════
# 1. SESSION LIFECYCLE
# ═══════════════════════════════════════════════════════════════

class TestSessions:

    def test_create(self, client):
        body = client.post(f"{BASE}/sessions", json=make_upload()).json()
        assert body["rows"] == 6
        assert body["columns"] == ["region", "units", "revenue"]
        assert body["column_types"]["units"] == "numeric"
        assert body["type_counts"]["categorical"] == 1

    def test_mismatched_rows_rejected(self, client, store):
        payload = {"records": [{"a": "1"}, {"b": "2"}]}
        response = client.post(f"{BASE}/sessions", json=payload)
        assert response.status_code == 422
        assert response.json()["detail"]["error_type"] == "input_error"
        assert len(store) == 0

    def test_non_scalar_cells_rejected(self, client, store):
        payload = {"records": [{"c": [1]}, {"c": ""}, {"c": [1]}]}
        response = client.post(f"{BASE}/sessions", json=payload)
        assert response.status_code == 422
        assert len(store) == 0

    def test_upload_row_limit(self, client, monkeypatch):
        from explorer.config import settings
        monkeypatch.setattr(settings, "MAX_UPLOAD_ROWS", 3)
        response = client.post(f"{BASE}/sessions", json=make_upload())
        assert response.status_code == 413

    def test_get_and_delete(self, client, session_id):
        assert client.get(f"{BASE}/sessions/{session_id}").json()["file_name"] == "sales.csv"
        assert client.delete(f"{BASE}/sessions/{session_id}").status_code == 200
        assert client.get(f"{BASE}/sessions/{session_id}").status_code == 404
        assert client.delete(f"{BASE}/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        assert client.get(f"{BASE}/sessions/nope/quality").status_code == 404

    def test_restore(self, client, session_id):
        client.post(f"{BASE}/sessions/{session_id}/fix", json={"method": "delete", "column": "revenue"})
        body = client.post(f"{BASE}/sessions/{session_id}/restore").json()
        assert body["rows"] == 6
        assert body["modified"] is False


# ═══════════════════════════════════════════════════════════════
# 2. ANALYSIS
# ═══════════════════════════════════════════════════════════════

class TestAnalysis:

    def test_quality(self, client, session_id):
        body = client.get(f"{BASE}/sessions/{session_id}/quality").json()
        assert body["total_cells"] == 18
        assert body["missing_cells"] == 1
        assert body["duplicate_count"] == 0

    def test_insights(self, client, session_id):
        body = client.get(f"{BASE}/sessions/{session_id}/insights").json()
        assert [i["rule_id"] for i in body["insights"]] == ["IN-001", "IN-002", "IN-003", "IN-004", "IN-005"]
        assert body["counts"]["total"] == 5
        assert body["counts"]["warning"] == 1

    def test_records(self, client, session_id):
        body = client.get(f"{BASE}/sessions/{session_id}/records", params={"limit": 2}).json()
        assert body["total_rows"] == 6
        assert body["returned_rows"] == 2
        assert body["rows"][0]["region"] == "north"


# ═══════════════════════════════════════════════════════════════
# 3. FILTERS
# ═══════════════════════════════════════════════════════════════

class TestFilters:

    def test_options(self, client, session_id):
        body = client.get(f"{BASE}/sessions/{session_id}/filters").json()
        assert body["options"] == {"region": ["north", "south", "east"]}
        assert body["active"] == {}
        assert body["filtered_rows"] == 6

    def test_set_and_remove(self, client, session_id):
        url = f"{BASE}/sessions/{session_id}/filters/region"
        body = client.put(url, json={"values": ["north"]}).json()
        assert body["active"] == {"region": ["north"]}
        assert body["filtered_rows"] == 3

        records = client.get(f"{BASE}/sessions/{session_id}/records").json()
        assert records["total_rows"] == 3
        unfiltered = client.get(f"{BASE}/sessions/{session_id}/records", params={"filtered": False}).json()
        assert unfiltered["total_rows"] == 6

        assert client.delete(url).json()["filtered_rows"] == 6

    def test_clear(self, client, session_id):
        client.put(f"{BASE}/sessions/{session_id}/filters/region", json={"values": []})
        body = client.delete(f"{BASE}/sessions/{session_id}/filters").json()
        assert body["active"] == {}
        assert body["filtered_rows"] == 6

    def test_unknown_column(self, client, session_id):
        response = client.put(f"{BASE}/sessions/{session_id}/filters/price", json={"values": ["1"]})
        assert response.status_code == 422


# ═══════════════════════════════════════════════════════════════
# 4. FIXES, QUESTIONS, EXPORTS
# ═══════════════════════════════════════════════════════════════

class TestActions:

    def test_fix(self, client, session_id):
        response = client.post(f"{BASE}/sessions/{session_id}/fix", json={"method": "mean", "column": "revenue"})
        assert response.status_code == 200
        body = response.json()
        assert body["outcome"]["applied"] is True
        assert body["outcome"]["missing_after"] == 0
        assert body["quality"]["missing_cells"] == 0
        assert body["summary"]["modified"] is True

    def test_failed_fix(self, client, session_id):
        response = client.post(f"{BASE}/sessions/{session_id}/fix", json={"method": "mean", "column": "region"})
        assert response.status_code == 422
        assert response.json()["detail"]["error_type"] == "degenerate_computation"

    def test_ask(self, client, session_id):
        response = client.post(f"{BASE}/sessions/{session_id}/ask", json={"question": "what is the average of units?"})
        assert response.json() == {
            "answer": "The average value of units is 3.50.",
            "intent": "average",
            "column": "units",
        }

    def test_ask_requires_question(self, client, session_id):
        assert client.post(f"{BASE}/sessions/{session_id}/ask", json={"question": ""}).status_code == 422

    def test_export_csv(self, client, session_id):
        client.put(f"{BASE}/sessions/{session_id}/filters/region", json={"values": ["east"]})
        response = client.get(f"{BASE}/sessions/{session_id}/export/csv")
        assert response.headers["content-type"].startswith("text/csv")
        assert "filtered_data.csv" in response.headers["content-disposition"]
        assert response.text == '"region","units","revenue"\n"east","4","40"\n'

    def test_export_summary_and_insights(self, client, session_id):
        summary = client.get(f"{BASE}/sessions/{session_id}/export/summary")
        assert summary.text.startswith("DATA SUMMARY")
        insights = client.get(f"{BASE}/sessions/{session_id}/export/insights")
        assert json.loads(insights.text)["totalRows"] == 6

    def test_unknown_export(self, client, session_id):
        assert client.get(f"{BASE}/sessions/{session_id}/export/xlsx").status_code == 404

    def test_health(self, client, session_id):
        body = client.get(f"{BASE}/health").json()
        assert body["status"] == "healthy"
        assert body["sessions"] == 1
        assert body["max_sessions"] == 10
