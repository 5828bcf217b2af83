"""
Read-Only API Tests
===================

Exercises local_time/api/server.py through FastAPI's test client against an
injected engine (built-ins only, no configuration files).
"""

import pytest
from fastapi.testclient import TestClient

from local_time.api import create_app
from local_time.engine import CONFIG_PATH_ENV, LocalTime, LocalTimeConfig, SourcesConfig
from local_time.temporal.conversion import year_bounds

from tests.fixtures import APOLLO_LIFTOFF

NS = 1_000_000_000


@pytest.fixture(scope="module")
def client():
    engine = LocalTime(LocalTimeConfig(sources=SourcesConfig(config_paths=())))
    return TestClient(create_app(engine))


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body == {
            "status": "online",
            "initialized": True,
            "universes": 2,
            "networks": 1,
            "skipped_sources": 0,
        }

    def test_uninitialized_app_is_unavailable(self):
        assert TestClient(create_app()).get("/health").status_code == 503

    def test_lifespan_builds_engine_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        with TestClient(create_app()) as lifespan_client:
            body = lifespan_client.get("/health").json()
        assert body["initialized"] is True
        assert body["universes"] == 2

    def test_writes_not_allowed(self, client):
        assert client.post("/api/v1/universes", json={}).status_code == 405


class TestUniverses:

    def test_list(self, client):
        rows = client.get("/api/v1/universes").json()
        assert [r["universe_id"] for r in rows] == ["disney:mary_poppins:1964", "nasa:apollo11:1969"]
        assert rows[0]["canonical_name"] == "Mary Poppins"
        assert rows[0]["cultural_significance"] == 0.98
        assert rows[1]["reality_relation"] == "documentary"

    def test_detail_by_alias(self, client):
        body = client.get("/api/v1/universes/mp1964").json()
        assert body["universe_id"] == "disney:mary_poppins:1964"
        assert body["epochs"]["unix"]["start_time"] == "0"
        assert body["epochs"]["unix"]["precision"] == "second"
        film = body["layers"][0]["epochs"]["film"]
        assert film["end_time"] == str(139 * 60 * NS)
        assert body["temporal_windows"][0]["aliases"] == [{"format": "year", "value": "1964"}]
        assert body["temporal_structure"]["keyframes"][0]["timestamp"] == str((87 * 60 + 15) * NS)

    def test_unknown_universe(self, client):
        assert client.get("/api/v1/universes/nobody").status_code == 404
        assert client.get("/api/v1/universes/nobody/reality").status_code == 404
        assert client.get("/api/v1/universes/nobody/report").status_code == 404

    def test_reality(self, client):
        body = client.get("/api/v1/universes/apollo11/reality").json()
        assert body["universe_id"] == "nasa:apollo11:1969"
        assert body["level"] == 0.0
        assert body["category"] == "pure_reality"
        assert body["confidence"] == 0.95

    def test_report(self, client):
        response = client.get("/api/v1/universes/apollo11/report")
        assert response.status_code == 200
        assert "**Universe:** Apollo 11 Mission" in response.text


class TestWindows:

    def test_calendar_window(self, client):
        body = client.get("/api/v1/windows/cal:1969").json()
        start, end = year_bounds(1969)
        assert body["start_time"] == str(start)
        assert body["end_time"] == str(end)
        assert body["precision"] == "year"
        assert body["window_type"] == "calendar_year"

    def test_unknown_window(self, client):
        assert client.get("/api/v1/windows/cal:0000").status_code == 404

    def test_search(self, client):
        rows = client.get("/api/v1/windows/cal:1969/universes").json()
        assert [r["universe_id"] for r in rows] == ["nasa:apollo11:1969"]

    def test_search_filters(self, client):
        films = client.get("/api/v1/windows/cal:1969/universes", params={"universe_type": ["film"]}).json()
        assert films == []
        missions = client.get(
            "/api/v1/windows/cal:1969/universes",
            params={"universe_type": ["mission", "film"], "reality_relation": "documentary"},
        ).json()
        assert [r["universe_id"] for r in missions] == ["nasa:apollo11:1969"]

    @pytest.mark.parametrize("params", [
        {"universe_type": "hologram"},
        {"sort_by": "popularity"},
        {"order": "sideways"},
        {"max_fictionalization": 2},
        {"reality_relation": "rumor"},
    ])
    def test_search_rejects_bad_parameters(self, client, params):
        assert client.get("/api/v1/windows/cal:1969/universes", params=params).status_code == 422

    def test_alignments(self, client):
        rows = client.get("/api/v1/windows/cal:1969/alignments").json()
        assert len(rows) == 1
        assert rows[0]["target_window"] == "apollo11:mission"
        assert rows[0]["target_universe_id"] == "nasa:apollo11:1969"
        assert rows[0]["semantic_alignment"] is True
        assert rows[0]["precision_mismatch"] is True
        assert isinstance(rows[0]["overlap_duration"], str)


class TestNetworksAndAddresses:

    def test_network(self, client):
        body = client.get("/api/v1/networks/disney").json()
        assert body["name"] == "Walt Disney Animation"
        assert body["universes"] == ["disney:mary_poppins:1964"]
        assert [e["era_id"] for e in body["eras"]] == ["golden_age", "renaissance"]
        assert all(isinstance(e["start_time"], str) for e in body["eras"])

    def test_unknown_network(self, client):
        assert client.get("/api/v1/networks/pixar").status_code == 404

    def test_address(self, client):
        body = client.get("/api/v1/addresses/apollo11:launch:T-00:05:30").json()
        assert body["absolute_time"] == str(APOLLO_LIFTOFF - 330 * NS)

    def test_unresolvable_address(self, client):
        assert client.get("/api/v1/addresses/apollo11:flight:T-00:05:30").status_code == 404
