"""Integration tests for the CitySim REST API."""

import pytest
from fastapi.testclient import TestClient

from citysim.api.app import create_app


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def _create(client, **config):
    config.setdefault("random_seed", 42)
    resp = client.post("/api/simulation/sessions", json={"config": config})
    assert resp.status_code == 200
    return resp.json()["id"]


class TestHealthCheck:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestSessionLifecycle:
    def test_create_session_defaults(self, client):
        resp = client.post("/api/simulation/sessions", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert "id" in data
        assert data["status"] == "created"
        assert data["day"] == 1
        assert data["families"] == 10
        assert data["budget"] == 1000
        assert data["satisfaction"] == 50
        assert data["max_days"] == 100
        assert data["game_over"] is None

    def test_create_session_with_config(self, client):
        resp = client.post("/api/simulation/sessions", json={
            "config": {"initial_families": 5, "max_days": 10, "random_seed": 42},
            "name": "village",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "village"
        assert data["families"] == 5
        assert data["max_days"] == 10

    def test_create_session_from_preset(self, client):
        resp = client.post("/api/simulation/sessions", json={"preset": "sandbox"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["config"]["city_name"] == "sandbox"
        assert data["families"] == 20
        assert data["budget"] == 10000

    def test_unknown_preset(self, client):
        resp = client.post("/api/simulation/sessions", json={"preset": "utopia"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("config", [
        {"difficulty": "nightmare"},
        {"mayor": "nobody"},
        {"difficulty": 3},
        {"initial_families": "ten"},
        {"random_seed": -1},
        {"max_days": "x"},
    ])
    def test_invalid_config(self, client, config):
        resp = client.post("/api/simulation/sessions", json={"config": config})
        assert resp.status_code == 400

    def test_list_sessions(self, client):
        _create(client)
        _create(client)
        resp = client.get("/api/simulation/sessions")
        assert resp.status_code == 200
        assert len(resp.json()) == 2

    def test_get_session(self, client):
        sid = _create(client)
        resp = client.get(f"/api/simulation/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json()["id"] == sid

    def test_get_missing_session(self, client):
        assert client.get("/api/simulation/sessions/nope").status_code == 404

    def test_delete_session(self, client):
        sid = _create(client)
        resp = client.delete(f"/api/simulation/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": True}
        assert client.get(f"/api/simulation/sessions/{sid}").status_code == 404
        assert client.delete(f"/api/simulation/sessions/{sid}").status_code == 404


class TestStepping:
    def test_step(self, client):
        sid = _create(client, sandbox_mode=True)
        resp = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 3})
        assert resp.status_code == 200
        data = resp.json()
        assert data["day"] == 4
        assert data["status"] == "running"

    def test_step_default_is_one_day(self, client):
        sid = _create(client, sandbox_mode=True)
        resp = client.post(f"/api/simulation/sessions/{sid}/step", json={})
        assert resp.json()["day"] == 2

    @pytest.mark.parametrize("n", [0, 1001])
    def test_step_bounds(self, client, n):
        sid = _create(client)
        resp = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": n})
        assert resp.status_code == 422

    def test_step_missing_session(self, client):
        resp = client.post("/api/simulation/sessions/nope/step", json={"n": 1})
        assert resp.status_code == 404

    def test_day_limit_completes_game(self, client):
        sid = _create(client, initial_budget=100000, max_days=3)
        resp = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 10})
        data = resp.json()
        assert data["day"] == 3
        assert data["status"] == "completed"
        assert data["game_over"] == "day_limit"

    def test_bankruptcy_ends_game(self, client):
        sid = _create(client, initial_budget=-1000)
        data = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 5}).json()
        assert data["day"] == 2
        assert data["status"] == "game_over"
        assert data["game_over"] == "bankrupt"

    def test_finished_game_rejects_actions(self, client):
        sid = _create(client, initial_budget=-1000)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 1})
        assert client.post(
            f"/api/simulation/sessions/{sid}/step", json={"n": 1},
        ).status_code == 409
        assert client.post(
            f"/api/city/{sid}/buildings", json={"kind": "Park"},
        ).status_code == 409
        assert client.put(
            f"/api/city/{sid}/taxes", json={"tax_rate": 0.2},
        ).status_code == 409

    def test_reset(self, client):
        sid = _create(client, sandbox_mode=True)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 5})
        resp = client.post(f"/api/simulation/sessions/{sid}/reset")
        assert resp.status_code == 200
        data = resp.json()
        assert data["day"] == 1
        assert data["status"] == "created"
        assert client.get(f"/api/metrics/{sid}/days").json() == []


class TestCity:
    def test_city_view(self, client):
        sid = _create(client)
        resp = client.get(f"/api/city/{sid}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["day"] == 1
        assert data["housing"] == {"capacity": 25, "available": 15, "occupancy": 0.4}
        assert data["services"]["education"]["status"] == "OPTIMAL"
        assert data["services"]["jobs"]["ratio"] == 0.0
        assert len(data["buildings"]) == 5
        assert data["building_counts"]["Residential"] == 1
        assert data["last_event"] is None

    def test_city_missing_session(self, client):
        assert client.get("/api/city/nope").status_code == 404

    def test_catalog(self, client):
        resp = client.get("/api/city/catalog")
        assert resp.status_code == 200
        entries = {e["kind"]: e for e in resp.json()}
        assert len(entries) == 8
        assert entries["Residential"]["cost"] == 50
        assert entries["Power Plant"]["utility_capacity"] == 100

    def test_catalog_cost_scales(self, client):
        entries = {e["kind"]: e for e in client.get("/api/city/catalog?families=60").json()}
        assert entries["Residential"]["cost"] == 57

    def test_log(self, client):
        sid = _create(client)
        resp = client.get(f"/api/city/{sid}/log")
        assert resp.status_code == 200
        data = resp.json()
        assert data["day"] == 1
        assert data["entries"] == [
            "Day 1: City founded with 10 families and $1000 budget.",
            "Day 1: Income tax rate set to 10.0%.",
            "Day 1: VAT rate set to 5.0%.",
        ]

    def test_log_limit(self, client):
        sid = _create(client)
        client.post(f"/api/city/{sid}/buildings", json={"kind": "Park"})
        entries = client.get(f"/api/city/{sid}/log?limit=1").json()["entries"]
        assert entries == ["Day 1: Built a new Park for $20."]

    def test_score(self, client):
        sid = _create(client)
        resp = client.get(f"/api/city/{sid}/score")
        assert resp.status_code == 200
        assert resp.json() == {
            "score": 650, "families": 10, "budget": 1000, "satisfaction": 50,
            "game_over": None,
        }


class TestBuild:
    def test_build(self, client):
        sid = _create(client)
        resp = client.post(f"/api/city/{sid}/buildings", json={"kind": "Residential"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["cost"] == 50
        assert data["budget"] == 950
        assert data["building"]["id"] == 6
        assert data["building"]["kind"] == "Residential"

    def test_build_by_member_name(self, client):
        sid = _create(client)
        resp = client.post(f"/api/city/{sid}/buildings", json={"kind": "water_plant"})
        assert resp.status_code == 200
        assert resp.json()["building"]["kind"] == "Water Plant"

    def test_unknown_kind(self, client):
        sid = _create(client)
        resp = client.post(f"/api/city/{sid}/buildings", json={"kind": "Casino"})
        assert resp.status_code == 400

    def test_insufficient_budget(self, client):
        sid = _create(client, initial_budget=100)
        resp = client.post(f"/api/city/{sid}/buildings", json={"kind": "Power Plant"})
        assert resp.status_code == 409
        assert client.get(f"/api/city/{sid}").json()["budget"] == 100

    def test_build_missing_session(self, client):
        resp = client.post("/api/city/nope/buildings", json={"kind": "Park"})
        assert resp.status_code == 404


class TestTaxes:
    def test_set_taxes(self, client):
        sid = _create(client)
        resp = client.put(f"/api/city/{sid}/taxes", json={"tax_rate": 0.15})
        assert resp.status_code == 200
        data = resp.json()
        assert data["tax_rate"] == pytest.approx(0.15)
        assert data["vat_rate"] == pytest.approx(0.05)
        assert data["satisfaction"] == 48

    def test_rates_are_clamped(self, client):
        sid = _create(client)
        data = client.put(
            f"/api/city/{sid}/taxes", json={"tax_rate": 0.9, "vat_rate": 0.9},
        ).json()
        assert data["tax_rate"] == pytest.approx(0.4)
        assert data["vat_rate"] == pytest.approx(0.25)

    def test_nan_rate_keeps_current(self, client):
        sid = _create(client)
        resp = client.put(
            f"/api/city/{sid}/taxes",
            content='{"tax_rate": NaN}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["tax_rate"] == pytest.approx(0.10)
        assert data["satisfaction"] == 50

    def test_taxes_missing_session(self, client):
        assert client.put("/api/city/nope/taxes", json={"tax_rate": 0.1}).status_code == 404


class TestMetrics:
    def test_days(self, client):
        sid = _create(client, sandbox_mode=True)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 3})
        days = client.get(f"/api/metrics/{sid}/days").json()
        assert [d["day"] for d in days] == [2, 3, 4]
        assert set(days[0]["coverage"]) == {"jobs", "education", "healthcare", "water", "power"}

    def test_days_filter(self, client):
        sid = _create(client, sandbox_mode=True)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 4})
        days = client.get(f"/api/metrics/{sid}/days?from_day=3&to_day=4").json()
        assert [d["day"] for d in days] == [3, 4]

    def test_time_series(self, client):
        sid = _create(client, sandbox_mode=True)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 3})
        resp = client.get(f"/api/metrics/{sid}/time-series/budget")
        assert resp.status_code == 200
        data = resp.json()
        assert data["field"] == "budget"
        assert data["days"] == [2, 3, 4]
        assert len(data["values"]) == 3

    def test_unknown_time_series(self, client):
        sid = _create(client)
        resp = client.get(f"/api/metrics/{sid}/time-series/happiness")
        assert resp.status_code == 400

    def test_summary(self, client):
        sid = _create(client, sandbox_mode=True)
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 3})
        resp = client.get(f"/api/metrics/{sid}/summary")
        assert resp.status_code == 200
        assert resp.json()["days"] == 3

    def test_metrics_missing_session(self, client):
        assert client.get("/api/metrics/nope/summary").status_code == 404
