"""HTTP surface: probe endpoints, CORS gate, gzip, mounted routers."""

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from content_api.core.enums import ConnectivityState
from content_api.probes.aggregator import ProbeAggregator
from content_api.server.app import create_app

from conftest import PROD_ORIGIN, FakeDatabase

COLLECTIONS = ["manufacturers", "garagelevels", "legendstore"]


def _client(db, cors_policy, routers=()) -> TestClient:
    probes = ProbeAggregator(db, cors_policy, collections=COLLECTIONS, client_origin=PROD_ORIGIN)
    return TestClient(create_app(probes, cors_policy, routers=routers))


@pytest.fixture
def client(fake_db, cors_policy) -> TestClient:
    return _client(fake_db, cors_policy)


def test_health_liveness(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "service": "content"}


def test_health_liveness_with_database_disabled(cors_policy):
    db = FakeDatabase(state=RuntimeError("no driver"))
    resp = _client(db, cors_policy).get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_legacy_test_endpoint(client):
    resp = client.get("/api/test")
    assert resp.status_code == 200
    assert resp.json() == {"status": "alive"}


def test_health_cors_echo(client, cors_policy):
    resp = client.get("/api/health/cors", headers={"Origin": "http://127.0.0.1:5173"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["seenOrigin"] == "http://127.0.0.1:5173"
    assert body["allowedOrigins"] == list(cors_policy.allowed_origins)
    assert resp.headers["x-seen-origin"] == "http://127.0.0.1:5173"
    assert resp.headers["access-control-allow-origin"] == "http://127.0.0.1:5173"


def test_health_cors_without_origin(client):
    resp = client.get("/api/health/cors")
    assert resp.json()["seenOrigin"] == "(none)"
    assert resp.headers["x-seen-origin"] == "(none)"


def test_health_db_connected(client):
    resp = client.get("/api/health/db")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["mongoState"] == 1
    assert body["counts"] == {"manufacturers": 12, "garagelevels": 40, "legendstore": 3}


def test_health_db_disconnected(cors_policy):
    db = FakeDatabase(state=ConnectivityState.DISCONNECTED)
    body = _client(db, cors_policy).get("/api/health/db").json()
    assert body["ok"] is True
    assert body["mongoState"] == 0
    assert body["counts"] == {}
    assert body["stats"] is None


def test_health_db_infrastructure_failure_is_500(cors_policy):
    db = FakeDatabase(state=RuntimeError("topology closed"))
    resp = _client(db, cors_policy).get("/api/health/db")
    assert resp.status_code == 500
    assert resp.json() == {"ok": False, "error": "topology closed"}


def test_health_runtime(client):
    body = client.get("/api/health/runtime").json()
    assert body["ok"] is True
    assert body["rssMB"] >= 0
    assert body["heapUsedMB"] >= 0
    assert body["envClientOrigin"] == PROD_ORIGIN


def test_blocked_origin_rejected_before_probe(client):
    resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
    assert resp.status_code == 403
    assert "CORS blocked: https://evil.example" in resp.text


def test_preflight_on_api_path(client):
    resp = client.options(
        "/api/manufacturers",
        headers={"Origin": PROD_ORIGIN, "Access-Control-Request-Method": "PUT"},
    )
    assert resp.status_code == 204
    assert resp.headers["access-control-allow-origin"] == PROD_ORIGIN
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_domain_routers_mounted_under_api(fake_db, cors_policy):
    router = APIRouter()

    @router.get("/garage-levels")
    def list_garage_levels():
        return [{"level": 1}]

    client = _client(fake_db, cors_policy, routers=[router])
    resp = client.get("/api/garage-levels", headers={"Origin": "http://localhost:3000"})
    assert resp.status_code == 200
    assert resp.json() == [{"level": 1}]
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_large_responses_gzip_compressed(fake_db, cors_policy):
    router = APIRouter()

    @router.get("/blueprints")
    def list_blueprints():
        return [{"name": f"blueprint-{i}", "description": "x" * 40} for i in range(100)]

    client = _client(fake_db, cors_policy, routers=[router])
    resp = client.get("/api/blueprints", headers={"Accept-Encoding": "gzip"})
    assert resp.status_code == 200
    assert resp.headers.get("content-encoding") == "gzip"
    assert len(resp.json()) == 100
