"""HTTP surface tests via FastAPI TestClient."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

import cfmonitor.api.analytics_routes as analytics_routes
from cfmonitor.analyzer.pipeline import RefreshOrchestrator
from cfmonitor.api.deps import get_orchestrator
from cfmonitor.core.errors import ConfigError
from cfmonitor.database import get_session
from cfmonitor.main import app
from cfmonitor.models.account_models import Account, Zone
from cfmonitor.models.analytics_models import AccountResult, AnalyticsPayload, ZoneResult
from cfmonitor.storage.snapshot_store import SnapshotStore

from conftest import FakeCloudflareClient

ACCOUNTS = [Account(name="A", token="t", zones=[Zone(zone_id="z1", domain="a.com")])]


class CountingOrchestrator(RefreshOrchestrator):
    def __init__(self):
        super().__init__(FakeCloudflareClient, validate_tokens=False)
        self.runs = 0

    async def refresh(self, accounts, now=None):
        self.runs += 1
        return await super().refresh(accounts, now=now)


@pytest.fixture
def runner():
    return CountingOrchestrator()


@pytest.fixture
def client(engine, runner, monkeypatch):
    def session_override():
        with Session(engine) as session:
            yield session

    monkeypatch.setattr(analytics_routes, "get_accounts", lambda: ACCOUNTS)
    app.dependency_overrides[get_session] = session_override
    app.dependency_overrides[get_orchestrator] = lambda: runner
    yield TestClient(app)
    app.dependency_overrides.clear()


def _seed(engine, name="cached"):
    with Session(engine) as session:
        SnapshotStore(session).append(
            AnalyticsPayload(accounts=[AccountResult(name=name, zones=[ZoneResult(domain="c.com")])])
        )


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_status_without_data(client):
    body = client.get("/api/status").json()
    assert body["snapshots"] == 0
    assert body["hasData"] is False
    assert body["lastUpdatedAt"] is None
    assert body["accounts"] == 1


def test_status_with_data(client, engine):
    _seed(engine)
    _seed(engine)
    body = client.get("/api/status").json()
    assert body["snapshots"] == 2
    assert body["hasData"] is True
    assert body["lastUpdatedAt"]


def test_analytics_serves_cached_snapshot(client, engine, runner):
    _seed(engine, "cached")
    resp = client.get("/api/analytics")
    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "no-store"
    assert resp.json()["accounts"][0]["name"] == "cached"
    assert runner.runs == 0


def test_analytics_refreshes_when_empty(client, engine, runner):
    resp = client.get("/api/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["accounts"][0]["name"] == "A"
    assert body["accounts"][0]["zones"][0]["rawHours"] == []
    assert runner.runs == 1
    with Session(engine) as session:
        assert SnapshotStore(session).count() == 1


def test_analytics_force_refresh(client, engine, runner):
    _seed(engine, "cached")
    body = client.get("/api/analytics", params={"refresh": "1"}).json()
    assert body["accounts"][0]["name"] == "A"
    assert runner.runs == 1
    with Session(engine) as session:
        assert SnapshotStore(session).count() == 2


def test_legacy_json_path(client, engine):
    _seed(engine, "cached")
    assert client.get("/data/analytics.json").json()["accounts"][0]["name"] == "cached"


def test_refresh_endpoint(client, runner):
    resp = client.post("/api/refresh")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "accounts": 1}
    assert runner.runs == 1


def test_config_error_on_analytics(client, monkeypatch):
    def broken():
        raise ConfigError("No Cloudflare account configuration found")

    monkeypatch.setattr(analytics_routes, "get_accounts", broken)
    resp = client.get("/api/analytics")
    assert resp.status_code == 500
    assert resp.json() == {"accounts": [], "error": "No Cloudflare account configuration found"}


def test_config_error_on_refresh(client, monkeypatch):
    def broken():
        raise ConfigError("bad config")

    monkeypatch.setattr(analytics_routes, "get_accounts", broken)
    resp = client.post("/api/refresh")
    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "bad config"}
