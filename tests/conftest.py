"""Shared pytest fixtures: in-memory database and canned Cloudflare responses."""

from typing import Any, Dict, List

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from cfmonitor.database import build_engine, init_db
from cfmonitor.models.account_models import Account, Zone


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def account() -> Account:
    return Account(name="A", token="t", zones=[Zone(zone_id="z1", domain="a.com")])


def zones_response(field: str, groups: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap groups the way the GraphQL API nests them."""
    return {"data": {"viewer": {"zones": [{field: groups}]}}}


def daily_row(date: str, requests: int) -> Dict[str, Any]:
    return {
        "dimensions": {"date": date},
        "sum": {
            "requests": requests,
            "bytes": requests * 10,
            "threats": 0,
            "cachedRequests": requests // 2,
            "cachedBytes": requests * 5,
        },
    }


def hourly_row(moment: str, requests: int) -> Dict[str, Any]:
    row = daily_row("", requests)
    row["dimensions"] = {"datetime": moment}
    return row


def geo_row(*countries) -> Dict[str, Any]:
    """``geo_row(("US", 60), ("DE", 40))`` → one day's countryMap."""
    return {
        "dimensions": {"date": "2026-10-19"},
        "sum": {
            "countryMap": [
                {"clientCountryName": name, "requests": req, "bytes": req * 100, "threats": 0}
                for name, req in countries
            ]
        },
    }


class FakeCloudflareClient:
    """Stand-in for CloudflareClient keyed by query document."""

    def __init__(self, responses: Dict[str, Any] | None = None):
        self.responses = responses or {}
        self.calls: List[tuple] = []
        self.closed = 0

    async def query(self, token, query, variables=None):
        self.calls.append((token, query, variables))
        outcome = self.responses.get(query, {"data": {"viewer": {"zones": []}}})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def list_accessible_zones(self, token):
        return ["z1"]

    async def get_zone_info(self, token, zone_id):
        return {"zoneTag": zone_id}

    async def close(self):
        self.closed += 1
