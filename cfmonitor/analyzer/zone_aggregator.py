"""CF Monitor — Zone Aggregator.

Runs the daily, hourly and geography queries for one zone concurrently and
merges their outcomes into a single ZoneResult. Never raises: each failed
query degrades its own field to an empty list and the first failure message
becomes ``ZoneResult.error``.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from cfmonitor.analyzer.geography import aggregate_geography
from cfmonitor.connectors.cloudflare.client import CloudflareClient, zones_of
from cfmonitor.connectors.cloudflare.queries import DAYS_QUERY, GEO_QUERY, HOURS_QUERY
from cfmonitor.core.errors import ZoneAggregationError
from cfmonitor.core.logging import get_logger
from cfmonitor.models.account_models import Zone
from cfmonitor.models.analytics_models import (
    CountryAggregate,
    DailyRecord,
    HourlyRecord,
    ZoneResult,
)

logger = get_logger("analyzer.zone")

DAILY_LOOKBACK = timedelta(days=45)
HOURLY_LOOKBACK = timedelta(days=3)

_daily_records = TypeAdapter(List[DailyRecord])
_hourly_records = TypeAdapter(List[HourlyRecord])

Outcome = Union[List[Any], BaseException]


@dataclass(frozen=True)
class QueryWindows:
    """Query variable windows, all relative to one ``now``."""

    daily_since: str
    daily_until: str
    hourly_since: str
    hourly_until: str
    geo_since: str
    geo_until: str

    @classmethod
    def at(cls, now: Optional[datetime] = None) -> "QueryWindows":
        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        now = now.replace(microsecond=0)
        today = now.date().isoformat()
        return cls(
            daily_since=(now - DAILY_LOOKBACK).date().isoformat(),
            daily_until=today,
            hourly_since=_rfc3339(now - HOURLY_LOOKBACK),
            hourly_until=_rfc3339(now),
            geo_since=today,
            geo_until=today,
        )


def _rfc3339(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def _groups(result: Dict[str, Any], field: str) -> List[Dict[str, Any]]:
    """``data.viewer.zones[0].<field>`` or an empty list."""
    zones = zones_of(result)
    if not zones:
        return []
    return (zones[0] or {}).get(field) or []


def merge_outcomes(
    domain: str, daily: Outcome, hourly: Outcome, geography: Outcome
) -> ZoneResult:
    """Combine three independent query outcomes into one ZoneResult.

    Successful lists are kept. Only the first failure (in daily, hourly,
    geography order) is reported in ``error``; later messages are dropped
    though their fields still degrade to empty.
    """
    result = ZoneResult(domain=domain)
    for field, outcome in (
        ("raw", daily),
        ("raw_hours", hourly),
        ("geography", geography),
    ):
        if isinstance(outcome, BaseException):
            if result.error is None:
                result.error = str(outcome) or type(outcome).__name__
            continue
        setattr(result, field, outcome)
    return result


class ZoneAggregator:
    """Collects analytics for a single zone."""

    def __init__(self, client: CloudflareClient):
        self.client = client

    async def _fetch_daily(self, token: str, zone: Zone, w: QueryWindows) -> List[DailyRecord]:
        result = await self.client.query(
            token,
            DAYS_QUERY,
            {"zone": zone.zone_id, "since": w.daily_since, "until": w.daily_until},
        )
        try:
            return _daily_records.validate_python(_groups(result, "httpRequests1dGroups"))
        except ValidationError as e:
            raise ZoneAggregationError(f"Malformed daily analytics response: {e}") from e

    async def _fetch_hourly(self, token: str, zone: Zone, w: QueryWindows) -> List[HourlyRecord]:
        result = await self.client.query(
            token,
            HOURS_QUERY,
            {"zone": zone.zone_id, "since": w.hourly_since, "until": w.hourly_until},
        )
        try:
            return _hourly_records.validate_python(_groups(result, "httpRequests1hGroups"))
        except ValidationError as e:
            raise ZoneAggregationError(f"Malformed hourly analytics response: {e}") from e

    async def _fetch_geography(self, token: str, zone: Zone, w: QueryWindows) -> List[CountryAggregate]:
        result = await self.client.query(
            token,
            GEO_QUERY,
            {"zone": zone.zone_id, "since": w.geo_since, "until": w.geo_until},
        )
        return aggregate_geography(_groups(result, "httpRequests1dGroups"))

    async def aggregate(
        self, token: str, zone: Zone, now: Optional[datetime] = None
    ) -> ZoneResult:
        windows = QueryWindows.at(now)
        extra = {"zone": zone.domain}

        logger.info(
            f"Zone {zone.domain}: daily {windows.daily_since} → {windows.daily_until}, "
            f"hourly {windows.hourly_since} → {windows.hourly_until}, "
            f"geography {windows.geo_since}",
            extra=extra,
        )

        daily, hourly, geography = await asyncio.gather(
            self._fetch_daily(token, zone, windows),
            self._fetch_hourly(token, zone, windows),
            self._fetch_geography(token, zone, windows),
            return_exceptions=True,
        )

        for label, outcome in (("daily", daily), ("hourly", hourly), ("geography", geography)):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Zone {zone.domain} {label} query failed: {outcome}",
                    extra={**extra, "status_code": getattr(outcome, "status_code", None)},
                )
            else:
                logger.info(
                    f"Zone {zone.domain} {label} data: {len(outcome)} records", extra=extra
                )

        result = merge_outcomes(zone.domain, daily, hourly, geography)

        if result.geography:
            top = ", ".join(f"{c.country}: {c.sum.requests}" for c in result.geography[:5])
            logger.info(f"Zone {zone.domain} top countries: {top}", extra=extra)

        return result
