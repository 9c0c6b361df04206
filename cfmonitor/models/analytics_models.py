"""CF Monitor — Analytics Payload Models.

Field names follow the Cloudflare GraphQL response shape and the dashboard
contract (``rawHours``, ``cachedRequests`` ...), so dumps must use aliases.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────
# RAW RECORDS — as returned by httpRequests1dGroups / 1hGroups
# ─────────────────────────────────────────────


class TrafficSum(BaseModel):
    """Zone-level totals for one time bucket."""

    model_config = ConfigDict(populate_by_name=True)

    requests: int = Field(default=0, ge=0)
    bytes: int = Field(default=0, ge=0)
    threats: int = Field(default=0, ge=0)
    cached_requests: int = Field(default=0, ge=0, alias="cachedRequests")
    cached_bytes: int = Field(default=0, ge=0, alias="cachedBytes")


class DailyDimensions(BaseModel):
    date: str


class HourlyDimensions(BaseModel):
    datetime: str


class DailyRecord(BaseModel):
    dimensions: DailyDimensions
    sum: TrafficSum


class HourlyRecord(BaseModel):
    dimensions: HourlyDimensions
    sum: TrafficSum


# ─────────────────────────────────────────────
# GEOGRAPHY — derived from sum.countryMap
# ─────────────────────────────────────────────


class CountrySum(BaseModel):
    requests: int = Field(default=0, ge=0)
    bytes: int = Field(default=0, ge=0)
    threats: int = Field(default=0, ge=0)


class CountryDimensions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_country_name: str = Field(alias="clientCountryName")


class CountryAggregate(BaseModel):
    """Per-country totals summed across every geo row of the window."""

    dimensions: CountryDimensions
    sum: CountrySum

    @property
    def country(self) -> str:
        return self.dimensions.client_country_name


# ─────────────────────────────────────────────
# PAYLOAD — one refresh cycle's complete output
# ─────────────────────────────────────────────


class ZoneResult(BaseModel):
    """Analytics for one zone. ``error`` set means collection (partly) failed."""

    model_config = ConfigDict(populate_by_name=True)

    domain: str
    raw: List[DailyRecord] = Field(default_factory=list)
    raw_hours: List[HourlyRecord] = Field(default_factory=list, alias="rawHours")
    geography: List[CountryAggregate] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failed(cls, domain: str, error: str) -> "ZoneResult":
        """A zone with no data at all."""
        return cls(domain=domain, error=error)


class AccountResult(BaseModel):
    name: str
    zones: List[ZoneResult] = Field(default_factory=list)


class AnalyticsPayload(BaseModel):
    """The unit of snapshotting."""

    accounts: List[AccountResult] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Dashboard-facing dict: aliased keys, ``error`` omitted when unset."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
