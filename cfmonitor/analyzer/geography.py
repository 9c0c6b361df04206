"""CF Monitor — Geography Aggregation.

Folds the per-row ``sum.countryMap`` lists of a geo query into one ranked
list of countries.
"""

from typing import Any, Dict, Iterable, List

from cfmonitor.models.analytics_models import (
    CountryAggregate,
    CountryDimensions,
    CountrySum,
)

TOP_COUNTRIES = 15
UNKNOWN_COUNTRY = "Unknown"


def _as_count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def aggregate_geography(
    geo_groups: Iterable[Dict[str, Any]], limit: int = TOP_COUNTRIES
) -> List[CountryAggregate]:
    """Sum requests/bytes/threats per country and keep the top ``limit``.

    "Unknown" and empty country names are skipped. Ordering is by summed
    requests, descending; ties keep first-seen order.
    """
    totals: Dict[str, CountrySum] = {}

    for group in geo_groups:
        country_map = ((group or {}).get("sum") or {}).get("countryMap")
        if not isinstance(country_map, list):
            continue

        for entry in country_map:
            country = (entry or {}).get("clientCountryName")
            if not country or country == UNKNOWN_COUNTRY:
                continue

            acc = totals.setdefault(country, CountrySum())
            acc.requests += _as_count(entry.get("requests"))
            acc.bytes += _as_count(entry.get("bytes"))
            acc.threats += _as_count(entry.get("threats"))

    # sorted() is stable and dicts keep insertion order
    ranked = sorted(totals.items(), key=lambda item: item[1].requests, reverse=True)

    return [
        CountryAggregate(
            dimensions=CountryDimensions(client_country_name=country), sum=sums
        )
        for country, sums in ranked[:limit]
    ]
