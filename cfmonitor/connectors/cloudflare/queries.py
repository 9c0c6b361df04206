"""CF Monitor — Cloudflare GraphQL Query Documents.

Field names must match the Analytics API exactly; the dashboard reads them
back unchanged from the payload.
"""

DAYS_QUERY = """
query($zone: String!, $since: Date!, $until: Date!) {
  viewer {
    zones(filter: {zoneTag: $zone}) {
      httpRequests1dGroups(
        filter: {date_geq: $since, date_leq: $until}
        limit: 100
        orderBy: [date_DESC]
      ) {
        dimensions { date }
        sum {
          requests
          bytes
          threats
          cachedRequests
          cachedBytes
        }
      }
    }
  }
}"""

HOURS_QUERY = """
query($zone: String!, $since: Time!, $until: Time!) {
  viewer {
    zones(filter: {zoneTag: $zone}) {
      httpRequests1hGroups(
        filter: {datetime_geq: $since, datetime_leq: $until}
        limit: 200
        orderBy: [datetime_DESC]
      ) {
        dimensions { datetime }
        sum {
          requests
          bytes
          threats
          cachedRequests
          cachedBytes
        }
      }
    }
  }
}"""

GEO_QUERY = """
query($zone: String!, $since: Date!, $until: Date!) {
  viewer {
    zones(filter: {zoneTag: $zone}) {
      httpRequests1dGroups(
        filter: {date_geq: $since, date_leq: $until}
        limit: 100
        orderBy: [date_DESC]
      ) {
        dimensions { date }
        sum {
          countryMap {
            bytes
            requests
            threats
            clientCountryName
          }
        }
      }
    }
  }
}"""

# Token probe: which zones can this token see at all?
ACCESSIBLE_ZONES_QUERY = """
query {
  viewer {
    zones(limit: 50) {
      zoneTag
    }
  }
}"""

ZONE_INFO_QUERY = """
query($zoneId: String!) {
  viewer {
    zones(filter: {zoneTag: $zoneId}) {
      zoneTag
    }
  }
}"""
