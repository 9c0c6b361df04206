"""CF Monitor — Cloudflare GraphQL Client.

Handles bearer authentication, timeouts and error classification.
No retries: a failed call is reported once and recorded by the caller.
"""

from typing import Any, Dict, List, Optional

import httpx

from cfmonitor.config import settings
from cfmonitor.connectors.cloudflare.queries import (
    ACCESSIBLE_ZONES_QUERY,
    ZONE_INFO_QUERY,
)
from cfmonitor.core.errors import UpstreamError
from cfmonitor.core.logging import get_logger

logger = get_logger("cloudflare.client")

GENERIC_GRAPHQL_ERROR = "Cloudflare GraphQL query failed"


def _first_error_message(body: Any) -> Optional[str]:
    """Return errors[0].message from a GraphQL body, if any."""
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if not errors or not isinstance(errors, list):
        return None
    first = errors[0]
    if isinstance(first, dict) and first.get("message"):
        return str(first["message"])
    return GENERIC_GRAPHQL_ERROR


def zones_of(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Extract ``data.viewer.zones`` from a GraphQL result, tolerating nulls."""
    viewer = (result.get("data") or {}).get("viewer") or {}
    return viewer.get("zones") or []


class CloudflareClient:
    """Async HTTP client for the Cloudflare GraphQL Analytics API."""

    def __init__(
        self,
        graphql_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.graphql_url = graphql_url or settings.cf_graphql_url
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def query(
        self,
        token: str,
        query: str,
        variables: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """POST one GraphQL query and return the decoded body.

        Raises:
            UpstreamError: transport failure, non-2xx status, or a populated
                top-level ``errors`` list.
        """
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        body = {"query": query, "variables": variables or {}}

        try:
            resp = await client.post(self.graphql_url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"Cloudflare API request timed out after {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            detail = str(e) or type(e).__name__
            raise UpstreamError(f"Cloudflare API request error: {detail}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_error:
            message = _first_error_message(data)
            if not message or message == GENERIC_GRAPHQL_ERROR:
                message = f"Cloudflare API request failed: {resp.status_code}"
            raise UpstreamError(message, resp.status_code)

        if not isinstance(data, dict):
            raise UpstreamError(
                "Cloudflare API returned a non-JSON response", resp.status_code
            )

        message = _first_error_message(data)
        if message:
            raise UpstreamError(message, resp.status_code)

        return data

    # ── Token Validation ──

    async def list_accessible_zones(self, token: str) -> List[str]:
        """Return the zone tags the token can read (up to 50)."""
        result = await self.query(token, ACCESSIBLE_ZONES_QUERY)
        return [z.get("zoneTag", "") for z in zones_of(result)]

    async def get_zone_info(self, token: str, zone_id: str) -> Optional[Dict[str, Any]]:
        """Look up one zone; ``None`` when it is missing or inaccessible."""
        try:
            result = await self.query(token, ZONE_INFO_QUERY, {"zoneId": zone_id})
        except UpstreamError as e:
            logger.warning(f"Zone {zone_id} lookup failed: {e}", extra={"zone": zone_id})
            return None
        zones = zones_of(result)
        return zones[0] if zones else None
