"""CF Monitor — Error Taxonomy."""

from typing import Optional

AUTH_STATUS_CODES = (401, 403)


class ConfigError(ValueError):
    """No usable account/zone configuration. Fatal at startup."""


class UpstreamError(Exception):
    """Raised when a Cloudflare GraphQL call fails.

    Covers transport failures, non-2xx responses and API-reported errors.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in AUTH_STATUS_CODES


class ZoneAggregationError(Exception):
    """A single zone query returned data that could not be interpreted.

    Always captured into ``ZoneResult.error``; never propagated.
    """
