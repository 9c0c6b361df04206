"""CF Monitor — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Cloudflare API ──
    cf_config: Optional[str] = None  # JSON blob: {"accounts": [...]}
    cf_graphql_url: str = "https://api.cloudflare.com/client/v4/graphql"
    request_timeout: float = 30.0
    zones_file: str = "zones.yml"

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    refresh_interval_hours: int = 2
    refresh_on_startup: bool = True
    validate_tokens: bool = True

    @property
    def effective_database_url(self) -> str:
        """Return the configured URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Serverless hosts have a read-only filesystem; use /tmp for SQLite
        if IS_SERVERLESS:
            return "sqlite:////tmp/cfmonitor.db"
        return "sqlite:///./cfmonitor.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
