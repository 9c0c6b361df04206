"""CF Monitor — Refresh Orchestrator.

Runs the full data flow:
  accounts → (ZoneAggregator per zone) → AnalyticsPayload → SnapshotStore

Accounts and zones are processed one at a time in configuration order. Any
unexpected exception from a zone is folded into that zone's result so the
rest of the run continues.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from sqlmodel import Session

from cfmonitor.analyzer.zone_aggregator import ZoneAggregator
from cfmonitor.config import settings
from cfmonitor.connectors.cloudflare.client import CloudflareClient
from cfmonitor.core.accounts import load_accounts
from cfmonitor.core.errors import UpstreamError
from cfmonitor.core.logging import get_logger
from cfmonitor.models.account_models import Account
from cfmonitor.models.analytics_models import (
    AccountResult,
    AnalyticsPayload,
    ZoneResult,
)
from cfmonitor.storage.snapshot_store import SnapshotStore

logger = get_logger("analyzer.pipeline")


@dataclass
class TokenValidation:
    """Diagnostic outcome of the one-time token check for an account."""

    account: str
    valid: bool
    accessible_zones: int = 0
    error: Optional[str] = None
    status_code: Optional[int] = None
    zone_access: Dict[str, bool] = field(default_factory=dict)


class RefreshOrchestrator:
    """Drives zone aggregation across every configured account.

    Every run builds its own client from ``client_factory`` and closes it
    before returning.
    ``validated`` flips to True once the first run has checked every token.
    """

    def __init__(
        self,
        client_factory: Callable[[], CloudflareClient] = CloudflareClient,
        validate_tokens: Optional[bool] = None,
        aggregator_factory: Callable[[CloudflareClient], ZoneAggregator] = ZoneAggregator,
    ):
        self.client_factory = client_factory
        self.aggregator_factory = aggregator_factory
        self.validate_tokens = (
            settings.validate_tokens if validate_tokens is None else validate_tokens
        )
        self.validated = False
        self.last_validation: List[TokenValidation] = []

    # ── Token Validation ──

    async def _validate_account(
        self, client: CloudflareClient, account: Account
    ) -> TokenValidation:
        try:
            zone_tags = await client.list_accessible_zones(account.token)
        except UpstreamError as e:
            logger.error(
                f"⚠️ Account {account.name} token validation failed: {e}",
                extra={"account": account.name, "status_code": e.status_code},
            )
            if e.status_code == 401:
                logger.error(
                    "Token invalid or expired. Check for stray whitespace, expiry, "
                    "the 'Analytics:Read' permission and zone access.",
                    extra={"account": account.name},
                )
            elif e.status_code == 403:
                logger.error(
                    "Token lacks permission for the Analytics API.",
                    extra={"account": account.name},
                )
            return TokenValidation(
                account=account.name,
                valid=False,
                error=e.message,
                status_code=e.status_code,
            )

        validation = TokenValidation(
            account=account.name, valid=True, accessible_zones=len(zone_tags)
        )
        logger.info(
            f"✓ Account {account.name} token valid, {len(zone_tags)} zones accessible",
            extra={"account": account.name},
        )

        for zone in account.zones:
            info = await client.get_zone_info(account.token, zone.zone_id)
            validation.zone_access[zone.zone_id] = info is not None
            if info is None:
                logger.error(
                    f"  ✗ Zone {zone.domain} ({zone.zone_id}) inaccessible",
                    extra={"account": account.name, "zone": zone.domain},
                )
            else:
                logger.info(
                    f"  ✓ Zone {zone.domain} ({zone.zone_id}) accessible",
                    extra={"account": account.name, "zone": zone.domain},
                )
        return validation

    async def validate_all_tokens(
        self, client: CloudflareClient, accounts: Sequence[Account]
    ) -> List[TokenValidation]:
        """Check every token once. Results are informational only."""
        logger.info(f"Validating tokens for {len(accounts)} account(s)")
        results = []
        for account in accounts:
            try:
                results.append(await self._validate_account(client, account))
            except Exception as e:
                logger.error(
                    f"Token validation for {account.name} crashed: {e}",
                    extra={"account": account.name},
                )
                results.append(
                    TokenValidation(account=account.name, valid=False, error=str(e))
                )
        self.last_validation = results
        return results

    # ── Refresh ──

    async def _collect_zone(
        self,
        aggregator: ZoneAggregator,
        account: Account,
        zone_index: int,
        now: Optional[datetime],
    ) -> ZoneResult:
        zone = account.zones[zone_index]
        logger.info(
            f"  Zone {zone_index + 1}/{len(account.zones)}: {zone.domain}",
            extra={"account": account.name, "zone": zone.domain},
        )
        try:
            return await aggregator.aggregate(account.token, zone, now=now)
        except Exception as e:
            logger.exception(
                f"Zone {zone.domain} processing failed: {e}",
                extra={"account": account.name, "zone": zone.domain},
            )
            return ZoneResult.failed(zone.domain, str(e) or type(e).__name__)

    async def refresh(
        self, accounts: Sequence[Account], now: Optional[datetime] = None
    ) -> AnalyticsPayload:
        """Collect analytics for every zone of every account, in config order."""
        started = time.monotonic()
        logger.info(f"Refresh starting for {len(accounts)} account(s)")

        client = self.client_factory()
        aggregator = self.aggregator_factory(client)
        try:
            if self.validate_tokens and not self.validated:
                await self.validate_all_tokens(client, accounts)
                self.validated = True

            payload = AnalyticsPayload()
            for acc_index, account in enumerate(accounts, 1):
                logger.info(
                    f"Account {acc_index}/{len(accounts)}: {account.name}",
                    extra={"account": account.name},
                )
                account_result = AccountResult(name=account.name)
                for zone_index in range(len(account.zones)):
                    account_result.zones.append(
                        await self._collect_zone(aggregator, account, zone_index, now)
                    )
                payload.accounts.append(account_result)
        finally:
            await client.close()

        failed = sum(1 for a in payload.accounts for z in a.zones if z.error)
        logger.info(
            f"Refresh complete: {len(payload.accounts)} accounts, {failed} zone(s) with errors",
            extra={"duration_ms": round((time.monotonic() - started) * 1000)},
        )
        return payload


orchestrator = RefreshOrchestrator()


async def refresh_and_store(
    session: Session,
    accounts: Optional[Sequence[Account]] = None,
    runner: Optional[RefreshOrchestrator] = None,
) -> AnalyticsPayload:
    """Refresh every zone and append the result as a new snapshot.

    Raises:
        ConfigError: when ``accounts`` is omitted and none can be resolved.
    """
    if accounts is None:
        accounts = load_accounts()
    runner = runner or orchestrator
    payload = await runner.refresh(accounts)
    SnapshotStore(session).append(payload)
    return payload
