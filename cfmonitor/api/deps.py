"""CF Monitor — Shared API Dependencies."""

from functools import lru_cache
from typing import List

from cfmonitor.analyzer.pipeline import RefreshOrchestrator, orchestrator
from cfmonitor.core.accounts import load_accounts
from cfmonitor.models.account_models import Account


@lru_cache(maxsize=1)
def _cached_accounts() -> tuple:
    return tuple(load_accounts())


def get_accounts() -> List[Account]:
    """Resolved accounts; immutable for the life of the process.

    Raises ConfigError until a valid configuration is present.
    """
    return list(_cached_accounts())


def get_orchestrator() -> RefreshOrchestrator:
    return orchestrator
