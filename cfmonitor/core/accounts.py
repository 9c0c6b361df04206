"""CF Monitor — Account Configuration Resolver.

Builds the account/zone list from the first satisfied source:
  1. CF_CONFIG  — a JSON blob ``{"accounts": [...]}``
  2. Legacy flat variables — CF_TOKENS / CF_ZONES / CF_DOMAINS / CF_ACCOUNT_NAME,
     unsuffixed for the base account, then ``_1``, ``_2`` ... until a gap
  3. zones.yml — same shape as CF_CONFIG (skipped on serverless hosts)

Each source is a pure function of its input returning ``None`` when it is not
satisfied. Sources are never merged.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from cfmonitor.config import settings, IS_SERVERLESS
from cfmonitor.core.errors import ConfigError
from cfmonitor.core.logging import get_logger
from cfmonitor.models.account_models import Account, AccountsConfig

logger = get_logger("accounts")

TOKEN_KEYS = ("CF_TOKENS", "CF_TOKEN")
ZONE_KEYS = ("CF_ZONES", "CF_ZONE_IDS", "CF_ZONE")
DOMAIN_KEYS = ("CF_DOMAINS", "CF_DOMAIN")
ACCOUNT_NAME_KEY = "CF_ACCOUNT_NAME"

DEFAULT_ACCOUNT_NAME = "Default Account"
NUMBERED_ACCOUNT_NAME = "Account {index}"

_LIST_SEPARATORS = re.compile(r"[\n,;]+")

AccountSource = Callable[[Mapping[str, str]], Optional[List[Account]]]


def _validate(data: Any, source: str) -> List[Account]:
    """Validate a ``{"accounts": [...]}`` structure into Account models."""
    try:
        return list(AccountsConfig.model_validate(data).accounts)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError(
            f"Invalid account configuration in {source} at '{location}': {first['msg']}"
        ) from e


def _parse_list(value: str) -> List[str]:
    """Split a comma / semicolon / newline separated list, dropping blanks."""
    return [item.strip() for item in _LIST_SEPARATORS.split(value or "") if item.strip()]


def _first_env_value(env: Mapping[str, str], keys: List[str]) -> str:
    for key in keys:
        value = env.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _suffixed(keys: tuple, suffix: str) -> List[str]:
    return [f"{key}{suffix}" for key in keys]


# ── Source 1: CF_CONFIG blob ──


def from_config_blob(env: Mapping[str, str]) -> Optional[List[Account]]:
    """Parse and validate the CF_CONFIG JSON blob wholesale."""
    blob = env.get("CF_CONFIG")
    if not blob or not blob.strip():
        return None
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise ConfigError(f"CF_CONFIG is not valid JSON: {e}") from e
    return _validate(data, "CF_CONFIG")


# ── Source 2: legacy flat variables ──


def has_legacy_account(env: Mapping[str, str], suffix: str) -> bool:
    """An account block exists only when both its token and zones are set."""
    token = _first_env_value(env, _suffixed(TOKEN_KEYS, suffix))
    zones = _first_env_value(env, _suffixed(ZONE_KEYS, suffix))
    return bool(token and zones)


def build_legacy_account(
    env: Mapping[str, str], suffix: str, fallback_name: str
) -> dict:
    """Build one raw account dict from a suffixed variable family.

    Only the first token of the list is used. Zones are zipped positionally
    with domains; a missing domain falls back to the zone id.
    """
    tokens = _parse_list(_first_env_value(env, _suffixed(TOKEN_KEYS, suffix)))
    zone_ids = _parse_list(_first_env_value(env, _suffixed(ZONE_KEYS, suffix)))
    domains = _parse_list(_first_env_value(env, _suffixed(DOMAIN_KEYS, suffix)))

    return {
        "name": env.get(f"{ACCOUNT_NAME_KEY}{suffix}") or fallback_name,
        "token": tokens[0] if tokens else "",
        "zones": [
            {
                "zone_id": zone_id,
                "domain": domains[idx] if idx < len(domains) else zone_id,
            }
            for idx, zone_id in enumerate(zone_ids)
        ],
    }


def from_legacy_env(env: Mapping[str, str]) -> Optional[List[Account]]:
    """Base account (unsuffixed) followed by ``_1``, ``_2`` ... with no gaps."""
    raw_accounts = []

    if has_legacy_account(env, ""):
        raw_accounts.append(build_legacy_account(env, "", DEFAULT_ACCOUNT_NAME))

    index = 1
    while has_legacy_account(env, f"_{index}"):
        raw_accounts.append(
            build_legacy_account(
                env, f"_{index}", NUMBERED_ACCOUNT_NAME.format(index=index)
            )
        )
        index += 1

    if not raw_accounts:
        return None
    return _validate({"accounts": raw_accounts}, "legacy environment variables")


# ── Source 3: zones.yml ──


def load_config_file(path: Path) -> Optional[List[Account]]:
    """Load the declarative YAML file; a missing file means 'not configured'."""
    if not path.is_file():
        return None
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e
    if data is None:
        return None
    return _validate(data, str(path))


def from_config_file(env: Mapping[str, str]) -> Optional[List[Account]]:
    return load_config_file(Path(settings.zones_file))


def default_sources(include_file: bool = True) -> List[AccountSource]:
    sources: List[AccountSource] = [from_config_blob, from_legacy_env]
    if include_file:
        sources.append(from_config_file)
    return sources


def resolve_accounts(
    env: Mapping[str, str],
    sources: Optional[List[AccountSource]] = None,
) -> List[Account]:
    """Return the accounts of the first satisfied source.

    Raises:
        ConfigError: a source is malformed, or no source is satisfied.
    """
    if sources is None:
        sources = default_sources(include_file=not IS_SERVERLESS)

    for source in sources:
        accounts = source(env)
        if accounts:
            logger.info(
                f"Config loaded from {getattr(source, '__name__', source)}: {len(accounts)} account(s)"
            )
            for idx, account in enumerate(accounts, 1):
                logger.info(
                    f"  Account {idx}: {account.name} ({len(account.zones)} zones)"
                )
            return accounts

    raise ConfigError("No Cloudflare account configuration found")


def load_accounts() -> List[Account]:
    """Resolve accounts from the process environment.

    CF_CONFIG may also come from the .env file via settings.
    """
    env = dict(os.environ)
    if settings.cf_config and not env.get("CF_CONFIG"):
        env["CF_CONFIG"] = settings.cf_config
    return resolve_accounts(env)
