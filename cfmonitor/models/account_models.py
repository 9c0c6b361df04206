"""CF Monitor — Account / Zone Configuration Models (Immutable)."""

from typing import List
from pydantic import BaseModel, Field


class Zone(BaseModel):
    """A Cloudflare zone to query."""

    zone_id: str = Field(min_length=1, description="Opaque Cloudflare zone tag")
    domain: str = Field(min_length=1, description="Display label")

    model_config = {"frozen": True, "str_strip_whitespace": True}


class Account(BaseModel):
    """A credential paired with the zones it can query."""

    name: str = Field(min_length=1)
    token: str = Field(min_length=1, repr=False)
    zones: List[Zone] = Field(min_length=1)

    model_config = {"frozen": True, "str_strip_whitespace": True}


class AccountsConfig(BaseModel):
    """Top-level shape of the CF_CONFIG blob and of zones.yml."""

    accounts: List[Account] = Field(min_length=1)

    model_config = {"frozen": True}
