"""
Configuration loader for fanclub_market.

What it does:
- Reads static settings from `config/config.yaml`.
- Resolves the RPC endpoint and the trading account from environment variables
  using a network-derived prefix: `{network.replace('-', '_').upper()}`.
  Example: `SEPOLIA_RPC_URL`, `SEPOLIA_ACCOUNT`.
- Validates the resulting configuration using Pydantic models.

Where it is used:
- Called by `fanclub_market.main` to build the gateway, identity provider and
  sync engine.
"""
from __future__ import annotations

import os
import re
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class LedgerConfig(BaseModel):
    """Where the FanClubFactory contract lives and how long to wait on receipts."""
    contract_address: str
    abi_path: Optional[str] = None
    receipt_timeout_s: float = Field(default=120.0, gt=0)
    poll_latency_s: float = Field(default=0.5, gt=0)

    @field_validator("contract_address")
    @classmethod
    def valid_address(cls, v):
        if not _ADDRESS_RE.match(v or ""):
            raise ValueError(f"Invalid contract address: {v!r}")
        return v


class SyncConfig(BaseModel):
    concurrent_reads: bool = False


class DisplayConfig(BaseModel):
    native_unit: str = "testCITY"
    ipfs_gateway: str = "https://ipfs.io/ipfs/"


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    network: str
    rpc_url: str
    account: Optional[str] = None
    ledger: LedgerConfig
    sync: SyncConfig = SyncConfig()
    display: DisplayConfig = DisplayConfig()

    @field_validator("rpc_url")
    @classmethod
    def not_empty(cls, v, info):
        if not v:
            raise ValueError(f"Missing required setting: {info.field_name}")
        return v

    @field_validator("account")
    @classmethod
    def valid_account(cls, v):
        if v and not _ADDRESS_RE.match(v):
            raise ValueError(f"Invalid account address: {v!r}")
        return v or None


def env_prefix(network: str) -> str:
    return network.replace("-", "_").upper()


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Load YAML config, resolve env-var endpoint/account, and return Settings.

    The RPC URL may also be written into the YAML under `rpc_url`; the
    environment variable wins when both are present.
    """
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    network = config["network"]
    prefix = env_prefix(network)
    rpc_url = os.getenv(f"{prefix}_RPC_URL", "") or config.get("rpc_url", "")
    if not rpc_url:
        raise ValueError(f"Missing RPC endpoint. Expected env var: {prefix}_RPC_URL")
    account = os.getenv(f"{prefix}_ACCOUNT", "") or config.get("account") or None
    return Settings(
        network=network,
        rpc_url=rpc_url,
        account=account,
        ledger=LedgerConfig(**config["ledger"]),
        sync=SyncConfig(**(config.get("sync") or {})),
        display=DisplayConfig(**(config.get("display") or {})),
    )
