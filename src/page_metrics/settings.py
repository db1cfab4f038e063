"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    CACHE_TTL_MS,
    CIRCULATING_SUPPLY,
    EVM_ENDPOINTS,
    OSMOSIS_ANALYTICS_URL,
    OSMOSIS_CHAIN_ID,
    OSMOSIS_LCD_URL,
    OSMOSIS_OSMO_USDC_POOL_ID,
    OSMOSIS_PAGE_DENOM,
    OSMOSIS_PAGE_POOL_ID,
    OSMOSIS_USDC_DENOM,
    TOTAL_SUPPLY,
)

load_dotenv()


class Network(str, Enum):
    ETHEREUM = "ethereum"
    OPTIMISM = "optimism"
    BASE = "base"
    OSMOSIS = "osmosis"


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


EVM_NETWORKS: tuple[Network, ...] = (Network.ETHEREUM, Network.OPTIMISM, Network.BASE)
ALL_NETWORKS: tuple[Network, ...] = (*EVM_NETWORKS, Network.OSMOSIS)


class EvmNetworkSettings(BaseModel):
    """RPC endpoints for one EVM network."""

    primary_rpc_url: str
    backup_rpc_url: str | None = None
    chain_id: int

    model_config = ConfigDict(extra="ignore")


class CosmosSettings(BaseModel):
    """REST endpoints and pool identifiers for Osmosis."""

    lcd_base_url: str = OSMOSIS_LCD_URL
    analytics_api_url: str = OSMOSIS_ANALYTICS_URL
    chain_id: str = OSMOSIS_CHAIN_ID
    pool_id: str = OSMOSIS_PAGE_POOL_ID
    denom: str = OSMOSIS_PAGE_DENOM
    quote_pool_id: str = OSMOSIS_OSMO_USDC_POOL_ID
    usdc_denom: str = OSMOSIS_USDC_DENOM

    model_config = ConfigDict(extra="ignore")

    @field_validator("lcd_base_url", "analytics_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class RetrySettings(BaseModel):
    """Connection acquisition retry policy."""

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=1.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1.0)

    model_config = ConfigDict(extra="ignore")


class SupplySettings(BaseModel):
    circulating_supply: float = Field(default=CIRCULATING_SUPPLY, ge=0)
    total_supply: float = Field(default=TOTAL_SUPPLY, ge=0)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_supply_ordering(self) -> "SupplySettings":
        if self.circulating_supply > self.total_supply:
            raise ValueError(
                f"circulating_supply ({self.circulating_supply}) "
                f"must not exceed total_supply ({self.total_supply})"
            )
        return self


def _default_evm(network: str) -> EvmNetworkSettings:
    endpoints = EVM_ENDPOINTS[network]
    return EvmNetworkSettings(
        primary_rpc_url=endpoints["primary"],
        backup_rpc_url=endpoints["backup"],
        chain_id=endpoints["chain_id"],
    )


def redact_url(url: str | None) -> str | None:
    """Hide credentials that RPC providers embed in the userinfo, path or query."""
    if not url:
        return url
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    path = "/***" if parts.path.strip("/") else parts.path
    query = "***" if parts.query else ""
    return urlunsplit((parts.scheme, host, path, query, ""))


class MetricsSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with PAGE_METRICS_, nested keys joined with __)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- networks ---
    ethereum: EvmNetworkSettings = Field(
        default_factory=lambda: _default_evm("ethereum")
    )
    optimism: EvmNetworkSettings = Field(
        default_factory=lambda: _default_evm("optimism")
    )
    base: EvmNetworkSettings = Field(default_factory=lambda: _default_evm("base"))
    osmosis: CosmosSettings = Field(default_factory=CosmosSettings)

    # --- caching ---
    cache_ttl_ms: int = Field(default=CACHE_TTL_MS, ge=0)

    # --- connections and retries ---
    retry: RetrySettings = Field(default_factory=RetrySettings)
    probe_timeout_seconds: float = Field(default=10.0, gt=0)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    http_max_tries: int = Field(default=3, ge=1)
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)
    global_timeout_seconds: float | None = 120.0

    # --- aggregation policy ---
    isolate_cosmos_failures: bool = False

    # --- market metrics ---
    supply: SupplySettings = Field(default_factory=SupplySettings)

    # --- output ---
    output_format: OutputFormat = OutputFormat.TABLE

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PAGE_METRICS_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("PAGE_METRICS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("page-metrics.toml")
                    user_config = (
                        Path.home() / ".config" / "page-metrics" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [page_metrics]
                body = data.get("page_metrics", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def evm_network(self, network: Network) -> EvmNetworkSettings:
        """Get the endpoint settings for an EVM network."""
        if network not in EVM_NETWORKS:
            raise ValueError(f"{network.value} is not an EVM network")
        settings: EvmNetworkSettings = getattr(self, network.value)
        return settings

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with URL credentials redacted."""
        data = self.model_dump(mode="json")
        for network in EVM_NETWORKS:
            entry = data[network.value]
            entry["primary_rpc_url"] = redact_url(entry["primary_rpc_url"])
            entry["backup_rpc_url"] = redact_url(entry["backup_rpc_url"])
        return data
