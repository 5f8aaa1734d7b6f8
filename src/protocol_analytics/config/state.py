"""
Unified configuration state for the analytics pipeline.

This module provides a single source of truth for upstream sources, the
key-value store, per-dataset policies and logging, combining YAML files with
environment overrides, type validation and defaults taken from production.
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from protocol_analytics.shared.models.enums import DatasetKey, SourceName
from protocol_analytics.shared.models.policies import (
    FreshnessPolicy,
    IntegrityRules,
    RetentionPolicy,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS - Type-Safe Configuration
# =============================================================================


class SourceConfig(BaseModel):
    """One upstream GraphQL indexer."""

    name: SourceName
    endpoint: str
    page_size: int = Field(default=1000, ge=1, le=10000)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Source endpoint must be an http(s) URL")
        return v

    class Config:
        extra = "allow"


class HttpConfig(BaseModel):
    """Shared HTTP client settings."""

    timeout_seconds: float = Field(default=60.0, gt=0)
    user_agent: str = Field(default="protocol-analytics/0.1")

    class Config:
        extra = "allow"


class CacheStoreConfig(BaseModel):
    """Key-value store backing the published snapshots."""

    backend: Literal["edge_config", "local"] = Field(default="edge_config")
    edge_config_id: str | None = Field(default=None)
    access_token: str | None = Field(default=None)
    read_token: str | None = Field(default=None)
    admin_base_url: str = Field(default="https://api.vercel.com/v1/edge-config")
    read_base_url: str = Field(default="https://edge-config.vercel.com")
    local_root: str = Field(default=".cache/edge-config")
    payload_ceiling_bytes: int = Field(default=1_000_000, ge=1)

    class Config:
        extra = "allow"


class DatasetConfig(BaseModel):
    """Retention, freshness and integrity policy of one dataset."""

    retention: RetentionPolicy = Field(default_factory=RetentionPolicy)
    freshness: FreshnessPolicy = Field(default_factory=FreshnessPolicy)
    integrity: IntegrityRules = Field(default_factory=IntegrityRules)

    class Config:
        extra = "allow"


class RevalidationConfig(BaseModel):
    cooldown_seconds: float = Field(default=300.0, ge=0)

    class Config:
        extra = "allow"


class ChainsConfig(BaseModel):
    """Chain identity tables used to filter and label EVM data."""

    testnet_chain_ids: list[str] = Field(
        default_factory=lambda: [
            "5",
            "11155111",
            "84532",
            "84531",
            "421614",
            "421613",
            "11155420",
            "420",
            "59141",
            "59140",
            "534351",
            "534353",
            "168587773",
            "1442",
            "80001",
            "80002",
            "97",
            "43113",
            "2818",
            "919",
        ]
    )
    chain_names: dict[str, str] = Field(
        default_factory=lambda: {
            "1": "Ethereum",
            "10": "Optimism",
            "56": "BSC",
            "100": "Gnosis",
            "130": "Unichain",
            "137": "Polygon",
            "146": "Sonic",
            "8453": "Base",
            "34443": "Mode",
            "42161": "Arbitrum",
            "43114": "Avalanche",
            "59144": "Linea",
            "534352": "Scroll",
        }
    )
    evm_stablecoins: list[str] = Field(
        default_factory=lambda: [
            "BUSD",
            "DAI",
            "FRAX",
            "GHO",
            "GUSD",
            "LUSD",
            "PYUSD",
            "TUSD",
            "USDB",
            "USDC",
            "USDC.e",
            "USDbC",
            "USDD",
            "USDP",
            "USDT",
            "crvUSD",
            "sUSD",
        ]
    )
    solana_stablecoin_mints: list[str] = Field(
        default_factory=lambda: [
            "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USDC
            "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",  # USDT
            "2b1kV6DkPAnxd5ixfnxCpjxmKwqjjaYmCZfHsFu24GXo",  # PYUSD
        ]
    )

    def chain_name(self, chain_id: str) -> str:
        return self.chain_names.get(chain_id, f"Chain {chain_id}")

    class Config:
        extra = "allow"


class TokenMetadataConfig(BaseModel):
    """Public SPL token lists used to label ranked Solana tokens."""

    enabled: bool = Field(default=True)
    jupiter_url: str = Field(default="https://token.jup.ag/all")
    registry_url: str = Field(
        default=(
            "https://cdn.jsdelivr.net/gh/solana-labs/token-list@main/"
            "src/tokens/solana.tokenlist.json"
        )
    )
    timeout_seconds: float = Field(default=15.0, gt=0)
    user_agent: str = Field(default="protocol-analytics/0.1")

    class Config:
        extra = "allow"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    class Config:
        extra = "allow"


def _default_sources() -> dict[str, SourceConfig]:
    endpoints = {
        SourceName.LOCKUP_EVM: "https://indexer.hyperindex.xyz/53b7e25/v1/graphql",
        SourceName.AIRDROPS_EVM: "https://indexer.hyperindex.xyz/508d217/v1/graphql",
        SourceName.FLOW_EVM: "https://indexer.hyperindex.xyz/3b4ea6b/v1/graphql",
        SourceName.SOLANA_LOCKUP: (
            "https://graph.sablier.io/lockup-mainnet/subgraphs/name/"
            "sablier-lockup-solana-mainnet"
        ),
        SourceName.SOLANA_AIRDROPS: (
            "https://graph.sablier.io/airdrops-mainnet/subgraphs/name/"
            "sablier-airdrops-solana-mainnet"
        ),
    }
    return {
        name.value: SourceConfig(name=name, endpoint=url)
        for name, url in endpoints.items()
    }


def _default_datasets() -> dict[str, DatasetConfig]:
    return {
        DatasetKey.ANALYTICS.value: DatasetConfig(
            retention=RetentionPolicy(
                series_limits={
                    "monthly_user_growth": 24,
                    "monthly_transaction_growth": 24,
                    "monthly_stream_creation": 24,
                },
                ranked_limits={
                    "chain_distribution": 10,
                    "top_assets": 15,
                    "largest_stablecoin_streams": 20,
                },
                projected_fields=("largest_stablecoin_streams",),
            ),
            freshness=FreshnessPolicy(ceiling_hours=48, hard_ceiling=True),
            integrity=IntegrityRules(
                critical_scalars=("total_users", "total_transactions", "total_claims"),
                critical_arrays=(
                    "chain_distribution",
                    "top_assets",
                    "monthly_user_growth",
                ),
            ),
        ),
        DatasetKey.AIRDROPS.value: DatasetConfig(
            retention=RetentionPolicy(
                series_limits={
                    "monthly_campaign_creation": 12,
                    "monthly_claim_trends": 12,
                },
                ranked_limits={
                    "chain_distribution": 8,
                    "top_performing_campaigns": 8,
                },
                projected_fields=("top_performing_campaigns",),
            ),
            freshness=FreshnessPolicy(ceiling_hours=24, hard_ceiling=False),
            integrity=IntegrityRules(
                critical_scalars=("total_campaigns",),
                critical_arrays=("monthly_campaign_creation",),
            ),
        ),
        DatasetKey.SOLANA_ANALYTICS.value: DatasetConfig(
            retention=RetentionPolicy(ranked_limits={"top_spl_tokens": 10}),
            freshness=FreshnessPolicy(ceiling_hours=24, hard_ceiling=False),
            integrity=IntegrityRules(
                critical_scalars=("total_streams",),
                critical_arrays=("top_spl_tokens",),
            ),
        ),
        DatasetKey.FLOW_ANALYTICS.value: DatasetConfig(
            freshness=FreshnessPolicy(ceiling_hours=48, hard_ceiling=True),
            integrity=IntegrityRules(critical_scalars=("total_deposits",)),
        ),
    }


class ConfigState(BaseModel):
    """
    Root configuration state - single source of truth for all app config.

    Sources and datasets are keyed by their enum value so YAML files can
    override a single entry without restating the rest.
    """

    sources: dict[str, SourceConfig] = Field(default_factory=_default_sources)
    http: HttpConfig = Field(default_factory=HttpConfig)
    cache_store: CacheStoreConfig = Field(default_factory=CacheStoreConfig)
    datasets: dict[str, DatasetConfig] = Field(default_factory=_default_datasets)
    revalidation: RevalidationConfig = Field(default_factory=RevalidationConfig)
    chains: ChainsConfig = Field(default_factory=ChainsConfig)
    token_metadata: TokenMetadataConfig = Field(default_factory=TokenMetadataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Environment metadata
    env: str = Field(default="dev")
    config_dir: str = Field(default="./config")

    def source(self, name: SourceName | str) -> SourceConfig:
        return self.sources[SourceName(name).value]

    def dataset(self, key: DatasetKey | str) -> DatasetConfig:
        return self.datasets[DatasetKey(key).value]

    class Config:
        extra = "allow"  # Allow additional fields from YAML


# =============================================================================
# CONFIG LOADER - Clean, Validated Loading
# =============================================================================


class ConfigLoader:
    """
    Load and validate configuration from hierarchical YAML files.

    Merges:
      1. Built-in defaults
      2. YAML files from config_dir
      3. Environment-specific YAML (env/<env>.yaml)
      4. Environment variable overrides
    """

    CONFIG_FILES = ("sources.yaml", "cache.yaml", "datasets.yaml")

    def __init__(self, config_dir: str = "./config", env: str | None = None):
        self.config_dir = Path(config_dir)
        self._yaml_cache: dict[Path, Any] = {}
        self.env = env or os.getenv("ANALYTICS_ENV", "dev")

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML file with caching."""
        if path in self._yaml_cache:
            return self._yaml_cache[path]

        if not path.exists():
            logger.debug(f"Config file not found (using defaults): {path}")
            return {}

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        self._yaml_cache[path] = data
        logger.debug(f"Loaded config: {path.relative_to(self.config_dir)}")
        return data

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to config."""
        store = config.setdefault("cache_store", {})

        if edge_config_id := os.getenv("EDGE_CONFIG_ID"):
            store["edge_config_id"] = edge_config_id

        if access_token := os.getenv("VERCEL_ACCESS_TOKEN"):
            store["access_token"] = access_token

        if read_token := os.getenv("EDGE_CONFIG_TOKEN"):
            store["read_token"] = read_token

        if backend := os.getenv("ANALYTICS_CACHE_BACKEND"):
            store["backend"] = backend

        if local_root := os.getenv("ANALYTICS_LOCAL_STORE"):
            store["local_root"] = local_root

        if log_level := os.getenv("LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level

        return config

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        """Deep merge override into base dict."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _defaults(self) -> dict[str, Any]:
        return ConfigState().model_dump(
            mode="json", exclude={"env", "config_dir"}
        )

    def load(self) -> ConfigState:
        """
        Load complete configuration state.

        Returns:
            ConfigState: Validated configuration object

        Raises:
            ValidationError: If configuration is invalid
        """
        logger.info(f"Loading configuration from {self.config_dir} (env: {self.env})")

        config = self._defaults()

        for config_file in self.CONFIG_FILES:
            file_config = self._load_yaml(self.config_dir / config_file)
            config = self._merge_dicts(config, file_config)

        env_config = self._load_yaml(self.config_dir / "env" / f"{self.env}.yaml")
        config = self._merge_dicts(config, env_config)

        config = self._apply_env_overrides(config)

        try:
            state = ConfigState(env=self.env, config_dir=str(self.config_dir), **config)
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        logger.info(
            f"Configuration loaded: sources={len(state.sources)}, "
            f"datasets={len(state.datasets)}, store={state.cache_store.backend}"
        )
        return state


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================


def get_config(config_dir: str | None = None) -> ConfigState:
    """
    Load and return the configuration state.

    Args:
        config_dir: Override config directory. Defaults to $ANALYTICS_CONFIG_DIR
            or ./config

    Returns:
        ConfigState: Validated configuration object
    """
    if config_dir is None:
        config_dir = os.getenv("ANALYTICS_CONFIG_DIR", "./config")
        if not Path(config_dir).exists():
            logger.warning(f"Config directory not found at {config_dir}, using defaults")

    loader = ConfigLoader(config_dir=config_dir)
    return loader.load()


__all__ = [
    "CacheStoreConfig",
    "ChainsConfig",
    "ConfigLoader",
    "ConfigState",
    "DatasetConfig",
    "HttpConfig",
    "LoggingConfig",
    "RevalidationConfig",
    "SourceConfig",
    "TokenMetadataConfig",
    "get_config",
]
