"""Configuration documents and their loader."""

from xroute.config.loader import (
    DEFAULT_CONFIG_DIR,
    ConfigBundle,
    ConfigStore,
    EnvSettings,
    load_bundle,
    load_env_settings,
)
from xroute.config.schema import (
    BridgeSpec,
    EvmNetwork,
    LiquidityCatalog,
    NetworkConfig,
    PoolSpec,
    ProviderRegistryConfig,
    ProviderSpec,
    SyntheticPair,
)

__all__ = [
    "BridgeSpec",
    "ConfigBundle",
    "ConfigStore",
    "DEFAULT_CONFIG_DIR",
    "EnvSettings",
    "EvmNetwork",
    "LiquidityCatalog",
    "NetworkConfig",
    "PoolSpec",
    "ProviderRegistryConfig",
    "ProviderSpec",
    "SyntheticPair",
    "load_bundle",
    "load_env_settings",
]
