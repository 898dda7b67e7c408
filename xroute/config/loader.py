"""Configuration loading and atomic reload.

A ConfigStore reads the three configuration documents from one directory
into an immutable ConfigBundle. ``reload()`` parses every document first and
only then replaces the bundle reference, so concurrent readers see either the
old bundle or the new one, never a mix.
"""

import json
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from xroute.config.schema import LiquidityCatalog, NetworkConfig, ProviderRegistryConfig
from xroute.constants import ROUTING_THRESHOLD_LARGE_USD, ROUTING_THRESHOLD_SPLIT_USD
from xroute.errors import ConfigError
from xroute.models.types import LiquidityMode

logger = structlog.get_logger()

DEFAULT_CONFIG_DIR = Path(__file__).parent / "data"

PROVIDERS_FILE = "providers.json"
LIQUIDITY_FILE = "liquidity.json"
NETWORKS_FILE = "evm_networks.json"

_DocT = TypeVar("_DocT", bound=BaseModel)


@dataclass(frozen=True)
class ConfigBundle:
    """One consistent snapshot of all configuration documents."""

    providers: ProviderRegistryConfig
    catalog: LiquidityCatalog
    networks: NetworkConfig
    source_dir: Path | None = None
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def empty(cls) -> "ConfigBundle":
        return cls(
            providers=ProviderRegistryConfig(),
            catalog=LiquidityCatalog(),
            networks=NetworkConfig(),
        )


@dataclass(frozen=True)
class EnvSettings:
    """Process settings read from XROUTE_* environment variables."""

    config_dir: Path = DEFAULT_CONFIG_DIR
    liquidity_mode: LiquidityMode | None = None
    provider_timeout: float | None = None
    price_cache_ttl: float | None = None
    xrpl_network: str = "mainnet"
    xrpl_endpoint: str | None = None
    anchor_routing: bool = True
    routing_threshold_large_usd: float = ROUTING_THRESHOLD_LARGE_USD
    routing_threshold_split_usd: float = ROUTING_THRESHOLD_SPLIT_USD


def _optional_float(environ: Mapping[str, str], name: str) -> float | None:
    raw = environ.get(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError as err:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from err


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be true or false, got {raw!r}")


def load_env_settings(environ: Mapping[str, str] | None = None) -> EnvSettings:
    """Read XROUTE_* settings, falling back to defaults for anything unset.

    Raises:
        ConfigError: If a variable is set to an unparsable value
    """
    env = os.environ if environ is None else environ
    mode_raw = env.get("XROUTE_LIQUIDITY_MODE")
    mode: LiquidityMode | None = None
    if mode_raw:
        try:
            mode = LiquidityMode(mode_raw.lower())
        except ValueError as err:
            raise ConfigError(f"XROUTE_LIQUIDITY_MODE must be one of simulated/live/auto, got {mode_raw!r}") from err
    large = _optional_float(env, "XROUTE_ROUTING_THRESHOLD_LARGE_USD")
    split = _optional_float(env, "XROUTE_ROUTING_THRESHOLD_SPLIT_USD")
    large = ROUTING_THRESHOLD_LARGE_USD if large is None else large
    split = ROUTING_THRESHOLD_SPLIT_USD if split is None else split
    if not 0 < large <= split:
        raise ConfigError(f"Routing thresholds must satisfy 0 < large <= split, got {large} and {split}")
    return EnvSettings(
        config_dir=Path(env.get("XROUTE_CONFIG_DIR") or DEFAULT_CONFIG_DIR),
        liquidity_mode=mode,
        provider_timeout=_optional_float(env, "XROUTE_PROVIDER_TIMEOUT"),
        price_cache_ttl=_optional_float(env, "XROUTE_PRICE_CACHE_TTL"),
        xrpl_network=env.get("XROUTE_XRPL_NETWORK", "mainnet").lower(),
        xrpl_endpoint=env.get("XROUTE_XRPL_ENDPOINT") or None,
        anchor_routing=_flag(env, "XROUTE_ANCHOR_ROUTING", True),
        routing_threshold_large_usd=large,
        routing_threshold_split_usd=split,
    )


def _read_document(path: Path, model: type[_DocT]) -> _DocT:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as err:
        raise ConfigError(f"Cannot read {path}: {err}") from err
    except json.JSONDecodeError as err:
        raise ConfigError(f"Invalid JSON in {path}: {err}") from err
    try:
        return model.model_validate(raw)
    except ValidationError as err:
        raise ConfigError(f"Invalid configuration in {path}: {err}") from err


def load_bundle(config_dir: Path, strict: bool = True) -> ConfigBundle:
    """Parse all three documents from a directory.

    Args:
        config_dir: Directory holding providers.json, liquidity.json and
            evm_networks.json
        strict: If True, any unreadable document raises ConfigError. If False,
            the failure is logged and that document falls back to its empty
            default (an empty catalog answers every query with None).

    Raises:
        ConfigError: In strict mode, if any document fails to load
    """
    documents: list[tuple[str, type[BaseModel]]] = [
        (PROVIDERS_FILE, ProviderRegistryConfig),
        (LIQUIDITY_FILE, LiquidityCatalog),
        (NETWORKS_FILE, NetworkConfig),
    ]
    parsed: list[BaseModel] = []
    for filename, model in documents:
        path = config_dir / filename
        try:
            parsed.append(_read_document(path, model))
        except ConfigError as err:
            if strict:
                raise
            logger.error("config_document_unreadable", path=str(path), error=str(err))
            parsed.append(model())
    providers, catalog, networks = parsed
    return ConfigBundle(
        providers=providers,  # type: ignore[arg-type]
        catalog=catalog,  # type: ignore[arg-type]
        networks=networks,  # type: ignore[arg-type]
        source_dir=config_dir,
    )


class ConfigStore:
    """Holds the active ConfigBundle and swaps it on explicit reload."""

    def __init__(self, config_dir: Path | str | None = None, bundle: ConfigBundle | None = None) -> None:
        self._config_dir = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
        self._reload_lock = threading.Lock()
        if bundle is None:
            bundle = load_bundle(self._config_dir, strict=False)
            logger.info(
                "config_loaded",
                config_dir=str(self._config_dir),
                providers=len(bundle.providers.providers),
                pool_chains=len(bundle.catalog.pools),
            )
        self._bundle = bundle

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def bundle(self) -> ConfigBundle:
        return self._bundle

    def load(self) -> ConfigBundle:
        """Parse every document without touching the active bundle.

        Raises:
            ConfigError: If any document is unreadable or invalid
        """
        try:
            return load_bundle(self._config_dir, strict=True)
        except ConfigError as err:
            logger.error("config_reload_failed", config_dir=str(self._config_dir), error=str(err))
            raise

    def commit(self, bundle: ConfigBundle) -> None:
        """Make a bundle returned by ``load()`` the active one."""
        with self._reload_lock:
            self._bundle = bundle
        logger.info(
            "config_reloaded",
            config_dir=str(self._config_dir),
            providers=len(bundle.providers.providers),
            pool_chains=len(bundle.catalog.pools),
        )

    def reload(self) -> ConfigBundle:
        """Re-read every document and swap the active bundle.

        Raises:
            ConfigError: If any document is unreadable or invalid; the
                previous bundle stays active
        """
        bundle = self.load()
        self.commit(bundle)
        return bundle


__all__ = [
    "ConfigBundle",
    "ConfigStore",
    "DEFAULT_CONFIG_DIR",
    "EnvSettings",
    "load_bundle",
    "load_env_settings",
]
