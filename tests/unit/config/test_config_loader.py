"""Tests for configuration loading and reload."""

import json
import shutil
from pathlib import Path

import pytest

from xroute.config.loader import (
    ConfigBundle,
    ConfigStore,
    load_bundle,
    load_env_settings,
)
from xroute.config.schema import ProviderRegistryConfig
from xroute.errors import ConfigError
from xroute.models.types import LiquidityMode


@pytest.fixture
def config_copy(tmp_path: Path, config_dir: Path) -> Path:
    """A writable copy of the shipped configuration directory."""
    target = tmp_path / "config"
    shutil.copytree(config_dir, target)
    return target


class TestShippedDocuments:
    """Tests that the shipped documents parse into typed structs."""

    def test_providers(self, bundle: ConfigBundle):
        """Registry lists every provider type and a chain priority table."""
        providers = bundle.providers
        assert providers.default_mode == LiquidityMode.AUTO
        types = {spec.type for spec in providers.providers}
        assert types == {"catalog", "xrpl_orderbook", "price_feed", "anchor"}
        assert providers.chain_priority["XRPL"][0] == "xrpl"

    def test_catalog(self, bundle: ConfigBundle):
        """Catalog has pools per chain, bridges, synthetic pairs and prices."""
        catalog = bundle.catalog
        assert {"XRPL", "ETH", "BSC"} <= set(catalog.pools)
        assert any(b.from_chain == "XRPL" and b.to_chain == "ETH" for b in catalog.bridges)
        assert catalog.synthetic_pairs
        assert catalog.price_oracles["XRP"] == 2.07

    def test_networks(self, bundle: ConfigBundle):
        """Network map carries EVM chains, feed ids and XRPL endpoints."""
        networks = bundle.networks
        assert networks.evm["BSC"].amm_fee == 0.0025
        assert networks.price_feed.token_ids["ETH"] == "ethereum"
        assert "mainnet" in networks.xrpl.endpoints


class TestLoadBundle:
    """Tests for load_bundle strict and lenient modes."""

    def test_strict_missing_document_raises(self, config_copy: Path):
        """Strict load fails on a missing document."""
        (config_copy / "liquidity.json").unlink()
        with pytest.raises(ConfigError):
            load_bundle(config_copy, strict=True)

    def test_lenient_missing_catalog_is_empty(self, config_copy: Path):
        """Lenient load substitutes an empty catalog for an unreadable one."""
        (config_copy / "liquidity.json").write_text("{not json")
        bundle = load_bundle(config_copy, strict=False)
        assert bundle.catalog.pools == {}
        assert bundle.providers.providers

    def test_invalid_document_raises(self, config_copy: Path):
        """Schema violations surface as ConfigError."""
        (config_copy / "providers.json").write_text(
            json.dumps({"providers": [{"name": "a", "type": "carrier-pigeon"}]})
        )
        with pytest.raises(ConfigError):
            load_bundle(config_copy)

    def test_duplicate_provider_names_rejected(self):
        """Provider names must be unique."""
        with pytest.raises(ValueError):
            ProviderRegistryConfig.model_validate(
                {"providers": [{"name": "a", "type": "catalog"}, {"name": "a", "type": "catalog"}]}
            )


class TestConfigStore:
    """Tests for ConfigStore reload semantics."""

    def test_reload_swaps_bundle(self, config_copy: Path):
        """Reload picks up edited documents."""
        store = ConfigStore(config_copy)
        before = store.bundle
        data = json.loads((config_copy / "providers.json").read_text())
        data["defaultMode"] = "simulated"
        (config_copy / "providers.json").write_text(json.dumps(data))

        after = store.reload()

        assert store.bundle is after
        assert after is not before
        assert after.providers.default_mode == LiquidityMode.SIMULATED

    def test_failed_reload_keeps_previous_bundle(self, config_copy: Path):
        """A broken document leaves the active bundle in place."""
        store = ConfigStore(config_copy)
        before = store.bundle
        (config_copy / "evm_networks.json").write_text("[]")

        with pytest.raises(ConfigError):
            store.reload()

        assert store.bundle is before

    def test_explicit_bundle(self):
        """A store can wrap a prebuilt bundle without reading files."""
        bundle = ConfigBundle.empty()
        assert ConfigStore(bundle=bundle).bundle is bundle


class TestEnvSettings:
    """Tests for XROUTE_* environment parsing."""

    def test_defaults(self):
        """Unset variables fall back to defaults."""
        settings = load_env_settings({})
        assert settings.liquidity_mode is None
        assert settings.provider_timeout is None
        assert settings.xrpl_network == "mainnet"

    def test_values(self, tmp_path: Path):
        """Set variables are parsed."""
        settings = load_env_settings(
            {
                "XROUTE_CONFIG_DIR": str(tmp_path),
                "XROUTE_LIQUIDITY_MODE": "LIVE",
                "XROUTE_PROVIDER_TIMEOUT": "2.5",
                "XROUTE_PRICE_CACHE_TTL": "0",
                "XROUTE_XRPL_NETWORK": "Testnet",
            }
        )
        assert settings.config_dir == tmp_path
        assert settings.liquidity_mode == LiquidityMode.LIVE
        assert settings.provider_timeout == 2.5
        assert settings.price_cache_ttl == 0.0
        assert settings.xrpl_network == "testnet"

    @pytest.mark.parametrize(
        "env", [{"XROUTE_LIQUIDITY_MODE": "turbo"}, {"XROUTE_PROVIDER_TIMEOUT": "soon"}]
    )
    def test_invalid_values_raise(self, env):
        """Unparsable values raise ConfigError."""
        with pytest.raises(ConfigError):
            load_env_settings(env)

    def test_anchor_routing_settings(self):
        """Routing flag and thresholds are read from the environment."""
        settings = load_env_settings(
            {
                "XROUTE_ANCHOR_ROUTING": "off",
                "XROUTE_ROUTING_THRESHOLD_LARGE_USD": "500",
                "XROUTE_ROUTING_THRESHOLD_SPLIT_USD": "10000",
            }
        )
        assert settings.anchor_routing is False
        assert settings.routing_threshold_large_usd == 500.0
        assert settings.routing_threshold_split_usd == 10_000.0

    def test_anchor_routing_defaults(self):
        """Anchor routing is on with 1k and 25k thresholds."""
        settings = load_env_settings({})
        assert settings.anchor_routing is True
        assert (settings.routing_threshold_large_usd, settings.routing_threshold_split_usd) == (1000.0, 25000.0)

    @pytest.mark.parametrize(
        "env",
        [
            {"XROUTE_ANCHOR_ROUTING": "maybe"},
            {"XROUTE_ROUTING_THRESHOLD_LARGE_USD": "30000"},
            {"XROUTE_ROUTING_THRESHOLD_LARGE_USD": "0"},
        ],
    )
    def test_invalid_routing_settings_raise(self, env):
        """Unknown flags and unordered thresholds raise ConfigError."""
        with pytest.raises(ConfigError):
            load_env_settings(env)
