"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from xroute.config.loader import ConfigBundle, ConfigStore, EnvSettings, load_bundle
from xroute.config.schema import LiquidityCatalog
from xroute.liquidity.catalog import CatalogProvider
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.types import LiquidityMode
from xroute.routing.planner import RoutePlanner
from tests.helpers.constants import CONFIG_DIR


@pytest.fixture
def config_dir() -> Path:
    """Return the shipped configuration directory."""
    return CONFIG_DIR


@pytest.fixture
def bundle() -> ConfigBundle:
    """Parse the shipped configuration documents."""
    return load_bundle(CONFIG_DIR)


@pytest.fixture
def catalog(bundle: ConfigBundle) -> LiquidityCatalog:
    """The shipped offline liquidity catalog."""
    return bundle.catalog


@pytest.fixture
def catalog_provider(catalog: LiquidityCatalog) -> CatalogProvider:
    """Catalog provider over the shipped catalog."""
    return CatalogProvider("simulated", catalog, priority=99)


@pytest.fixture
def simulated_oracle(bundle: ConfigBundle) -> LiquidityOracle:
    """Oracle over the shipped configuration, pinned to simulated mode.

    Live providers are built but never consulted, so no network calls happen.
    """
    return LiquidityOracle(
        ConfigStore(CONFIG_DIR, bundle=bundle),
        mode=LiquidityMode.SIMULATED,
        settings=EnvSettings(),
    )


@pytest.fixture
def planner(simulated_oracle: LiquidityOracle) -> RoutePlanner:
    """Planner over the simulated oracle with default fee and slippage models."""
    return RoutePlanner(simulated_oracle)
