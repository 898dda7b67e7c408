"""Tests for the offline catalog provider."""

import pytest

from xroute.liquidity.catalog import CatalogProvider
from xroute.models.requests import OracleOptions
from xroute.models.types import ProviderKind
from tests.helpers import make_catalog


class TestPools:
    """Tests for pool lookup and orientation."""

    def test_forward_pool(self, catalog_provider: CatalogProvider):
        """Pools stored as (XRP, USDT) come back as stored."""
        pool = catalog_provider.get_pool("XRPL", "XRP", "USDT")
        assert pool is not None
        assert pool.spot_price == pytest.approx(2.07)
        assert pool.reserve_base == 1_000_000
        assert pool.fee_rate == 0.003
        assert pool.source == "simulated"

    def test_reversed_pool(self, catalog_provider: CatalogProvider):
        """Asking in the opposite order swaps reserves and inverts the price."""
        pool = catalog_provider.get_pool("XRPL", "USDT", "XRP")
        assert pool is not None
        assert pool.base == "USDT"
        assert pool.spot_price == pytest.approx(1 / 2.07)
        assert pool.reserve_base == 2_070_000

    def test_wrong_chain(self, catalog_provider: CatalogProvider):
        """Pools are scoped to their chain."""
        assert catalog_provider.get_pool("ETH", "XRP", "USDT") is None

    def test_any_chain(self, catalog_provider: CatalogProvider):
        """Without a chain every chain is searched."""
        pool = catalog_provider.get_pool(None, "ETH", "USDT")
        assert pool is not None
        assert pool.chain == "ETH"

    def test_reference_liquidity(self, catalog_provider: CatalogProvider):
        """Pools with priced tokens carry a USD liquidity figure."""
        pool = catalog_provider.get_pool("XRPL", "XRP", "USDT")
        assert pool.total_liquidity_reference == pytest.approx(1_000_000 * 2.07 + 2_070_000 * 1.0)

    def test_disabled_pool_skipped(self):
        """Disabled pools are invisible."""
        catalog = make_catalog(
            {
                "pools": {
                    "XRPL": [
                        {
                            "token0": "XRP",
                            "token1": "USDT",
                            "protocol": "XRPL_AMM",
                            "reserve0": 10,
                            "reserve1": 20,
                            "enabled": False,
                        }
                    ]
                }
            }
        )
        assert CatalogProvider("c", catalog).get_pool("XRPL", "XRP", "USDT") is None


class TestSwapAndLiquidity:
    """Tests for swap quoting and the exhaustion check."""

    def test_calculate_swap_output(self, catalog_provider: CatalogProvider):
        """Swap output follows the pool curve."""
        quote = catalog_provider.calculate_swap_output("XRPL", "XRP", "USDT", 100)
        assert quote is not None
        assert quote.amount_out == pytest.approx(206.36, abs=0.01)

    def test_no_pool_no_quote(self, catalog_provider: CatalogProvider):
        """Unknown pairs have no quote."""
        assert catalog_provider.calculate_swap_output("XRPL", "XRP", "FAKE", 1) is None

    def test_check_liquidity(self, catalog_provider: CatalogProvider):
        """Trades above half the input reserve are insufficient."""
        ok = catalog_provider.check_liquidity("XRPL", "XRP", "USDT", 400_000)
        too_big = catalog_provider.check_liquidity("XRPL", "XRP", "USDT", 600_000)
        assert ok.sufficient
        assert ok.utilization == pytest.approx(0.4)
        assert not too_big.sufficient
        assert too_big.max_amount == 500_000


class TestPrices:
    """Tests for spot price resolution."""

    def test_price_table_for_stable_quote(self, catalog_provider: CatalogProvider):
        """A stable quote reads the USD price table."""
        assert catalog_provider.resolve_spot_price("XRP", "USDT") == 2.07

    def test_synthetic_pair(self, catalog_provider: CatalogProvider):
        """Synthetic pairs answer in both orientations."""
        assert catalog_provider.resolve_spot_price("BTC", "ETH") == 25.0
        assert catalog_provider.resolve_spot_price("ETH", "BTC") == pytest.approx(1 / 25.0)

    def test_cross_rate(self, catalog_provider: CatalogProvider):
        """Two table prices give a cross rate."""
        assert catalog_provider.resolve_spot_price("ETH", "XRP") == pytest.approx(3800 / 2.07)

    def test_unknown(self, catalog_provider: CatalogProvider):
        """Unknown tokens resolve to None."""
        assert catalog_provider.resolve_spot_price("FAKE", "USDT") is None


class TestBridges:
    """Tests for bridge lookup."""

    def test_can_bridge(self, catalog_provider: CatalogProvider):
        """Bridges are directional and token-scoped."""
        assert catalog_provider.can_bridge("XRPL", "ETH", "USDT")
        assert not catalog_provider.can_bridge("XRPL", "ETH", "XRP")
        assert not catalog_provider.can_bridge("XRPL", "SOL", "USDT")

    def test_get_bridge(self, catalog_provider: CatalogProvider):
        """Bridge specs carry their estimated transfer time."""
        bridge = catalog_provider.get_bridge("XRPL", "ETH")
        assert bridge is not None
        assert bridge.estimated_time_seconds == 600


class TestProviderInterface:
    """Tests for the async provider interface."""

    def test_kind(self, catalog_provider: CatalogProvider):
        """Catalog providers are tagged for the mode filter."""
        assert catalog_provider.kind == ProviderKind.CATALOG

    def test_supports(self, catalog_provider: CatalogProvider):
        """Supported pairs have a pool or a resolvable price."""
        opts = OracleOptions(chain="XRPL")
        assert catalog_provider.supports("XRP", "USDT", opts)
        assert not catalog_provider.supports("FAKE_TOKEN", "USDT", opts)

    @pytest.mark.asyncio
    async def test_queries(self, catalog_provider: CatalogProvider):
        """Async queries answer from the catalog."""
        opts = OracleOptions(chain="XRPL")
        assert await catalog_provider.get_spot_price("XRP", "USDT", opts) == 2.07
        depth = await catalog_provider.get_depth("XRP", "USDT", opts)
        assert depth.protocol == "XRPL_AMM"

    @pytest.mark.asyncio
    async def test_slippage_curve(self, catalog_provider: CatalogProvider):
        """Curve slippage grows with trade size."""
        curve = await catalog_provider.get_slippage_curve(
            "XRP", "USDT", OracleOptions(chain="XRPL", amounts=[100, 10_000, 100_000])
        )
        assert curve is not None
        slippages = [p.slippage for p in curve.points]
        assert slippages == sorted(slippages)
        assert len(curve.points) == 3
