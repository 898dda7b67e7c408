"""Tests for venue-anchor quoters."""

import pytest

from xroute.liquidity.anchors import VENUES, AnchorProvider
from xroute.models.requests import OracleOptions


@pytest.fixture
def bitstamp() -> AnchorProvider:
    return AnchorProvider("xrpl-bitstamp", VENUES["xrpl-bitstamp"], chains=["XRPL"])


class TestVenueTables:
    """Tests for the static venue data."""

    def test_all_venues_present(self):
        """Five anchor venues are known."""
        assert set(VENUES) == {"xrpl-gatehub", "xrpl-bitstamp", "xrpl-usdx", "stellar-usdc", "xdc-usdt"}

    @pytest.mark.parametrize(
        "notional,score",
        [(1_000, 0.95), (5_000, 0.90), (30_000, 0.85), (100_000, 0.75), (1_000_000, 0.75)],
    )
    def test_xrp_score_tiers(self, notional, score):
        """XRP scores fall as the notional crosses each bound."""
        assert VENUES["xrpl-bitstamp"].liquidity_score("XRP", notional) == score

    def test_wildcard_tiers(self):
        """Bases without their own tiers use the wildcard table."""
        assert VENUES["xrpl-bitstamp"].liquidity_score("BTC", 20_000) == 0.75

    def test_slippage_bps(self):
        """Slippage is the score shortfall in basis points."""
        assert VENUES["xrpl-bitstamp"].slippage_bps("XRP", 1_000) == 5
        assert VENUES["xrpl-usdx"].slippage_bps("XRP", 50_000) == 70


class TestAnchorQueries:
    """Tests for the provider interface."""

    @pytest.mark.asyncio
    async def test_spot_price(self, bitstamp: AnchorProvider):
        """Prices come from the venue table."""
        assert await bitstamp.get_spot_price("XRP", "USD", OracleOptions()) == 0.52

    @pytest.mark.asyncio
    async def test_reverse_orientation(self, bitstamp: AnchorProvider):
        """Reversed pairs are quoted at the reciprocal price."""
        assert await bitstamp.get_spot_price("USD", "XRP", OracleOptions()) == pytest.approx(1 / 0.52)

    def test_supports(self, bitstamp: AnchorProvider):
        """Pairs missing from the table are unsupported."""
        assert bitstamp.supports("XRP", "USDT", OracleOptions())
        assert not bitstamp.supports("XRP", "USDC", OracleOptions())

    @pytest.mark.asyncio
    async def test_depth_carries_venue_metadata(self, bitstamp: AnchorProvider):
        """Snapshots report fee, confirmation time and score but no depth."""
        depth = await bitstamp.get_depth("XRP", "USD", OracleOptions(notional_hint=50_000))
        assert depth.fee_bps == 15
        assert depth.fee_rate == pytest.approx(0.0015)
        assert depth.est_confirm_ms == 3500
        assert depth.liquidity_score == 0.85
        assert depth.total_liquidity is None
        assert depth.chain == "XRPL"

    @pytest.mark.asyncio
    async def test_default_notional(self, bitstamp: AnchorProvider):
        """Without a hint the score uses the default notional."""
        depth = await bitstamp.get_depth("XRP", "USD", OracleOptions())
        assert depth.liquidity_score == 0.95

    @pytest.mark.asyncio
    async def test_curve(self, bitstamp: AnchorProvider):
        """Curve slippage rises with trade size and the fee is applied."""
        curve = await bitstamp.get_slippage_curve(
            "XRP", "USD", OracleOptions(amounts=[1_000, 100_000])
        )
        small, large = curve.points
        assert small.slippage == pytest.approx(0.0005)
        assert large.slippage > small.slippage
        assert small.execution_price == pytest.approx(0.52 * (1 - 0.0015) * (1 - 0.0005))
