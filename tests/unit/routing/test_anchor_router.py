"""Tests for size-tiered anchor venue selection."""

import asyncio

import pytest

from xroute.errors import ConfigError, ProviderTransportError, RouteError
from xroute.liquidity.anchors import VENUES, AnchorProvider, AnchorVenue
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.types import TradeSide
from xroute.routing.anchor_router import (
    AnchorQuote,
    AnchorQuoteFailure,
    AnchorRouter,
    QuoteCandidate,
    choose_best_price,
)
from tests.helpers import make_snapshot

# Quotes below every other venue but charges a 1% fee; deepest book of all
DISCOUNT_VENUE = AnchorVenue(
    name="discount",
    chain="XRPL",
    protocol="XRPL_DEX",
    prices={("XRP", "USDT"): 0.50},
    fee_bps=100,
    est_confirm_ms=3000,
    score_tiers={"*": ((), 0.99)},
)


class FailingAnchor(AnchorProvider):
    """Anchor whose transport is down."""

    async def get_depth(self, base, quote, opts):
        raise ProviderTransportError(self.name, "HTTP 503")


def anchors(*names: str) -> list[AnchorProvider]:
    return [AnchorProvider(name, VENUES[name]) for name in names]


@pytest.fixture
def all_anchors() -> list[AnchorProvider]:
    return anchors(*VENUES)


@pytest.fixture
def router(all_anchors: list[AnchorProvider]) -> AnchorRouter:
    return AnchorRouter(providers=all_anchors)


class TestCandidates:
    """Tests for per-venue cost figures."""

    def test_buy_costs_add_to_price(self):
        """Buyers pay the price plus fee and slippage."""
        snapshot = make_snapshot(spot_price=0.52, fee_bps=15, liquidity_score=0.95, source="xrpl-bitstamp")
        candidate = QuoteCandidate.from_snapshot(snapshot, TradeSide.BUY)
        assert candidate.slippage_bps == 5
        assert candidate.total_cost_bps == 20
        assert candidate.effective_price == pytest.approx(0.52 * 1.002)

    def test_sell_costs_reduce_price(self):
        """Sellers receive the price less fee and slippage."""
        snapshot = make_snapshot(spot_price=0.52, fee_bps=25, liquidity_score=0.80, source="xrpl-usdx")
        candidate = QuoteCandidate.from_snapshot(snapshot, TradeSide.SELL)
        assert candidate.total_cost_bps == 45
        assert candidate.effective_price == pytest.approx(0.52 * (1 - 0.0045))

    def test_best_price_depends_on_side(self):
        """A cheap quote with a high fee wins for buyers only."""
        snapshots = [
            make_snapshot(spot_price=0.52, fee_bps=15, liquidity_score=0.95, source="fair"),
            make_snapshot(spot_price=0.50, fee_bps=100, liquidity_score=0.99, source="discount"),
        ]
        for side, winner in [(TradeSide.BUY, "discount"), (TradeSide.SELL, "fair")]:
            candidates = [QuoteCandidate.from_snapshot(s, side) for s in snapshots]
            assert choose_best_price(candidates, side)[1].source == winner


class TestStrategies:
    """Tests for the three size tiers on XRP/USDT."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("side", [TradeSide.BUY, TradeSide.SELL])
    async def test_small_trade_takes_best_price(self, router: AnchorRouter, side):
        """Below the large threshold the lowest total cost wins either way."""
        result = await router.route_quote("XRP", "USDT", side, 500)

        assert isinstance(result, AnchorQuote)
        assert result.route.primary == "xrpl-bitstamp"
        assert not result.route.is_split
        assert result.chosen.reason == "best-price"
        assert result.chosen.total_cost_bps == 20
        assert len(result.candidates) == 4

    @pytest.mark.asyncio
    async def test_medium_trade_takes_deepest(self, router: AnchorRouter):
        """Between thresholds the highest liquidity score wins."""
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 1500)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.source == "xrpl-bitstamp"
        assert result.chosen.liquidity_score == 0.95
        assert result.chosen.reason == "deepest-liquidity"

    @pytest.mark.asyncio
    async def test_large_trade_splits_across_top_two(self, router: AnchorRouter):
        """At 30k USD the two deepest venues share the trade by score."""
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 30_000)

        assert isinstance(result, AnchorQuote)
        assert [(leg.source, leg.pct) for leg in result.route.splits] == [
            ("xrpl-bitstamp", 55),
            ("xrpl-gatehub", 45),
        ]
        chosen = result.chosen
        assert chosen.source == "split:xrpl-bitstamp/xrpl-gatehub"
        assert chosen.reason == "smart-split"
        assert chosen.price == pytest.approx(0.52)
        assert chosen.fee_bps == 17
        assert chosen.liquidity_score == pytest.approx(0.7825)
        assert chosen.est_confirm_ms == 3725
        assert chosen.total_cost_bps == 39

    @pytest.mark.asyncio
    async def test_single_venue_split(self):
        """With one venue the split degenerates to an even self-split."""
        router = AnchorRouter(providers=anchors("xrpl-bitstamp"))
        result = await router.route_quote("XRP", "USDT", TradeSide.SELL, 50_000)

        assert isinstance(result, AnchorQuote)
        assert [(leg.source, leg.pct) for leg in result.route.splits] == [
            ("xrpl-bitstamp", 50),
            ("xrpl-bitstamp", 50),
        ]
        assert result.chosen.price == pytest.approx(0.52)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "amount,reason,source",
        [
            (999, "best-price", "xrpl-bitstamp"),
            (1000, "deepest-liquidity", "discount"),
            (24_999, "deepest-liquidity", "discount"),
            (25_000, "smart-split", "split:discount/xrpl-bitstamp"),
        ],
    )
    async def test_threshold_boundaries(self, amount, reason, source):
        """Thresholds are inclusive lower bounds of the next tier."""
        router = AnchorRouter(providers=[*anchors("xrpl-bitstamp"), AnchorProvider("discount", DISCOUNT_VENUE)])
        result = await router.route_quote("XRP", "USDT", TradeSide.SELL, amount)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.reason == reason
        assert result.chosen.source == source

    @pytest.mark.asyncio
    async def test_custom_thresholds(self, all_anchors):
        """Configured thresholds replace the defaults."""
        router = AnchorRouter(providers=all_anchors, large_threshold_usd=100, split_threshold_usd=200)
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 500)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.reason == "smart-split"
        assert result.to_dict()["policy"] == {
            "strategy": "smart-hybrid",
            "thresholds": {"large": 100, "split": 200},
        }

    def test_thresholds_must_be_ordered(self, all_anchors):
        """A large threshold above the split threshold is rejected."""
        with pytest.raises(ConfigError):
            AnchorRouter(providers=all_anchors, large_threshold_usd=50_000, split_threshold_usd=25_000)


class TestFailures:
    """Tests for requests that cannot be routed."""

    @pytest.mark.asyncio
    async def test_disabled(self, all_anchors):
        """A disabled router answers without querying or logging."""
        router = AnchorRouter(providers=all_anchors, enabled=False)
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 500)

        assert isinstance(result, AnchorQuoteFailure)
        assert result.error == RouteError.ROUTING_DISABLED
        assert router.recent_decisions() == []

    @pytest.mark.asyncio
    async def test_no_candidates(self, router: AnchorRouter):
        """An unquoted pair fails with every venue's status."""
        result = await router.route_quote("DOGE", "USD", TradeSide.BUY, 500)

        assert isinstance(result, AnchorQuoteFailure)
        assert result.error == RouteError.NO_CANDIDATES
        assert [s.source for s in result.providers] == list(VENUES)
        assert {s.reason for s in result.providers} == {"no-quote"}
        decision = router.recent_decisions()[0]
        assert not decision.success
        assert decision.error == RouteError.NO_CANDIDATES
        assert decision.to_dict()["chosenSource"] is None

    @pytest.mark.asyncio
    async def test_failing_venue_is_skipped(self):
        """A venue whose transport fails is reported and the rest still route."""
        providers = [FailingAnchor("xrpl-bitstamp", VENUES["xrpl-bitstamp"]), *anchors("xrpl-gatehub")]
        router = AnchorRouter(providers=providers)
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 500)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.source == "xrpl-gatehub"
        statuses = {s.source: s.reason for s in router.recent_decisions()[0].providers}
        assert statuses == {"xrpl-bitstamp": "HTTP 503", "xrpl-gatehub": "success"}

    @pytest.mark.asyncio
    async def test_disabled_venue_not_asked(self, all_anchors):
        """Disabled anchors drop out of the venue set."""
        all_anchors[1].disable()
        router = AnchorRouter(providers=all_anchors)
        result = await router.route_quote("XRP", "USDT", TradeSide.BUY, 500)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.source == "xrpl-gatehub"
        assert "xrpl-bitstamp" not in [c.source for c in result.candidates]

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, router: AnchorRouter):
        """Amounts must be strictly positive."""
        with pytest.raises(ValueError):
            await router.route_quote("XRP", "USDT", TradeSide.BUY, 0)


class TestDecisionLog:
    """Tests for the bounded decision log."""

    @pytest.mark.asyncio
    async def test_newest_first_and_bounded(self, router: AnchorRouter):
        """Only the last hundred decisions are kept, newest first."""
        for amount in range(1, 106):
            await router.route_quote("XRP", "USDT", TradeSide.SELL, amount)

        everything = router.recent_decisions(limit=500)
        assert len(everything) == router.capacity == 100
        assert everything[0].amount_usd == 105
        assert everything[-1].amount_usd == 6
        assert len(router.recent_decisions()) == 50
        assert [d.amount_usd for d in router.recent_decisions(limit=3)] == [105, 104, 103]

    @pytest.mark.asyncio
    async def test_logs_are_per_router(self, all_anchors):
        """Two routers never share a log."""
        first = AnchorRouter(providers=all_anchors)
        second = AnchorRouter(providers=all_anchors)
        await first.route_quote("XRP", "USDT", TradeSide.BUY, 500)

        assert len(first.recent_decisions()) == 1
        assert second.recent_decisions() == []

    @pytest.mark.asyncio
    async def test_clear(self, router: AnchorRouter):
        """Clearing empties the log."""
        await router.route_quote("XRP", "USDT", TradeSide.BUY, 500)
        router.clear_decisions()
        assert router.recent_decisions() == []

    @pytest.mark.asyncio
    async def test_decision_record(self, router: AnchorRouter):
        """Split decisions carry the blended figures."""
        await router.route_quote("xrp", "usdt", "buy", 30_000)
        record = router.recent_decisions()[0].to_dict()

        assert record["base"] == "XRP"
        assert record["side"] == "buy"
        assert record["chosenSource"] == "split:xrpl-bitstamp/xrpl-gatehub"
        assert record["feeBps"] == 17
        assert record["split"] is True
        assert record["success"] is True
        assert len(record["providers"]) == 5

    @pytest.mark.asyncio
    async def test_gathered_requests_all_logged(self, router: AnchorRouter):
        """Concurrent requests each record exactly one decision."""
        amounts = [100, 1500, 30_000, 700, 5000, 60_000, 10, 2000]
        results = await asyncio.gather(
            *(router.route_quote("XRP", "USDT", TradeSide.BUY, amount) for amount in amounts)
        )

        assert [r.chosen.reason for r in results] == [
            "best-price",
            "deepest-liquidity",
            "smart-split",
            "best-price",
            "deepest-liquidity",
            "smart-split",
            "best-price",
            "deepest-liquidity",
        ]
        assert sorted(d.amount_usd for d in router.recent_decisions()) == sorted(amounts)


class TestOracleSource:
    """Tests for routers built over an oracle."""

    def test_anchors_follow_oracle(self, simulated_oracle: LiquidityOracle):
        """The router picks the anchor providers out of the oracle's set."""
        router = AnchorRouter(simulated_oracle)
        assert [p.name for p in router.anchors()] == [
            "xrpl-bitstamp",
            "xrpl-gatehub",
            "xrpl-usdx",
            "stellar-usdc",
            "xdc-usdt",
        ]

    def test_from_settings(self, simulated_oracle: LiquidityOracle):
        """Thresholds and the enable flag come from the oracle's settings."""
        router = AnchorRouter.from_settings(simulated_oracle)
        assert router.enabled
        assert (router.large_threshold_usd, router.split_threshold_usd) == (1000, 25_000)

    @pytest.mark.asyncio
    async def test_routes_over_shipped_config(self, simulated_oracle: LiquidityOracle):
        """Shipped anchors route a medium XRP trade to the deepest venue."""
        result = await AnchorRouter(simulated_oracle).route_quote("XRP", "USD", TradeSide.BUY, 2000)

        assert isinstance(result, AnchorQuote)
        assert result.chosen.source == "xrpl-bitstamp"
        assert result.to_dict()["meta"]["candidateCount"] == 4
