"""Venue-anchor quoters.

Institutional-style venues that publish a price, a fixed fee in basis
points, an expected confirmation time and a liquidity score that falls as
the trade's USD notional grows. They report no depth figure.

A score maps to slippage as ``round((1 - score) * 100)`` basis points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from xroute.liquidity.base import CurvePoint, DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.models.requests import OracleOptions

# USD notional assumed when the caller gives no hint
DEFAULT_NOTIONAL_USD = 1000.0

DEFAULT_CURVE_AMOUNTS = (100.0, 500.0, 1000.0, 5000.0, 10000.0)

# Ascending (notional upper bound, score) pairs plus the score beyond the last bound
ScoreTiers = tuple[tuple[tuple[float, float], ...], float]


@dataclass(frozen=True)
class AnchorVenue:
    """Static description of one anchor venue."""

    name: str
    chain: str
    protocol: str
    prices: dict[tuple[str, str], float]
    fee_bps: int
    est_confirm_ms: int
    # Base token -> score tiers; "*" applies to bases without their own tiers
    score_tiers: dict[str, ScoreTiers]
    tier: str = "standard"
    meta: dict[str, Any] = field(default_factory=dict)

    def liquidity_score(self, base: str, notional_usd: float) -> float:
        bounds, floor = self.score_tiers.get(base) or self.score_tiers["*"]
        for bound, score in bounds:
            if notional_usd < bound:
                return score
        return floor

    def slippage_bps(self, base: str, notional_usd: float) -> int:
        return round((1 - self.liquidity_score(base, notional_usd)) * 100)


VENUES: dict[str, AnchorVenue] = {
    venue.name: venue
    for venue in (
        AnchorVenue(
            name="xrpl-gatehub",
            chain="XRPL",
            protocol="XRPL_DEX",
            prices={
                ("XRP", "USD"): 0.52,
                ("XRP", "USDT"): 0.52,
                ("XRP", "USDC"): 0.52,
                ("XLM", "USD"): 0.095,
                ("BTC", "USD"): 100000.0,
                ("ETH", "USD"): 3240.0,
            },
            fee_bps=20,
            est_confirm_ms=4000,
            score_tiers={"*": (((1_000, 0.85), (10_000, 0.80), (50_000, 0.70)), 0.50)},
            tier="institutional",
            meta={"issuer": "rhub8VRN55s94qWKDv6jmDy1pUykJzF3wq", "network": "xrpl"},
        ),
        AnchorVenue(
            name="xrpl-bitstamp",
            chain="XRPL",
            protocol="XRPL_DEX",
            prices={
                ("XRP", "USD"): 0.52,
                ("XRP", "USDT"): 0.52,
                ("BTC", "USD"): 100000.0,
                ("BTC", "USDT"): 100000.0,
                ("ETH", "USD"): 3240.0,
                ("ETH", "USDT"): 3240.0,
            },
            fee_bps=15,
            est_confirm_ms=3500,
            score_tiers={
                "XRP": (((5_000, 0.95), (25_000, 0.90), (100_000, 0.85)), 0.75),
                "*": (((10_000, 0.85), (50_000, 0.75)), 0.60),
            },
            tier="institutional",
            meta={"issuer": "rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B", "network": "xrpl"},
        ),
        AnchorVenue(
            name="xrpl-usdx",
            chain="XRPL",
            protocol="XRPL_DEX",
            prices={
                ("XRP", "USD"): 0.52,
                ("XRP", "USDT"): 0.52,
                ("XRP", "USDC"): 0.52,
                ("XRP", "USDX"): 0.52,
                ("XLM", "USD"): 0.095,
                ("XLM", "USDT"): 0.095,
                ("XLM", "USDC"): 0.095,
            },
            fee_bps=25,
            est_confirm_ms=4500,
            score_tiers={"*": (((500, 0.90), (2_000, 0.80), (10_000, 0.60)), 0.30)},
            tier="retail",
            meta={"issuer": "rcEGREd8NmkKRE8GE424sksyt1tJVFZwu", "network": "xrpl"},
        ),
        AnchorVenue(
            name="stellar-usdc",
            chain="XLM",
            protocol="STELLAR_DEX",
            prices={
                ("XLM", "USDC"): 0.095,
                ("XLM", "USD"): 0.095,
                ("XRP", "USDC"): 0.52,
                ("XRP", "USD"): 0.52,
                ("BTC", "USDC"): 100000.0,
                ("ETH", "USDC"): 3240.0,
            },
            fee_bps=10,
            est_confirm_ms=6000,
            score_tiers={
                "XLM": (((10_000, 0.95), (50_000, 0.90), (100_000, 0.80)), 0.70),
                "*": (((5_000, 0.75), (25_000, 0.65)), 0.50),
            },
            meta={
                "issuer": "GA5ZSEJYB37JRC5AVCIA5MOP4RHTM335X2KGX3IHOJAPP5RE34K4KZVN",
                "network": "stellar",
            },
        ),
        AnchorVenue(
            name="xdc-usdt",
            chain="XDC",
            protocol="XSWAP",
            prices={
                ("XDC", "USDT"): 0.045,
                ("XDC", "USD"): 0.045,
                ("BTC", "USDT"): 100000.0,
                ("ETH", "USDT"): 3240.0,
                ("XRP", "USDT"): 0.52,
            },
            fee_bps=30,
            est_confirm_ms=2500,
            score_tiers={
                "XDC": (((5_000, 0.85), (20_000, 0.75), (50_000, 0.60)), 0.40),
                "*": (((2_000, 0.70), (10_000, 0.55)), 0.35),
            },
            meta={"network": "xdc"},
        ),
    )
}


class AnchorProvider(LiquidityProvider):
    """Quotes one anchor venue from its static tables.

    Pairs may be asked in either orientation; the reversed orientation is
    quoted at the reciprocal price and scored on the venue's base token.
    """

    def __init__(self, name: str, venue: AnchorVenue, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.venue = venue

    def _lookup(self, base: str, quote: str) -> tuple[float, str] | None:
        """(quote-per-base price, venue base token) for either orientation."""
        price = self.venue.prices.get((base, quote))
        if price is not None:
            return price, base
        price = self.venue.prices.get((quote, base))
        if price is not None:
            return 1.0 / price, quote
        return None

    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        return self._lookup(base, quote) is not None

    def _notional_usd(self, base: str, quote: str, amount: float) -> float:
        """USD size of ``amount`` base units (venue quotes are USD-like)."""
        found = self._lookup(base, quote)
        if found is None:
            return amount
        price, venue_base = found
        return amount * price if venue_base == base else amount

    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        found = self._lookup(base, quote)
        return found[0] if found else None

    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        found = self._lookup(base, quote)
        if found is None:
            return None
        price, venue_base = found
        notional = opts.notional_hint or DEFAULT_NOTIONAL_USD
        return DepthSnapshot(
            base=base,
            quote=quote,
            chain=self.venue.chain,
            protocol=self.venue.protocol,
            spot_price=price,
            fee_rate=self.venue.fee_bps / 10_000,
            liquidity_score=self.venue.liquidity_score(venue_base, notional),
            fee_bps=self.venue.fee_bps,
            est_confirm_ms=self.venue.est_confirm_ms,
            source=self.name,
        )

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        found = self._lookup(base, quote)
        if found is None:
            return None
        price, venue_base = found
        fee = self.venue.fee_bps / 10_000
        points = []
        for amount in opts.amounts or DEFAULT_CURVE_AMOUNTS:
            notional = self._notional_usd(base, quote, amount)
            slippage = self.venue.slippage_bps(venue_base, notional) / 10_000
            execution_price = price * (1 - fee) * (1 - slippage)
            points.append(
                CurvePoint(
                    amount_in=amount,
                    amount_out=amount * execution_price,
                    slippage=slippage,
                    price_impact=slippage,
                    execution_price=execution_price,
                )
            )
        return SlippageCurve(base=base, quote=quote, spot_price=price, points=tuple(points), source=self.name)


__all__ = ["AnchorProvider", "AnchorVenue", "DEFAULT_NOTIONAL_USD", "VENUES"]
