"""Factory functions and fakes for creating test objects.

Usage:
    from tests.helpers import make_snapshot, make_route, FakeProvider

    route = make_route([make_hop(), make_hop(from_token="USDT", to_token="USDC")])
"""

import asyncio
from typing import Any

from xroute.config.schema import LiquidityCatalog
from xroute.liquidity.base import DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.models.requests import OracleOptions
from xroute.models.route import Hop, Route
from xroute.models.types import PathType, ProviderKind


def make_snapshot(
    base: str = "XRP",
    quote: str = "USDT",
    chain: str = "XRPL",
    protocol: str = "XRPL_AMM",
    spot_price: float = 2.07,
    fee_rate: float = 0.003,
    reserve_base: float | None = 1_000_000.0,
    reserve_quote: float | None = 2_070_000.0,
    **kwargs: Any,
) -> DepthSnapshot:
    """Create a depth snapshot; defaults mirror the catalog XRP/USDT pool."""
    return DepthSnapshot(
        base=base,
        quote=quote,
        chain=chain,
        protocol=protocol,
        spot_price=spot_price,
        fee_rate=fee_rate,
        reserve_base=reserve_base,
        reserve_quote=reserve_quote,
        **kwargs,
    )


def make_hop(
    hop_index: int = 0,
    chain: str = "XRPL",
    protocol: str = "XRPL_AMM",
    from_token: str = "XRP",
    to_token: str = "USDT",
    amount_in: float = 100.0,
    amount_out: float = 206.0,
    pool: DepthSnapshot | None = None,
    **kwargs: Any,
) -> Hop:
    """Create a hop with sensible defaults (100 XRP -> 206 USDT on the XRPL AMM)."""
    return Hop(
        hop_index=hop_index,
        chain=chain,
        protocol=protocol,
        from_token=from_token,
        to_token=to_token,
        amount_in=amount_in,
        amount_out=amount_out,
        pool=pool,
        **kwargs,
    )


def make_route(
    hops: list[Hop] | None = None,
    chain: str = "XRPL",
    path_type: PathType | None = None,
    expected_output: float | None = None,
    **kwargs: Any,
) -> Route:
    """Create a route; path type and expected output default from the hops."""
    hops = hops if hops is not None else [make_hop()]
    if path_type is None:
        path_type = PathType.DIRECT if len(hops) == 1 else PathType.MULTI_HOP
    if expected_output is None:
        expected_output = hops[-1].amount_out if hops else 0.0
    return Route(
        chain=chain,
        path_type=path_type,
        hops=tuple(hops),
        expected_output=expected_output,
        **kwargs,
    )


def make_catalog(data: dict[str, Any] | None = None) -> LiquidityCatalog:
    """Build a catalog from a camelCase document (small XRPL default)."""
    if data is None:
        data = {
            "pools": {
                "XRPL": [
                    {
                        "token0": "XRP",
                        "token1": "USDT",
                        "protocol": "XRPL_AMM",
                        "reserve0": 1_000_000,
                        "reserve1": 2_070_000,
                        "spotPrice": 2.07,
                    }
                ]
            },
            "priceOracles": {"XRP": 2.07, "USDT": 1.0},
        }
    return LiquidityCatalog.model_validate(data)


class FakeProvider(LiquidityProvider):
    """Scriptable provider for oracle tests.

    Args:
        name: Provider name
        price: Value returned by every query (None to answer "no data")
        error: Exception raised by every query instead of answering
        delay: Seconds to sleep before answering (to trigger timeouts)
        pairs: Pairs reported as supported (None: every pair)
        kind: CATALOG or LIVE
    """

    def __init__(
        self,
        name: str,
        price: float | None = 1.0,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        pairs: set[tuple[str, str]] | None = None,
        kind: ProviderKind = ProviderKind.LIVE,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.price = price
        self.error = error
        self.delay = delay
        self.pairs = pairs
        self.kind = kind
        self.calls: list[tuple[str, str, str]] = []

    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        return self.pairs is None or (base, quote) in self.pairs

    async def _answer(self, query: str, base: str, quote: str) -> float | None:
        self.calls.append((query, base, quote))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.price

    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        return await self._answer("spot_price", base, quote)

    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        price = await self._answer("depth", base, quote)
        if price is None:
            return None
        return make_snapshot(base=base, quote=quote, chain=opts.chain or "XRPL", spot_price=price, source=self.name)

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        price = await self._answer("slippage_curve", base, quote)
        if price is None:
            return None
        return SlippageCurve(base=base, quote=quote, spot_price=price, points=(), source=self.name)
