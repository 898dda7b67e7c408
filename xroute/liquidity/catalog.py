"""Offline liquidity catalog provider.

Answers from the liquidity catalog document only: constant-product pools per
chain, bridges, synthetic cross rates and a USD price table. Deterministic
and always available; the oracle uses it as the fallback of last resort.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from xroute.config.schema import BridgeSpec, LiquidityCatalog, PoolSpec
from xroute.constants import STABLE_QUOTES
from xroute.liquidity.amm import SwapQuote, quote_swap
from xroute.liquidity.base import CurvePoint, DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.models.requests import OracleOptions
from xroute.models.types import ProviderKind

# Curve sample sizes as fractions of the input reserve
DEFAULT_CURVE_FRACTIONS = (0.001, 0.01, 0.05, 0.10, 0.20)

# Trades above this share of the input reserve are flagged as exhausting the pool
EXHAUSTION_THRESHOLD = 0.5


def find_bridge(catalog: LiquidityCatalog, from_chain: str, to_chain: str) -> BridgeSpec | None:
    """First enabled bridge from one chain to another."""
    for bridge in catalog.bridges:
        if bridge.enabled and bridge.from_chain == from_chain and bridge.to_chain == to_chain:
            return bridge
    return None


@dataclass(frozen=True)
class LiquidityCheck:
    """Whether a pool can absorb a trade without exhausting its input side."""

    sufficient: bool
    amount_in: float
    max_amount: float
    reserve_in: float
    utilization: float


class CatalogProvider(LiquidityProvider):
    """Liquidity provider backed by the offline catalog document."""

    kind = ProviderKind.CATALOG

    def __init__(self, name: str, catalog: LiquidityCatalog, **kwargs: Any) -> None:
        super().__init__(name, **kwargs)
        self.catalog = catalog
        # (chain, token0, token1) -> pool, enabled pools only
        self._pools: dict[tuple[str, str, str], PoolSpec] = {}
        for chain, pools in catalog.pools.items():
            for pool in pools:
                if pool.enabled:
                    self._pools.setdefault((chain, pool.token0, pool.token1), pool)
        self._synthetic = {(p.base, p.quote): p.spot_price for p in catalog.synthetic_pairs}

    # -------------------------------------------------------------------------
    # Pools
    # -------------------------------------------------------------------------

    def get_pool(self, chain: str | None, token_in: str, token_out: str) -> DepthSnapshot | None:
        """Pool snapshot oriented token_in -> token_out.

        Accepts either key order: a pool stored as (B, A) is returned with its
        reserves swapped and its spot price inverted. With no chain, chains
        are searched in document order.
        """
        chains = [chain] if chain else list(self.catalog.pools)
        for c in chains:
            pool = self._pools.get((c, token_in, token_out))
            if pool is not None:
                return self._snapshot(c, pool)
            pool = self._pools.get((c, token_out, token_in))
            if pool is not None:
                return self._snapshot(c, pool).reversed()
        return None

    def chain_pools(self, chain: str) -> list[PoolSpec]:
        return [pool for (c, _, _), pool in self._pools.items() if c == chain]

    def _snapshot(self, chain: str, pool: PoolSpec) -> DepthSnapshot:
        reference = None
        price0 = self.token_price_usd(pool.token0)
        price1 = self.token_price_usd(pool.token1)
        if price0 is not None and price1 is not None:
            reference = pool.reserve0 * price0 + pool.reserve1 * price1
        return DepthSnapshot(
            base=pool.token0,
            quote=pool.token1,
            chain=chain,
            protocol=pool.protocol,
            spot_price=pool.resolved_spot_price,
            fee_rate=pool.fee,
            reserve_base=pool.reserve0,
            reserve_quote=pool.reserve1,
            total_liquidity_reference=reference,
            source=self.name,
        )

    def calculate_swap_output(
        self, chain: str | None, token_in: str, token_out: str, amount_in: float
    ) -> SwapQuote | None:
        pool = self.get_pool(chain, token_in, token_out)
        if pool is None:
            return None
        return quote_swap(pool, amount_in)

    def check_liquidity(
        self, chain: str | None, token_in: str, token_out: str, amount_in: float
    ) -> LiquidityCheck | None:
        """Flag trades above half of the input reserve as insufficient."""
        pool = self.get_pool(chain, token_in, token_out)
        if pool is None or pool.reserve_base is None:
            return None
        max_amount = pool.reserve_base * EXHAUSTION_THRESHOLD
        return LiquidityCheck(
            sufficient=amount_in <= max_amount,
            amount_in=amount_in,
            max_amount=max_amount,
            reserve_in=pool.reserve_base,
            utilization=amount_in / pool.reserve_base,
        )

    # -------------------------------------------------------------------------
    # Prices and bridges
    # -------------------------------------------------------------------------

    def token_price_usd(self, token: str) -> float | None:
        return self.catalog.price_oracles.get(token)

    def resolve_spot_price(self, base: str, quote: str, chain: str | None = None) -> float | None:
        """Quote per base from the price table, synthetic pairs, then pools."""
        table = self.catalog.price_oracles
        if quote in STABLE_QUOTES and base in table:
            return table[base]
        if (base, quote) in self._synthetic:
            return self._synthetic[(base, quote)]
        if (quote, base) in self._synthetic:
            return 1.0 / self._synthetic[(quote, base)]
        if table.get(base) and table.get(quote):
            return table[base] / table[quote]
        pool = self.get_pool(chain, base, quote)
        if pool is not None:
            return pool.spot_price
        return None

    def get_bridge(self, from_chain: str, to_chain: str) -> BridgeSpec | None:
        return find_bridge(self.catalog, from_chain, to_chain)

    def can_bridge(self, from_chain: str, to_chain: str, token: str) -> bool:
        bridge = self.get_bridge(from_chain, to_chain)
        return bridge is not None and token in bridge.supported_tokens

    # -------------------------------------------------------------------------
    # LiquidityProvider interface
    # -------------------------------------------------------------------------

    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        if self.get_pool(opts.chain, base, quote) is not None:
            return True
        return self.resolve_spot_price(base, quote, opts.chain) is not None

    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        return self.resolve_spot_price(base, quote, opts.chain)

    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        return self.get_pool(opts.chain, base, quote)

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        pool = self.get_pool(opts.chain, base, quote)
        if pool is None or pool.reserve_base is None:
            return None
        amounts = opts.amounts or [pool.reserve_base * f for f in DEFAULT_CURVE_FRACTIONS]
        points = []
        for amount in amounts:
            quote_result = quote_swap(pool, amount)
            if quote_result is None:
                continue
            execution_price = quote_result.execution_price
            slippage = 0.0
            if execution_price is not None:
                slippage = max(0.0, 1 - execution_price / pool.spot_price)
            points.append(
                CurvePoint(
                    amount_in=amount,
                    amount_out=quote_result.amount_out,
                    slippage=slippage,
                    price_impact=quote_result.price_impact,
                    execution_price=execution_price,
                )
            )
        return SlippageCurve(
            base=base, quote=quote, spot_price=pool.spot_price, points=tuple(points), source=self.name
        )


__all__ = ["CatalogProvider", "find_bridge", "DEFAULT_CURVE_FRACTIONS", "EXHAUSTION_THRESHOLD", "LiquidityCheck"]
