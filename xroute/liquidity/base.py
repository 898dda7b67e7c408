"""Base classes for liquidity providers.

Every provider answers the same three questions for a token pair (spot
price, depth snapshot, slippage curve) and returns None when it has no data
for the pair. Only transport failures raise (ProviderTransportError).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any

from xroute.constants import DEFAULT_PROVIDER_TIMEOUT
from xroute.models.requests import OracleOptions
from xroute.models.types import ProviderKind


@dataclass(frozen=True)
class DepthSnapshot:
    """Point-in-time view of a venue for one oriented pair.

    Orientation: ``base`` is what the taker sells, ``quote`` what it receives.
    ``spot_price`` is quote units per one base unit.

    A snapshot carries either pool reserves (AMM-style venues) or an
    aggregate liquidity figure in base units (orderbooks, estimators), or
    neither (quoters that only publish a price).
    """

    base: str
    quote: str
    chain: str
    protocol: str
    spot_price: float
    fee_rate: float = 0.0
    reserve_base: float | None = None
    reserve_quote: float | None = None
    total_liquidity: float | None = None
    total_liquidity_reference: float | None = None
    buy_liquidity: float | None = None
    sell_liquidity: float | None = None
    depth_category: str | None = None
    liquidity_score: float | None = None
    fee_bps: int | None = None
    est_confirm_ms: int | None = None
    source: str = ""

    @property
    def has_reserves(self) -> bool:
        return bool(self.reserve_base) and bool(self.reserve_quote)

    def depth_for_input(self) -> float | None:
        """Depth measured on the input (base) side, used for trade-size ratios."""
        if self.reserve_base:
            return self.reserve_base
        if self.total_liquidity:
            return self.total_liquidity
        return None

    def reversed(self) -> DepthSnapshot:
        """The same venue seen from the other side of the pair."""
        total = None
        if self.total_liquidity is not None:
            total = self.total_liquidity * self.spot_price
        return replace(
            self,
            base=self.quote,
            quote=self.base,
            spot_price=1.0 / self.spot_price,
            reserve_base=self.reserve_quote,
            reserve_quote=self.reserve_base,
            total_liquidity=total,
            buy_liquidity=self.sell_liquidity * self.spot_price if self.sell_liquidity is not None else None,
            sell_liquidity=self.buy_liquidity * self.spot_price if self.buy_liquidity is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "base": self.base,
            "quote": self.quote,
            "chain": self.chain,
            "protocol": self.protocol,
            "spotPrice": self.spot_price,
            "feeRate": self.fee_rate,
            "reserveBase": self.reserve_base,
            "reserveQuote": self.reserve_quote,
            "totalLiquidity": self.total_liquidity,
            "totalLiquidityUSD": self.total_liquidity_reference,
            "buyLiquidity": self.buy_liquidity,
            "sellLiquidity": self.sell_liquidity,
            "depth": self.depth_category,
            "liquidityScore": self.liquidity_score,
            "feeBps": self.fee_bps,
            "estConfirmMs": self.est_confirm_ms,
            "source": self.source,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DepthSnapshot:
        return cls(
            base=data["base"],
            quote=data["quote"],
            chain=data["chain"],
            protocol=data["protocol"],
            spot_price=float(data["spotPrice"]),
            fee_rate=float(data.get("feeRate", 0.0)),
            reserve_base=data.get("reserveBase"),
            reserve_quote=data.get("reserveQuote"),
            total_liquidity=data.get("totalLiquidity"),
            total_liquidity_reference=data.get("totalLiquidityUSD"),
            buy_liquidity=data.get("buyLiquidity"),
            sell_liquidity=data.get("sellLiquidity"),
            depth_category=data.get("depth"),
            liquidity_score=data.get("liquidityScore"),
            fee_bps=data.get("feeBps"),
            est_confirm_ms=data.get("estConfirmMs"),
            source=data.get("source", ""),
        )


@dataclass(frozen=True)
class CurvePoint:
    """Expected execution for one trade size."""

    amount_in: float
    amount_out: float
    slippage: float
    price_impact: float
    execution_price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "amountIn": self.amount_in,
            "amountOut": round(self.amount_out, 6),
            "slippage": self.slippage,
            "priceImpact": self.price_impact,
            "executionPrice": self.execution_price,
        }


@dataclass(frozen=True)
class SlippageCurve:
    """Price impact at a series of trade sizes for one oriented pair."""

    base: str
    quote: str
    spot_price: float
    points: tuple[CurvePoint, ...] = field(default_factory=tuple)
    source: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "quote": self.quote,
            "spotPrice": self.spot_price,
            "curve": [p.to_dict() for p in self.points],
            "source": self.source,
        }


class LiquidityProvider(ABC):
    """Capability interface shared by every liquidity source.

    Subclasses implement the three async queries plus ``supports``. The
    oracle checks ``is_enabled`` and ``supports`` before invoking a query,
    and wraps each invocation in ``timeout``.

    Attributes:
        name: Registry name, unique within an oracle
        kind: CATALOG for the offline fallback, LIVE for everything else
        chains: Chains this provider answers for (empty: any chain)
        priority: Default rank, lower is tried first
        timeout: Per-call timeout in seconds
    """

    kind: ProviderKind = ProviderKind.LIVE

    def __init__(
        self,
        name: str,
        *,
        chains: frozenset[str] | set[str] | list[str] = frozenset(),
        priority: int = 50,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        enabled: bool = True,
    ) -> None:
        self.name = name
        self.chains = frozenset(chains)
        self.priority = priority
        self.timeout = timeout
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def serves_chain(self, chain: str | None) -> bool:
        """True if the provider answers for this chain (None matches any)."""
        return chain is None or not self.chains or chain in self.chains

    @abstractmethod
    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        """Quote units per one base unit, or None when the pair has no data."""
        ...

    @abstractmethod
    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        """Depth snapshot oriented base -> quote, or None."""
        ...

    @abstractmethod
    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        """Slippage at ``opts.amounts`` (or provider defaults), or None."""
        ...

    @abstractmethod
    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        """Cheap, offline check whether a query for this pair is worth making."""
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release network resources. No-op for offline providers."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


__all__ = ["CurvePoint", "DepthSnapshot", "LiquidityProvider", "SlippageCurve"]
