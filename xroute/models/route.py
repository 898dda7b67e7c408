"""Route, hop, fee and slippage data structures.

Routes are built fresh for each planning call and never persisted. All types
here are frozen: the planner builds a bare route, then produces annotated
copies with ``with_fees`` / ``with_slippage`` before ranking.

``to_dict`` emits the camelCase wire format used by API clients.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from xroute.constants import BRIDGE, REFERENCE_CURRENCY
from xroute.models.types import PathType

if TYPE_CHECKING:
    from xroute.liquidity.base import DepthSnapshot


def _new_route_id() -> str:
    return f"route_{uuid.uuid4().hex[:16]}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class HopFee:
    """Fee estimate for one hop."""

    hop_index: int
    chain: str
    protocol: str
    fee_type: str  # "network", "gas+amm", "amm+network", "bridge", "unknown"
    fee_native: float
    fee_reference: float
    currency: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "hopIndex": self.hop_index,
            "chain": self.chain,
            "protocol": self.protocol,
            "feeType": self.fee_type,
            "feeNative": round(self.fee_native, 8),
            "feeUSD": round(self.fee_reference, 6),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class Fees:
    """Aggregate route fees.

    Attributes:
        total_fee_reference: Sum of every hop's fee in the reference currency
        total_fee_native: Sum of fees of hops on the route's primary chain only,
            in that chain's native currency. Fees on other chains are excluded
            since a multi-currency native total has no meaning.
        native_currency: Native currency of the primary chain
        breakdown: Per-hop fees in hop order
    """

    total_fee_reference: float
    total_fee_native: float
    native_currency: str
    breakdown: tuple[HopFee, ...] = ()
    reference_currency: str = REFERENCE_CURRENCY

    @property
    def total_fee_usd(self) -> float:
        return self.total_fee_reference

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFeeUSD": round(self.total_fee_reference, 6),
            "totalFeeNative": round(self.total_fee_native, 8),
            "nativeCurrency": self.native_currency,
            "referenceCurrency": self.reference_currency,
            "breakdown": [fee.to_dict() for fee in self.breakdown],
        }


@dataclass(frozen=True)
class HopSlippage:
    """Slippage estimate for one hop."""

    percentage: float  # fraction, 0.01 == 1%
    min_output: float
    is_excessive: bool
    method: str  # "depth-based" or "default"
    trade_size_ratio: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "percentage": self.percentage,
            "minOutput": self.min_output,
            "isExcessive": self.is_excessive,
            "method": self.method,
        }
        if self.trade_size_ratio is not None:
            data["tradeSizeRatio"] = round(self.trade_size_ratio, 6)
        return data


@dataclass(frozen=True)
class RouteSlippage:
    """Cumulative slippage across a route."""

    percentage: float
    min_output: float
    is_excessive: bool
    warning_level: str = "none"
    hops: tuple[HopSlippage, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "percentage": self.percentage,
            "minOutput": self.min_output,
            "isExcessive": self.is_excessive,
            "warningLevel": self.warning_level,
            "hops": [hop.to_dict() for hop in self.hops],
        }


@dataclass(frozen=True)
class Hop:
    """One swap or bridge leg of a route."""

    hop_index: int
    chain: str
    protocol: str
    from_token: str
    to_token: str
    amount_in: float
    amount_out: float
    pool: DepthSnapshot | None = None  # snapshot the quote was computed from
    provider: str | None = None  # oracle provider that produced the snapshot
    fee: HopFee | None = None
    slippage: HopSlippage | None = None
    # Bridge hops only: ``chain`` is the source side
    dest_chain: str | None = None

    @property
    def is_bridge(self) -> bool:
        return self.protocol == BRIDGE

    def to_dict(self) -> dict[str, Any]:
        data = {
            "hopIndex": self.hop_index,
            "chain": self.chain,
            "protocol": self.protocol,
            "fromToken": self.from_token,
            "toToken": self.to_token,
            "amountIn": self.amount_in,
            "amountOut": self.amount_out,
            "pool": self.pool.to_dict() if self.pool is not None else None,
            "provider": self.provider,
            "fee": self.fee.to_dict() if self.fee is not None else None,
            "slippage": self.slippage.to_dict() if self.slippage is not None else None,
        }
        if self.dest_chain is not None:
            data["destChain"] = self.dest_chain
        return data


@dataclass(frozen=True)
class Route:
    """An ordered hop sequence converting a source position into a destination one.

    Invariant: for adjacent hops that are not separated by a bridge,
    ``hops[i].to_token == hops[i + 1].from_token``.
    """

    chain: str
    path_type: PathType
    hops: tuple[Hop, ...]
    expected_output: float
    fees: Fees | None = None
    slippage: RouteSlippage | None = None
    oracle_sources: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=_utcnow)
    route_id: str = field(default_factory=_new_route_id)

    @property
    def hop_count(self) -> int:
        return len(self.hops)

    @property
    def chains(self) -> list[str]:
        """Distinct chains touched, in first-seen order."""
        chains: list[str] = []
        for hop in self.hops:
            chains.append(hop.chain)
            if hop.dest_chain:
                chains.append(hop.dest_chain)
        return list(dict.fromkeys(chains))

    @property
    def protocols(self) -> list[str]:
        return list(dict.fromkeys(hop.protocol for hop in self.hops))

    @property
    def requires_bridge(self) -> bool:
        return any(hop.is_bridge for hop in self.hops)

    def with_fees(self, fees: Fees) -> Route:
        """Return a copy carrying aggregate fees and per-hop fee entries."""
        by_index = {fee.hop_index: fee for fee in fees.breakdown}
        hops = tuple(replace(hop, fee=by_index.get(hop.hop_index, hop.fee)) for hop in self.hops)
        return replace(self, hops=hops, fees=fees)

    def with_slippage(self, slippage: RouteSlippage) -> Route:
        """Return a copy carrying cumulative and per-hop slippage."""
        hops = self.hops
        if len(slippage.hops) == len(self.hops):
            hops = tuple(
                replace(hop, slippage=hop_slippage)
                for hop, hop_slippage in zip(self.hops, slippage.hops, strict=True)
            )
        return replace(self, hops=hops, slippage=slippage)

    def summary(self) -> str:
        """Human-readable one-line description."""
        if not self.hops:
            return "empty route"
        if self.path_type == PathType.DIRECT:
            hop = self.hops[0]
            return f"{hop.from_token} -> {hop.to_token} on {hop.chain} via {hop.protocol}"
        tokens = [self.hops[0].from_token] + [hop.to_token for hop in self.hops]
        return f"{' -> '.join(tokens)} ({len(self.hops)} hops)"

    def metrics(self) -> dict[str, Any]:
        return {
            "totalHops": self.hop_count,
            "uniqueChains": len(self.chains),
            "chains": self.chains,
            "protocols": self.protocols,
            "totalFeeUSD": self.fees.total_fee_reference if self.fees else 0.0,
            "slippagePercentage": self.slippage.percentage if self.slippage else 0.0,
            "expectedOutput": self.expected_output,
            "routeSummary": self.summary(),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "routeId": self.route_id,
            "chain": self.chain,
            "pathType": self.path_type.value,
            "hops": [hop.to_dict() for hop in self.hops],
            "expectedOutput": self.expected_output,
            "fees": self.fees.to_dict() if self.fees else None,
            "slippage": self.slippage.to_dict() if self.slippage else None,
            "oracleSources": list(self.oracle_sources),
            "timestamp": self.created_at.isoformat(),
            "metrics": self.metrics(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Route:
        """Rebuild a bare route (hops, amounts, identity) from ``to_dict`` output.

        Fee and slippage annotations are not restored; re-run the fee model
        and slippage engine on the result if they are needed.
        """
        from xroute.liquidity.base import DepthSnapshot

        hops = tuple(
            Hop(
                hop_index=int(h["hopIndex"]),
                chain=h["chain"],
                protocol=h["protocol"],
                from_token=h["fromToken"],
                to_token=h["toToken"],
                amount_in=float(h["amountIn"]),
                amount_out=float(h["amountOut"]),
                pool=DepthSnapshot.from_dict(h["pool"]) if h.get("pool") else None,
                provider=h.get("provider"),
                dest_chain=h.get("destChain"),
            )
            for h in data.get("hops", [])
        )
        created_at = data.get("timestamp")
        return cls(
            chain=data["chain"],
            path_type=PathType(data["pathType"]),
            hops=hops,
            expected_output=float(data["expectedOutput"]),
            oracle_sources=tuple(data.get("oracleSources", ())),
            created_at=datetime.fromisoformat(created_at) if created_at else _utcnow(),
            route_id=data.get("routeId") or _new_route_id(),
        )


__all__ = ["Fees", "Hop", "HopFee", "HopSlippage", "Route", "RouteSlippage"]
