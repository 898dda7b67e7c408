"""Candidate route enumeration.

Builds bare routes (no fees, no slippage) for one planning request:

- direct: one swap on a single chain
- via: from_token -> intermediate -> to_token on a single chain
- bridged: optional source swap into the bridge token, a 1:1 bridge hop,
  optional destination swap out of it

Each swap asks the oracle for a depth snapshot oriented token_in -> token_out
and quotes it with ``quote_swap``. A missing snapshot or quote abandons the
candidate; there is no retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from xroute.constants import BRIDGE
from xroute.liquidity.amm import quote_swap
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.requests import OracleOptions
from xroute.models.route import Hop, Route
from xroute.models.types import LiquidityMode, PathType

logger = structlog.get_logger()


@dataclass
class CandidateBuilder:
    """Builds candidates for one request; not shared between requests.

    Attributes:
        oracle: Source of depth snapshots
        mode: Liquidity mode for every oracle query, None for the oracle default
        attempted: Number of candidates started
        abandoned: Why each abandoned candidate was dropped
        providers_consulted: Providers invoked by any query, first-seen order
    """

    oracle: LiquidityOracle
    mode: LiquidityMode | None = None
    attempted: int = 0
    abandoned: list[str] = field(default_factory=list)
    providers_consulted: dict[str, None] = field(default_factory=dict)

    async def swap_hop(
        self, chain: str, token_in: str, token_out: str, amount_in: float, hop_index: int
    ) -> Hop | None:
        price = self.oracle.token_price_usd(token_in)
        opts = OracleOptions(
            chain=chain,
            mode=self.mode,
            notional_hint=amount_in * price if price else amount_in,
        )
        result = await self.oracle.get_depth(token_in, token_out, opts)
        self.providers_consulted.update(dict.fromkeys(result.providers_tried))
        if result.value is None:
            return None
        snapshot = result.value
        quote = quote_swap(snapshot, amount_in)
        if quote is None:
            return None
        return Hop(
            hop_index=hop_index,
            chain=chain,
            protocol=snapshot.protocol,
            from_token=token_in,
            to_token=token_out,
            amount_in=amount_in,
            amount_out=quote.amount_out,
            pool=snapshot,
            provider=result.provider,
        )

    def _abandon(self, label: str, reason: str) -> None:
        self.abandoned.append(f"{label}: {reason}")
        logger.debug("candidate_abandoned", candidate=label, reason=reason)

    @staticmethod
    def _route(chain: str, hops: list[Hop]) -> Route:
        sources = tuple(dict.fromkeys(hop.provider for hop in hops if hop.provider))
        return Route(
            chain=chain,
            path_type=PathType.DIRECT if len(hops) == 1 else PathType.MULTI_HOP,
            hops=tuple(hops),
            expected_output=hops[-1].amount_out,
            oracle_sources=sources,
        )

    async def direct(self, chain: str, from_token: str, to_token: str, amount: float) -> Route | None:
        self.attempted += 1
        label = f"direct {from_token}->{to_token} on {chain}"
        hop = await self.swap_hop(chain, from_token, to_token, amount, 0)
        if hop is None:
            self._abandon(label, "no liquidity")
            return None
        return self._route(chain, [hop])

    async def via(
        self, chain: str, from_token: str, to_token: str, amount: float, intermediate: str
    ) -> Route | None:
        self.attempted += 1
        label = f"{from_token}->{intermediate}->{to_token} on {chain}"
        hops: list[Hop] = []
        current = amount
        path = [from_token, intermediate, to_token]
        for index, (token_in, token_out) in enumerate(zip(path, path[1:], strict=False)):
            hop = await self.swap_hop(chain, token_in, token_out, current, index)
            if hop is None:
                self._abandon(label, f"no liquidity for {token_in}->{token_out}")
                return None
            hops.append(hop)
            current = hop.amount_out
        return self._route(chain, hops)

    async def bridged(
        self,
        from_chain: str,
        to_chain: str,
        from_token: str,
        to_token: str,
        amount: float,
        bridge_token: str,
    ) -> Route | None:
        self.attempted += 1
        label = f"{from_token}@{from_chain}->{bridge_token}->{to_token}@{to_chain}"
        hops: list[Hop] = []
        current = amount

        if from_token != bridge_token:
            hop = await self.swap_hop(from_chain, from_token, bridge_token, current, len(hops))
            if hop is None:
                self._abandon(label, f"no liquidity for {from_token}->{bridge_token} on {from_chain}")
                return None
            hops.append(hop)
            current = hop.amount_out

        # Bridged 1:1; the bridge fee is charged by the fee model
        hops.append(
            Hop(
                hop_index=len(hops),
                chain=from_chain,
                protocol=BRIDGE,
                from_token=bridge_token,
                to_token=bridge_token,
                amount_in=current,
                amount_out=current,
                dest_chain=to_chain,
            )
        )

        if bridge_token != to_token:
            hop = await self.swap_hop(to_chain, bridge_token, to_token, current, len(hops))
            if hop is None:
                self._abandon(label, f"no liquidity for {bridge_token}->{to_token} on {to_chain}")
                return None
            hops.append(hop)

        # A lone bridge hop (same token on both chains) is a one-hop "direct" route
        return self._route(from_chain, hops)


__all__ = ["CandidateBuilder"]
