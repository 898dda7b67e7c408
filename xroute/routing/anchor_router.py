"""Size-tiered venue selection across the anchor quoters.

Every enabled anchor venue is asked for a quote in parallel, sized by the
trade's USD notional. Each answer becomes a candidate with

    slippage_bps   = round((1 - liquidity_score) * 100)
    total_cost_bps = fee_bps + slippage_bps
    effective      = price * (1 + total_cost_bps / 10_000)   buy, lower wins
                     price * (1 - total_cost_bps / 10_000)   sell, higher wins

and the trade size picks the strategy:

    amount_usd <  large   best effective price        ("best-price")
    amount_usd <  split   highest liquidity score     ("deepest-liquidity")
    otherwise             top two by score, weighted  ("smart-split")

Every routed request, successful or not, lands in a bounded decision log
kept on the router instance (newest first).
"""

from __future__ import annotations

import asyncio
import math
import time
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import islice
from typing import Any

import structlog

from xroute.config.loader import EnvSettings
from xroute.constants import (
    MAX_QUOTE_CANDIDATES,
    MAX_ROUTING_DECISIONS,
    ROUTING_THRESHOLD_LARGE_USD,
    ROUTING_THRESHOLD_SPLIT_USD,
)
from xroute.errors import ConfigError, ProviderTransportError, RouteError
from xroute.liquidity.anchors import AnchorProvider
from xroute.liquidity.base import DepthSnapshot, LiquidityProvider
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.requests import OracleOptions
from xroute.models.types import TradeSide, normalize_symbol

logger = structlog.get_logger()

STRATEGY_NAME = "smart-hybrid"
BEST_PRICE = "best-price"
DEEPEST_LIQUIDITY = "deepest-liquidity"
SMART_SPLIT = "smart-split"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _slippage_bps(liquidity_score: float) -> int:
    return _round_half_up((1 - liquidity_score) * 100)


@dataclass(frozen=True)
class VenueStatus:
    """How one venue answered a routed request."""

    source: str
    ok: bool
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "ok": self.ok, "reason": self.reason}


@dataclass(frozen=True)
class QuoteCandidate:
    """One venue's quote with its derived costs."""

    source: str
    chain: str
    price: float
    fee_bps: int
    liquidity_score: float
    est_confirm_ms: int
    slippage_bps: int
    total_cost_bps: int
    effective_price: float

    @classmethod
    def from_snapshot(cls, snapshot: DepthSnapshot, side: TradeSide) -> QuoteCandidate:
        fee_bps = snapshot.fee_bps or 0
        score = snapshot.liquidity_score if snapshot.liquidity_score is not None else 0.0
        slippage_bps = _slippage_bps(score)
        total = fee_bps + slippage_bps
        if side == TradeSide.BUY:
            effective = snapshot.spot_price * (1 + total / 10_000)
        else:
            effective = snapshot.spot_price * (1 - total / 10_000)
        return cls(
            source=snapshot.source,
            chain=snapshot.chain,
            price=snapshot.spot_price,
            fee_bps=fee_bps,
            liquidity_score=score,
            est_confirm_ms=snapshot.est_confirm_ms or 0,
            slippage_bps=slippage_bps,
            total_cost_bps=total,
            effective_price=effective,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "chain": self.chain,
            "price": self.price,
            "feeBps": self.fee_bps,
            "liquidityScore": self.liquidity_score,
            "estConfirmMs": self.est_confirm_ms,
            "slippageBps": self.slippage_bps,
            "totalCostBps": self.total_cost_bps,
            "effectivePrice": self.effective_price,
        }


@dataclass(frozen=True)
class ChosenQuote:
    """The figures a caller executes against; blended when the trade is split."""

    source: str
    price: float
    fee_bps: int
    liquidity_score: float
    est_confirm_ms: int
    total_cost_bps: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "price": self.price,
            "feeBps": self.fee_bps,
            "liquidityScore": self.liquidity_score,
            "estConfirmMs": self.est_confirm_ms,
            "totalCostBps": self.total_cost_bps,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class SplitLeg:
    source: str
    pct: int


@dataclass(frozen=True)
class VenueRoute:
    """Primary venue, plus the percentage legs when the trade is split."""

    primary: str
    splits: tuple[SplitLeg, ...] = ()

    @property
    def is_split(self) -> bool:
        return bool(self.splits)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"primary": self.primary}
        if self.splits:
            data["splits"] = [{"source": leg.source, "pct": leg.pct} for leg in self.splits]
        return data


@dataclass(frozen=True)
class RoutingDecision:
    """One entry of the decision log."""

    base: str
    quote: str
    side: TradeSide
    amount_usd: float
    success: bool
    elapsed_ms: float
    providers: tuple[VenueStatus, ...] = ()
    chosen: ChosenQuote | None = None
    split: bool = False
    error: RouteError | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        chosen = self.chosen
        return {
            "timestamp": self.timestamp.isoformat(),
            "base": self.base,
            "quote": self.quote,
            "side": self.side.value,
            "amountUsd": self.amount_usd,
            "chosenSource": chosen.source if chosen else None,
            "price": chosen.price if chosen else None,
            "feeBps": chosen.fee_bps if chosen else None,
            "liquidityScore": chosen.liquidity_score if chosen else None,
            "estConfirmMs": chosen.est_confirm_ms if chosen else None,
            "split": self.split,
            "elapsedMs": self.elapsed_ms,
            "success": self.success,
            "error": self.error.value if self.error else None,
            "providers": [status.to_dict() for status in self.providers],
        }


@dataclass(frozen=True)
class AnchorQuote:
    """A successful routing answer."""

    base: str
    quote: str
    side: TradeSide
    amount_usd: float
    route: VenueRoute
    chosen: ChosenQuote
    candidates: tuple[QuoteCandidate, ...]
    large_threshold_usd: float
    split_threshold_usd: float
    elapsed_ms: float

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "base": self.base,
            "quote": self.quote,
            "side": self.side.value,
            "amountUsd": self.amount_usd,
            "route": self.route.to_dict(),
            "chosen": self.chosen.to_dict(),
            "candidates": [c.to_dict() for c in self.candidates[:MAX_QUOTE_CANDIDATES]],
            "policy": {
                "strategy": STRATEGY_NAME,
                "thresholds": {"large": self.large_threshold_usd, "split": self.split_threshold_usd},
            },
            "meta": {"elapsedMs": self.elapsed_ms, "candidateCount": len(self.candidates)},
        }


@dataclass(frozen=True)
class AnchorQuoteFailure:
    """Routing could not pick a venue."""

    error: RouteError
    message: str
    providers: tuple[VenueStatus, ...] = ()

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "code": self.error.value,
            "message": self.message,
            "providers": [status.to_dict() for status in self.providers],
        }


def choose_best_price(candidates: list[QuoteCandidate], side: TradeSide) -> tuple[VenueRoute, ChosenQuote]:
    if side == TradeSide.BUY:
        best = min(candidates, key=lambda c: c.effective_price)
    else:
        best = max(candidates, key=lambda c: c.effective_price)
    return VenueRoute(primary=best.source), _chosen(best, BEST_PRICE)


def choose_deepest(candidates: list[QuoteCandidate]) -> tuple[VenueRoute, ChosenQuote]:
    deepest = max(candidates, key=lambda c: c.liquidity_score)
    return VenueRoute(primary=deepest.source), _chosen(deepest, DEEPEST_LIQUIDITY)


def split_top_two(candidates: list[QuoteCandidate]) -> tuple[VenueRoute, ChosenQuote]:
    """Split across the two deepest venues, weighted by liquidity score.

    A single candidate is split with itself, so the legs still sum to 100.
    """
    ranked = sorted(candidates, key=lambda c: c.liquidity_score, reverse=True)
    first = ranked[0]
    second = ranked[1] if len(ranked) > 1 else first
    total_score = first.liquidity_score + second.liquidity_score
    pct1 = _round_half_up(first.liquidity_score / total_score * 100) if total_score > 0 else 50
    pct2 = 100 - pct1

    def blend(a: float, b: float) -> float:
        return (a * pct1 + b * pct2) / 100

    fee_bps = _round_half_up(blend(first.fee_bps, second.fee_bps))
    score = blend(first.liquidity_score, second.liquidity_score)
    chosen = ChosenQuote(
        source=f"split:{first.source}/{second.source}",
        price=blend(first.price, second.price),
        fee_bps=fee_bps,
        liquidity_score=score,
        est_confirm_ms=_round_half_up(blend(first.est_confirm_ms, second.est_confirm_ms)),
        total_cost_bps=fee_bps + _slippage_bps(score),
        reason=SMART_SPLIT,
    )
    route = VenueRoute(
        primary=first.source,
        splits=(SplitLeg(first.source, pct1), SplitLeg(second.source, pct2)),
    )
    return route, chosen


def _chosen(candidate: QuoteCandidate, reason: str) -> ChosenQuote:
    return ChosenQuote(
        source=candidate.source,
        price=candidate.price,
        fee_bps=candidate.fee_bps,
        liquidity_score=candidate.liquidity_score,
        est_confirm_ms=candidate.est_confirm_ms,
        total_cost_bps=candidate.total_cost_bps,
        reason=reason,
    )


class AnchorRouter:
    """Chooses anchor venues by trade size and keeps a log of its decisions.

    Args:
        oracle: Source of the current provider set; anchors are picked from
            it on every request, so a reload takes effect immediately
        providers: Fixed provider list used instead of an oracle
        large_threshold_usd: Trades at or above this skip best-price routing
        split_threshold_usd: Trades at or above this are split
        enabled: A disabled router answers ROUTING_DISABLED without querying
        max_decisions: Capacity of the decision log
    """

    def __init__(
        self,
        oracle: LiquidityOracle | None = None,
        *,
        providers: Iterable[LiquidityProvider] | None = None,
        large_threshold_usd: float = ROUTING_THRESHOLD_LARGE_USD,
        split_threshold_usd: float = ROUTING_THRESHOLD_SPLIT_USD,
        enabled: bool = True,
        max_decisions: int = MAX_ROUTING_DECISIONS,
    ) -> None:
        if oracle is None and providers is None:
            raise ValueError("AnchorRouter needs an oracle or a provider list")
        if not 0 < large_threshold_usd <= split_threshold_usd:
            raise ConfigError(
                f"Routing thresholds must satisfy 0 < large <= split, "
                f"got {large_threshold_usd} and {split_threshold_usd}"
            )
        self.oracle = oracle
        self._providers = tuple(providers) if providers is not None else None
        self.large_threshold_usd = large_threshold_usd
        self.split_threshold_usd = split_threshold_usd
        self.enabled = enabled
        self._decisions: deque[RoutingDecision] = deque(maxlen=max_decisions)

    @classmethod
    def from_settings(cls, oracle: LiquidityOracle, settings: EnvSettings | None = None) -> AnchorRouter:
        settings = settings if settings is not None else oracle.settings
        return cls(
            oracle,
            large_threshold_usd=settings.routing_threshold_large_usd,
            split_threshold_usd=settings.routing_threshold_split_usd,
            enabled=settings.anchor_routing,
        )

    def anchors(self) -> list[AnchorProvider]:
        """Enabled anchor providers, in registration order."""
        pool = self._providers if self._providers is not None else self.oracle.providers  # type: ignore[union-attr]
        return [p for p in pool if isinstance(p, AnchorProvider) and p.is_enabled]

    # -------------------------------------------------------------------------
    # Decision log
    # -------------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._decisions.maxlen or 0

    def recent_decisions(self, limit: int = 50) -> list[RoutingDecision]:
        """Most recent decisions first."""
        return list(islice(self._decisions, max(limit, 0)))

    def clear_decisions(self) -> None:
        self._decisions.clear()

    def _record(self, decision: RoutingDecision) -> None:
        self._decisions.appendleft(decision)

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def select(
        self, candidates: list[QuoteCandidate], amount_usd: float, side: TradeSide
    ) -> tuple[VenueRoute, ChosenQuote]:
        if amount_usd < self.large_threshold_usd:
            return choose_best_price(candidates, side)
        if amount_usd < self.split_threshold_usd:
            return choose_deepest(candidates)
        return split_top_two(candidates)

    async def _ask(
        self, provider: AnchorProvider, base: str, quote: str, opts: OracleOptions
    ) -> tuple[VenueStatus, DepthSnapshot | None]:
        if not provider.supports(base, quote, opts):
            return VenueStatus(provider.name, False, "no-quote"), None
        try:
            snapshot = await asyncio.wait_for(provider.get_depth(base, quote, opts), timeout=provider.timeout)
        except TimeoutError:
            logger.warning("anchor_timeout", provider=provider.name, timeout=provider.timeout)
            return VenueStatus(provider.name, False, "timeout"), None
        except ProviderTransportError as err:
            logger.warning("anchor_transport_error", provider=provider.name, error=err.detail)
            return VenueStatus(provider.name, False, err.detail), None
        except Exception as err:
            logger.exception("anchor_error", provider=provider.name)
            return VenueStatus(provider.name, False, repr(err)), None
        if snapshot is None or not math.isfinite(snapshot.spot_price) or snapshot.spot_price <= 0:
            return VenueStatus(provider.name, False, "no-quote"), None
        return VenueStatus(provider.name, True, "success"), snapshot

    async def route_quote(
        self, base: str, quote: str, side: TradeSide | str, amount_usd: float
    ) -> AnchorQuote | AnchorQuoteFailure:
        """Pick a venue (or a split) for a trade of ``amount_usd``.

        Raises:
            ValueError: If ``amount_usd`` is not strictly positive
        """
        if not self.enabled:
            return AnchorQuoteFailure(RouteError.ROUTING_DISABLED, "Anchor routing is disabled")
        if not amount_usd > 0:
            raise ValueError(f"amount_usd must be positive, got {amount_usd}")
        side = TradeSide(side)
        base = normalize_symbol(base)
        quote = normalize_symbol(quote)
        started = time.perf_counter()
        opts = OracleOptions(notional_hint=amount_usd)

        answers = await asyncio.gather(*(self._ask(p, base, quote, opts) for p in self.anchors()))
        statuses = tuple(status for status, _ in answers)
        candidates = [
            QuoteCandidate.from_snapshot(snapshot, side) for _, snapshot in answers if snapshot is not None
        ]

        if not candidates:
            elapsed = (time.perf_counter() - started) * 1000
            self._record(
                RoutingDecision(
                    base=base,
                    quote=quote,
                    side=side,
                    amount_usd=amount_usd,
                    success=False,
                    elapsed_ms=elapsed,
                    providers=statuses,
                    error=RouteError.NO_CANDIDATES,
                )
            )
            logger.info(
                "anchor_route_failed",
                base=base,
                quote=quote,
                side=side.value,
                amount_usd=amount_usd,
                providers=[s.source for s in statuses],
            )
            return AnchorQuoteFailure(
                RouteError.NO_CANDIDATES, "No anchor venue returned a quote", providers=statuses
            )

        route, chosen = self.select(candidates, amount_usd, side)
        elapsed = (time.perf_counter() - started) * 1000
        self._record(
            RoutingDecision(
                base=base,
                quote=quote,
                side=side,
                amount_usd=amount_usd,
                success=True,
                elapsed_ms=elapsed,
                providers=statuses,
                chosen=chosen,
                split=route.is_split,
            )
        )
        logger.info(
            "anchor_route_chosen",
            base=base,
            quote=quote,
            side=side.value,
            amount_usd=amount_usd,
            source=chosen.source,
            price=round(chosen.price, 6),
            fee_bps=chosen.fee_bps,
            liquidity_score=round(chosen.liquidity_score, 4),
            reason=chosen.reason,
            elapsed_ms=round(elapsed, 3),
        )
        return AnchorQuote(
            base=base,
            quote=quote,
            side=side,
            amount_usd=amount_usd,
            route=route,
            chosen=chosen,
            candidates=tuple(candidates),
            large_threshold_usd=self.large_threshold_usd,
            split_threshold_usd=self.split_threshold_usd,
            elapsed_ms=elapsed,
        )


__all__ = [
    "AnchorQuote",
    "AnchorQuoteFailure",
    "AnchorRouter",
    "ChosenQuote",
    "QuoteCandidate",
    "RoutingDecision",
    "VenueRoute",
    "VenueStatus",
    "choose_best_price",
    "choose_deepest",
    "split_top_two",
]
