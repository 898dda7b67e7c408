"""Depth-based slippage estimation.

Per-hop slippage is looked up from a tier table keyed by trade size as a
fraction of the input-side depth. Route slippage compounds per-hop
retention: ``1 - prod(1 - s_i)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from xroute.models.route import HopSlippage, Route, RouteSlippage

if TYPE_CHECKING:
    from xroute.liquidity.base import DepthSnapshot

# (upper bound on trade_size / depth, slippage fraction)
DEFAULT_SLIPPAGE_TIERS: tuple[tuple[float, float], ...] = (
    (0.01, 0.001),
    (0.05, 0.005),
    (0.10, 0.015),
    (0.20, 0.035),
)
DEFAULT_MAX_TIER_SLIPPAGE = 0.08

WARNING_LEVELS = ("warning", "excessive", "critical")


@dataclass(frozen=True)
class SlippagePolicy:
    """Tier table and thresholds.

    Attributes:
        tiers: Ascending (ratio upper bound, slippage) pairs
        max_tier_slippage: Slippage for ratios at or above the last bound
        default_tolerance: Used when a hop has no depth information
        warning / excessive / critical: Cumulative thresholds (inclusive)
    """

    tiers: tuple[tuple[float, float], ...] = field(default=DEFAULT_SLIPPAGE_TIERS)
    max_tier_slippage: float = DEFAULT_MAX_TIER_SLIPPAGE
    default_tolerance: float = 0.005
    warning: float = 0.01
    excessive: float = 0.05
    critical: float = 0.10

    def __post_init__(self) -> None:
        bounds = [bound for bound, _ in self.tiers]
        if bounds != sorted(bounds):
            raise ValueError("Slippage tiers must be sorted by ratio")
        if not self.warning <= self.excessive <= self.critical:
            raise ValueError("Thresholds must satisfy warning <= excessive <= critical")
        for value in (self.max_tier_slippage, self.default_tolerance, *(s for _, s in self.tiers)):
            if not 0 <= value < 1:
                raise ValueError(f"Slippage fraction out of range: {value}")

    def slippage_for_ratio(self, ratio: float) -> float:
        for bound, slippage in self.tiers:
            if ratio < bound:
                return slippage
        return self.max_tier_slippage


DEFAULT_SLIPPAGE_POLICY = SlippagePolicy()


def tier_slippage(ratio: float, policy: SlippagePolicy = DEFAULT_SLIPPAGE_POLICY) -> float:
    """Slippage fraction for a trade-size-to-depth ratio."""
    return policy.slippage_for_ratio(ratio)


def min_output(expected_output: float, tolerance: float) -> float:
    """Minimum acceptable output for a slippage tolerance.

    Equals ``expected_output`` at zero tolerance and decreases monotonically
    as tolerance grows.
    """
    if not 0 <= tolerance <= 1:
        raise ValueError(f"Tolerance must be within [0, 1], got {tolerance}")
    return expected_output * (1 - tolerance)


class SlippageEngine:
    """Annotates hops and routes with slippage estimates."""

    def __init__(self, policy: SlippagePolicy = DEFAULT_SLIPPAGE_POLICY) -> None:
        self.policy = policy

    def hop_slippage(
        self, amount_in: float, amount_out: float, pool: DepthSnapshot | None
    ) -> HopSlippage:
        """Slippage for one hop, from the pool's input-side depth."""
        depth = pool.depth_for_input() if pool is not None else None
        if not depth:
            tolerance = self.policy.default_tolerance
            return HopSlippage(
                percentage=tolerance,
                min_output=min_output(amount_out, tolerance),
                is_excessive=False,
                method="default",
            )
        ratio = amount_in / depth
        percentage = self.policy.slippage_for_ratio(ratio)
        return HopSlippage(
            percentage=percentage,
            min_output=min_output(amount_out, percentage),
            is_excessive=percentage >= self.policy.excessive,
            method="depth-based",
            trade_size_ratio=ratio,
        )

    def cumulative(self, hops: list[HopSlippage] | tuple[HopSlippage, ...], final_output: float) -> RouteSlippage:
        """Compound per-hop slippage into a route figure."""
        if not hops:
            return RouteSlippage(percentage=0.0, min_output=0.0, is_excessive=False)
        retention = 1.0
        for hop in hops:
            retention *= 1 - hop.percentage
        percentage = 1 - retention
        return RouteSlippage(
            percentage=percentage,
            min_output=final_output * retention,
            is_excessive=percentage >= self.policy.excessive,
            warning_level=self.warning_level(percentage),
            hops=tuple(hops),
        )

    def route_slippage(self, route: Route) -> RouteSlippage:
        hops = [self.hop_slippage(h.amount_in, h.amount_out, h.pool) for h in route.hops]
        final_output = route.hops[-1].amount_out if route.hops else 0.0
        return self.cumulative(hops, final_output)

    def annotate(self, route: Route) -> Route:
        """Return a copy of the route carrying per-hop and cumulative slippage."""
        return route.with_slippage(self.route_slippage(route))

    def exceeds_threshold(self, percentage: float, threshold: str = "excessive") -> bool:
        if threshold not in WARNING_LEVELS:
            raise ValueError(f"Unknown threshold {threshold!r}")
        return percentage >= getattr(self.policy, threshold)

    def warning_level(self, percentage: float) -> str:
        """One of none, warning, excessive, critical."""
        if percentage >= self.policy.critical:
            return "critical"
        if percentage >= self.policy.excessive:
            return "excessive"
        if percentage >= self.policy.warning:
            return "warning"
        return "none"

    def min_output(self, expected_output: float, tolerance: float) -> float:
        return min_output(expected_output, tolerance)

    def update_thresholds(self, **thresholds: float) -> SlippagePolicy:
        """Replace one or more of warning/excessive/critical.

        The new policy is validated before it replaces the current one.
        """
        unknown = set(thresholds) - set(WARNING_LEVELS)
        if unknown:
            raise ValueError(f"Unknown thresholds: {sorted(unknown)}")
        self.policy = replace(self.policy, **thresholds)
        return self.policy


__all__ = [
    "DEFAULT_SLIPPAGE_POLICY",
    "DEFAULT_SLIPPAGE_TIERS",
    "SlippageEngine",
    "SlippagePolicy",
    "min_output",
    "tier_slippage",
]
