"""Slippage estimation."""

from xroute.slippage.engine import (
    DEFAULT_SLIPPAGE_POLICY,
    SlippageEngine,
    SlippagePolicy,
    min_output,
    tier_slippage,
)

__all__ = [
    "DEFAULT_SLIPPAGE_POLICY",
    "SlippageEngine",
    "SlippagePolicy",
    "min_output",
    "tier_slippage",
]
