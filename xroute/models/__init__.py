"""Data models for routing requests and routes."""

from xroute.models.requests import OracleOptions, PlanningRequest, RouteConstraints
from xroute.models.route import Fees, Hop, HopFee, HopSlippage, Route, RouteSlippage
from xroute.models.types import LiquidityMode, PathType, ProviderKind, TradeSide

__all__ = [
    "Fees",
    "Hop",
    "HopFee",
    "HopSlippage",
    "LiquidityMode",
    "OracleOptions",
    "PathType",
    "PlanningRequest",
    "ProviderKind",
    "Route",
    "RouteConstraints",
    "RouteSlippage",
    "TradeSide",
]
