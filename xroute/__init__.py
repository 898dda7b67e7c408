"""xroute - Cross-chain route planning and liquidity aggregation."""

from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.requests import OracleOptions, PlanningRequest
from xroute.routing.planner import RoutePlanner

__version__ = "0.1.0"
__all__ = ["LiquidityOracle", "OracleOptions", "PlanningRequest", "RoutePlanner", "__version__"]
