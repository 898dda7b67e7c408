"""Route planning: candidate enumeration, validation and ranking, plus anchor venue selection."""

from xroute.routing.anchor_router import AnchorQuote, AnchorQuoteFailure, AnchorRouter, RoutingDecision
from xroute.routing.candidates import CandidateBuilder
from xroute.routing.planner import (
    NO_ROUTES_MESSAGE,
    PlanningFailure,
    PlanningResult,
    RankedRoute,
    RoutePlanner,
    route_cost,
)
from xroute.routing.validator import (
    ConstraintResult,
    ExecutabilityResult,
    RouteValidator,
    ValidationResult,
)

__all__ = [
    "AnchorQuote",
    "AnchorQuoteFailure",
    "AnchorRouter",
    "CandidateBuilder",
    "ConstraintResult",
    "ExecutabilityResult",
    "NO_ROUTES_MESSAGE",
    "PlanningFailure",
    "PlanningResult",
    "RankedRoute",
    "RoutePlanner",
    "RouteValidator",
    "RoutingDecision",
    "ValidationResult",
    "route_cost",
]
