"""Route planner: enumerate, annotate, validate and rank candidate routes.

Usage:
    planner = RoutePlanner(oracle)
    result = await planner.plan_routes(PlanningRequest(fromToken="XRP", toToken="USDT", amount=100))
    if result.success:
        result.best_route.route.expected_output

Ranking cost is ``fees.total_fee_reference + expected_output * slippage``.
Sorting is stable, so equal-cost routes keep their enumeration order:
direct first, then intermediates in configured order, then bridge tokens in
catalog order.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from xroute.constants import DEFAULT_INTERMEDIATE_TOKENS, MAX_ALTERNATIVE_ROUTES
from xroute.errors import RouteError
from xroute.fees.calculator import FeeModel
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.requests import PlanningRequest
from xroute.models.route import Route
from xroute.models.types import home_chain, normalize_symbol
from xroute.routing.candidates import CandidateBuilder
from xroute.routing.validator import (
    ConstraintResult,
    ExecutabilityResult,
    RouteValidator,
    ValidationResult,
)
from xroute.slippage.engine import SlippageEngine

logger = structlog.get_logger()

NO_ROUTES_MESSAGE = "No valid routes found"


@dataclass(frozen=True)
class RankedRoute:
    """A valid route with its validation, constraint and executability findings."""

    route: Route
    cost: float
    validation: ValidationResult
    constraints: ConstraintResult
    executability: ExecutabilityResult

    def to_dict(self) -> dict[str, Any]:
        data = self.route.to_dict()
        data["rankingCost"] = self.cost
        data["validation"] = self.validation.to_dict()
        data["constraints"] = self.constraints.to_dict()
        data["executability"] = self.executability.to_dict()
        return data


@dataclass(frozen=True)
class PlanningResult:
    """Successful planning outcome."""

    best_route: RankedRoute
    alternative_routes: tuple[RankedRoute, ...]
    total_routes_found: int
    candidates_attempted: int
    from_token: str
    to_token: str
    amount: float
    source_chain: str
    dest_chain: str
    providers_consulted: tuple[str, ...] = ()
    elapsed_ms: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def success(self) -> bool:
        return True

    @property
    def routes(self) -> list[RankedRoute]:
        return [self.best_route, *self.alternative_routes]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "bestRoute": self.best_route.to_dict(),
            "alternativeRoutes": [r.to_dict() for r in self.alternative_routes],
            "totalRoutesFound": self.total_routes_found,
            "candidatesAttempted": self.candidates_attempted,
            "fromToken": self.from_token,
            "toToken": self.to_token,
            "amount": self.amount,
            "fromChain": self.source_chain,
            "toChain": self.dest_chain,
            "providersConsulted": list(self.providers_consulted),
            "timing": {"elapsedMs": round(self.elapsed_ms, 3)},
            "timestamp": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PlanningFailure:
    """Structured planning failure; returned, never raised."""

    error: RouteError
    message: str
    from_token: str
    to_token: str
    amount: float
    source_chain: str
    dest_chain: str
    candidates_attempted: int = 0
    candidates_built: int = 0
    rejections: tuple[str, ...] = ()
    providers_consulted: tuple[str, ...] = ()
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.error.value,
            "message": self.message,
            "fromToken": self.from_token,
            "toToken": self.to_token,
            "amount": self.amount,
            "fromChain": self.source_chain,
            "toChain": self.dest_chain,
            "candidatesAttempted": self.candidates_attempted,
            "candidatesBuilt": self.candidates_built,
            "rejections": list(self.rejections),
            "providersConsulted": list(self.providers_consulted),
            "timing": {"elapsedMs": round(self.elapsed_ms, 3)},
        }


def route_cost(route: Route) -> float:
    fee = route.fees.total_fee_reference if route.fees else 0.0
    slippage = route.slippage.percentage if route.slippage else 0.0
    return fee + route.expected_output * slippage


class RoutePlanner:
    """Plans routes for a request using the oracle, fee model and slippage engine.

    Args:
        oracle: Liquidity oracle used for every depth lookup
        fee_model: Defaults to a FeeModel pricing tokens from the oracle's table
        slippage_engine: Defaults to the standard tier table
        validator: Defaults to the standard supported-chain sets
        intermediate_tokens: Tokens tried for same-chain two-hop routes
    """

    def __init__(
        self,
        oracle: LiquidityOracle,
        fee_model: FeeModel | None = None,
        slippage_engine: SlippageEngine | None = None,
        validator: RouteValidator | None = None,
        intermediate_tokens: Iterable[str] = DEFAULT_INTERMEDIATE_TOKENS,
    ) -> None:
        self.oracle = oracle
        self.fee_model = fee_model or FeeModel(price_source=oracle.token_price_usd)
        self.slippage_engine = slippage_engine or SlippageEngine()
        self.validator = validator or RouteValidator()
        self.intermediate_tokens = tuple(normalize_symbol(t) for t in intermediate_tokens)

    @staticmethod
    def detect_chain(token: str) -> str:
        """Home chain of a token; stablecoins and unknown tokens default to XRPL."""
        return home_chain(token)

    async def _enumerate(
        self, builder: CandidateBuilder, request: PlanningRequest, source: str, dest: str
    ) -> list[Route]:
        from_token, to_token, amount = request.from_token, request.to_token, request.amount
        built: list[Route | None] = []
        if source == dest:
            built.append(await builder.direct(source, from_token, to_token, amount))
            for token in self.intermediate_tokens:
                if token in (from_token, to_token):
                    continue
                built.append(await builder.via(source, from_token, to_token, amount, token))
        else:
            for token in self.oracle.bridge_tokens(source, dest):
                built.append(
                    await builder.bridged(source, dest, from_token, to_token, amount, token)
                )
        return [route for route in built if route is not None]

    def annotate(self, route: Route) -> Route:
        return self.slippage_engine.annotate(self.fee_model.annotate(route))

    async def plan_routes(self, request: PlanningRequest) -> PlanningResult | PlanningFailure:
        started = time.perf_counter()
        source, dest = request.source_chain, request.dest_chain
        logger.info(
            "planning_routes",
            from_token=request.from_token,
            to_token=request.to_token,
            amount=request.amount,
            side=request.side.value,
            from_chain=source,
            to_chain=dest,
        )

        builder = CandidateBuilder(self.oracle, mode=request.mode)
        candidates = [self.annotate(route) for route in await self._enumerate(builder, request, source, dest)]

        rejections = list(builder.abandoned)
        valid: list[tuple[Route, ValidationResult]] = []
        for route in candidates:
            validation = self.validator.validate_structure(route)
            if validation.valid:
                valid.append((route, validation))
            else:
                rejections.append(f"{route.summary()}: {'; '.join(validation.errors)}")
                logger.debug("route_rejected", route=route.summary(), errors=list(validation.errors))

        providers = tuple(builder.providers_consulted)
        if not valid:
            elapsed = (time.perf_counter() - started) * 1000
            logger.info(
                "no_valid_routes",
                from_token=request.from_token,
                to_token=request.to_token,
                candidates_attempted=builder.attempted,
                candidates_built=len(candidates),
            )
            return PlanningFailure(
                error=RouteError.NO_ROUTE_FOUND,
                message=NO_ROUTES_MESSAGE,
                from_token=request.from_token,
                to_token=request.to_token,
                amount=request.amount,
                source_chain=source,
                dest_chain=dest,
                candidates_attempted=builder.attempted,
                candidates_built=len(candidates),
                rejections=tuple(rejections),
                providers_consulted=providers,
                elapsed_ms=elapsed,
            )

        validations = {id(route): validation for route, validation in valid}
        ranked = [
            RankedRoute(
                route=route,
                cost=route_cost(route),
                validation=validations[id(route)],
                constraints=self.validator.validate_constraints(route, request.constraints),
                executability=self.validator.check_executability(route),
            )
            for route in self.rank_routes([route for route, _ in valid])
        ]
        elapsed = (time.perf_counter() - started) * 1000
        best = ranked[0]
        logger.info(
            "routes_planned",
            best_route=best.route.summary(),
            expected_output=best.route.expected_output,
            total_routes_found=len(ranked),
            elapsed_ms=round(elapsed, 3),
        )
        return PlanningResult(
            best_route=best,
            alternative_routes=tuple(ranked[1 : 1 + MAX_ALTERNATIVE_ROUTES]),
            total_routes_found=len(ranked),
            candidates_attempted=builder.attempted,
            from_token=request.from_token,
            to_token=request.to_token,
            amount=request.amount,
            source_chain=source,
            dest_chain=dest,
            providers_consulted=providers,
            elapsed_ms=elapsed,
        )

    @staticmethod
    def rank_routes(routes: Iterable[Route]) -> list[Route]:
        """Ascending by cost; ties keep their input order."""
        return sorted(routes, key=route_cost)

    async def find_best_route(self, request: PlanningRequest) -> Route | None:
        result = await self.plan_routes(request)
        if isinstance(result, PlanningFailure):
            return None
        return result.best_route.route

    @staticmethod
    def explain_route(route: Route) -> str:
        """Multi-line human-readable description of a route."""
        metrics = route.metrics()
        lines = [
            f"Route: {metrics['routeSummary']}",
            f"Hops: {metrics['totalHops']}, Chains: {metrics['uniqueChains']}, "
            f"Protocols: {', '.join(metrics['protocols'])}",
            f"Expected Output: {route.expected_output}",
            f"Total Fee: ${metrics['totalFeeUSD']:.6f}",
        ]
        slippage = f"Slippage: {metrics['slippagePercentage'] * 100:.2f}%"
        if route.slippage is not None and route.slippage.is_excessive:
            slippage += " (EXCESSIVE)"
        lines.append(slippage)
        return "\n".join(lines)


__all__ = [
    "NO_ROUTES_MESSAGE",
    "PlanningFailure",
    "PlanningResult",
    "RankedRoute",
    "RoutePlanner",
    "route_cost",
]
