"""API endpoints for route planning and liquidity queries."""

from functools import lru_cache
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from xroute.errors import ConfigError
from xroute.liquidity.oracle import LiquidityOracle
from xroute.models.requests import AnchorQuoteRequest, OracleOptions, PlanningRequest
from xroute.models.types import LiquidityMode, TokenSymbol
from xroute.routing.anchor_router import AnchorRouter
from xroute.routing.planner import RoutePlanner

logger = structlog.get_logger()

router = APIRouter()


class SlippageCurveRequest(OracleOptions):
    """Body of a slippage-curve query: the pair plus oracle options."""

    base: TokenSymbol
    quote: TokenSymbol

    def options(self) -> OracleOptions:
        return OracleOptions(**self.model_dump(exclude={"base", "quote"}))


@lru_cache(maxsize=1)
def get_default_oracle() -> LiquidityOracle:
    """Process-wide oracle built from the environment and config directory."""
    return LiquidityOracle()


def get_oracle() -> LiquidityOracle:
    """Dependency provider for the oracle instance.

    Override this in tests to inject an oracle over fixture providers:
        app.dependency_overrides[get_oracle] = lambda: oracle
    """
    return get_default_oracle()


def get_planner(oracle: LiquidityOracle = Depends(get_oracle)) -> RoutePlanner:
    """Dependency provider for the planner; one per request over the shared oracle."""
    return RoutePlanner(oracle)


@lru_cache(maxsize=1)
def get_default_anchor_router() -> AnchorRouter:
    """Process-wide anchor router; its decision log lives as long as the process."""
    return AnchorRouter.from_settings(get_default_oracle())


def get_anchor_router() -> AnchorRouter:
    """Dependency provider for the anchor router.

    Override in tests with a router over fixture providers.
    """
    return get_default_anchor_router()


def _options(
    chain: str | None,
    mode: LiquidityMode | None,
    notional_hint: float | None,
    providers: str | None,
) -> OracleOptions:
    try:
        return OracleOptions(
            chain=chain,
            mode=mode,
            notional_hint=notional_hint,
            providers=[p.strip() for p in providers.split(",") if p.strip()] if providers else None,
        )
    except ValidationError as err:
        detail = err.errors(include_url=False, include_context=False)
        raise HTTPException(status_code=422, detail=detail) from err


@router.post("/routes/plan")
async def plan_routes(
    request: PlanningRequest,
    planner: RoutePlanner = Depends(get_planner),
) -> dict[str, Any]:
    """Plan routes for a request.

    Error Handling:
        - Invalid request schema: 422 Validation Error (pydantic)
        - No valid route: 200 with ``success: false`` and the failure context
        - Planner exception: logged, 200 with ``success: false``
    """
    logger.info(
        "received_plan_request",
        from_token=request.from_token,
        to_token=request.to_token,
        amount=request.amount,
    )
    try:
        result = await planner.plan_routes(request)
    except Exception:
        logger.exception(
            "planning_error", from_token=request.from_token, to_token=request.to_token
        )
        return {
            "success": False,
            "error": "PLANNING_ERROR",
            "message": "Planner raised an exception",
            "fromToken": request.from_token,
            "toToken": request.to_token,
            "amount": request.amount,
        }
    return result.to_dict()


@router.post("/routes/anchor-quote")
async def anchor_quote(
    request: AnchorQuoteRequest,
    anchor_router: AnchorRouter = Depends(get_anchor_router),
) -> dict[str, Any]:
    """Choose an anchor venue, or a split across two, for a USD-sized trade.

    Error Handling:
        - Invalid request schema: 422 Validation Error (pydantic)
        - Routing disabled or no venue quotes: 200 with ``ok: false`` and a code
        - Router exception: logged, 200 with ``ok: false``
    """
    logger.info(
        "received_anchor_quote_request",
        base=request.base,
        quote=request.quote,
        side=request.side.value,
        amount_usd=request.amount_usd,
    )
    try:
        result = await anchor_router.route_quote(request.base, request.quote, request.side, request.amount_usd)
    except Exception:
        logger.exception("anchor_routing_error", base=request.base, quote=request.quote)
        return {"ok": False, "code": "ROUTING_ERROR", "message": "Router raised an exception"}
    return result.to_dict()


@router.get("/liquidity/price")
async def get_price(
    base: str,
    quote: str,
    chain: str | None = None,
    mode: LiquidityMode | None = None,
    notional_hint: float | None = Query(default=None, alias="notionalHint", gt=0),
    providers: str | None = Query(default=None, description="Comma-separated provider names"),
    oracle: LiquidityOracle = Depends(get_oracle),
) -> dict[str, Any]:
    result = await oracle.get_spot_price(base, quote, _options(chain, mode, notional_hint, providers))
    return result.to_dict()


@router.get("/liquidity/depth")
async def get_depth(
    base: str,
    quote: str,
    chain: str | None = None,
    mode: LiquidityMode | None = None,
    notional_hint: float | None = Query(default=None, alias="notionalHint", gt=0),
    providers: str | None = Query(default=None, description="Comma-separated provider names"),
    oracle: LiquidityOracle = Depends(get_oracle),
) -> dict[str, Any]:
    result = await oracle.get_depth(base, quote, _options(chain, mode, notional_hint, providers))
    return result.to_dict()


@router.post("/liquidity/slippage-curve")
async def get_slippage_curve(
    body: SlippageCurveRequest,
    oracle: LiquidityOracle = Depends(get_oracle),
) -> dict[str, Any]:
    result = await oracle.get_slippage_curve(body.base, body.quote, body.options())
    return result.to_dict()


@router.get("/liquidity/priority")
async def get_priority(
    chain: str | None = None,
    mode: LiquidityMode | None = None,
    oracle: LiquidityOracle = Depends(get_oracle),
) -> dict[str, Any]:
    """Providers in the order a query with these options would try them."""
    effective_mode = mode or oracle.mode
    opts = _options(chain, None, None, None)
    providers = oracle.get_provider_priority(opts, effective_mode)
    return {
        "chain": opts.chain,
        "mode": effective_mode.value,
        "providers": [
            {
                "name": p.name,
                "kind": p.kind.value,
                "priority": p.priority,
                "enabled": p.is_enabled,
            }
            for p in providers
        ],
    }


@router.post("/admin/reload")
async def reload_config(oracle: LiquidityOracle = Depends(get_oracle)) -> dict[str, Any]:
    """Re-read configuration and rebuild providers; the old set stays on failure."""
    try:
        await oracle.reload()
    except ConfigError as err:
        logger.warning("admin_reload_failed", error=str(err))
        return {"success": False, "error": "CONFIG_ERROR", "message": str(err)}
    return {"success": True, "providers": oracle.provider_names, "mode": oracle.mode.value}


@router.get("/admin/routing-decisions")
async def get_routing_decisions(
    limit: int = Query(default=50, ge=1, le=100),
    anchor_router: AnchorRouter = Depends(get_anchor_router),
) -> dict[str, Any]:
    """Most recent anchor routing decisions, newest first."""
    decisions = anchor_router.recent_decisions(limit)
    return {
        "decisions": [d.to_dict() for d in decisions],
        "count": len(decisions),
        "capacity": anchor_router.capacity,
        "enabled": anchor_router.enabled,
    }


@router.delete("/admin/routing-decisions")
async def clear_routing_decisions(anchor_router: AnchorRouter = Depends(get_anchor_router)) -> dict[str, Any]:
    anchor_router.clear_decisions()
    logger.info("routing_decisions_cleared")
    return {"success": True}
