"""Pydantic models for planning requests and oracle query options.

Field names accept both snake_case and the camelCase used by JSON clients
(``fromToken``, ``maxSlippage``, ``notionalHint``).
"""

from pydantic import BaseModel, Field, model_validator

from xroute.models.types import (
    ChainName,
    LiquidityMode,
    PositiveAmount,
    TokenSymbol,
    TradeSide,
    home_chain,
)


class RouteConstraints(BaseModel):
    """Caller limits checked against a structurally valid route."""

    model_config = {"populate_by_name": True}

    max_slippage: float | None = Field(
        default=None,
        alias="maxSlippage",
        gt=0,
        lt=1,
        description="Maximum cumulative slippage as a fraction (0.01 == 1%).",
    )
    max_fee_usd: float | None = Field(default=None, alias="maxFeeUSD", ge=0)
    max_hops: int | None = Field(default=None, alias="maxHops", ge=1)

    @property
    def is_empty(self) -> bool:
        return self.max_slippage is None and self.max_fee_usd is None and self.max_hops is None


class OracleOptions(BaseModel):
    """Per-call options for an oracle query."""

    model_config = {"populate_by_name": True}

    chain: ChainName | None = None
    mode: LiquidityMode | None = None
    notional_hint: float | None = Field(default=None, alias="notionalHint", gt=0)
    amounts: list[PositiveAmount] | None = None
    # Explicit per-call provider order (names); overridden by the chain table
    providers: list[str] | None = None


class PlanningRequest(BaseModel):
    """Request to convert an amount of one token into another.

    ``amount`` is always the input amount. ``side`` is carried for callers
    but does not change how candidates are built.
    """

    model_config = {"populate_by_name": True}

    from_token: TokenSymbol = Field(alias="fromToken")
    to_token: TokenSymbol = Field(alias="toToken")
    amount: PositiveAmount
    side: TradeSide = TradeSide.SELL
    from_chain: ChainName | None = Field(default=None, alias="fromChain")
    to_chain: ChainName | None = Field(default=None, alias="toChain")
    mode: LiquidityMode | None = None
    constraints: RouteConstraints | None = None

    @property
    def source_chain(self) -> str:
        return self.from_chain or home_chain(self.from_token)

    @property
    def dest_chain(self) -> str:
        return self.to_chain or home_chain(self.to_token)

    @model_validator(mode="after")
    def _distinct_positions(self) -> "PlanningRequest":
        # Compared after chain inference, so a lone fromChain cannot hide a round trip
        if self.from_token == self.to_token and self.source_chain == self.dest_chain:
            raise ValueError("fromToken and toToken must differ on the same chain")
        return self


class AnchorQuoteRequest(BaseModel):
    """Request for a venue choice on an anchor pair, sized in USD."""

    model_config = {"populate_by_name": True}

    base: TokenSymbol
    quote: TokenSymbol
    side: TradeSide = TradeSide.SELL
    amount_usd: PositiveAmount = Field(alias="amountUsd")

    @model_validator(mode="after")
    def _distinct_tokens(self) -> "AnchorQuoteRequest":
        if self.base == self.quote:
            raise ValueError("base and quote must differ")
        return self


__all__ = ["AnchorQuoteRequest", "OracleOptions", "PlanningRequest", "RouteConstraints"]
