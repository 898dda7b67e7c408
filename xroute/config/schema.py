"""Typed configuration structs.

The three JSON documents (provider registry, liquidity catalog, network map)
are parsed into these pydantic models. Keys in the documents are camelCase;
attributes are snake_case.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from xroute.constants import DEFAULT_PRICE_CACHE_TTL, DEFAULT_PROVIDER_TIMEOUT
from xroute.models.types import LiquidityMode, normalize_symbol

ProviderType = Literal["catalog", "xrpl_orderbook", "price_feed", "anchor"]


class _Document(BaseModel):
    model_config = {"populate_by_name": True, "frozen": True}


# =============================================================================
# Provider registry
# =============================================================================


class ProviderSpec(_Document):
    """One entry of the provider registry."""

    name: str
    type: ProviderType
    enabled: bool = True
    # Lower number is tried first
    priority: int = 50
    # Chains this provider answers for; empty means "any"
    chains: list[str] = Field(default_factory=list)
    # Timeout override for this provider's external calls (seconds)
    timeout: float | None = Field(default=None, gt=0)
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("chains")
    @classmethod
    def _upper_chains(cls, v: list[str]) -> list[str]:
        return [normalize_symbol(c) for c in v]


class ProviderRegistryConfig(_Document):
    """Provider registry plus oracle policy defaults."""

    default_mode: LiquidityMode = Field(default=LiquidityMode.AUTO, alias="defaultMode")
    provider_timeout: float = Field(
        default=DEFAULT_PROVIDER_TIMEOUT, alias="providerTimeout", gt=0
    )
    price_cache_ttl: float = Field(default=DEFAULT_PRICE_CACHE_TTL, alias="priceCacheTtl", ge=0)
    providers: list[ProviderSpec] = Field(default_factory=list)
    # Per-chain provider order, highest precedence in the priority policy
    chain_priority: dict[str, list[str]] = Field(default_factory=dict, alias="chainPriority")

    @field_validator("providers")
    @classmethod
    def _unique_names(cls, v: list[ProviderSpec]) -> list[ProviderSpec]:
        names = [p.name for p in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate provider names: {duplicates}")
        return v

    @field_validator("chain_priority")
    @classmethod
    def _upper_chain_keys(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        return {normalize_symbol(k): list(names) for k, names in v.items()}


# =============================================================================
# Offline liquidity catalog
# =============================================================================


class PoolSpec(_Document):
    """A constant-product pool. Reserves are in token0/token1 units."""

    token0: str
    token1: str
    protocol: str
    reserve0: float = Field(gt=0)
    reserve1: float = Field(gt=0)
    fee: float = Field(default=0.003, ge=0, lt=1)
    # token1 per token0; derived from reserves when omitted
    spot_price: float | None = Field(default=None, alias="spotPrice", gt=0)
    enabled: bool = True

    @field_validator("token0", "token1", "protocol")
    @classmethod
    def _upper(cls, v: str) -> str:
        return normalize_symbol(v)

    @property
    def resolved_spot_price(self) -> float:
        if self.spot_price is not None:
            return self.spot_price
        return self.reserve1 / self.reserve0


class BridgeSpec(_Document):
    """A cross-chain transfer route between two chains."""

    from_chain: str = Field(alias="fromChain")
    to_chain: str = Field(alias="toChain")
    supported_tokens: list[str] = Field(default_factory=list, alias="supportedTokens")
    enabled: bool = True
    estimated_time_seconds: int | None = Field(default=None, alias="estimatedTimeSeconds")

    @field_validator("from_chain", "to_chain")
    @classmethod
    def _upper(cls, v: str) -> str:
        return normalize_symbol(v)

    @field_validator("supported_tokens")
    @classmethod
    def _upper_tokens(cls, v: list[str]) -> list[str]:
        return [normalize_symbol(t) for t in v]


class SyntheticPair(_Document):
    """A fixed cross rate for a pair with no pool and no table route."""

    base: str
    quote: str
    spot_price: float = Field(alias="spotPrice", gt=0)

    @field_validator("base", "quote")
    @classmethod
    def _upper(cls, v: str) -> str:
        return normalize_symbol(v)


class LiquidityCatalog(_Document):
    """Offline catalog: pools per chain, bridges, synthetic pairs, USD price table."""

    pools: dict[str, list[PoolSpec]] = Field(default_factory=dict)
    bridges: list[BridgeSpec] = Field(default_factory=list)
    synthetic_pairs: list[SyntheticPair] = Field(default_factory=list, alias="syntheticPairs")
    # Token -> USD price
    price_oracles: dict[str, float] = Field(default_factory=dict, alias="priceOracles")

    @field_validator("pools")
    @classmethod
    def _upper_pool_chains(cls, v: dict[str, list[PoolSpec]]) -> dict[str, list[PoolSpec]]:
        return {normalize_symbol(k): pools for k, pools in v.items()}

    @field_validator("price_oracles")
    @classmethod
    def _upper_price_keys(cls, v: dict[str, float]) -> dict[str, float]:
        return {normalize_symbol(k): price for k, price in v.items()}


# =============================================================================
# Network / token-id mapping
# =============================================================================


class EvmNetwork(_Document):
    """An EVM-style chain known to the price-feed estimator."""

    chain_id: int = Field(alias="chainId")
    native_token: str = Field(alias="nativeToken")
    protocol: str
    # Popular-pair depth tier in USD
    depth_usd: float = Field(default=5_000_000, alias="depthUSD", gt=0)
    depth_category: str = Field(default="medium", alias="depthCategory")
    amm_fee: float = Field(default=0.003, alias="ammFee", ge=0, lt=1)


class PriceFeedConfig(_Document):
    base_url: str = Field(default="https://api.coingecko.com/api/v3", alias="baseUrl")
    # Token symbol -> price-feed asset id
    token_ids: dict[str, str] = Field(default_factory=dict, alias="tokenIds")
    popular_tokens: list[str] = Field(default_factory=list, alias="popularTokens")
    unpopular_depth_usd: float = Field(default=500_000, alias="unpopularDepthUSD", gt=0)


class XrplNetworkConfig(_Document):
    # Network name ("mainnet", "testnet") -> JSON-RPC endpoint
    endpoints: dict[str, str] = Field(default_factory=dict)
    # Network name -> currency -> issuer account
    issuers: dict[str, dict[str, str]] = Field(default_factory=dict)


class NetworkConfig(_Document):
    """Network and token-id mapping used by the live providers."""

    evm: dict[str, EvmNetwork] = Field(default_factory=dict)
    price_feed: PriceFeedConfig = Field(default_factory=PriceFeedConfig, alias="priceFeed")
    xrpl: XrplNetworkConfig = Field(default_factory=XrplNetworkConfig)

    @field_validator("evm")
    @classmethod
    def _upper_chain_keys(cls, v: dict[str, EvmNetwork]) -> dict[str, EvmNetwork]:
        return {normalize_symbol(k): net for k, net in v.items()}


__all__ = [
    "BridgeSpec",
    "EvmNetwork",
    "LiquidityCatalog",
    "NetworkConfig",
    "PoolSpec",
    "PriceFeedConfig",
    "ProviderRegistryConfig",
    "ProviderSpec",
    "ProviderType",
    "SyntheticPair",
    "XrplNetworkConfig",
]
