"""Price-feed-backed estimator for EVM chains.

Spot prices come from a CoinGecko-compatible ``/simple/price`` endpoint.
No on-chain depth is observed: depth is synthesized from popularity tiers
(popular pairs get the chain's configured USD depth, others a flat low
tier) and slippage follows the same utilization tiers as the slippage
engine.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from xroute.config.schema import EvmNetwork, PriceFeedConfig
from xroute.constants import STABLE_QUOTES
from xroute.errors import ProviderTransportError
from xroute.liquidity.base import CurvePoint, DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.liquidity.cache import PriceCache
from xroute.models.requests import OracleOptions
from xroute.slippage.engine import tier_slippage

logger = structlog.get_logger()

DEFAULT_CURVE_AMOUNTS = (100.0, 500.0, 1000.0, 5000.0, 10000.0)

# Used for chains missing from the network map
DEFAULT_POPULAR_DEPTH_USD = 5_000_000
DEFAULT_PROTOCOL = "UNISWAP_V2"
DEFAULT_AMM_FEE = 0.003


class EvmPriceFeedProvider(LiquidityProvider):
    """Live provider estimating EVM liquidity from an external price feed."""

    def __init__(
        self,
        name: str,
        *,
        feed: PriceFeedConfig,
        networks: dict[str, EvmNetwork] | None = None,
        cache: PriceCache | None = None,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.feed = feed
        self.networks = networks or {}
        self.cache = cache if cache is not None else PriceCache()
        self._client = client
        self._owns_client = client is None
        self._popular = frozenset(feed.popular_tokens)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def supported_tokens(self) -> frozenset[str]:
        return frozenset(self.feed.token_ids) | {"USD"}

    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        tokens = self.supported_tokens
        return base in tokens and quote in tokens

    async def fetch_usd_price(self, token: str) -> float | None:
        """USD price for a token, served from the shared cache when fresh."""
        if token == "USD":
            return 1.0
        token_id = self.feed.token_ids.get(token)
        if token_id is None:
            return None
        cache_key = (self.name, "usd", token)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("price_cache_hit", provider=self.name, token=token)
            return cached

        url = f"{self.feed.base_url.rstrip('/')}/simple/price"
        try:
            response = await self.client.get(url, params={"ids": token_id, "vs_currencies": "usd"})
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as err:
            raise ProviderTransportError(self.name, f"price request for {token} failed: {err}") from err
        except ValueError as err:
            raise ProviderTransportError(self.name, "price feed returned invalid JSON") from err

        price = body.get(token_id, {}).get("usd") if isinstance(body, dict) else None
        if price is None:
            logger.debug("price_feed_missing_token", provider=self.name, token=token)
            return None
        try:
            price = float(price)
        except (TypeError, ValueError) as err:
            raise ProviderTransportError(self.name, f"non-numeric price for {token}: {price!r}") from err
        if price <= 0:
            return None
        self.cache.set(cache_key, price)
        return price

    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        base_usd = await self.fetch_usd_price(base)
        if base_usd is None:
            return None
        if quote in STABLE_QUOTES:
            return base_usd
        quote_usd = await self.fetch_usd_price(quote)
        if quote_usd is None:
            return None
        return base_usd / quote_usd

    def depth_model(self, base: str, quote: str, chain: str | None) -> tuple[float, str]:
        """(depth in USD, depth category) for a pair on a chain."""
        if base in self._popular and quote in self._popular:
            network = self.networks.get(chain) if chain else None
            if network is not None:
                return network.depth_usd, network.depth_category
            return DEFAULT_POPULAR_DEPTH_USD, "medium"
        return self.feed.unpopular_depth_usd, "low"

    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        spot = await self.get_spot_price(base, quote, opts)
        if spot is None:
            return None
        base_usd = await self.fetch_usd_price(base)
        if not base_usd:
            return None
        depth_usd, category = self.depth_model(base, quote, opts.chain)
        # Depth expressed in base units so trade-size ratios compare like with like
        total = depth_usd / base_usd
        network = self.networks.get(opts.chain) if opts.chain else None
        return DepthSnapshot(
            base=base,
            quote=quote,
            chain=opts.chain or "ETH",
            protocol=network.protocol if network else DEFAULT_PROTOCOL,
            spot_price=spot,
            fee_rate=network.amm_fee if network else DEFAULT_AMM_FEE,
            total_liquidity=total,
            total_liquidity_reference=depth_usd,
            buy_liquidity=total * 0.5,
            sell_liquidity=total * 0.5,
            depth_category=category,
            source=self.name,
        )

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        depth = await self.get_depth(base, quote, opts)
        if depth is None or not depth.total_liquidity:
            return None
        points = []
        for amount in opts.amounts or DEFAULT_CURVE_AMOUNTS:
            slippage = tier_slippage(amount / depth.total_liquidity)
            execution_price = depth.spot_price * (1 - slippage)
            points.append(
                CurvePoint(
                    amount_in=amount,
                    amount_out=amount * execution_price,
                    slippage=slippage,
                    price_impact=slippage,
                    execution_price=execution_price,
                )
            )
        return SlippageCurve(
            base=base, quote=quote, spot_price=depth.spot_price, points=tuple(points), source=self.name
        )


__all__ = ["EvmPriceFeedProvider"]
