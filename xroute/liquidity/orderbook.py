"""XRPL orderbook provider.

Reads resting offers with the ``book_offers`` JSON-RPC method and derives
spot price, depth and slippage by walking the book. XRP amounts arrive as
strings of drops; issued currencies as ``{"currency", "issuer", "value"}``.

Book orientation: querying ``taker_pays=base, taker_gets=quote`` returns
offers a taker fills by selling base for quote. In each offer ``TakerPays``
is in base units and ``TakerGets`` in quote units, best price first.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from xroute.constants import STABLE_QUOTES
from xroute.errors import ProviderTransportError
from xroute.liquidity.base import CurvePoint, DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.models.requests import OracleOptions

logger = structlog.get_logger()

DROPS_PER_XRP = 1_000_000

SUPPORTED_TOKENS = frozenset({"XRP", "USD", "USDT", "USDC", "EUR", "BTC", "ETH"})

DEFAULT_CURVE_AMOUNTS = (100.0, 500.0, 1000.0, 5000.0, 10000.0)

# Offer counts requested per query kind
SPOT_LIMIT = 10
DEPTH_LIMIT = 50
CURVE_LIMIT = 100

DEFAULT_ENDPOINTS = {
    "mainnet": "https://xrplcluster.com/",
    "testnet": "https://s.altnet.rippletest.net:51234/",
}


def depth_category(total_liquidity: float) -> str:
    if total_liquidity > 1_000_000:
        return "high"
    if total_liquidity > 100_000:
        return "medium"
    return "low"


def currency_code(symbol: str) -> str:
    """Ledger currency code: 3-letter codes as-is, longer ones as 40-char hex."""
    if len(symbol) == 3:
        return symbol
    return symbol.encode("ascii").hex().upper().ljust(40, "0")


def parse_amount(amount: Any) -> float:
    """Decimal units from a ledger amount (drops string or issued-currency object)."""
    if isinstance(amount, str):
        return int(amount) / DROPS_PER_XRP
    if isinstance(amount, dict) and "value" in amount:
        return float(amount["value"])
    raise ValueError(f"Unrecognized ledger amount: {amount!r}")


def _funded(raw: dict[str, Any], funded_key: str, key: str) -> Any:
    """The funded amount when the ledger reports one, else the offer amount."""
    if funded_key in raw:
        return raw[funded_key]
    return raw[key]


@dataclass(frozen=True)
class Offer:
    """A resting offer, in the orientation it was requested."""

    pays: float  # base units the offer absorbs
    gets: float  # quote units it delivers

    @property
    def price(self) -> float:
        return self.gets / self.pays


@dataclass(frozen=True)
class BookWalk:
    amount_in: float
    amount_out: float
    filled: float

    @property
    def exhausted(self) -> bool:
        """True when the book ran out before the whole amount was filled."""
        return self.filled < self.amount_in

    @property
    def execution_price(self) -> float | None:
        # Priced on the requested amount; unfilled input earns nothing
        if self.amount_in <= 0 or self.amount_out <= 0:
            return None
        return self.amount_out / self.amount_in


def walk_book(offers: list[Offer], amount_in: float) -> BookWalk:
    """Fill an input amount against offers in order, partially filling the last."""
    remaining = amount_in
    total_out = 0.0
    for offer in offers:
        if remaining <= 0:
            break
        if remaining >= offer.pays:
            total_out += offer.gets
            remaining -= offer.pays
        else:
            total_out += offer.gets * (remaining / offer.pays)
            remaining = 0.0
    return BookWalk(amount_in=amount_in, amount_out=total_out, filled=amount_in - remaining)


class XrplOrderbookProvider(LiquidityProvider):
    """Live provider reading XRPL order books over JSON-RPC."""

    def __init__(
        self,
        name: str,
        *,
        network: str = "mainnet",
        endpoint: str | None = None,
        issuers: dict[str, dict[str, str]] | None = None,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, **kwargs)
        self.network = network
        self.endpoint = endpoint or DEFAULT_ENDPOINTS.get(network, DEFAULT_ENDPOINTS["mainnet"])
        self.issuers = (issuers or {}).get(network, {})
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def to_currency(self, symbol: str) -> dict[str, str] | None:
        """Ledger currency spec, or None if no issuer is known for the token."""
        if symbol == "XRP":
            return {"currency": "XRP"}
        issuer = self.issuers.get(symbol)
        if issuer is None:
            return None
        return {"currency": currency_code(symbol), "issuer": issuer}

    def supports(self, base: str, quote: str, opts: OracleOptions) -> bool:
        if base not in SUPPORTED_TOKENS or quote not in SUPPORTED_TOKENS:
            return False
        return self.to_currency(base) is not None and self.to_currency(quote) is not None

    async def _rpc(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {"method": method, "params": [params]}
        try:
            response = await self.client.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as err:
            raise ProviderTransportError(self.name, f"{method} failed: {err}") from err
        except ValueError as err:
            raise ProviderTransportError(self.name, f"{method} returned invalid JSON") from err
        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict):
            raise ProviderTransportError(self.name, f"{method} response has no result")
        if result.get("status") == "error":
            raise ProviderTransportError(
                self.name, f"{method} error: {result.get('error_message') or result.get('error')}"
            )
        return result

    async def fetch_offers(self, base: str, quote: str, limit: int) -> list[Offer]:
        """Offers for selling base into quote, best first."""
        taker_pays = self.to_currency(base)
        taker_gets = self.to_currency(quote)
        if taker_pays is None or taker_gets is None:
            return []
        result = await self._rpc(
            "book_offers",
            {"taker_pays": taker_pays, "taker_gets": taker_gets, "limit": limit},
        )
        offers = []
        for raw in result.get("offers", []):
            try:
                # Funded amounts reflect what the owner can actually deliver
                pays = parse_amount(_funded(raw, "taker_pays_funded", "TakerPays"))
                gets = parse_amount(_funded(raw, "taker_gets_funded", "TakerGets"))
            except (KeyError, ValueError) as err:
                raise ProviderTransportError(self.name, f"malformed offer: {err}") from err
            if pays > 0 and gets > 0:
                offers.append(Offer(pays=pays, gets=gets))
        return offers

    async def get_spot_price(self, base: str, quote: str, opts: OracleOptions) -> float | None:
        offers = await self.fetch_offers(base, quote, SPOT_LIMIT)
        if not offers:
            logger.debug("orderbook_empty", provider=self.name, base=base, quote=quote)
            return None
        return offers[0].price

    async def get_depth(self, base: str, quote: str, opts: OracleOptions) -> DepthSnapshot | None:
        forward, reverse = await asyncio.gather(
            self.fetch_offers(base, quote, DEPTH_LIMIT),
            self.fetch_offers(quote, base, DEPTH_LIMIT),
            return_exceptions=True,
        )
        # Both legs run to completion; the first failure is reported
        for outcome in (forward, reverse):
            if isinstance(outcome, BaseException):
                raise outcome
        if not forward:
            return None
        spot = forward[0].price
        # Both sides measured in base units
        sell_liquidity = sum(o.pays for o in forward)
        buy_liquidity = sum(o.gets for o in reverse)
        total = sell_liquidity + buy_liquidity
        reference = total * spot if quote in STABLE_QUOTES else None
        return DepthSnapshot(
            base=base,
            quote=quote,
            chain="XRPL",
            protocol="XRPL_DEX",
            spot_price=spot,
            total_liquidity=total,
            total_liquidity_reference=reference,
            buy_liquidity=buy_liquidity,
            sell_liquidity=sell_liquidity,
            depth_category=depth_category(total),
            source=self.name,
        )

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions
    ) -> SlippageCurve | None:
        offers = await self.fetch_offers(base, quote, CURVE_LIMIT)
        if not offers:
            return None
        spot = offers[0].price
        points = []
        for amount in opts.amounts or DEFAULT_CURVE_AMOUNTS:
            walk = walk_book(offers, amount)
            execution_price = walk.execution_price
            if execution_price is None:
                continue
            if walk.exhausted:
                logger.debug(
                    "orderbook_exhausted",
                    provider=self.name,
                    base=base,
                    quote=quote,
                    amount_in=amount,
                    filled=walk.filled,
                )
            impact = (spot - execution_price) / spot
            points.append(
                CurvePoint(
                    amount_in=amount,
                    amount_out=walk.amount_out,
                    slippage=abs(impact),
                    price_impact=impact,
                    execution_price=execution_price,
                )
            )
        return SlippageCurve(base=base, quote=quote, spot_price=spot, points=tuple(points), source=self.name)


__all__ = [
    "DEFAULT_ENDPOINTS",
    "Offer",
    "SUPPORTED_TOKENS",
    "XrplOrderbookProvider",
    "currency_code",
    "depth_category",
    "parse_amount",
    "walk_book",
]
