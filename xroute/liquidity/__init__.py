"""Liquidity providers and the oracle that arbitrates between them."""

from xroute.liquidity.anchors import VENUES, AnchorProvider, AnchorVenue
from xroute.liquidity.base import CurvePoint, DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.liquidity.cache import PriceCache
from xroute.liquidity.catalog import CatalogProvider, LiquidityCheck
from xroute.liquidity.oracle import LiquidityOracle, ProviderAttempt, ProviderResult
from xroute.liquidity.orderbook import XrplOrderbookProvider
from xroute.liquidity.price_feed import EvmPriceFeedProvider
from xroute.liquidity.registry import BuildContext, ProviderRegistry, default_registry

__all__ = [
    "AnchorProvider",
    "AnchorVenue",
    "BuildContext",
    "CatalogProvider",
    "CurvePoint",
    "DepthSnapshot",
    "EvmPriceFeedProvider",
    "LiquidityCheck",
    "LiquidityOracle",
    "LiquidityProvider",
    "PriceCache",
    "ProviderAttempt",
    "ProviderRegistry",
    "ProviderResult",
    "SlippageCurve",
    "VENUES",
    "XrplOrderbookProvider",
    "default_registry",
]
