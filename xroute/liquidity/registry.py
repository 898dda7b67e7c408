"""Registry of provider implementations keyed by registry type tag.

The provider registry document lists providers by ``type``; this module
maps each tag to a factory so the oracle can build its provider set without
knowing the concrete classes.

Usage:
    registry = default_registry()
    providers = registry.build_all(context)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import httpx
import structlog

from xroute.config.loader import ConfigBundle, EnvSettings
from xroute.config.schema import ProviderSpec
from xroute.errors import ConfigError
from xroute.liquidity.anchors import VENUES, AnchorProvider
from xroute.liquidity.base import LiquidityProvider
from xroute.liquidity.cache import PriceCache
from xroute.liquidity.catalog import CatalogProvider
from xroute.liquidity.orderbook import XrplOrderbookProvider
from xroute.liquidity.price_feed import EvmPriceFeedProvider

logger = structlog.get_logger()


@dataclass(frozen=True)
class BuildContext:
    """Everything a factory may need to construct a provider."""

    bundle: ConfigBundle
    cache: PriceCache
    settings: EnvSettings = field(default_factory=EnvSettings)
    # Shared client for live providers; each provider owns its own when None
    http_client: httpx.AsyncClient | None = None

    def timeout_for(self, spec: ProviderSpec) -> float:
        if spec.timeout is not None:
            return spec.timeout
        if self.settings.provider_timeout is not None:
            return self.settings.provider_timeout
        return self.bundle.providers.provider_timeout


class ProviderFactory(Protocol):
    """Builds a provider from its registry entry."""

    def __call__(self, spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
        ...


def _common(spec: ProviderSpec, context: BuildContext) -> dict[str, object]:
    return {
        "chains": spec.chains,
        "priority": spec.priority,
        "timeout": context.timeout_for(spec),
        "enabled": spec.enabled,
    }


def build_catalog(spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
    return CatalogProvider(spec.name, context.bundle.catalog, **_common(spec, context))  # type: ignore[arg-type]


def build_orderbook(spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
    xrpl = context.bundle.networks.xrpl
    network = spec.options.get("network") or context.settings.xrpl_network
    endpoint = context.settings.xrpl_endpoint or spec.options.get("endpoint") or xrpl.endpoints.get(network)
    return XrplOrderbookProvider(
        spec.name,
        network=network,
        endpoint=endpoint,
        issuers=xrpl.issuers,
        client=context.http_client,
        **_common(spec, context),  # type: ignore[arg-type]
    )


def build_price_feed(spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
    networks = context.bundle.networks
    return EvmPriceFeedProvider(
        spec.name,
        feed=networks.price_feed,
        networks=networks.evm,
        cache=context.cache,
        client=context.http_client,
        **_common(spec, context),  # type: ignore[arg-type]
    )


def build_anchor(spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
    venue_name = spec.options.get("venue", spec.name)
    venue = VENUES.get(venue_name)
    if venue is None:
        raise ConfigError(f"Provider {spec.name!r} names unknown anchor venue {venue_name!r}")
    return AnchorProvider(spec.name, venue, **_common(spec, context))  # type: ignore[arg-type]


class ProviderRegistry:
    """Maps registry type tags to provider factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, type_name: str, factory: ProviderFactory) -> None:
        self._factories[type_name] = factory

    @property
    def types(self) -> list[str]:
        return sorted(self._factories)

    def build(self, spec: ProviderSpec, context: BuildContext) -> LiquidityProvider:
        """Build one provider.

        Raises:
            ConfigError: If no factory is registered for the spec's type
        """
        factory = self._factories.get(spec.type)
        if factory is None:
            raise ConfigError(f"No provider factory registered for type {spec.type!r}")
        return factory(spec, context)

    def build_all(self, context: BuildContext) -> list[LiquidityProvider]:
        """Build every provider in the registry document, in document order."""
        providers = [self.build(spec, context) for spec in context.bundle.providers.providers]
        logger.info(
            "providers_built",
            providers=[p.name for p in providers],
            disabled=[p.name for p in providers if not p.is_enabled],
        )
        return providers


def default_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register("catalog", build_catalog)
    registry.register("xrpl_orderbook", build_orderbook)
    registry.register("price_feed", build_price_feed)
    registry.register("anchor", build_anchor)
    return registry


__all__ = ["BuildContext", "ProviderFactory", "ProviderRegistry", "default_registry"]
