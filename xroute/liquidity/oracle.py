"""Liquidity oracle: the single entry point for price, depth and slippage queries.

The oracle owns the provider set, the priority policy and the shared price
cache. Every query runs the same loop: walk providers in priority order,
return the first non-None answer, record every attempt, and fall through to
a structured "no provider" result when the list is exhausted. Providers are
tried strictly one after another; they are never raced.

Priority policy, per query:

1. Base order: the per-chain table entry for ``opts.chain`` if one exists,
   else the explicit ``opts.providers`` list, else every provider by rank.
   Override lists are exclusive for live providers: only the named ones are
   considered.
2. Disabled providers and providers that do not serve ``opts.chain`` drop out.
3. The liquidity mode decides on catalog providers, whatever the override
   list says: ``simulated`` uses every catalog provider (by rank) and
   nothing else, ``live`` drops them, ``auto`` appends them all after the
   live providers.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from xroute.config.loader import ConfigBundle, ConfigStore, EnvSettings, load_env_settings
from xroute.config.schema import BridgeSpec, LiquidityCatalog
from xroute.errors import ConfigError, ProviderTransportError, RouteError
from xroute.liquidity.base import DepthSnapshot, LiquidityProvider, SlippageCurve
from xroute.liquidity.cache import PriceCache
from xroute.liquidity.catalog import find_bridge
from xroute.liquidity.registry import BuildContext, ProviderRegistry, default_registry
from xroute.models.requests import OracleOptions
from xroute.models.types import LiquidityMode, ProviderKind, normalize_symbol

logger = structlog.get_logger()

# Result key per query kind, as exposed in ``ProviderResult.to_dict``
QUERY_KEYS = {"spot_price": "price", "depth": "depth", "slippage_curve": "curve"}


@dataclass(frozen=True)
class ProviderAttempt:
    """One provider invocation made while answering a query."""

    provider: str
    outcome: str  # "answered", "empty", "timeout", "transport_error", "error"
    elapsed_ms: float
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "provider": self.provider,
            "outcome": self.outcome,
            "elapsedMs": round(self.elapsed_ms, 3),
        }
        if self.detail:
            data["detail"] = self.detail
        return data


@dataclass(frozen=True)
class ProviderResult:
    """Envelope returned by every oracle query.

    Attributes:
        query: "spot_price", "depth" or "slippage_curve"
        value: Answer (float, DepthSnapshot or SlippageCurve), or None
        provider: Name of the answering provider, None on exhaustion
        providers_tried: Providers invoked, in order
        attempts: Per-provider outcome and timing
        elapsed_ms: Wall time for the whole query
        mode: Liquidity mode the query ran under
        error: NO_LIQUIDITY_PROVIDER when no provider answered
    """

    query: str
    base: str
    quote: str
    value: Any
    provider: str | None
    providers_tried: tuple[str, ...]
    attempts: tuple[ProviderAttempt, ...]
    elapsed_ms: float
    mode: LiquidityMode
    chain: str | None = None
    error: RouteError | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    def to_dict(self) -> dict[str, Any]:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        data: dict[str, Any] = {
            "base": self.base,
            "quote": self.quote,
            "chain": self.chain,
            QUERY_KEYS[self.query]: value,
            "provider": self.provider,
            "providersTried": list(self.providers_tried),
            "attempts": [a.to_dict() for a in self.attempts],
            "timing": {"elapsedMs": round(self.elapsed_ms, 3)},
            "mode": self.mode.value,
        }
        if self.error is not None:
            data["error"] = self.error.value
        return data


@dataclass(frozen=True)
class OracleState:
    """Everything a query reads, swapped as one reference on reload."""

    providers: tuple[LiquidityProvider, ...]
    catalog: LiquidityCatalog
    chain_priority: dict[str, list[str]] = field(default_factory=dict)

    @property
    def by_name(self) -> dict[str, LiquidityProvider]:
        return {p.name: p for p in self.providers}


class LiquidityOracle:
    """Owns providers, priority policy and the shared price cache.

    One long-lived instance serves concurrent queries. Per-query data lives
    on the stack; the only shared mutable structures are the price cache
    (internally locked) and the state reference (replaced, never mutated).
    """

    def __init__(
        self,
        store: ConfigStore | None = None,
        *,
        mode: LiquidityMode | None = None,
        settings: EnvSettings | None = None,
        registry: ProviderRegistry | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings if settings is not None else load_env_settings()
        self.store: ConfigStore | None = (
            store if store is not None else ConfigStore(self.settings.config_dir)
        )
        self.registry = registry if registry is not None else default_registry()
        self._http_client = http_client
        bundle = self.store.bundle
        self.cache = PriceCache(ttl=self._cache_ttl(bundle))
        self._mode = mode or self.settings.liquidity_mode or bundle.providers.default_mode
        self._state = self._build_state(bundle)

    @classmethod
    def from_providers(
        cls,
        providers: list[LiquidityProvider],
        *,
        catalog: LiquidityCatalog | None = None,
        mode: LiquidityMode = LiquidityMode.AUTO,
        chain_priority: dict[str, list[str]] | None = None,
        cache: PriceCache | None = None,
    ) -> LiquidityOracle:
        """Build an oracle around an explicit provider list (no config store).

        ``catalog`` supplies bridges and the USD price table. An oracle built
        this way cannot ``reload``.
        """
        oracle = cls.__new__(cls)
        oracle.settings = EnvSettings()
        oracle.store = None
        oracle.registry = default_registry()
        oracle._http_client = None
        oracle.cache = cache if cache is not None else PriceCache()
        oracle._mode = mode
        oracle._state = OracleState(
            providers=tuple(providers),
            catalog=catalog if catalog is not None else LiquidityCatalog(),
            chain_priority={normalize_symbol(k): list(v) for k, v in (chain_priority or {}).items()},
        )
        return oracle

    def _cache_ttl(self, bundle: ConfigBundle) -> float:
        if self.settings.price_cache_ttl is not None:
            return self.settings.price_cache_ttl
        return bundle.providers.price_cache_ttl

    def _build_state(self, bundle: ConfigBundle) -> OracleState:
        context = BuildContext(
            bundle=bundle, cache=self.cache, settings=self.settings, http_client=self._http_client
        )
        return OracleState(
            providers=tuple(self.registry.build_all(context)),
            catalog=bundle.catalog,
            chain_priority=dict(bundle.providers.chain_priority),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> LiquidityMode:
        return self._mode

    def set_mode(self, mode: LiquidityMode | str) -> None:
        self._mode = LiquidityMode(mode)
        logger.info("liquidity_mode_set", mode=self._mode.value)

    @property
    def providers(self) -> tuple[LiquidityProvider, ...]:
        return self._state.providers

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._state.providers]

    def get_provider(self, name: str) -> LiquidityProvider | None:
        return self._state.by_name.get(name)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def reload(self) -> None:
        """Re-read configuration and rebuild providers, then swap atomically.

        The new bundle is committed to the store only once its providers are
        built, so the store and the oracle always agree.

        Raises:
            ConfigError: If the configuration cannot be reloaded; the current
                bundle and providers stay active
        """
        if self.store is None:
            raise ConfigError("Oracle was built without a config store")
        bundle = self.store.load()
        try:
            new_state = self._build_state(bundle)
        except ConfigError as err:
            logger.error("oracle_reload_failed", error=str(err))
            raise
        self.store.commit(bundle)
        old_state = self._state
        self._state = new_state
        self.cache.ttl = self._cache_ttl(bundle)
        self.cache.clear()
        logger.info("oracle_reloaded", providers=[p.name for p in new_state.providers])
        for provider in old_state.providers:
            await provider.aclose()

    async def aclose(self) -> None:
        for provider in self._state.providers:
            await provider.aclose()

    # -------------------------------------------------------------------------
    # Priority policy
    # -------------------------------------------------------------------------

    def get_provider_priority(
        self, opts: OracleOptions | None = None, mode: LiquidityMode | None = None
    ) -> list[LiquidityProvider]:
        """Providers in the order a query with these options would try them."""
        opts = opts or OracleOptions()
        state = self._state
        return self._priority(state, opts, mode or opts.mode or self._mode)

    def _priority(
        self, state: OracleState, opts: OracleOptions, mode: LiquidityMode
    ) -> list[LiquidityProvider]:
        ranked = sorted(
            enumerate(state.providers), key=lambda item: (item[1].priority, item[0])
        )
        by_rank = [p for _, p in ranked]
        by_name = state.by_name

        override = None
        if opts.chain and opts.chain in state.chain_priority:
            override = state.chain_priority[opts.chain]
        elif opts.providers:
            override = opts.providers
        if override is not None:
            base_order = [by_name[name] for name in dict.fromkeys(override) if name in by_name]
        else:
            base_order = by_rank

        def usable(p: LiquidityProvider) -> bool:
            return p.is_enabled and p.serves_chain(opts.chain)

        live = [p for p in base_order if p.kind != ProviderKind.CATALOG and usable(p)]
        catalogs = [p for p in by_rank if p.kind == ProviderKind.CATALOG and usable(p)]
        if mode == LiquidityMode.SIMULATED:
            return catalogs
        if mode == LiquidityMode.LIVE:
            return live
        return live + catalogs

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_spot_price(
        self, base: str, quote: str, opts: OracleOptions | None = None
    ) -> ProviderResult:
        return await self._query("spot_price", base, quote, opts, lambda p: p.get_spot_price)

    async def get_depth(
        self, base: str, quote: str, opts: OracleOptions | None = None
    ) -> ProviderResult:
        return await self._query("depth", base, quote, opts, lambda p: p.get_depth)

    async def get_slippage_curve(
        self, base: str, quote: str, opts: OracleOptions | None = None
    ) -> ProviderResult:
        return await self._query("slippage_curve", base, quote, opts, lambda p: p.get_slippage_curve)

    async def _query(
        self,
        query: str,
        base: str,
        quote: str,
        opts: OracleOptions | None,
        method: Callable[
            [LiquidityProvider],
            Callable[[str, str, OracleOptions], Awaitable[float | DepthSnapshot | SlippageCurve | None]],
        ],
    ) -> ProviderResult:
        opts = opts or OracleOptions()
        base = normalize_symbol(base)
        quote = normalize_symbol(quote)
        mode = opts.mode or self._mode
        state = self._state
        started = time.perf_counter()
        tried: list[str] = []
        attempts: list[ProviderAttempt] = []

        for provider in self._priority(state, opts, mode):
            # Unsupported pairs are skipped without counting as an attempt
            if not provider.supports(base, quote, opts):
                continue
            tried.append(provider.name)
            logger.debug("provider_attempt", query=query, provider=provider.name, base=base, quote=quote)
            call_started = time.perf_counter()
            outcome = "empty"
            detail = None
            value = None
            try:
                value = await asyncio.wait_for(
                    method(provider)(base, quote, opts), timeout=provider.timeout
                )
            except TimeoutError:
                outcome = "timeout"
                logger.warning(
                    "provider_timeout", query=query, provider=provider.name, timeout=provider.timeout
                )
            except ProviderTransportError as err:
                outcome, detail = "transport_error", err.detail
                logger.warning(
                    "provider_transport_error", query=query, provider=provider.name, error=err.detail
                )
            except Exception as err:
                # A provider bug must not take down the query; the next provider gets a turn
                outcome, detail = "error", repr(err)
                logger.exception("provider_error", query=query, provider=provider.name)
            elapsed = (time.perf_counter() - call_started) * 1000
            if value is not None:
                attempts.append(ProviderAttempt(provider.name, "answered", elapsed))
                total = (time.perf_counter() - started) * 1000
                logger.debug(
                    "provider_answered", query=query, provider=provider.name, elapsed_ms=round(total, 3)
                )
                return ProviderResult(
                    query=query,
                    base=base,
                    quote=quote,
                    value=value,
                    provider=provider.name,
                    providers_tried=tuple(tried),
                    attempts=tuple(attempts),
                    elapsed_ms=total,
                    mode=mode,
                    chain=opts.chain,
                )
            attempts.append(ProviderAttempt(provider.name, outcome, elapsed, detail))

        total = (time.perf_counter() - started) * 1000
        logger.info(
            "no_liquidity_provider",
            query=query,
            base=base,
            quote=quote,
            chain=opts.chain,
            mode=mode.value,
            providers_tried=tried,
        )
        return ProviderResult(
            query=query,
            base=base,
            quote=quote,
            value=None,
            provider=None,
            providers_tried=tuple(tried),
            attempts=tuple(attempts),
            elapsed_ms=total,
            mode=mode,
            chain=opts.chain,
            error=RouteError.NO_LIQUIDITY_PROVIDER,
        )

    # -------------------------------------------------------------------------
    # Static catalog data
    # -------------------------------------------------------------------------

    def get_bridge(self, from_chain: str, to_chain: str) -> BridgeSpec | None:
        """Bridge definition between two chains, from the catalog document."""
        return find_bridge(self._state.catalog, normalize_symbol(from_chain), normalize_symbol(to_chain))

    def bridge_tokens(self, from_chain: str, to_chain: str) -> list[str]:
        bridge = self.get_bridge(from_chain, to_chain)
        return list(bridge.supported_tokens) if bridge else []

    def token_price_usd(self, token: str) -> float | None:
        """USD price from the catalog price table."""
        return self._state.catalog.price_oracles.get(normalize_symbol(token))


__all__ = ["LiquidityOracle", "OracleState", "ProviderAttempt", "ProviderResult"]
