"""Per-hop and per-route fee estimation.

Fee rules by hop protocol:
- Orderbook venues (XRPL_DEX, STELLAR_DEX): the chain's flat network fee.
- XRPL_AMM: flat network fee plus ``amount_in * amm_fee``.
- Other AMMs on gas chains: ``gas_limit * gas_price`` (gwei -> native) plus
  ``amount_in * amm_fee``, the latter added to the reference total only.
- BRIDGE: ``fixed_fee + amount_in * percentage`` in the reference currency.

The route's native total only includes hops on the route's primary chain.
Fees on other chains are in other currencies and have no meaningful sum.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

import structlog

from xroute.constants import BRIDGE, ORDERBOOK_PROTOCOLS, STABLE_QUOTES
from xroute.fees.config import DEFAULT_FEE_SCHEDULE, GWEI_PER_NATIVE, ChainFeeProfile, FeeSchedule
from xroute.models.route import Fees, Hop, HopFee, Route

logger = structlog.get_logger()

# Token symbol -> reference-currency price, or None when unknown
PriceSource = Callable[[str], float | None]


@dataclass(frozen=True)
class GasEstimate:
    chain: str
    tx_type: str
    gas_limit: int
    gas_price_gwei: float
    gas_native: float
    gas_reference: float
    currency: str


@dataclass(frozen=True)
class BridgeFee:
    from_chain: str
    to_chain: str
    amount: float
    fixed_fee: float
    percentage: float
    total_fee_reference: float


class FeeModel:
    """Estimates hop and route fees from a FeeSchedule.

    Args:
        schedule: Chain profiles, bridge parameters and native prices
        price_source: Optional lookup for token prices (used to value AMM
            fees charged in the input token); native prices and stable
            quotes are used when it has no answer
    """

    def __init__(
        self,
        schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
        price_source: PriceSource | None = None,
    ) -> None:
        self.schedule = schedule
        self.price_source = price_source
        self._native_prices: dict[str, float] = dict(schedule.native_prices)

    # -------------------------------------------------------------------------
    # Prices
    # -------------------------------------------------------------------------

    def update_prices(self, prices: Mapping[str, float]) -> None:
        """Overlay native-currency prices (e.g. from a live feed)."""
        self._native_prices.update(prices)

    def native_price(self, currency: str) -> float | None:
        return self._native_prices.get(currency)

    def token_price(self, token: str) -> float | None:
        if self.price_source is not None:
            price = self.price_source(token)
            if price is not None:
                return price
        if token in self._native_prices:
            return self._native_prices[token]
        if token in STABLE_QUOTES:
            return 1.0
        return None

    def _to_reference(self, amount: float, token: str) -> float:
        # Unknown prices are taken at face value
        price = self.token_price(token)
        return amount * price if price is not None else amount

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def chain_fee_profile(self, chain: str) -> ChainFeeProfile | None:
        return self.schedule.chains.get(chain)

    def estimate_gas_cost(self, chain: str, tx_type: str = "swap") -> GasEstimate | None:
        """Gas cost of one transaction, or None for chains without gas."""
        profile = self.chain_fee_profile(chain)
        if profile is None or profile.gas_price_gwei is None:
            return None
        gas_limit = profile.gas_limit(tx_type)
        gas_native = gas_limit * profile.gas_price_gwei / GWEI_PER_NATIVE
        price = self.native_price(profile.currency) or 0.0
        return GasEstimate(
            chain=chain,
            tx_type=tx_type,
            gas_limit=gas_limit,
            gas_price_gwei=profile.gas_price_gwei,
            gas_native=gas_native,
            gas_reference=gas_native * price,
            currency=profile.currency,
        )

    def calculate_bridge_fee(self, from_chain: str, to_chain: str, amount: float) -> BridgeFee:
        bridge = self.schedule.bridge
        return BridgeFee(
            from_chain=from_chain,
            to_chain=to_chain,
            amount=amount,
            fixed_fee=bridge.fixed_fee,
            percentage=bridge.percentage,
            total_fee_reference=bridge.fixed_fee + amount * bridge.percentage,
        )

    # -------------------------------------------------------------------------
    # Hop and route fees
    # -------------------------------------------------------------------------

    def hop_fee(self, hop: Hop) -> HopFee:
        profile = self.chain_fee_profile(hop.chain)
        currency = profile.currency if profile else self.schedule.reference_currency

        def result(fee_type: str, native: float, reference: float, fee_currency: str = currency) -> HopFee:
            return HopFee(
                hop_index=hop.hop_index,
                chain=hop.chain,
                protocol=hop.protocol,
                fee_type=fee_type,
                fee_native=native,
                fee_reference=reference,
                currency=fee_currency,
            )

        if hop.protocol == BRIDGE:
            amount_reference = self._to_reference(hop.amount_in, hop.from_token)
            bridge_fee = self.calculate_bridge_fee(
                hop.chain, hop.dest_chain or hop.chain, amount_reference
            )
            return result("bridge", 0.0, bridge_fee.total_fee_reference, self.schedule.reference_currency)

        if profile is None:
            logger.debug("no_fee_profile", chain=hop.chain, protocol=hop.protocol)
            return result("unknown", 0.0, 0.0)

        native_price = self.native_price(profile.currency) or 0.0
        amm_rate = hop.pool.fee_rate if hop.pool is not None and hop.pool.fee_rate else profile.amm_fee

        if hop.protocol in ORDERBOOK_PROTOCOLS:
            return result("network", profile.network_fee, profile.network_fee * native_price)

        if not profile.has_gas:
            # Ledger-native AMM: network fee plus the pool fee
            amm_reference = self._to_reference(hop.amount_in * amm_rate, hop.from_token)
            amm_native = amm_reference / native_price if native_price else 0.0
            native = profile.network_fee + amm_native
            return result("amm+network", native, profile.network_fee * native_price + amm_reference)

        gas = self.estimate_gas_cost(hop.chain, "swap")
        assert gas is not None
        amm_reference = self._to_reference(hop.amount_in * amm_rate, hop.from_token)
        return result("gas+amm", gas.gas_native, gas.gas_reference + amm_reference)

    def route_fees(self, route: Route) -> Fees:
        primary_chain = route.chain
        profile = self.chain_fee_profile(primary_chain)
        breakdown = tuple(self.hop_fee(hop) for hop in route.hops)
        return Fees(
            total_fee_reference=sum(fee.fee_reference for fee in breakdown),
            total_fee_native=sum(fee.fee_native for fee in breakdown if fee.chain == primary_chain),
            native_currency=profile.currency if profile else "UNKNOWN",
            breakdown=breakdown,
            reference_currency=self.schedule.reference_currency,
        )

    def annotate(self, route: Route) -> Route:
        """Return a copy of the route carrying aggregate and per-hop fees."""
        return route.with_fees(self.route_fees(route))


__all__ = ["BridgeFee", "FeeModel", "GasEstimate", "PriceSource"]
