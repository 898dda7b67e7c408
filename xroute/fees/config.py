"""Fee schedule for the fee model."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from xroute.constants import REFERENCE_CURRENCY

# Gas limits per operation type for EVM-style chains
DEFAULT_GAS_LIMITS: Mapping[str, int] = MappingProxyType(
    {"swap": 150_000, "bridge": 300_000, "approve": 50_000}
)

# Wei per gwei / gwei per native unit
GWEI_PER_NATIVE = 1e9


@dataclass(frozen=True)
class ChainFeeProfile:
    """Fee parameters for one chain.

    Ledger chains (XRPL, XLM) pay a flat ``network_fee`` per transaction.
    EVM-style chains pay ``gas_limit * gas_price``; ``gas_price_gwei`` is
    None for chains without gas.

    Attributes:
        currency: Native currency symbol
        network_fee: Flat per-transaction fee in native units
        gas_price_gwei: Gas price estimate in gwei
        gas_limits: Gas limit per operation type
        amm_fee: Default AMM fee rate on this chain
    """

    currency: str
    network_fee: float = 0.0
    gas_price_gwei: float | None = None
    gas_limits: Mapping[str, int] = field(default_factory=lambda: DEFAULT_GAS_LIMITS)
    amm_fee: float = 0.003

    @property
    def has_gas(self) -> bool:
        return self.gas_price_gwei is not None

    def gas_limit(self, tx_type: str) -> int:
        return self.gas_limits.get(tx_type, self.gas_limits["swap"])


@dataclass(frozen=True)
class BridgeFeeConfig:
    """Bridge fee: fixed amount plus a percentage, in the reference currency."""

    fixed_fee: float = 0.10
    percentage: float = 0.001


@dataclass(frozen=True)
class FeeSchedule:
    """Complete fee configuration.

    Attributes:
        chains: Per-chain fee profile
        bridge: Bridge fee parameters
        native_prices: Reference-currency price per native currency
        reference_currency: Currency of aggregate fee totals
    """

    chains: Mapping[str, ChainFeeProfile]
    bridge: BridgeFeeConfig = field(default_factory=BridgeFeeConfig)
    native_prices: Mapping[str, float] = field(default_factory=dict)
    reference_currency: str = REFERENCE_CURRENCY


DEFAULT_FEE_SCHEDULE = FeeSchedule(
    chains=MappingProxyType(
        {
            "XRPL": ChainFeeProfile(currency="XRP", network_fee=0.00001, amm_fee=0.003),
            "XLM": ChainFeeProfile(currency="XLM", network_fee=0.00001, amm_fee=0.003),
            "ETH": ChainFeeProfile(currency="ETH", gas_price_gwei=30, amm_fee=0.003),
            "BSC": ChainFeeProfile(currency="BNB", gas_price_gwei=5, amm_fee=0.0025),
            "MATIC": ChainFeeProfile(currency="MATIC", gas_price_gwei=50, amm_fee=0.003),
            "XDC": ChainFeeProfile(currency="XDC", gas_price_gwei=0.25, amm_fee=0.003),
            "AVAX": ChainFeeProfile(currency="AVAX", gas_price_gwei=25, amm_fee=0.003),
        }
    ),
    bridge=BridgeFeeConfig(fixed_fee=0.10, percentage=0.001),
    native_prices=MappingProxyType(
        {
            "XRP": 2.07,
            "ETH": 3800.0,
            "BNB": 600.0,
            "MATIC": 0.85,
            "XDC": 0.05,
            "BTC": 95000.0,
            "XLM": 0.095,
            "AVAX": 35.0,
        }
    ),
)
