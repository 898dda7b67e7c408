"""Fee estimation for routes.

Usage:
    from xroute.fees import FeeModel

    model = FeeModel(price_source=oracle.token_price_usd)
    route = model.annotate(route)
    route.fees.total_fee_reference
"""

from xroute.fees.calculator import BridgeFee, FeeModel, GasEstimate, PriceSource
from xroute.fees.config import (
    DEFAULT_FEE_SCHEDULE,
    DEFAULT_GAS_LIMITS,
    BridgeFeeConfig,
    ChainFeeProfile,
    FeeSchedule,
)

__all__ = [
    "BridgeFee",
    "BridgeFeeConfig",
    "ChainFeeProfile",
    "DEFAULT_FEE_SCHEDULE",
    "DEFAULT_GAS_LIMITS",
    "FeeModel",
    "FeeSchedule",
    "GasEstimate",
    "PriceSource",
]
