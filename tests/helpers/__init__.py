"""Test helpers module for shared test utilities.

- constants: catalog figures, issuers and the shipped config directory
- factories: snapshot/hop/route/catalog factories and a scriptable provider
"""

from tests.helpers.constants import (
    CONFIG_DIR,
    ETH_USD_PRICE,
    ISSUERS,
    XRP_USD_PRICE,
    XRP_USDT_RESERVES,
    XRPL_AMM_FEE,
)
from tests.helpers.factories import (
    FakeProvider,
    make_catalog,
    make_hop,
    make_route,
    make_snapshot,
)

__all__ = [
    # Constants
    "CONFIG_DIR",
    "ETH_USD_PRICE",
    "ISSUERS",
    "XRP_USD_PRICE",
    "XRP_USDT_RESERVES",
    "XRPL_AMM_FEE",
    # Factories
    "FakeProvider",
    "make_catalog",
    "make_hop",
    "make_route",
    "make_snapshot",
]
