"""Shared constants for tests.

Usage:
    from tests.helpers import XRP_USDT_RESERVES, CONFIG_DIR
"""

from xroute.config.loader import DEFAULT_CONFIG_DIR

# Configuration documents shipped with the package
CONFIG_DIR = DEFAULT_CONFIG_DIR

# =============================================================================
# Catalog figures the scenario tests rely on (see config/data/liquidity.json)
# =============================================================================

XRP_USD_PRICE = 2.07
ETH_USD_PRICE = 3800.0
XRP_USDT_RESERVES = (1_000_000.0, 2_070_000.0)
XRPL_AMM_FEE = 0.003

# Mainnet issuers used by orderbook tests
ISSUERS = {
    "mainnet": {
        "USD": "rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B",
        "USDT": "rcvxE9PS9YBwxtGg1qNeewV6ZB3wGubZq",
        "EUR": "rhub8VRN55s94qWKDv6jmDy1pUykJzF3wq",
    }
}
