"""Chain, protocol and default-policy constants for the routing engine.

Centralizes the supported chain/protocol sets and the numeric defaults shared
by the oracle, fee model and slippage engine.
"""

# Chains the planner can build routes on
SUPPORTED_CHAINS = frozenset({"XRPL", "ETH", "BSC", "MATIC", "AVAX", "XDC", "SOL", "BTC", "XLM"})

# Chains that validate structurally but have no execution adapter yet
STUB_CHAINS = frozenset({"BTC", "SOL", "XLM"})

# Protocol name for cross-chain transfer hops
BRIDGE = "BRIDGE"

# Venues that settle against resting offers (flat network fee only)
ORDERBOOK_PROTOCOLS = frozenset({"XRPL_DEX", "STELLAR_DEX"})

# Venues that price against pool reserves
AMM_PROTOCOLS = frozenset(
    {
        "XRPL_AMM",
        "UNISWAP_V2",
        "UNISWAP_V3",
        "PANCAKESWAP",
        "QUICKSWAP",
        "SUSHISWAP",
        "TRADERJOE",
        "XSWAP",
    }
)

SUPPORTED_PROTOCOLS = ORDERBOOK_PROTOCOLS | AMM_PROTOCOLS | {BRIDGE}

# Quote symbols treated as USD-equivalent by price tables
STABLE_QUOTES = frozenset({"USD", "USDT", "USDC"})

# Reference currency for aggregate fees
REFERENCE_CURRENCY = "USD"

# Intermediate tokens tried for same-chain multi-hop routes
DEFAULT_INTERMEDIATE_TOKENS = ("USDT", "USDC", "USD")

# Native token -> home chain, used to infer a chain from a token symbol.
# Anything not listed (stablecoins, IOUs) defaults to XRPL.
TOKEN_HOME_CHAINS = {
    "XRP": "XRPL",
    "ETH": "ETH",
    "BNB": "BSC",
    "MATIC": "MATIC",
    "AVAX": "AVAX",
    "XDC": "XDC",
    "BTC": "BTC",
    "SOL": "SOL",
    "XLM": "XLM",
}
DEFAULT_CHAIN = "XRPL"

# Oracle defaults
DEFAULT_PROVIDER_TIMEOUT = 5.0  # seconds per external call
DEFAULT_PRICE_CACHE_TTL = 10.0  # seconds
NO_LIQUIDITY_PROVIDER = "NO_LIQUIDITY_PROVIDER"

# Planner returns the best route plus this many runners-up
MAX_ALTERNATIVE_ROUTES = 2

# Anchor routing: trades below LARGE go to the best price, below SPLIT to the
# deepest venue, anything larger is split across the two deepest venues
ROUTING_THRESHOLD_LARGE_USD = 1_000.0
ROUTING_THRESHOLD_SPLIT_USD = 25_000.0
MAX_ROUTING_DECISIONS = 100
MAX_QUOTE_CANDIDATES = 5
