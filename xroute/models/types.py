"""Shared type definitions for routing models.

These enums and validators are used by the request models, the oracle and
the planner.
"""

import math
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from xroute.constants import DEFAULT_CHAIN, TOKEN_HOME_CHAINS


class LiquidityMode(str, Enum):
    """Which providers may answer an oracle query."""

    SIMULATED = "simulated"  # offline catalog only, deterministic
    LIVE = "live"  # catalog excluded: real data or failure
    AUTO = "auto"  # live first, catalog appended as safety net


class PathType(str, Enum):
    """Shape of a route."""

    DIRECT = "direct"
    MULTI_HOP = "multi-hop"


class TradeSide(str, Enum):
    """Whether the caller is buying or selling the output token."""

    BUY = "buy"
    SELL = "sell"


class ProviderKind(str, Enum):
    """Tag used by the priority policy to separate catalog from live data."""

    CATALOG = "catalog"
    LIVE = "live"


def normalize_symbol(symbol: str) -> str:
    """Normalize a token or chain symbol to upper case without whitespace.

    Args:
        symbol: Token or chain symbol (any case)

    Returns:
        Upper-cased, stripped symbol
    """
    return symbol.strip().upper()


def home_chain(token: str) -> str:
    """Home chain of a token; stablecoins and unknown tokens default to XRPL."""
    return TOKEN_HOME_CHAINS.get(normalize_symbol(token), DEFAULT_CHAIN)


def validate_positive_amount(value: Any) -> float:
    """Validate that a value is a finite, strictly positive number.

    Accepts ints, floats and numeric strings (amounts frequently arrive as
    strings from JSON clients).

    Raises:
        ValueError: If the value is not numeric, not finite, or not positive
    """
    if isinstance(value, bool):
        raise ValueError(f"Amount must be numeric, got {value!r}")
    try:
        amount = float(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Amount must be numeric: {value!r}") from err
    if not math.isfinite(amount):
        raise ValueError(f"Amount must be finite: {value!r}")
    if amount <= 0:
        raise ValueError(f"Amount must be positive: {value!r}")
    return amount


def is_finite_number(value: Any) -> bool:
    """True if value is a real int/float (not bool) and finite."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


# Token symbol: letters, digits, underscore, dot or dash (e.g. "USDT", "USDC.e")
TokenSymbol = Annotated[
    str,
    BeforeValidator(lambda v: normalize_symbol(v) if isinstance(v, str) else v),
    Field(pattern=r"^[A-Z0-9_.\-]{1,32}$"),
]

ChainName = Annotated[
    str,
    BeforeValidator(lambda v: normalize_symbol(v) if isinstance(v, str) else v),
    Field(pattern=r"^[A-Z0-9_]{1,16}$"),
]

PositiveAmount = Annotated[
    float,
    BeforeValidator(validate_positive_amount),
    Field(description="Strictly positive token amount"),
]
