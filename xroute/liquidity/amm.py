"""Constant-product swap math.

Pools follow x * y = k with the fee taken from the input amount:

    amount_out = (in * (1 - fee) * res_out) / (res_in + in * (1 - fee))

Amounts are decimal token units (floats), not integer base units.
"""

from dataclasses import dataclass

from xroute.liquidity.base import DepthSnapshot

# Applied when a pool document omits its fee
DEFAULT_POOL_FEE = 0.003


@dataclass(frozen=True)
class SwapQuote:
    """Result of quoting an exact-input swap against a snapshot."""

    amount_in: float
    amount_out: float
    spot_price: float
    fee_rate: float
    # Trade size as a fraction of the input reserve (0 when unknown)
    price_impact: float

    @property
    def execution_price(self) -> float | None:
        """Output per unit of input actually received."""
        if self.amount_in <= 0:
            return None
        return self.amount_out / self.amount_in


def get_amount_out(
    amount_in: float,
    reserve_in: float,
    reserve_out: float,
    fee: float = DEFAULT_POOL_FEE,
) -> float:
    """Output amount for an exact input using the constant product formula.

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee: Fee fraction taken from the input (0.003 for 0.3%)

    Returns:
        Output token amount (0 for non-positive inputs or reserves)
    """
    if amount_in <= 0:
        return 0.0
    if reserve_in <= 0 or reserve_out <= 0:
        return 0.0
    amount_in_with_fee = amount_in * (1 - fee)
    return (amount_in_with_fee * reserve_out) / (reserve_in + amount_in_with_fee)


def get_amount_in(
    amount_out: float,
    reserve_in: float,
    reserve_out: float,
    fee: float = DEFAULT_POOL_FEE,
) -> float | None:
    """Input required for an exact output, or None if the pool cannot supply it."""
    if amount_out <= 0:
        return 0.0
    if reserve_in <= 0 or amount_out >= reserve_out:
        return None
    return (reserve_in * amount_out) / ((reserve_out - amount_out) * (1 - fee))


def quote_swap(snapshot: DepthSnapshot, amount_in: float) -> SwapQuote | None:
    """Quote an exact-input swap of ``snapshot.base`` into ``snapshot.quote``.

    Snapshots with reserves use constant-product math. Snapshots with only
    a spot price are quoted linearly at spot less the venue fee.
    """
    if amount_in <= 0 or snapshot.spot_price <= 0:
        return None
    if snapshot.has_reserves:
        assert snapshot.reserve_base is not None and snapshot.reserve_quote is not None
        amount_out = get_amount_out(
            amount_in, snapshot.reserve_base, snapshot.reserve_quote, snapshot.fee_rate
        )
        impact = amount_in / snapshot.reserve_base
    else:
        amount_out = amount_in * snapshot.spot_price * (1 - snapshot.fee_rate)
        depth = snapshot.depth_for_input()
        impact = amount_in / depth if depth else 0.0
    if amount_out <= 0:
        return None
    return SwapQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        spot_price=snapshot.spot_price,
        fee_rate=snapshot.fee_rate,
        price_impact=impact,
    )


__all__ = ["DEFAULT_POOL_FEE", "SwapQuote", "get_amount_in", "get_amount_out", "quote_swap"]
