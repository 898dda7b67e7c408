"""Tests for constant-product swap math."""

import pytest

from xroute.liquidity.amm import get_amount_in, get_amount_out, quote_swap
from tests.helpers import make_snapshot


class TestGetAmountOut:
    """Tests for get_amount_out."""

    def test_basic(self):
        """Output follows (x + dx(1-f))(y - dy) = xy."""
        out = get_amount_out(100, 1_000_000, 2_070_000, 0.003)
        expected = 2_070_000 * 100 * 0.997 / (1_000_000 + 100 * 0.997)
        assert out == pytest.approx(expected)

    def test_never_exceeds_reserve(self):
        """Huge inputs approach but never reach the output reserve."""
        assert get_amount_out(1e15, 1_000, 2_000, 0.003) < 2_000

    def test_zero_input(self):
        """Zero in, zero out."""
        assert get_amount_out(0, 1_000, 2_000, 0.003) == 0.0

    def test_amount_in_inverts_amount_out(self):
        """get_amount_in recovers the input for a given output."""
        out = get_amount_out(500, 1_000_000, 2_070_000, 0.003)
        assert get_amount_in(out, 1_000_000, 2_070_000, 0.003) == pytest.approx(500)

    def test_amount_in_beyond_reserve(self):
        """Asking for the whole output reserve is impossible."""
        assert get_amount_in(2_000, 1_000, 2_000, 0.003) is None


class TestQuoteSwap:
    """Tests for quote_swap over snapshots."""

    def test_reserves(self):
        """Snapshots with reserves are quoted on the curve."""
        quote = quote_swap(make_snapshot(), 100)
        assert quote is not None
        assert 206 < quote.amount_out < 207
        assert quote.price_impact == pytest.approx(100 / 1_000_000)
        assert quote.execution_price == pytest.approx(quote.amount_out / 100)

    def test_spot_only(self):
        """Snapshots without reserves are quoted at spot less fee."""
        snapshot = make_snapshot(reserve_base=None, reserve_quote=None, total_liquidity=10_000)
        quote = quote_swap(snapshot, 100)
        assert quote is not None
        assert quote.amount_out == pytest.approx(100 * 2.07 * 0.997)
        assert quote.price_impact == pytest.approx(0.01)

    def test_reversed_snapshot_reciprocal(self):
        """A reversed pool quotes at the reciprocal spot price."""
        snapshot = make_snapshot()
        assert snapshot.reversed().spot_price == pytest.approx(1 / snapshot.spot_price)
        quote = quote_swap(snapshot.reversed(), 207)
        assert quote is not None
        assert quote.amount_out == pytest.approx(100, rel=0.01)

    def test_rejects_non_positive_input(self):
        """Zero input has no quote."""
        assert quote_swap(make_snapshot(), 0) is None
