from decimal import Decimal

import pytest

from moomines.config import BoardConfig
from moomines.core.games.multiplier import MultiplierCurve, curved_multiplier


def test_no_progress_is_exactly_one():
    assert curved_multiplier(0) == Decimal("1.00")


def test_first_safe_tile_jumps_above_first_step():
    # 1.05 + 18.95 * (1/24) ** 2.2 = 1.0674...
    assert curved_multiplier(1) == Decimal("1.07")


def test_halfway_value():
    # 1.05 + 18.95 * 0.5 ** 2.2 = 5.1742...
    assert curved_multiplier(12) == Decimal("5.17")


def test_last_safe_tile_reaches_cap():
    assert curved_multiplier(24) == Decimal("20.00")


def test_curve_is_monotone_and_bounded():
    table = MultiplierCurve().table()
    assert len(table) == 25
    assert table == sorted(table)
    assert all(Decimal("1.00") <= m <= Decimal("20.00") for m in table)


def test_values_have_two_decimal_places():
    for m in MultiplierCurve().table():
        assert m == m.quantize(Decimal("0.01"))
        assert m.as_tuple().exponent == -2


@pytest.mark.parametrize("bad", [-1, 25, 100])
def test_out_of_range_progress_rejected(bad):
    with pytest.raises(ValueError):
        curved_multiplier(bad)


def test_smaller_board_still_ends_at_cap():
    curve = MultiplierCurve(BoardConfig(size=3))
    assert curve.safe_tiles == 8
    assert curve(0) == Decimal("1.00")
    assert curve(8) == Decimal("20.00")


def test_custom_cap_is_respected():
    curve = MultiplierCurve(BoardConfig(max_multiplier=10.0))
    assert curve(24) == Decimal("10.00")
    assert max(curve.table()) == Decimal("10.00")


def test_deterministic():
    curve = MultiplierCurve()
    assert curve.table() == MultiplierCurve().table()
