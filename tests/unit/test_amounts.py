"""Unit tests for integer money arithmetic."""
from decimal import Decimal

import pytest

from src.mp_common.amounts import (
    calc_commission,
    format_amount,
    percent_to_bps,
    split_total,
)


class TestPercentToBps:
    def test_whole_percent(self) -> None:
        assert percent_to_bps(Decimal("15")) == 1500

    def test_two_decimals(self) -> None:
        assert percent_to_bps(Decimal("12.25")) == 1225

    def test_string_and_int(self) -> None:
        assert percent_to_bps("7.5") == 750
        assert percent_to_bps(10) == 1000

    def test_bounds_inclusive(self) -> None:
        assert percent_to_bps(0) == 0
        assert percent_to_bps(100) == 10000

    @pytest.mark.parametrize("rate", ["-1", "100.01", "250"])
    def test_out_of_range_rejected(self, rate: str) -> None:
        with pytest.raises(ValueError, match="between 0 and 100"):
            percent_to_bps(rate)

    def test_three_decimals_rejected(self) -> None:
        with pytest.raises(ValueError, match="more than 2 decimals"):
            percent_to_bps("12.345")

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid commission rate"):
            percent_to_bps("fifteen")


class TestCalcCommission:
    def test_scenario_order(self) -> None:
        assert calc_commission(200000, 1500) == 30000

    def test_round_half_up(self) -> None:
        # 5 * 10% = 0.5 -> 1
        assert calc_commission(5, 1000) == 1
        # 4 * 10% = 0.4 -> 0
        assert calc_commission(4, 1000) == 0
        # 15 * 10% = 1.5 -> 2
        assert calc_commission(15, 1000) == 2

    def test_zero_rate_and_zero_total(self) -> None:
        assert calc_commission(12345, 0) == 0
        assert calc_commission(0, 1500) == 0

    def test_full_rate(self) -> None:
        assert calc_commission(999, 10000) == 999

    def test_negative_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            calc_commission(-1, 1500)

    def test_rounded_per_order_not_per_batch(self) -> None:
        # three orders of 5 at 10%: each rounds to 1 -> 3, a batch rounding would give 2
        per_order = sum(calc_commission(5, 1000) for _ in range(3))
        assert per_order == 3


class TestSplitTotal:
    @pytest.mark.parametrize("total", [0, 1, 7, 99, 12345, 200000, 9_999_999])
    @pytest.mark.parametrize("bps", [0, 1, 333, 1000, 1250, 1500, 5000, 9999, 10000])
    def test_commission_plus_net_equals_total(self, total: int, bps: int) -> None:
        commission, net = split_total(total, bps)
        assert commission + net == total
        assert 0 <= commission <= total

    def test_scenario_split(self) -> None:
        assert split_total(200000, 1500) == (30000, 170000)


class TestFormatAmount:
    def test_thousands_separator(self) -> None:
        assert format_amount(200000) == "200,000 XAF"

    def test_negative(self) -> None:
        assert format_amount(-1500, "XAF") == "-1,500 XAF"
