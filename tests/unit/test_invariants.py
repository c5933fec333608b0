"""Unit tests for per-order invariant checks."""
from src.mp_common.enums import OrderStatus as OS
from src.mp_common.enums import PaymentStatus as PS
from src.mp_settlement.domain.invariants import check_order, check_totals
from src.mp_settlement.domain.state_machine import OrderState
from tests.fakes import make_order


class TestCheckOrder:
    def test_fresh_order_is_clean(self) -> None:
        assert check_order(make_order()) == []

    def test_total_must_equal_subtotal(self) -> None:
        violations = check_order(make_order(total=1))
        assert len(violations) == 1
        assert violations[0].startswith("INV-TOTAL")

    def test_lines_must_sum_to_subtotal(self) -> None:
        order = make_order()
        order.subtotal = order.total = 123
        violations = check_order(order)
        assert any(v.startswith("INV-ITEMS") for v in violations)

    def test_illegal_state_pair(self) -> None:
        order = make_order(status=OS.SHIPPED, payment_status=PS.PENDING)
        violations = check_order(order)
        assert any(v.startswith("INV-STATE") for v in violations)


class TestCheckTotals:
    def test_items_check_skipped_without_lines(self) -> None:
        state = OrderState(OS.PENDING, PS.PENDING)
        assert check_totals("o1", 500, 500, None, state) == []

    def test_cancelled_with_captured_payment_flagged(self) -> None:
        state = OrderState(OS.CANCELLED, PS.PAID)
        violations = check_totals("o1", 500, 500, 500, state)
        assert violations == ["INV-STATE violated: order o1 cancelled order cannot keep payment paid"]
