"""Order and aggregate invariant checks. Each returns a list of violation strings."""

import logging

from src.mp_order.domain.models import Order
from src.mp_settlement.domain.aggregates import SettlementSummary
from src.mp_settlement.domain.state_machine import OrderState, consistency_violation

logger = logging.getLogger(__name__)


def check_totals(
    order_id: str, total: int, subtotal: int, items_total: int | None, state: OrderState
) -> list[str]:
    """INV-TOTAL: total == subtotal
    INV-ITEMS: sum(unit_price * quantity) == subtotal (skipped when items_total is None)
    INV-STATE: (status, payment_status) satisfies the cross-constraints
    """
    violations: list[str] = []
    if total != subtotal:
        violations.append(
            f"INV-TOTAL violated: order {order_id} total={total} != subtotal={subtotal}"
        )
    if items_total is not None and items_total != subtotal:
        violations.append(
            f"INV-ITEMS violated: order {order_id} sum(lines)={items_total} "
            f"!= subtotal={subtotal}"
        )
    reason = consistency_violation(state)
    if reason:
        violations.append(f"INV-STATE violated: order {order_id} {reason}")
    for msg in violations:
        logger.error(msg)
    return violations


def check_order(order: Order) -> list[str]:
    return check_totals(
        order.id,
        order.total,
        order.subtotal,
        order.items_subtotal() if order.items else None,
        OrderState(order.status, order.payment_status),
    )


def check_reconciliation(summary: SettlementSummary) -> list[str]:
    """INV-RECON: in_escrow + payout_ready + released_commission == total_processed."""
    accounted = summary.in_escrow + summary.payout_ready + summary.released_commission
    if accounted != summary.total_processed:
        msg = (
            f"INV-RECON violated: in_escrow({summary.in_escrow}) + "
            f"payout_ready({summary.payout_ready}) + "
            f"released_commission({summary.released_commission}) = {accounted} "
            f"!= total_processed={summary.total_processed}"
        )
        logger.error(msg)
        return [msg]
    return []
