"""Order / payment state machine.

OrderStatus and PaymentStatus move independently but every resulting pair
must satisfy the cross-constraints:

  processing|shipped|delivered  =>  payment in {paid, completed}
  cancelled                     =>  payment in {failed, refunded}
  refunded                      =>  order cancelled

Each ``plan_*`` function is pure: it takes the current state and returns the
target state, or raises TransitionConflictError without side effects. A plan
that returns the current state unchanged is a no-op (already satisfied).
"""
from dataclasses import dataclass

from src.mp_common.enums import (
    CAPTURED_PAYMENT_STATUSES,
    CLOSED_PAYMENT_STATUSES,
    FULFILLMENT_STATUSES,
    OrderStatus,
    PaymentStatus,
    Verdict,
)
from src.mp_common.errors import TransitionConflictError

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID, PaymentStatus.COMPLETED, PaymentStatus.FAILED}
    ),
    PaymentStatus.PENDING_VERIFICATION: frozenset(
        {PaymentStatus.COMPLETED, PaymentStatus.FAILED}
    ),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    # Buyer retried a declined card on the same hosted session
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID}),
    PaymentStatus.REFUNDED: frozenset(),
}


@dataclass(frozen=True)
class OrderState:
    status: OrderStatus
    payment_status: PaymentStatus


def consistency_violation(state: OrderState) -> str | None:
    """Return why a (status, payment_status) pair is illegal, or None if it is fine."""
    if state.status in FULFILLMENT_STATUSES and state.payment_status not in CAPTURED_PAYMENT_STATUSES:
        return (
            f"order cannot be {state.status.value} while payment is "
            f"{state.payment_status.value}"
        )
    if state.status == OrderStatus.CANCELLED and state.payment_status not in CLOSED_PAYMENT_STATUSES:
        return f"cancelled order cannot keep payment {state.payment_status.value}"
    if state.payment_status == PaymentStatus.REFUNDED and state.status != OrderStatus.CANCELLED:
        return "payment can only be refunded together with cancellation"
    return None


def _checked(order_id: str, state: OrderState) -> OrderState:
    reason = consistency_violation(state)
    if reason:
        raise TransitionConflictError(order_id, reason)
    return state


def plan_order_status(order_id: str, current: OrderState, target: OrderStatus) -> OrderState:
    if target == current.status:
        return current
    if target == OrderStatus.CANCELLED:
        return plan_cancellation(order_id, current)
    if target not in ORDER_TRANSITIONS[current.status]:
        raise TransitionConflictError(
            order_id, f"order cannot move from {current.status.value} to {target.value}"
        )
    return _checked(order_id, OrderState(target, current.payment_status))


def plan_payment_status(order_id: str, current: OrderState, target: PaymentStatus) -> OrderState:
    if target == current.payment_status:
        return current
    if target == PaymentStatus.REFUNDED:
        raise TransitionConflictError(
            order_id, "refunds are issued by cancelling the order"
        )
    if target not in PAYMENT_TRANSITIONS[current.payment_status]:
        raise TransitionConflictError(
            order_id,
            f"payment cannot move from {current.payment_status.value} to {target.value}",
        )
    return _checked(order_id, OrderState(current.status, target))


def plan_cancellation(order_id: str, current: OrderState) -> OrderState:
    """Cancel and close the payment in one step.

    Captured payments become refunded; anything not yet captured becomes failed.
    """
    if current.status == OrderStatus.CANCELLED:
        return current
    if OrderStatus.CANCELLED not in ORDER_TRANSITIONS[current.status]:
        raise TransitionConflictError(
            order_id, f"a {current.status.value} order cannot be cancelled"
        )
    if current.payment_status in CAPTURED_PAYMENT_STATUSES:
        payment = PaymentStatus.REFUNDED
    elif current.payment_status in CLOSED_PAYMENT_STATUSES:
        payment = current.payment_status
    else:
        payment = PaymentStatus.FAILED
    return _checked(order_id, OrderState(OrderStatus.CANCELLED, payment))


def plan_release(order_id: str, current: OrderState) -> OrderState:
    """Admin assertion that funds are released now: confirm payment, mark delivered.

    Skips the shipped step on purpose; the caller audits it.
    """
    if current.status == OrderStatus.CANCELLED:
        raise TransitionConflictError(order_id, "cannot release funds of a cancelled order")
    if current.payment_status in CAPTURED_PAYMENT_STATUSES:
        payment = current.payment_status
    elif current.payment_status == PaymentStatus.PENDING:
        payment = PaymentStatus.PAID
    elif current.payment_status == PaymentStatus.PENDING_VERIFICATION:
        payment = PaymentStatus.COMPLETED
    else:
        raise TransitionConflictError(
            order_id, f"cannot release funds with payment {current.payment_status.value}"
        )
    return _checked(order_id, OrderState(OrderStatus.DELIVERED, payment))


def plan_outcome(order_id: str, current: OrderState, verdict: Verdict) -> OrderState:
    """Apply a normalized gateway verdict."""
    if verdict == Verdict.PENDING:
        return current
    if verdict == Verdict.SUCCEEDED:
        if current.payment_status in CAPTURED_PAYMENT_STATUSES:
            return current
        if current.status == OrderStatus.CANCELLED:
            raise TransitionConflictError(
                order_id, "payment captured for a cancelled order"
            )
        return plan_payment_status(order_id, current, PaymentStatus.PAID)
    # Verdict.FAILED
    if current.payment_status == PaymentStatus.FAILED:
        return current
    if current.payment_status in CAPTURED_PAYMENT_STATUSES:
        raise TransitionConflictError(
            order_id, "failure reported for an already captured payment"
        )
    return plan_payment_status(order_id, current, PaymentStatus.FAILED)
