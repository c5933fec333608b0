# src/mp_settlement/application/service.py
"""Settlement Engine: the only writer of order / payment status, and the
single source of the escrow and commission figures every surface shows.

Writes: ``transition`` locks the order row (SELECT ... FOR UPDATE), plans the
target state with the pure state machine, and writes it. The caller owns the
transaction: it commits, then publishes the returned result to the feed.
Reads: aggregates are recomputed from one snapshot query on every call.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import OrderNotFoundError
from src.mp_order.domain.models import Order
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.domain.models import PaymentOutcome
from src.mp_settlement.domain.aggregates import (
    ReportRow,
    SettlementSummary,
    VendorSummary,
    summarize,
    summarize_by_vendor,
    to_report_row,
)
from src.mp_settlement.domain.commission import OrderSettlement, settle_order
from src.mp_settlement.domain.invariants import check_reconciliation, check_totals
from src.mp_settlement.domain.state_machine import OrderState, plan_outcome
from src.mp_settlement.infrastructure.feed import StatusFeed
from src.mp_settlement.infrastructure.sales_repository import SalesRepository

logger = logging.getLogger(__name__)

Planner = Callable[[str, OrderState], OrderState]


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    previous: OrderState

    @property
    def changed(self) -> bool:
        return self.previous != OrderState(self.order.status, self.order.payment_status)


class SettlementEngine:
    def __init__(
        self,
        repo: OrderRepository | None = None,
        sales: SalesRepository | None = None,
        feed: StatusFeed | None = None,
    ) -> None:
        self._repo = repo or OrderRepository()
        self._sales = sales or SalesRepository()
        self._feed = feed or StatusFeed()

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    async def transition(
        self, order_id: str, planner: Planner, db: AsyncSession, source: str
    ) -> TransitionResult:
        order = await self._repo.get_for_update(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)

        previous = OrderState(order.status, order.payment_status)
        target = planner(order_id, previous)
        if target == previous:
            logger.info(
                "Order %s already %s/%s, nothing to do (%s)",
                order_id, previous.status.value, previous.payment_status.value, source,
            )
            return TransitionResult(order=order, previous=previous)

        order.status = target.status
        order.payment_status = target.payment_status
        await self._repo.update_status(order, db)
        logger.info(
            "Order %s: %s/%s -> %s/%s (%s)",
            order_id,
            previous.status.value, previous.payment_status.value,
            target.status.value, target.payment_status.value,
            source,
        )
        return TransitionResult(order=order, previous=previous)

    async def apply_outcome(
        self, outcome: PaymentOutcome, db: AsyncSession
    ) -> TransitionResult:
        """Apply a normalized gateway outcome. Pending verdicts never change state."""
        return await self.transition(
            outcome.order_id,
            lambda oid, state: plan_outcome(oid, state, outcome.verdict),
            db,
            source=f"gateway:{outcome.raw_event_id or outcome.gateway_reference}",
        )

    async def publish(self, result: TransitionResult, source: str) -> None:
        """Push a committed change to observers. Call only after commit."""
        if result.changed:
            await self._feed.publish(result.order, source)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def settlement_for(self, order: Order, db: AsyncSession) -> OrderSettlement:
        rate_bps = await self._sales.get_rate_bps(order.vendor_id, db)
        return settle_order(order.total, rate_bps)

    async def get_summary(self, db: AsyncSession) -> SettlementSummary:
        summary = summarize(await self._sales.list_sales(db))
        check_reconciliation(summary)
        return summary

    async def get_vendor_summaries(self, db: AsyncSession) -> list[VendorSummary]:
        return summarize_by_vendor(await self._sales.list_sales(db))

    async def get_vendor_summary(self, vendor_id: str, db: AsyncSession) -> VendorSummary:
        summaries = summarize_by_vendor(await self._sales.list_sales(db, vendor_id=vendor_id))
        if summaries:
            return summaries[0]
        # No orders yet: zero figures at the vendor's current rate
        return VendorSummary(
            vendor_id=vendor_id,
            vendor_name=None,
            rate_bps=await self._sales.get_rate_bps(vendor_id, db),
        )

    async def export_rows(self, db: AsyncSession) -> list[ReportRow]:
        return [to_report_row(r) for r in await self._sales.list_sales(db)]

    async def verify_invariants(self, db: AsyncSession) -> list[str]:
        """Sweep every stored order plus the reconciliation identity."""
        violations: list[str] = []
        for row in await self._sales.list_order_totals(db):
            violations.extend(
                check_totals(row.order_id, row.total, row.subtotal, row.items_total, row.state)
            )
        violations.extend(check_reconciliation(summarize(await self._sales.list_sales(db))))
        return violations


_engine: SettlementEngine | None = None


def get_settlement_engine() -> SettlementEngine:
    """Module-level engine (stateless apart from its collaborators)."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = SettlementEngine()
    return _engine
