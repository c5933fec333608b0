# src/mp_admin/application/service.py
"""Admin Override Surface and finance reporting.

Every override runs one Settlement Engine transition (row lock, plan, write),
writes an audit row when the state actually changed, and commits both
together. Re-asserting a state the order is already in is a no-op: nothing is
written and nothing is audited.
"""
import csv
import io
import logging
from dataclasses import asdict

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_admin.application.schemas import (
    AuditEntryResponse,
    InvariantReport,
    OverrideResponse,
    SettlementResponse,
    SummaryResponse,
    VendorSummaryResponse,
)
from src.mp_admin.infrastructure.audit import AuditLog
from src.mp_common.enums import AuditAction, OrderStatus, PaymentStatus
from src.mp_common.errors import OrderNotFoundError
from src.mp_gateway.auth.actor import Actor
from src.mp_order.application.schemas import OrderListResponse, OrderResponse
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_settlement.application.service import (
    Planner,
    SettlementEngine,
    TransitionResult,
    get_settlement_engine,
)
from src.mp_settlement.domain.state_machine import (
    OrderState,
    plan_cancellation,
    plan_order_status,
    plan_payment_status,
    plan_release,
)

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["id", "date", "vendor", "gross", "commission", "net", "status", "payment_status"]


class AdminService:
    def __init__(
        self,
        engine: SettlementEngine | None = None,
        repo: OrderRepositoryProtocol | None = None,
        audit: AuditLog | None = None,
    ) -> None:
        self._engine = engine
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._audit = audit or AuditLog()

    @property
    def engine(self) -> SettlementEngine:
        return self._engine or get_settlement_engine()

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    async def set_payment_status(
        self, order_id: str, target: PaymentStatus, actor: Actor, db: AsyncSession
    ) -> OverrideResponse:
        """Accept / reject a payment (e.g. after checking a manual reference)."""
        return await self._override(
            order_id,
            lambda oid, state: plan_payment_status(oid, state, target),
            AuditAction.SET_PAYMENT_STATUS,
            actor,
            db,
        )

    async def set_order_status(
        self, order_id: str, target: OrderStatus, actor: Actor, db: AsyncSession
    ) -> OverrideResponse:
        """Move fulfillment forward; cancelled closes the payment as cancel_and_refund does."""
        return await self._override(
            order_id,
            lambda oid, state: plan_order_status(oid, state, target),
            AuditAction.SET_ORDER_STATUS,
            actor,
            db,
        )

    async def force_release(
        self, order_id: str, actor: Actor, db: AsyncSession
    ) -> OverrideResponse:
        return await self._override(
            order_id, plan_release, AuditAction.FORCE_RELEASE, actor, db
        )

    async def cancel_and_refund(
        self, order_id: str, actor: Actor, db: AsyncSession
    ) -> OverrideResponse:
        return await self._override(
            order_id, plan_cancellation, AuditAction.CANCEL_AND_REFUND, actor, db
        )

    async def _override(
        self,
        order_id: str,
        planner: Planner,
        action: AuditAction,
        actor: Actor,
        db: AsyncSession,
    ) -> OverrideResponse:
        source = f"admin:{actor.id}:{action.value}"
        try:
            result = await self.engine.transition(order_id, planner, db, source)
            # a release is an explicit assertion about funds, recorded even as a no-op
            if result.changed or action == AuditAction.FORCE_RELEASE:
                after = OrderState(result.order.status, result.order.payment_status)
                await self._audit.record(order_id, actor.id, action, result.previous, after, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if result.changed:
            logger.info(
                "Admin %s applied %s to order %s: %s/%s -> %s/%s",
                actor.id, action.value, order_id,
                result.previous.status.value, result.previous.payment_status.value,
                result.order.status.value, result.order.payment_status.value,
            )
            await self.engine.publish(result, source)
        return await self._to_response(result, db)

    async def _to_response(self, result: TransitionResult, db: AsyncSession) -> OverrideResponse:
        settlement = await self.engine.settlement_for(result.order, db)
        return OverrideResponse(
            changed=result.changed,
            previous_status=result.previous.status.value,
            previous_payment_status=result.previous.payment_status.value,
            order=OrderResponse.from_domain(result.order),
            settlement=SettlementResponse.from_domain(settlement),
        )

    # ------------------------------------------------------------------
    # Order listing / audit
    # ------------------------------------------------------------------

    async def list_orders(
        self,
        status: OrderStatus | None,
        payment_status: PaymentStatus | None,
        payment_method: str | None,
        limit: int,
        cursor: str | None,
        db: AsyncSession,
    ) -> OrderListResponse:
        orders = await self._repo.list_filtered(
            status.value if status else None,
            payment_status.value if payment_status else None,
            payment_method,
            limit + 1,
            cursor,
            db,
        )
        has_more = len(orders) > limit
        if has_more:
            orders = orders[:limit]
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in orders],
            next_cursor=orders[-1].id if has_more else None,
            has_more=has_more,
        )

    async def get_audit_trail(self, order_id: str, db: AsyncSession) -> list[AuditEntryResponse]:
        if await self._repo.get_by_id(order_id, db) is None:
            raise OrderNotFoundError(order_id)
        entries = await self._audit.list_for_order(order_id, db)
        return [
            AuditEntryResponse(**{k: v for k, v in asdict(e).items() if k != "order_id"})
            for e in entries
        ]

    # ------------------------------------------------------------------
    # Finance
    # ------------------------------------------------------------------

    async def finance_summary(self, db: AsyncSession) -> SummaryResponse:
        summary = await self.engine.get_summary(db)
        return SummaryResponse.from_domain(summary, settings.CURRENCY)

    async def vendor_summaries(self, db: AsyncSession) -> list[VendorSummaryResponse]:
        return [
            VendorSummaryResponse.from_domain(v, settings.CURRENCY)
            for v in await self.engine.get_vendor_summaries(db)
        ]

    async def vendor_settlement(self, vendor_id: str, db: AsyncSession) -> VendorSummaryResponse:
        summary = await self.engine.get_vendor_summary(vendor_id, db)
        return VendorSummaryResponse.from_domain(summary, settings.CURRENCY)

    async def export_csv(self, db: AsyncSession) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(EXPORT_COLUMNS)
        for row in await self.engine.export_rows(db):
            writer.writerow([
                row.order_id, row.date, row.vendor, row.gross,
                row.commission, row.net, row.status, row.payment_status,
            ])
        return buf.getvalue()

    async def verify_invariants(self, db: AsyncSession) -> InvariantReport:
        violations = await self.engine.verify_invariants(db)
        return InvariantReport(ok=not violations, violations=violations)


_service: AdminService | None = None


def get_admin_service() -> AdminService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = AdminService()
    return _service
