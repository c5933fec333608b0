"""Settlement read-side queries.

Each read is a single SELECT joining orders with the vendor commission
profile, so the whole aggregate is computed from one consistent snapshot of
committed rows. Rates are read live (not snapshotted on the order): a rate
change applies to every recomputation, including unsettled orders.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.enums import OrderStatus, PaymentStatus
from src.mp_settlement.domain.aggregates import SaleRecord
from src.mp_settlement.domain.commission import resolve_rate_bps
from src.mp_settlement.domain.state_machine import OrderState

_SALES_SQL = text("""
    SELECT o.id, o.vendor_id, o.total, o.status, o.payment_status, o.created_at,
           v.shop_name, v.commission_rate
    FROM orders o
    LEFT JOIN vendors v ON v.id = o.vendor_id
    WHERE (CAST(:vendor_id AS TEXT) IS NULL OR o.vendor_id = :vendor_id)
    ORDER BY o.created_at DESC, o.id DESC
""")

_VENDOR_RATE_SQL = text("""
    SELECT commission_rate FROM vendors WHERE id = :vendor_id
""")

_ORDER_TOTALS_SQL = text("""
    SELECT o.id, o.total, o.subtotal, o.status, o.payment_status,
           COALESCE(SUM(i.line_total), 0) AS items_total
    FROM orders o
    LEFT JOIN order_items i ON i.order_id = o.id
    GROUP BY o.id, o.total, o.subtotal, o.status, o.payment_status
""")


@dataclass(frozen=True)
class OrderTotals:
    """One row of the invariant sweep."""

    order_id: str
    total: int
    subtotal: int
    items_total: int
    state: OrderState


def _row_to_record(row: Any, default_rate: Decimal) -> SaleRecord:
    return SaleRecord(
        order_id=row.id,
        vendor_id=row.vendor_id,
        vendor_name=row.shop_name,
        total=row.total,
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        rate_bps=resolve_rate_bps(row.commission_rate, default_rate),
        created_at=row.created_at,
    )


class SalesRepository:
    def __init__(self, default_rate: Decimal | None = None) -> None:
        self._default_rate = (
            default_rate if default_rate is not None else settings.DEFAULT_COMMISSION_RATE
        )

    async def list_sales(
        self, db: AsyncSession, vendor_id: str | None = None
    ) -> list[SaleRecord]:
        result = await db.execute(_SALES_SQL, {"vendor_id": vendor_id})
        return [_row_to_record(row, self._default_rate) for row in result.fetchall()]

    async def get_rate_bps(self, vendor_id: str, db: AsyncSession) -> int:
        result = await db.execute(_VENDOR_RATE_SQL, {"vendor_id": vendor_id})
        row = result.fetchone()
        return resolve_rate_bps(row.commission_rate if row else None, self._default_rate)

    async def list_order_totals(self, db: AsyncSession) -> list[OrderTotals]:
        result = await db.execute(_ORDER_TOTALS_SQL)
        return [
            OrderTotals(
                order_id=row.id,
                total=int(row.total),
                subtotal=int(row.subtotal),
                items_total=int(row.items_total),
                state=OrderState(OrderStatus(row.status), PaymentStatus(row.payment_status)),
            )
            for row in result.fetchall()
        ]
