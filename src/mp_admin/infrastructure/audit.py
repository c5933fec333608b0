"""Admin override audit trail (admin_audit_log table).

Written in the same transaction as the override it records, so an audit row
exists if and only if the state change was committed.
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import AuditAction
from src.mp_settlement.domain.state_machine import OrderState

_INSERT_AUDIT_SQL = text("""
    INSERT INTO admin_audit_log (order_id, actor_id, action,
        from_status, to_status, from_payment_status, to_payment_status, created_at)
    VALUES (:order_id, :actor_id, :action,
        :from_status, :to_status, :from_payment_status, :to_payment_status, NOW())
""")

_LIST_FOR_ORDER_SQL = text("""
    SELECT id, order_id, actor_id, action, from_status, to_status,
           from_payment_status, to_payment_status, created_at
    FROM admin_audit_log
    WHERE order_id = :order_id
    ORDER BY id
""")


@dataclass(frozen=True)
class AuditEntry:
    id: int
    order_id: str
    actor_id: str
    action: str
    from_status: str
    to_status: str
    from_payment_status: str
    to_payment_status: str
    created_at: datetime


class AuditLog:
    async def record(
        self,
        order_id: str,
        actor_id: str,
        action: AuditAction,
        before: OrderState,
        after: OrderState,
        db: AsyncSession,
    ) -> None:
        await db.execute(
            _INSERT_AUDIT_SQL,
            {
                "order_id": order_id,
                "actor_id": actor_id,
                "action": action.value,
                "from_status": before.status.value,
                "to_status": after.status.value,
                "from_payment_status": before.payment_status.value,
                "to_payment_status": after.payment_status.value,
            },
        )

    async def list_for_order(self, order_id: str, db: AsyncSession) -> list[AuditEntry]:
        result = await db.execute(_LIST_FOR_ORDER_SQL, {"order_id": order_id})
        return [
            AuditEntry(
                id=row.id,
                order_id=row.order_id,
                actor_id=row.actor_id,
                action=row.action,
                from_status=row.from_status,
                to_status=row.to_status,
                from_payment_status=row.from_payment_status,
                to_payment_status=row.to_payment_status,
                created_at=row.created_at,
            )
            for row in result.fetchall()
        ]
