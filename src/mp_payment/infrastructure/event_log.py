"""Processed-webhook ledger (payment_events table).

The gateway delivers at least once, so every verified event id is recorded in
the same transaction as the state change it causes. A replayed id hits the
primary key and is reported as already seen.
"""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_payment.domain.models import GatewayEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO payment_events (id, event_type, order_id, gateway_reference, result, payload)
    VALUES (:id, :event_type, :order_id, :gateway_reference, :result, CAST(:payload AS JSONB))
    ON CONFLICT (id) DO NOTHING
    RETURNING id
""")

_MARK_RESULT_SQL = text("""
    UPDATE payment_events SET result = :result WHERE id = :id
""")

RESULT_APPLIED = "applied"
RESULT_IGNORED = "ignored"
RESULT_REJECTED = "rejected"


class PaymentEventLog:
    async def record(
        self, event: GatewayEvent, result: str, db: AsyncSession
    ) -> bool:
        """Insert the event; False means this id was processed before."""
        row = (
            await db.execute(
                _INSERT_EVENT_SQL,
                {
                    "id": event.id,
                    "event_type": event.type,
                    "order_id": event.order_id,
                    "gateway_reference": event.object_id,
                    "result": result,
                    "payload": json.dumps(event.payload),
                },
            )
        ).fetchone()
        return row is not None

    async def mark_result(self, event_id: str, result: str, db: AsyncSession) -> None:
        await db.execute(_MARK_RESULT_SQL, {"id": event_id, "result": result})
