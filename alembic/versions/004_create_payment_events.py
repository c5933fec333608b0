"""004: create payment_events table (webhook idempotency log)

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_events (
            id                  VARCHAR(255)    PRIMARY KEY,
            event_type          VARCHAR(100)    NOT NULL,
            order_id            VARCHAR(64),
            gateway_reference   VARCHAR(255),
            result              VARCHAR(20)     NOT NULL,
            payload             JSONB           NOT NULL DEFAULT '{}',
            received_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payment_events_result CHECK (
                result IN ('applied', 'ignored', 'rejected')
            )
        );
    """)
    op.execute("CREATE INDEX idx_payment_events_order ON payment_events (order_id, received_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_events CASCADE;")
