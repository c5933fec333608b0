"""005: create admin_audit_log table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE admin_audit_log (
            id                  BIGSERIAL       PRIMARY KEY,
            order_id            VARCHAR(64)     NOT NULL REFERENCES orders (id),
            actor_id            VARCHAR(64)     NOT NULL,
            action              VARCHAR(30)     NOT NULL,
            from_status         VARCHAR(20)     NOT NULL,
            to_status           VARCHAR(20)     NOT NULL,
            from_payment_status VARCHAR(30)     NOT NULL,
            to_payment_status   VARCHAR(30)     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_admin_audit_action CHECK (
                action IN ('SET_PAYMENT_STATUS', 'SET_ORDER_STATUS',
                           'FORCE_RELEASE', 'CANCEL_AND_REFUND')
            )
        );
    """)
    op.execute("CREATE INDEX idx_admin_audit_order ON admin_audit_log (order_id, id);")
    op.execute("CREATE INDEX idx_admin_audit_actor ON admin_audit_log (actor_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS admin_audit_log CASCADE;")
