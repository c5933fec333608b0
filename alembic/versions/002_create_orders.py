"""002: create orders table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            order_number        VARCHAR(32)     NOT NULL,
            buyer_id            VARCHAR(64),
            vendor_id           VARCHAR(64)     NOT NULL REFERENCES vendors (id),
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_status      VARCHAR(30)     NOT NULL DEFAULT 'pending',
            payment_method      VARCHAR(20)     NOT NULL,
            payment_reference   VARCHAR(255),
            checkout_url        TEXT,
            checkout_attempts   INT             NOT NULL DEFAULT 0,
            subtotal            BIGINT          NOT NULL,
            total               BIGINT          NOT NULL,
            currency            VARCHAR(3)      NOT NULL DEFAULT 'XAF',
            customer_name       VARCHAR(200)    NOT NULL,
            customer_email      VARCHAR(255),
            customer_phone      VARCHAR(50)     NOT NULL,
            customer_whatsapp   VARCHAR(50),
            delivery_address    TEXT            NOT NULL,
            delivery_city       VARCHAR(100)    NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number   UNIQUE (order_number),
            CONSTRAINT ck_orders_id_numeric     CHECK (id ~ '^[0-9]{1,19}$'),
            CONSTRAINT ck_orders_status         CHECK (
                status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')
            ),
            CONSTRAINT ck_orders_payment_status CHECK (
                payment_status IN ('pending', 'pending_verification', 'paid',
                                   'completed', 'failed', 'refunded')
            ),
            CONSTRAINT ck_orders_payment_method CHECK (
                payment_method IN ('card', 'paypal', 'orange_money', 'mtn_momo', 'binance')
            ),
            CONSTRAINT ck_orders_amounts        CHECK (subtotal >= 0 AND total = subtotal),
            CONSTRAINT ck_orders_attempts       CHECK (checkout_attempts >= 0),
            CONSTRAINT ck_orders_fulfillment_paid CHECK (
                status NOT IN ('processing', 'shipped', 'delivered')
                OR payment_status IN ('paid', 'completed')
            ),
            CONSTRAINT ck_orders_cancelled_closed CHECK (
                status <> 'cancelled' OR payment_status IN ('failed', 'refunded')
            ),
            CONSTRAINT ck_orders_refund_cancelled CHECK (
                payment_status <> 'refunded' OR status = 'cancelled'
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_orders_buyer ON orders (buyer_id, (CAST(id AS BIGINT)) DESC) "
        "WHERE buyer_id IS NOT NULL;"
    )
    op.execute("CREATE INDEX idx_orders_id_num ON orders ((CAST(id AS BIGINT)) DESC);")
    op.execute("CREATE INDEX idx_orders_vendor ON orders (vendor_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_status ON orders (status, payment_status);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE orders IS 'one purchase; status pair mutated only by the settlement engine';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
