"""003: create order_items table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE order_items (
            id                  BIGSERIAL       PRIMARY KEY,
            order_id            VARCHAR(64)     NOT NULL REFERENCES orders (id),
            product_id          VARCHAR(64)     NOT NULL,
            product_name        VARCHAR(300)    NOT NULL,
            product_image       TEXT,
            vendor_id           VARCHAR(64)     NOT NULL,
            unit_price          BIGINT          NOT NULL,
            quantity            INT             NOT NULL,
            line_total          BIGINT          NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_order_items_unit_price CHECK (unit_price >= 0),
            CONSTRAINT ck_order_items_quantity   CHECK (quantity > 0),
            CONSTRAINT ck_order_items_line_total CHECK (line_total = unit_price * quantity)
        );
    """)
    op.execute("CREATE INDEX idx_order_items_order ON order_items (order_id);")
    op.execute("COMMENT ON TABLE order_items IS 'immutable price/vendor snapshot per cart line';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_items CASCADE;")
