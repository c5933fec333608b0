"""001: create vendors and products tables, shared timestamp trigger

Both are owned by the storefront; the settlement service only reads them
(commission profile, catalog snapshot source).

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TABLE vendors (
            id                  VARCHAR(64)     PRIMARY KEY,
            shop_name           VARCHAR(200)    NOT NULL,
            commission_rate     NUMERIC(5, 2),
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_vendors_commission_rate CHECK (
                commission_rate IS NULL OR commission_rate BETWEEN 0 AND 100
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_vendors_updated_at
            BEFORE UPDATE ON vendors
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON COLUMN vendors.commission_rate IS 'percent; NULL = platform default';")

    op.execute("""
        CREATE TABLE products (
            id                  VARCHAR(64)     PRIMARY KEY,
            vendor_id           VARCHAR(64)     REFERENCES vendors (id),
            name                VARCHAR(300)    NOT NULL,
            price               BIGINT          NOT NULL,
            image_url           TEXT,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price CHECK (price >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_products_vendor ON products (vendor_id);")
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
    op.execute("DROP TABLE IF EXISTS vendors CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
