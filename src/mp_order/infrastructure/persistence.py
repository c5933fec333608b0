# src/mp_order/infrastructure/persistence.py
"""OrderRepository: raw SQL persistence implementation.

Transaction ownership: the CALLER (application service) commits or rolls back.
get_for_update takes a row lock on the order; every status transition goes
through it so concurrent writers on one order serialize.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import OrderStatus, PaymentMethod, PaymentStatus
from src.mp_order.domain.models import CustomerInfo, Order, OrderItem

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, order_number, buyer_id, vendor_id,
        status, payment_status, payment_method, payment_reference,
        checkout_url, checkout_attempts, subtotal, total, currency,
        customer_name, customer_email, customer_phone, customer_whatsapp,
        delivery_address, delivery_city, created_at, updated_at)
    VALUES (:id, :order_number, :buyer_id, :vendor_id,
        :status, :payment_status, :payment_method, :payment_reference,
        :checkout_url, :checkout_attempts, :subtotal, :total, :currency,
        :customer_name, :customer_email, :customer_phone, :customer_whatsapp,
        :delivery_address, :delivery_city, :created_at, :updated_at)
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO order_items (order_id, product_id, product_name, product_image,
        vendor_id, unit_price, quantity, line_total)
    VALUES (:order_id, :product_id, :product_name, :product_image,
        :vendor_id, :unit_price, :quantity, :line_total)
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE orders
    SET status = :status, payment_status = :payment_status, updated_at = NOW()
    WHERE id = :id
""")

_UPDATE_CHECKOUT_SQL = text("""
    UPDATE orders
    SET payment_reference = :payment_reference, checkout_url = :checkout_url,
        checkout_attempts = :checkout_attempts, updated_at = NOW()
    WHERE id = :id
""")

_SELECT_COLUMNS = """
    id, order_number, buyer_id, vendor_id,
    status, payment_status, payment_method, payment_reference,
    checkout_url, checkout_attempts, subtotal, total, currency,
    customer_name, customer_email, customer_phone, customer_whatsapp,
    delivery_address, delivery_city, created_at, updated_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

_GET_ITEMS_SQL = text("""
    SELECT id, order_id, product_id, product_name, product_image,
           vendor_id, unit_price, quantity
    FROM order_items
    WHERE order_id = :order_id
    ORDER BY id
""")

# ids are decimal strings of varying width; compare them as numbers
_LIST_BY_BUYER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE buyer_id = :buyer_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR CAST(id AS BIGINT) < CAST(:cursor_id AS BIGINT))
    ORDER BY CAST(id AS BIGINT) DESC
    LIMIT :limit
""")

_LIST_FILTERED_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:payment_status AS TEXT) IS NULL OR payment_status = :payment_status)
      AND (CAST(:payment_method AS TEXT) IS NULL OR payment_method = :payment_method)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR CAST(id AS BIGINT) < CAST(:cursor_id AS BIGINT))
    ORDER BY CAST(id AS BIGINT) DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_item(row: Any) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        product_id=row.product_id,
        product_name=row.product_name,
        product_image=row.product_image,
        vendor_id=row.vendor_id,
        unit_price=row.unit_price,
        quantity=row.quantity,
    )


def _row_to_order(row: Any, items: list[OrderItem] | None = None) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        order_number=row.order_number,
        buyer_id=row.buyer_id,
        vendor_id=row.vendor_id,
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        payment_method=PaymentMethod(row.payment_method),
        payment_reference=row.payment_reference,
        checkout_url=row.checkout_url,
        checkout_attempts=row.checkout_attempts,
        subtotal=row.subtotal,
        total=row.total,
        currency=row.currency,
        customer=CustomerInfo(
            name=row.customer_name,
            email=row.customer_email,
            phone=row.customer_phone,
            whatsapp=row.customer_whatsapp,
            address=row.delivery_address,
            city=row.delivery_city,
        ),
        items=items or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "order_number": order.order_number,
                "buyer_id": order.buyer_id,
                "vendor_id": order.vendor_id,
                "status": order.status.value,
                "payment_status": order.payment_status.value,
                "payment_method": order.payment_method.value,
                "payment_reference": order.payment_reference,
                "checkout_url": order.checkout_url,
                "checkout_attempts": order.checkout_attempts,
                "subtotal": order.subtotal,
                "total": order.total,
                "currency": order.currency,
                "customer_name": order.customer.name,
                "customer_email": order.customer.email,
                "customer_phone": order.customer.phone,
                "customer_whatsapp": order.customer.whatsapp,
                "delivery_address": order.customer.address,
                "delivery_city": order.customer.city,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            },
        )
        for item in order.items:
            await db.execute(
                _INSERT_ITEM_SQL,
                {
                    "order_id": order.id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "product_image": item.product_image,
                    "vendor_id": item.vendor_id,
                    "unit_price": item.unit_price,
                    "quantity": item.quantity,
                    "line_total": item.line_total,
                },
            )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        return _row_to_order(row, await self._get_items(order_id, db))

    async def get_for_update(self, order_id: str, db: AsyncSession) -> Order | None:
        """Load an order holding its row lock until the caller's transaction ends."""
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        return _row_to_order(row, await self._get_items(order_id, db))

    async def update_status(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": order.id,
                "status": order.status.value,
                "payment_status": order.payment_status.value,
            },
        )

    async def update_checkout(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _UPDATE_CHECKOUT_SQL,
            {
                "id": order.id,
                "payment_reference": order.payment_reference,
                "checkout_url": order.checkout_url,
                "checkout_attempts": order.checkout_attempts,
            },
        )

    async def list_by_buyer(
        self, buyer_id: str, limit: int, cursor_id: str | None, db: AsyncSession
    ) -> list[Order]:
        result = await db.execute(
            _LIST_BY_BUYER_SQL,
            {"buyer_id": buyer_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_filtered(
        self,
        status: str | None,
        payment_status: str | None,
        payment_method: str | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_FILTERED_SQL,
            {
                "status": status,
                "payment_status": payment_status,
                "payment_method": payment_method,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def _get_items(self, order_id: str, db: AsyncSession) -> list[OrderItem]:
        result = await db.execute(_GET_ITEMS_SQL, {"order_id": order_id})
        return [_row_to_item(row) for row in result.fetchall()]
