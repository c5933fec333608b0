"""In-memory doubles for the order store and catalog, plus domain builders."""
import copy
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import OrderStatus, PaymentMethod, PaymentStatus
from src.mp_order.domain.models import CustomerInfo, Order, OrderItem
from src.mp_order.domain.repository import CatalogProduct
from src.mp_settlement.application.service import SettlementEngine


def make_customer(**kwargs: Any) -> CustomerInfo:
    return CustomerInfo(
        name=kwargs.get("name", "Awa Ndongo"),
        phone=kwargs.get("phone", "+237690000000"),
        address=kwargs.get("address", "Rue 1.234, Bonapriso"),
        city=kwargs.get("city", "Douala"),
        email=kwargs.get("email", "awa@example.com"),
        whatsapp=kwargs.get("whatsapp"),
    )


def make_order(**kwargs: Any) -> Order:
    order_id = kwargs.get("id", "1001")
    unit_price = kwargs.get("unit_price", 100000)
    quantity = kwargs.get("quantity", 2)
    vendor_id = kwargs.get("vendor_id", "vendor-1")
    items = kwargs.get(
        "items",
        [
            OrderItem(
                order_id=order_id,
                product_id="prod-1",
                product_name="Wax print dress",
                vendor_id=vendor_id,
                unit_price=unit_price,
                quantity=quantity,
            )
        ],
    )
    subtotal = sum(i.line_total for i in items)
    return Order(
        id=order_id,
        order_number=kwargs.get("order_number", f"ORD-20261019-{order_id[-6:].zfill(6)}"),
        vendor_id=vendor_id,
        customer=kwargs.get("customer", make_customer()),
        payment_method=kwargs.get("payment_method", PaymentMethod.CARD),
        items=items,
        buyer_id=kwargs.get("buyer_id", "buyer-1"),
        status=kwargs.get("status", OrderStatus.PENDING),
        payment_status=kwargs.get("payment_status", PaymentStatus.PENDING),
        payment_reference=kwargs.get("payment_reference"),
        checkout_url=kwargs.get("checkout_url"),
        checkout_attempts=kwargs.get("checkout_attempts", 0),
        subtotal=subtotal,
        total=kwargs.get("total", subtotal),
        currency="XAF",
        created_at=kwargs.get("created_at", datetime(2026, 10, 19, 9, 30, tzinfo=UTC)),
        updated_at=kwargs.get("updated_at", datetime(2026, 10, 19, 9, 30, tzinfo=UTC)),
    )


class InMemoryOrderRepository:
    """OrderRepositoryProtocol over a dict; returns copies like a real row load would."""

    def __init__(self, *orders: Order) -> None:
        self.orders: dict[str, Order] = {o.id: copy.deepcopy(o) for o in orders}
        self.locked: list[str] = []
        self.status_writes = 0

    async def save(self, order: Order, db: AsyncSession) -> None:
        self.orders[order.id] = copy.deepcopy(order)

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def get_for_update(self, order_id: str, db: AsyncSession) -> Order | None:
        self.locked.append(order_id)
        return await self.get_by_id(order_id, db)

    async def update_status(self, order: Order, db: AsyncSession) -> None:
        self.status_writes += 1
        stored = self.orders[order.id]
        stored.status = order.status
        stored.payment_status = order.payment_status

    async def update_checkout(self, order: Order, db: AsyncSession) -> None:
        stored = self.orders[order.id]
        stored.payment_reference = order.payment_reference
        stored.checkout_url = order.checkout_url
        stored.checkout_attempts = order.checkout_attempts

    async def list_by_buyer(
        self, buyer_id: str, limit: int, cursor_id: str | None, db: AsyncSession
    ) -> list[Order]:
        rows = [o for o in self.orders.values() if o.buyer_id == buyer_id]
        return self._page(rows, limit, cursor_id)

    async def list_filtered(
        self,
        status: str | None,
        payment_status: str | None,
        payment_method: str | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        rows = [
            o for o in self.orders.values()
            if (status is None or o.status.value == status)
            and (payment_status is None or o.payment_status.value == payment_status)
            and (payment_method is None or o.payment_method.value == payment_method)
        ]
        return self._page(rows, limit, cursor_id)

    @staticmethod
    def _page(rows: list[Order], limit: int, cursor_id: str | None) -> list[Order]:
        rows = sorted(rows, key=lambda o: int(o.id), reverse=True)
        if cursor_id is not None:
            rows = [o for o in rows if int(o.id) < int(cursor_id)]
        return [copy.deepcopy(o) for o in rows[:limit]]


class FakeCatalog:
    def __init__(self, *products: CatalogProduct) -> None:
        self.products = {p.id: p for p in products}
        self.calls = 0

    async def get_products(
        self, product_ids: list[str], db: AsyncSession
    ) -> dict[str, CatalogProduct]:
        self.calls += 1
        return {pid: self.products[pid] for pid in product_ids if pid in self.products}


def make_engine(repo: InMemoryOrderRepository, rate_bps: int = 1500) -> SettlementEngine:
    sales = AsyncMock()
    sales.get_rate_bps.return_value = rate_bps
    sales.list_sales.return_value = []
    sales.list_order_totals.return_value = []
    feed = AsyncMock()
    return SettlementEngine(repo=repo, sales=sales, feed=feed)
