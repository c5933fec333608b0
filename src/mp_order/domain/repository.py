# src/mp_order/domain/repository.py
"""Repository Protocols: interface contracts for the order store and catalog."""
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_order.domain.models import Order


@dataclass(frozen=True)
class CatalogProduct:
    """What Order Intake needs from the catalog to snapshot a line."""

    id: str
    name: str
    price: int
    vendor_id: str | None
    image_url: str | None = None


class CatalogLookupProtocol(Protocol):
    async def get_products(
        self, product_ids: list[str], db: AsyncSession
    ) -> dict[str, CatalogProduct]: ...


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def get_for_update(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def update_status(self, order: Order, db: AsyncSession) -> None: ...

    async def update_checkout(self, order: Order, db: AsyncSession) -> None: ...

    async def list_by_buyer(
        self, buyer_id: str, limit: int, cursor_id: str | None, db: AsyncSession
    ) -> list[Order]: ...

    async def list_filtered(
        self,
        status: str | None,
        payment_status: str | None,
        payment_method: str | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...
