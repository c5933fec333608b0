"""Read-only catalog lookup used by Order Intake.

The catalog context owns the products table; checkout only reads the current
price, name, image and owning vendor of each cart line to snapshot them.
"""
from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_order.domain.repository import CatalogProduct

_GET_PRODUCTS_SQL = text("""
    SELECT id, name, price, vendor_id, image_url
    FROM products
    WHERE id IN :ids AND is_active
""").bindparams(bindparam("ids", expanding=True))


class CatalogLookup:
    async def get_products(
        self, product_ids: list[str], db: AsyncSession
    ) -> dict[str, CatalogProduct]:
        if not product_ids:
            return {}
        result = await db.execute(_GET_PRODUCTS_SQL, {"ids": list(set(product_ids))})
        return {
            row.id: CatalogProduct(
                id=row.id,
                name=row.name,
                price=row.price,
                vendor_id=row.vendor_id,
                image_url=row.image_url,
            )
            for row in result.fetchall()
        }
