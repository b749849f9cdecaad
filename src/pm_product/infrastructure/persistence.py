"""ProductRepository — concrete implementation of ProductRepositoryProtocol.

Stock mutations use a single conditional UPDATE ... RETURNING, so the
check and the decrement are one atomic statement. 0 rows back means the
stock was short at the moment of the write.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_product.domain.models import Product

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = "id, seller_id, name, price, stock"

_GET_PRODUCT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM products
    WHERE id = :product_id
""")

_GET_PRODUCT_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM products
    WHERE id = :product_id
    FOR UPDATE
""")

_REDUCE_STOCK_SQL = text(f"""
    UPDATE products
    SET stock = stock - :quantity
    WHERE id = :product_id AND stock >= :quantity
    RETURNING {_SELECT_COLUMNS}
""")

_RESTORE_STOCK_SQL = text("""
    UPDATE products
    SET stock = stock + :quantity
    WHERE id = :product_id
""")


def _row_to_product(row: Any) -> Product:
    return Product(
        id=row.id,
        seller_id=row.seller_id,
        name=row.name,
        price=row.price,
        stock=row.stock,
    )


class ProductRepository:
    async def get_by_id(self, db: AsyncSession, product_id: int) -> Product | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"product_id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def get_for_update(
        self, db: AsyncSession, product_id: int
    ) -> Product | None:
        result = await db.execute(
            _GET_PRODUCT_FOR_UPDATE_SQL, {"product_id": product_id}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def reduce_stock(
        self, db: AsyncSession, product_id: int, quantity: int
    ) -> Product | None:
        result = await db.execute(
            _REDUCE_STOCK_SQL, {"product_id": product_id, "quantity": quantity}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def restore_stock(
        self, db: AsyncSession, product_id: int, quantity: int
    ) -> None:
        await db.execute(
            _RESTORE_STOCK_SQL, {"product_id": product_id, "quantity": quantity}
        )
