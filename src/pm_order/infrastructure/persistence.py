# src/pm_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation.

Orders and their line items are read in two queries (orders, then all of
their items via ANY(:order_ids)) instead of a row-multiplying JOIN.
"""
from collections import defaultdict
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_order.domain.models import Order, OrderItem, OrderUpdate

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (buyer_id, total_amount, status, escrow_status,
        shipping_address, tracking_number)
    VALUES (:buyer_id, :total_amount, :status, :escrow_status,
        :shipping_address, :tracking_number)
    RETURNING id, created_at, updated_at
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO order_items (order_id, product_id, seller_id, quantity, price_at_time)
    VALUES (:order_id, :product_id, :seller_id, :quantity, :price_at_time)
    RETURNING id
""")

# Fixed column set: status, escrow_status, tracking_number. Nothing else is updatable.
_UPDATE_ORDER_SQL = text("""
    UPDATE orders
    SET status = :status, escrow_status = :escrow_status,
        tracking_number = :tracking_number, updated_at = NOW()
    WHERE id = :id
""")

_SELECT_COLUMNS = """
    o.id, o.buyer_id, o.total_amount, o.status, o.escrow_status,
    o.shipping_address, o.tracking_number, o.created_at, o.updated_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o WHERE o.id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o WHERE o.id = :id
    FOR UPDATE
""")

_LIST_BY_BUYER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o
    WHERE o.buyer_id = :buyer_id
    ORDER BY o.created_at DESC, o.id DESC
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders o
    WHERE EXISTS (
        SELECT 1 FROM order_items i
        WHERE i.order_id = o.id AND i.seller_id = :seller_id
    )
    ORDER BY o.created_at DESC, o.id DESC
""")

_LIST_ITEMS_SQL = text("""
    SELECT i.id, i.order_id, i.product_id, i.seller_id, i.quantity, i.price_at_time,
           p.name AS product_name
    FROM order_items i
    LEFT JOIN products p ON p.id = i.product_id
    WHERE i.order_id = ANY(:order_ids)
    ORDER BY i.order_id, i.id
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object (items attached later)."""
    return Order(
        id=row.id,
        buyer_id=row.buyer_id,
        total_amount=row.total_amount,
        status=row.status,
        escrow_status=row.escrow_status,
        shipping_address=row.shipping_address,
        tracking_number=row.tracking_number,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_item(row: Any) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        product_id=row.product_id,
        seller_id=row.seller_id,
        quantity=row.quantity,
        price_at_time=row.price_at_time,
        product_name=row.product_name,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "buyer_id": order.buyer_id,
                "total_amount": order.total_amount,
                "status": order.status,
                "escrow_status": order.escrow_status,
                "shipping_address": order.shipping_address,
                "tracking_number": order.tracking_number,
            },
        )
        row = result.fetchone()
        order.id = row.id
        order.created_at = row.created_at
        order.updated_at = row.updated_at
        return order

    async def add_item(self, item: OrderItem, db: AsyncSession) -> OrderItem:
        result = await db.execute(
            _INSERT_ITEM_SQL,
            {
                "order_id": item.order_id,
                "product_id": item.product_id,
                "seller_id": item.seller_id,
                "quantity": item.quantity,
                "price_at_time": item.price_at_time,
            },
        )
        item.id = result.scalar_one()
        return item

    async def get_by_id(self, order_id: int, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        orders = await self._attach_items([_row_to_order(row)], db)
        return orders[0]

    async def get_for_update(self, order_id: int, db: AsyncSession) -> Order | None:
        """Lock the order row; items are read under the same transaction."""
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        orders = await self._attach_items([_row_to_order(row)], db)
        return orders[0]

    async def update(
        self, order_id: int, changes: OrderUpdate, db: AsyncSession
    ) -> None:
        await db.execute(
            _UPDATE_ORDER_SQL,
            {
                "id": order_id,
                "status": changes.status,
                "escrow_status": changes.escrow_status,
                "tracking_number": changes.tracking_number,
            },
        )

    async def list_by_buyer(self, buyer_id: int, db: AsyncSession) -> list[Order]:
        result = await db.execute(_LIST_BY_BUYER_SQL, {"buyer_id": buyer_id})
        orders = [_row_to_order(row) for row in result.fetchall()]
        return await self._attach_items(orders, db)

    async def list_by_seller(self, seller_id: int, db: AsyncSession) -> list[Order]:
        result = await db.execute(_LIST_BY_SELLER_SQL, {"seller_id": seller_id})
        orders = [_row_to_order(row) for row in result.fetchall()]
        return await self._attach_items(orders, db)

    async def _attach_items(self, orders: list[Order], db: AsyncSession) -> list[Order]:
        if not orders:
            return orders
        result = await db.execute(
            _LIST_ITEMS_SQL, {"order_ids": [o.id for o in orders]}
        )
        by_order: dict[int, list[OrderItem]] = defaultdict(list)
        for row in result.fetchall():
            by_order[row.order_id].append(_row_to_item(row))
        for order in orders:
            order.items = by_order.get(order.id, [])  # type: ignore[arg-type]
        return orders
