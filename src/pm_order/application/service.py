# src/pm_order/application/service.py
"""OrderService — checkout and order lifecycle.

create_order is all-or-nothing: product rows are locked (FOR UPDATE, in
ascending id order so concurrent checkouts cannot deadlock), stock is checked
and decremented, and the order plus its items are written in one
transaction. Stock is returned if the order is later CANCELLED.

update_order_status re-reads the order under its row lock before validating
the transition; the caller never supplies the current status.
"""
import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import EscrowStatus, OrderStatus
from src.pm_common.errors import (
    InsufficientStockError,
    InvalidStatusTransitionError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from src.pm_common.money import to_money
from src.pm_order.application.schemas import (
    CreateOrderRequest,
    OrderItemRequest,
    UpdateOrderStatusRequest,
)
from src.pm_order.domain.models import Order, OrderItem, OrderUpdate
from src.pm_order.domain.repository import OrderRepositoryProtocol
from src.pm_order.domain.state_machine import can_transition, escrow_status_after
from src.pm_order.infrastructure.persistence import OrderRepository
from src.pm_product.domain.models import Product
from src.pm_product.domain.repository import ProductRepositoryProtocol
from src.pm_product.infrastructure.persistence import ProductRepository

logger = logging.getLogger(__name__)


def _merge_lines(items: Iterable[OrderItemRequest]) -> dict[int, int]:
    """Collapse repeated product ids into one line each: {product_id: quantity}."""
    merged: dict[int, int] = {}
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return merged


class OrderService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        product_repo: ProductRepositoryProtocol | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._products: ProductRepositoryProtocol = product_repo or ProductRepository()

    async def create_order(
        self, db: AsyncSession, req: CreateOrderRequest, buyer_id: int
    ) -> Order:
        lines = _merge_lines(req.items)
        try:
            products: dict[int, Product] = {}
            items: list[OrderItem] = []
            total = Decimal("0")
            for product_id in sorted(lines):
                quantity = lines[product_id]
                product = await self._products.get_for_update(db, product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if product.stock < quantity:
                    raise InsufficientStockError(product.name, quantity, product.stock)

                price = to_money(product.price)
                products[product_id] = product
                items.append(
                    OrderItem(
                        id=None,
                        order_id=None,
                        product_id=product_id,
                        seller_id=product.seller_id,
                        quantity=quantity,
                        price_at_time=price,
                        product_name=product.name,
                    )
                )
                total += price * quantity

            order = await self._orders.save(
                Order(
                    id=None,
                    buyer_id=buyer_id,
                    total_amount=to_money(total),
                    status=OrderStatus.PENDING_PAYMENT.value,
                    escrow_status=EscrowStatus.AWAITING_PAYMENT.value,
                    shipping_address=req.shipping_address,
                ),
                db,
            )
            for item in items:
                item.order_id = order.id
                await self._orders.add_item(item, db)
                if await self._products.reduce_stock(db, item.product_id, item.quantity) is None:
                    product = products[item.product_id]
                    raise InsufficientStockError(product.name, item.quantity, product.stock)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order created: id=%s buyer=%s items=%d total=%s",
            order.id, buyer_id, len(items), order.total_amount,
        )
        return await self.get_order_by_id(db, order.id)  # type: ignore[arg-type]

    async def update_order_status(
        self,
        db: AsyncSession,
        order_id: int,
        req: UpdateOrderStatusRequest,
        actor_id: int | None = None,
    ) -> Order:
        """Apply one lifecycle transition.

        When actor_id is given, the buyer-or-seller access check runs under
        the same row lock as the transition.
        """
        new_status = OrderStatus(req.status).value
        try:
            order = await self._orders.get_for_update(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            if actor_id is not None and not order.is_visible_to(actor_id):
                raise OrderAccessDeniedError(order_id)
            if not can_transition(order.status, new_status):
                raise InvalidStatusTransitionError(order.status, new_status)

            changes = OrderUpdate(
                status=new_status,
                escrow_status=escrow_status_after(order.escrow_status, new_status),
                tracking_number=req.tracking_number or order.tracking_number,
            )
            await self._orders.update(order_id, changes, db)
            if new_status == OrderStatus.CANCELLED:
                for item in order.items:
                    await self._products.restore_stock(db, item.product_id, item.quantity)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order %s status: %s -> %s (escrow %s -> %s)",
            order_id, order.status, changes.status,
            order.escrow_status, changes.escrow_status,
        )
        return await self.get_order_by_id(db, order_id)

    async def get_order_by_id(self, db: AsyncSession, order_id: int) -> Order:
        order = await self._orders.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def get_order_for_user(
        self, db: AsyncSession, order_id: int, user_id: int
    ) -> Order:
        order = await self.get_order_by_id(db, order_id)
        if not order.is_visible_to(user_id):
            raise OrderAccessDeniedError(order_id)
        return order

    async def get_buyer_orders(self, db: AsyncSession, buyer_id: int) -> list[Order]:
        return await self._orders.list_by_buyer(buyer_id, db)

    async def get_seller_orders(self, db: AsyncSession, seller_id: int) -> list[Order]:
        return await self._orders.list_by_seller(seller_id, db)
