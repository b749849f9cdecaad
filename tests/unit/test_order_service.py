# tests/unit/test_order_service.py
"""Unit tests for OrderService — checkout and lifecycle, mocked repositories."""
from dataclasses import replace
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_common.errors import (
    InsufficientStockError,
    InvalidStatusTransitionError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from src.pm_order.application.schemas import (
    CreateOrderRequest,
    OrderItemRequest,
    UpdateOrderStatusRequest,
)
from src.pm_order.application.service import OrderService, _merge_lines
from src.pm_order.domain.models import Order, OrderItem, OrderUpdate
from src.pm_product.domain.models import Product

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_product(**kwargs) -> Product:
    defaults = dict(id=1, seller_id=50, name="Brake pad set", price=Decimal("25.00"), stock=5)
    defaults.update(kwargs)
    return Product(**defaults)


def _make_order(**kwargs) -> Order:
    defaults = dict(
        id=100, buyer_id=7, total_amount=Decimal("50.00"), status="PENDING_PAYMENT",
        escrow_status="AWAITING_PAYMENT", shipping_address="12 Dock Road",
        items=[
            OrderItem(
                id=1, order_id=100, product_id=1, seller_id=50, quantity=2,
                price_at_time=Decimal("25.00"),
            )
        ],
    )
    defaults.update(kwargs)
    return Order(**defaults)


def _make_product_repo(*products: Product) -> MagicMock:
    by_id = {p.id: p for p in products}
    repo = MagicMock()
    repo.get_for_update = AsyncMock(side_effect=lambda _db, pid: by_id.get(pid))
    repo.reduce_stock = AsyncMock(
        side_effect=lambda _db, pid, qty: replace(by_id[pid], stock=by_id[pid].stock - qty)
    )
    repo.restore_stock = AsyncMock()
    return repo


def _make_order_repo(stored: Order | None = None) -> MagicMock:
    repo = MagicMock()

    async def save(order: Order, _db) -> Order:
        order.id = 100
        return order

    async def add_item(item: OrderItem, _db) -> OrderItem:
        item.id = item.product_id * 10
        return item

    repo.save = AsyncMock(side_effect=save)
    repo.add_item = AsyncMock(side_effect=add_item)
    repo.get_by_id = AsyncMock(return_value=stored or _make_order())
    repo.get_for_update = AsyncMock(return_value=stored)
    repo.update = AsyncMock()
    repo.list_by_buyer = AsyncMock(return_value=[])
    repo.list_by_seller = AsyncMock(return_value=[])
    return repo


def _order_request(*lines: tuple[int, int]) -> CreateOrderRequest:
    return CreateOrderRequest(
        shipping_address="12 Dock Road",
        items=[OrderItemRequest(product_id=pid, quantity=qty) for pid, qty in lines],
    )


@pytest.fixture
def db():
    return AsyncMock()


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


class TestCreateOrder:
    async def test_total_and_stock_reduction(self, db) -> None:
        product_repo = _make_product_repo(_make_product())
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        await svc.create_order(db, _order_request((1, 2)), buyer_id=7)

        saved: Order = order_repo.save.call_args.args[0]
        assert saved.total_amount == Decimal("50.00")
        assert saved.status == "PENDING_PAYMENT"
        assert saved.escrow_status == "AWAITING_PAYMENT"
        assert saved.buyer_id == 7
        item: OrderItem = order_repo.add_item.call_args.args[0]
        assert item.order_id == 100
        assert item.price_at_time == Decimal("25.00")
        assert item.seller_id == 50
        product_repo.reduce_stock.assert_awaited_once_with(db, 1, 2)
        db.commit.assert_awaited_once()
        order_repo.get_by_id.assert_awaited_once_with(100, db)

    async def test_insufficient_stock_rolls_back_before_any_write(self, db) -> None:
        product_repo = _make_product_repo(_make_product(stock=1))
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        with pytest.raises(InsufficientStockError) as exc_info:
            await svc.create_order(db, _order_request((1, 2)), buyer_id=7)

        assert "Brake pad set" in exc_info.value.message
        assert "requested 2, available 1" in exc_info.value.message
        order_repo.save.assert_not_awaited()
        product_repo.reduce_stock.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_missing_product_raises_not_found(self, db) -> None:
        svc = OrderService(
            order_repo=_make_order_repo(), product_repo=_make_product_repo(_make_product())
        )

        with pytest.raises(ProductNotFoundError, match="Product with ID 9 not found"):
            await svc.create_order(db, _order_request((1, 1), (9, 1)), buyer_id=7)
        db.rollback.assert_awaited_once()

    async def test_one_short_line_aborts_whole_order(self, db) -> None:
        product_repo = _make_product_repo(
            _make_product(id=1), _make_product(id=2, name="Oil filter", stock=0)
        )
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        with pytest.raises(InsufficientStockError, match="Oil filter"):
            await svc.create_order(db, _order_request((1, 1), (2, 1)), buyer_id=7)

        order_repo.save.assert_not_awaited()
        order_repo.add_item.assert_not_awaited()

    async def test_stock_lost_at_write_time_rolls_back(self, db) -> None:
        product_repo = _make_product_repo(_make_product())
        product_repo.reduce_stock = AsyncMock(return_value=None)
        svc = OrderService(order_repo=_make_order_repo(), product_repo=product_repo)

        with pytest.raises(InsufficientStockError):
            await svc.create_order(db, _order_request((1, 2)), buyer_id=7)

        db.commit.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_products_locked_in_ascending_id_order(self, db) -> None:
        product_repo = _make_product_repo(
            _make_product(id=3), _make_product(id=1), _make_product(id=2)
        )
        svc = OrderService(order_repo=_make_order_repo(), product_repo=product_repo)

        await svc.create_order(db, _order_request((3, 1), (1, 1), (2, 1)), buyer_id=7)

        locked = [c.args[1] for c in product_repo.get_for_update.await_args_list]
        assert locked == [1, 2, 3]

    async def test_repeated_product_lines_are_merged(self, db) -> None:
        product_repo = _make_product_repo(_make_product(stock=3))
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        await svc.create_order(db, _order_request((1, 1), (1, 2)), buyer_id=7)

        order_repo.add_item.assert_awaited_once()
        assert order_repo.add_item.call_args.args[0].quantity == 3
        assert order_repo.save.call_args.args[0].total_amount == Decimal("75.00")

    async def test_multi_seller_total(self, db) -> None:
        product_repo = _make_product_repo(
            _make_product(id=1, price=Decimal("19.99")),
            _make_product(id=2, seller_id=51, price=Decimal("5.50")),
        )
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        await svc.create_order(db, _order_request((1, 3), (2, 2)), buyer_id=7)

        assert order_repo.save.call_args.args[0].total_amount == Decimal("70.97")
        sellers = {c.args[0].seller_id for c in order_repo.add_item.await_args_list}
        assert sellers == {50, 51}


def test_merge_lines_sums_quantities() -> None:
    lines = [
        OrderItemRequest(product_id=4, quantity=1),
        OrderItemRequest(product_id=2, quantity=5),
        OrderItemRequest(product_id=4, quantity=2),
    ]
    assert _merge_lines(lines) == {4: 3, 2: 5}


# ---------------------------------------------------------------------------
# update_order_status
# ---------------------------------------------------------------------------


class TestUpdateOrderStatus:
    async def test_valid_transition_holds_escrow(self, db) -> None:
        order_repo = _make_order_repo(stored=_make_order())
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        await svc.update_order_status(
            db, 100, UpdateOrderStatusRequest(status="PAYMENT_IN_ESCROW")
        )

        changes: OrderUpdate = order_repo.update.call_args.args[1]
        assert changes.status == "PAYMENT_IN_ESCROW"
        assert changes.escrow_status == "FUNDS_HELD"
        db.commit.assert_awaited_once()

    async def test_invalid_transition_rejected(self, db) -> None:
        order_repo = _make_order_repo(stored=_make_order())
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await svc.update_order_status(db, 100, UpdateOrderStatusRequest(status="SHIPPED"))

        assert exc_info.value.message == (
            "Invalid status transition: PENDING_PAYMENT -> SHIPPED"
        )
        order_repo.update.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_terminal_state_rejects_everything(self, db) -> None:
        order_repo = _make_order_repo(stored=_make_order(status="COMPLETED"))
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        with pytest.raises(InvalidStatusTransitionError):
            await svc.update_order_status(db, 100, UpdateOrderStatusRequest(status="DISPUTED"))

    async def test_missing_order(self, db) -> None:
        svc = OrderService(order_repo=_make_order_repo(stored=None), product_repo=MagicMock())

        with pytest.raises(OrderNotFoundError):
            await svc.update_order_status(db, 404, UpdateOrderStatusRequest(status="CANCELLED"))

    async def test_cancel_restores_stock(self, db) -> None:
        order_repo = _make_order_repo(stored=_make_order())
        product_repo = _make_product_repo()
        svc = OrderService(order_repo=order_repo, product_repo=product_repo)

        await svc.update_order_status(db, 100, UpdateOrderStatusRequest(status="CANCELLED"))

        product_repo.restore_stock.assert_awaited_once_with(db, 1, 2)
        changes: OrderUpdate = order_repo.update.call_args.args[1]
        assert changes.escrow_status == "AWAITING_PAYMENT"

    async def test_cancel_from_dispute_refunds_buyer(self, db) -> None:
        order_repo = _make_order_repo(
            stored=_make_order(status="DISPUTED", escrow_status="FUNDS_HELD")
        )
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        await svc.update_order_status(db, 100, UpdateOrderStatusRequest(status="CANCELLED"))

        assert order_repo.update.call_args.args[1].escrow_status == "REFUNDED_TO_BUYER"

    async def test_tracking_number_is_recorded_and_kept(self, db) -> None:
        order_repo = _make_order_repo(
            stored=_make_order(status="PAYMENT_IN_ESCROW", escrow_status="FUNDS_HELD")
        )
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        await svc.update_order_status(
            db, 100, UpdateOrderStatusRequest(status="SHIPPED", tracking_number="1Z999")
        )
        assert order_repo.update.call_args.args[1].tracking_number == "1Z999"

        order_repo.get_for_update = AsyncMock(
            return_value=_make_order(
                status="SHIPPED", escrow_status="FUNDS_HELD", tracking_number="1Z999"
            )
        )
        await svc.update_order_status(db, 100, UpdateOrderStatusRequest(status="DELIVERED"))
        assert order_repo.update.call_args.args[1].tracking_number == "1Z999"

    async def test_stranger_cannot_change_status(self, db) -> None:
        order_repo = _make_order_repo(stored=_make_order())
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        with pytest.raises(OrderAccessDeniedError):
            await svc.update_order_status(
                db, 100, UpdateOrderStatusRequest(status="CANCELLED"), actor_id=999
            )
        order_repo.update.assert_not_awaited()

    async def test_seller_of_a_line_may_change_status(self, db) -> None:
        order_repo = _make_order_repo(
            stored=_make_order(status="PAYMENT_IN_ESCROW", escrow_status="FUNDS_HELD")
        )
        svc = OrderService(order_repo=order_repo, product_repo=_make_product_repo())

        await svc.update_order_status(
            db, 100, UpdateOrderStatusRequest(status="SHIPPED"), actor_id=50
        )
        order_repo.update.assert_awaited_once()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    async def test_get_order_by_id_not_found(self, db) -> None:
        order_repo = _make_order_repo()
        order_repo.get_by_id = AsyncMock(return_value=None)
        svc = OrderService(order_repo=order_repo, product_repo=MagicMock())

        with pytest.raises(OrderNotFoundError, match="404"):
            await svc.get_order_by_id(db, 404)

    @pytest.mark.parametrize("user_id", [7, 50])
    async def test_buyer_and_seller_can_read(self, db, user_id: int) -> None:
        svc = OrderService(order_repo=_make_order_repo(), product_repo=MagicMock())
        order = await svc.get_order_for_user(db, 100, user_id)
        assert order.id == 100

    async def test_stranger_cannot_read(self, db) -> None:
        svc = OrderService(order_repo=_make_order_repo(), product_repo=MagicMock())
        with pytest.raises(OrderAccessDeniedError):
            await svc.get_order_for_user(db, 100, 999)

    async def test_list_delegates(self, db) -> None:
        order_repo = _make_order_repo()
        svc = OrderService(order_repo=order_repo, product_repo=MagicMock())

        await svc.get_buyer_orders(db, 7)
        await svc.get_seller_orders(db, 50)

        order_repo.list_by_buyer.assert_awaited_once_with(7, db)
        order_repo.list_by_seller.assert_awaited_once_with(50, db)
