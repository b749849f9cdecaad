# tests/unit/test_api_routers.py
"""HTTP-level tests for the auction and order routers.

Services are replaced with mocks; the DB session and auth dependencies are
overridden, so no database or auth service is needed.
"""
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from src.main import app
from src.pm_auction.api import router as auction_router
from src.pm_auction.domain.models import Bid, Listing
from src.pm_common.database import get_db_session
from src.pm_common.errors import (
    AuctionEndedError,
    BidTooLowError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    OrderAccessDeniedError,
)
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_gateway.auth.jwt_handler import create_access_token
from src.pm_order.api import router as order_router
from src.pm_order.domain.models import Order, OrderItem

_END = datetime.now(UTC) + timedelta(days=1)


def _listing(**kwargs) -> Listing:
    defaults = dict(
        id=1, seller_id=7, product_id=5, title="Radiator", description=None,
        starting_price=Decimal("100.00"), current_price=Decimal("100.00"),
        minimum_increment=Decimal("10.00"), end_time=_END, status="ACTIVE",
        created_at=datetime.now(UTC),
    )
    defaults.update(kwargs)
    return Listing(**defaults)


def _order() -> Order:
    return Order(
        id=100, buyer_id=7, total_amount=Decimal("50.00"), status="PENDING_PAYMENT",
        escrow_status="AWAITING_PAYMENT", shipping_address="12 Dock Road",
        items=[
            OrderItem(
                id=1, order_id=100, product_id=1, seller_id=50, quantity=2,
                price_at_time=Decimal("25.00"),
            )
        ],
    )


async def _fake_session():
    yield AsyncMock()


@pytest.fixture
def authed() -> None:
    app.dependency_overrides[get_db_session] = _fake_session
    app.dependency_overrides[get_current_user_id] = lambda: 7


@pytest.fixture
def auction_service(monkeypatch) -> MagicMock:
    service = MagicMock()
    monkeypatch.setattr(auction_router, "_service", service)
    return service


@pytest.fixture
def order_service(monkeypatch) -> MagicMock:
    service = MagicMock()
    monkeypatch.setattr(order_router, "_service", service)
    return service


class TestAuctionRoutes:
    async def test_create_listing(self, client: AsyncClient, authed, auction_service) -> None:
        auction_service.create_listing = AsyncMock(return_value=_listing())

        resp = await client.post(
            "/api/v1/auctions",
            json={
                "product_id": 5, "title": "Radiator", "starting_price": "100.00",
                "minimum_increment": "10.00", "end_time": _END.isoformat(),
            },
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["current_price"] == "100.00"
        assert body["data"]["minimum_next_bid"] == "110.00"
        assert auction_service.create_listing.call_args.args[2] == 7

    async def test_list_is_public_and_paginated(
        self, client: AsyncClient, auction_service
    ) -> None:
        app.dependency_overrides[get_db_session] = _fake_session
        auction_service.get_active_listings = AsyncMock(return_value=([_listing()], 11))

        resp = await client.get("/api/v1/auctions", params={"page": 2, "limit": 5})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total"] == 11
        assert data["page"] == 2
        assert len(data["items"]) == 1
        assert auction_service.get_active_listings.call_args.args[1:] == (2, 5)

    async def test_limit_above_cap_rejected(self, client: AsyncClient, auction_service) -> None:
        app.dependency_overrides[get_db_session] = _fake_session
        resp = await client.get("/api/v1/auctions", params={"limit": 1000})
        assert resp.status_code == 422

    async def test_place_bid(self, client: AsyncClient, authed, auction_service) -> None:
        auction_service.place_bid = AsyncMock(
            return_value=Bid(
                id=9, listing_id=1, bidder_id=7, amount=Decimal("110.00"), status="ACTIVE",
                created_at=datetime.now(UTC),
            )
        )

        resp = await client.post("/api/v1/auctions/1/bids", json={"amount": "110.00"})

        assert resp.status_code == 201
        assert resp.json()["data"]["amount"] == "110.00"

    async def test_bid_too_low_maps_to_422_envelope(
        self, client: AsyncClient, authed, auction_service
    ) -> None:
        auction_service.place_bid = AsyncMock(
            side_effect=BidTooLowError(Decimal("105.00"), Decimal("110.00"))
        )

        resp = await client.post(
            "/api/v1/auctions/1/bids",
            json={"amount": "105.00"},
            headers={"X-Request-ID": "req_fixed"},
        )

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 3004
        assert "at least 110.00" in body["message"]
        assert body["data"] is None
        assert body["request_id"] == "req_fixed"
        assert resp.headers["X-Request-ID"] == "req_fixed"

    async def test_ended_auction_maps_to_422(
        self, client: AsyncClient, authed, auction_service
    ) -> None:
        auction_service.place_bid = AsyncMock(side_effect=AuctionEndedError(1))
        resp = await client.post("/api/v1/auctions/1/bids", json={"amount": "500"})
        assert resp.status_code == 422
        assert resp.json()["code"] == 3003

    async def test_bid_requires_token(self, client: AsyncClient, auction_service) -> None:
        app.dependency_overrides[get_db_session] = _fake_session
        resp = await client.post("/api/v1/auctions/1/bids", json={"amount": "500"})
        assert resp.status_code == 401

    async def test_real_token_is_accepted(self, client: AsyncClient, auction_service) -> None:
        app.dependency_overrides[get_db_session] = _fake_session
        auction_service.get_user_bids = AsyncMock(return_value=[])

        resp = await client.get(
            "/api/v1/auctions/bids/me",
            headers={"Authorization": f"Bearer {create_access_token(31)}"},
        )

        assert resp.status_code == 200
        auction_service.get_user_bids.assert_awaited_once()
        assert auction_service.get_user_bids.call_args.args[1] == 31


class TestOrderRoutes:
    async def test_create_order(self, client: AsyncClient, authed, order_service) -> None:
        order_service.create_order = AsyncMock(return_value=_order())

        resp = await client.post(
            "/api/v1/orders",
            json={"shipping_address": "12 Dock Road", "items": [{"product_id": 1, "quantity": 2}]},
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["total_amount"] == "50.00"
        assert data["status"] == "PENDING_PAYMENT"
        assert data["items"][0]["line_total"] == "50.00"

    async def test_empty_cart_rejected(self, client: AsyncClient, authed, order_service) -> None:
        order_service.create_order = AsyncMock()
        resp = await client.post(
            "/api/v1/orders", json={"shipping_address": "12 Dock Road", "items": []}
        )
        assert resp.status_code == 422
        order_service.create_order.assert_not_awaited()

    async def test_insufficient_stock(self, client: AsyncClient, authed, order_service) -> None:
        order_service.create_order = AsyncMock(
            side_effect=InsufficientStockError("Brake pad set", 2, 1)
        )
        resp = await client.post(
            "/api/v1/orders",
            json={"shipping_address": "12 Dock Road", "items": [{"product_id": 1, "quantity": 2}]},
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 5002

    async def test_invalid_transition(self, client: AsyncClient, authed, order_service) -> None:
        order_service.update_order_status = AsyncMock(
            side_effect=InvalidStatusTransitionError("PENDING_PAYMENT", "SHIPPED")
        )

        resp = await client.patch("/api/v1/orders/100/status", json={"status": "SHIPPED"})

        assert resp.status_code == 422
        assert resp.json()["message"] == "Invalid status transition: PENDING_PAYMENT -> SHIPPED"
        assert order_service.update_order_status.call_args.kwargs == {"actor_id": 7}

    async def test_unknown_status_rejected_by_schema(
        self, client: AsyncClient, authed, order_service
    ) -> None:
        resp = await client.patch("/api/v1/orders/100/status", json={"status": "LOST"})
        assert resp.status_code == 422

    async def test_foreign_order_forbidden(self, client: AsyncClient, authed, order_service) -> None:
        order_service.get_order_for_user = AsyncMock(side_effect=OrderAccessDeniedError(100))
        resp = await client.get("/api/v1/orders/100")
        assert resp.status_code == 403
        assert resp.json()["code"] == 4003

    async def test_seller_orders(self, client: AsyncClient, authed, order_service) -> None:
        order_service.get_seller_orders = AsyncMock(return_value=[_order()])
        resp = await client.get("/api/v1/orders/seller")
        assert resp.status_code == 200
        assert resp.json()["data"][0]["id"] == 100


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
