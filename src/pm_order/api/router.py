# src/pm_order/api/router.py
"""pm_order REST endpoints.

POST  /orders                 — checkout (buyer = caller)
GET   /orders/buyer           — caller's purchases
GET   /orders/seller          — orders containing the caller's products
GET   /orders/{order_id}      — buyer or line-item seller only
PATCH /orders/{order_id}/status — lifecycle transition, buyer or seller only
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_order.application.schemas import (
    CreateOrderRequest,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from src.pm_order.application.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", status_code=201)
async def create_order(
    req: CreateOrderRequest,
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _service.create_order(db, req, user_id)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"), _request_id(request)
    )


@router.get("/buyer")
async def list_buyer_orders(
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    orders = await _service.get_buyer_orders(db, user_id)
    data = [OrderResponse.from_domain(o).model_dump(mode="json") for o in orders]
    return success_response(data, _request_id(request))


@router.get("/seller")
async def list_seller_orders(
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    orders = await _service.get_seller_orders(db, user_id)
    data = [OrderResponse.from_domain(o).model_dump(mode="json") for o in orders]
    return success_response(data, _request_id(request))


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _service.get_order_for_user(db, order_id, user_id)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"), _request_id(request)
    )


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    req: UpdateOrderStatusRequest,
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order = await _service.update_order_status(db, order_id, req, actor_id=user_id)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"), _request_id(request)
    )
