# src/pm_order/application/schemas.py
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.pm_common.enums import OrderStatus
from src.pm_common.money import money_to_display, to_money
from src.pm_order.domain.models import Order, OrderItem


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class CreateOrderRequest(BaseModel):
    shipping_address: str = Field(min_length=1, max_length=500)
    items: list[OrderItemRequest] = Field(min_length=1)

    @field_validator("shipping_address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("shipping_address must not be blank")
        return v


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    tracking_number: str | None = Field(default=None, max_length=100)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str | None
    seller_id: int
    quantity: int
    price_at_time: Decimal
    line_total: Decimal

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,  # type: ignore[arg-type]
            product_id=item.product_id,
            product_name=item.product_name,
            seller_id=item.seller_id,
            quantity=item.quantity,
            price_at_time=to_money(item.price_at_time),
            line_total=to_money(item.line_total),
        )


class OrderResponse(BaseModel):
    id: int
    buyer_id: int
    total_amount: Decimal
    total_amount_display: str
    status: str
    escrow_status: str
    shipping_address: str
    tracking_number: str | None = None
    items: list[OrderItemResponse]
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,  # type: ignore[arg-type]
            buyer_id=order.buyer_id,
            total_amount=to_money(order.total_amount),
            total_amount_display=money_to_display(order.total_amount),
            status=order.status,
            escrow_status=order.escrow_status,
            shipping_address=order.shipping_address,
            tracking_number=order.tracking_number,
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            created_at=order.created_at.isoformat() if order.created_at else None,
            updated_at=order.updated_at.isoformat() if order.updated_at else None,
        )
