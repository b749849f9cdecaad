"""Order domain models — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class OrderItem:
    id: int | None
    order_id: int | None
    product_id: int
    seller_id: int  # denormalized from the product at checkout
    quantity: int  # > 0
    price_at_time: Decimal  # unit price snapshot, never rewritten
    product_name: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price_at_time * self.quantity


@dataclass
class Order:
    id: int | None
    buyer_id: int
    total_amount: Decimal
    status: str  # OrderStatus
    escrow_status: str  # EscrowStatus
    shipping_address: str
    tracking_number: str | None = None
    items: list[OrderItem] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def seller_ids(self) -> set[int]:
        return {item.seller_id for item in self.items}

    def is_visible_to(self, user_id: int) -> bool:
        """Buyer, or the seller of at least one line item."""
        return self.buyer_id == user_id or user_id in self.seller_ids


@dataclass(frozen=True)
class OrderUpdate:
    """The complete set of fields an order may change after checkout."""

    status: str
    escrow_status: str
    tracking_number: str | None
