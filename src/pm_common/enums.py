"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    SOLD = "SOLD"


class BidStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WON = "WON"
    LOST = "LOST"


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAYMENT_IN_ESCROW = "PAYMENT_IN_ESCROW"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    DISPUTED = "DISPUTED"
    CANCELLED = "CANCELLED"


class EscrowStatus(str, Enum):
    """Custody of order funds, tracked independently of shipping progress."""
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    FUNDS_HELD = "FUNDS_HELD"
    RELEASED_TO_SELLER = "RELEASED_TO_SELLER"
    REFUNDED_TO_BUYER = "REFUNDED_TO_BUYER"
