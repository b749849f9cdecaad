"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  3xxx: Auction (listings / bids)
  4xxx: Order
  5xxx: Product / stock
  9xxx: System

Every message carries the offending value so the caller can surface it as-is.
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 3xxx: Auction ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: int) -> None:
        super().__init__(3001, f"Listing not found: {listing_id}", 404)


class ListingNotActiveError(AppError):
    def __init__(self, listing_id: int, status: str) -> None:
        super().__init__(
            3002, f"Listing {listing_id} is no longer active (status {status})", 422
        )


class AuctionEndedError(AppError):
    def __init__(self, listing_id: int) -> None:
        super().__init__(3003, f"Auction has ended for listing {listing_id}", 422)


class BidTooLowError(AppError):
    def __init__(self, amount: Decimal, minimum: Decimal) -> None:
        self.minimum = minimum
        super().__init__(
            3004, f"Bid of {amount} is too low: bid must be at least {minimum}", 422
        )


class InvalidListingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Invalid listing: {detail}", 422)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: int) -> None:
        super().__init__(4001, f"Order not found: {order_id}", 404)


class InvalidStatusTransitionError(AppError):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            4002, f"Invalid status transition: {current} -> {requested}", 422
        )


class OrderAccessDeniedError(AppError):
    def __init__(self, order_id: int) -> None:
        super().__init__(4003, f"Access denied to order {order_id}", 403)


# --- 5xxx: Product ---

class ProductNotFoundError(AppError):
    def __init__(self, product_id: int) -> None:
        super().__init__(5001, f"Product with ID {product_id} not found", 404)


class InsufficientStockError(AppError):
    def __init__(self, product_name: str, requested: int, available: int) -> None:
        super().__init__(
            5002,
            f"Insufficient stock for product {product_name}: "
            f"requested {requested}, available {available}",
            422,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
