"""Order lifecycle transitions and the escrow status each one implies.

COMPLETED and CANCELLED are terminal: no outgoing edges.
"""
from src.pm_common.enums import EscrowStatus, OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset(
        {OrderStatus.PAYMENT_IN_ESCROW, OrderStatus.CANCELLED}
    ),
    OrderStatus.PAYMENT_IN_ESCROW: frozenset(
        {OrderStatus.SHIPPED, OrderStatus.DISPUTED}
    ),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.DISPUTED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED, OrderStatus.DISPUTED}),
    OrderStatus.DISPUTED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    try:
        current_status = OrderStatus(current)
        new_status = OrderStatus(new)
    except ValueError:
        return False
    return new_status in ALLOWED_TRANSITIONS[current_status]


def escrow_status_after(current_escrow: str, new_status: str) -> str:
    """Escrow custody that follows an order moving into new_status.

    Funds are held once payment lands in escrow, released to the seller on
    completion, and refunded on cancellation only if they were ever held.
    """
    if new_status == OrderStatus.PAYMENT_IN_ESCROW:
        return EscrowStatus.FUNDS_HELD.value
    if new_status == OrderStatus.COMPLETED:
        return EscrowStatus.RELEASED_TO_SELLER.value
    if new_status == OrderStatus.CANCELLED and current_escrow == EscrowStatus.FUNDS_HELD:
        return EscrowStatus.REFUNDED_TO_BUYER.value
    return current_escrow
