"""Pure auction rules — no I/O, shared by bid placement and the sweeper."""

from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal

from src.pm_auction.domain.models import Bid, Listing
from src.pm_common.datetime_utils import as_utc

_EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


def minimum_next_bid(listing: Listing) -> Decimal:
    """Lowest amount the next bid may carry."""
    return listing.current_price + listing.minimum_increment


def is_expired(end_time: datetime, now: datetime) -> bool:
    """Single biddability predicate: a listing at or past its end_time takes no bids."""
    return as_utc(end_time) <= as_utc(now)


def select_winning_bid(bids: Iterable[Bid]) -> Bid | None:
    """Highest amount wins; among equal amounts the earliest bid wins.

    Bids are ordered by (created_at, id) before the scan, so "earliest" does not
    depend on the order the store returned them in.
    """
    ordered = sorted(
        bids,
        key=lambda b: (
            as_utc(b.created_at) if b.created_at is not None else _EPOCH_MIN,
            b.id if b.id is not None else 0,
        ),
    )
    winner: Bid | None = None
    for bid in ordered:
        if winner is None or bid.amount > winner.amount:
            winner = bid
    return winner
