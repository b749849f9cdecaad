"""Domain models for pm_auction — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class Listing:
    id: int | None
    seller_id: int
    product_id: int
    title: str
    description: str | None
    starting_price: Decimal
    current_price: Decimal  # non-decreasing, always >= starting_price
    minimum_increment: Decimal
    end_time: datetime
    status: str  # ACTIVE / ENDED / SOLD
    created_at: datetime | None = None


@dataclass
class Bid:
    id: int | None
    listing_id: int
    bidder_id: int
    amount: Decimal
    status: str  # ACTIVE / WON / LOST
    created_at: datetime | None = None
    bidder_username: str | None = None


@dataclass
class UserRef:
    id: int
    username: str | None


@dataclass
class ProductRef:
    id: int
    name: str
    price: Decimal


@dataclass
class ListingDetail:
    """Listing expanded with seller, product and full bid history."""

    listing: Listing
    seller: UserRef
    product: ProductRef
    bids: list[Bid] = field(default_factory=list)


@dataclass
class UserBid:
    """A bidder's bid with the listing/product context it was placed on."""

    bid: Bid
    listing_title: str
    listing_status: str
    listing_end_time: datetime
    current_price: Decimal
    product_id: int
    product_name: str


@dataclass
class SweepResult:
    closed: int = 0  # listings moved out of ACTIVE (or settled after a bid-time flip)
    sold: int = 0
    failed: int = 0
