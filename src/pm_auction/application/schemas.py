"""Pydantic schemas for pm_auction requests and responses.

Money fields are Decimal end to end; JSON output renders them as strings
("110.00") alongside a display string ("$110.00").
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.pm_auction.domain.models import Bid, Listing, ListingDetail, UserBid
from src.pm_common.datetime_utils import as_utc
from src.pm_common.money import money_to_display, to_money

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    product_id: int
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    starting_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    minimum_increment: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    end_time: datetime

    @field_validator("end_time")
    @classmethod
    def normalize_end_time(cls, v: datetime) -> datetime:
        return as_utc(v)


class PlaceBidRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: int
    seller_id: int
    product_id: int
    title: str
    description: str | None
    starting_price: Decimal
    current_price: Decimal
    current_price_display: str
    minimum_increment: Decimal
    minimum_next_bid: Decimal
    end_time: str
    status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,  # type: ignore[arg-type]
            seller_id=listing.seller_id,
            product_id=listing.product_id,
            title=listing.title,
            description=listing.description,
            starting_price=to_money(listing.starting_price),
            current_price=to_money(listing.current_price),
            current_price_display=money_to_display(listing.current_price),
            minimum_increment=to_money(listing.minimum_increment),
            minimum_next_bid=to_money(
                listing.current_price + listing.minimum_increment
            ),
            end_time=listing.end_time.isoformat(),
            status=listing.status,
            created_at=listing.created_at.isoformat() if listing.created_at else None,
        )


class BidResponse(BaseModel):
    id: int
    listing_id: int
    bidder_id: int
    bidder_username: str | None = None
    amount: Decimal
    amount_display: str
    status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,  # type: ignore[arg-type]
            listing_id=bid.listing_id,
            bidder_id=bid.bidder_id,
            bidder_username=bid.bidder_username,
            amount=to_money(bid.amount),
            amount_display=money_to_display(bid.amount),
            status=bid.status,
            created_at=bid.created_at.isoformat() if bid.created_at else None,
        )


class SellerOut(BaseModel):
    id: int
    username: str | None


class ProductOut(BaseModel):
    id: int
    name: str | None
    price: Decimal | None


class ListingDetailResponse(BaseModel):
    listing: ListingResponse
    seller: SellerOut
    product: ProductOut
    bids: list[BidResponse]

    @classmethod
    def from_domain(cls, detail: ListingDetail) -> "ListingDetailResponse":
        return cls(
            listing=ListingResponse.from_domain(detail.listing),
            seller=SellerOut(id=detail.seller.id, username=detail.seller.username),
            product=ProductOut(
                id=detail.product.id,
                name=detail.product.name,
                price=detail.product.price,
            ),
            bids=[BidResponse.from_domain(b) for b in detail.bids],
        )


class ListingPageResponse(BaseModel):
    items: list[ListingResponse]
    total: int
    page: int
    limit: int


class UserBidResponse(BaseModel):
    bid: BidResponse
    listing_title: str
    listing_status: str
    listing_end_time: str
    current_price: Decimal
    product_id: int
    product_name: str | None

    @classmethod
    def from_domain(cls, ub: UserBid) -> "UserBidResponse":
        return cls(
            bid=BidResponse.from_domain(ub.bid),
            listing_title=ub.listing_title,
            listing_status=ub.listing_status,
            listing_end_time=ub.listing_end_time.isoformat(),
            current_price=to_money(ub.current_price),
            product_id=ub.product_id,
            product_name=ub.product_name,
        )
