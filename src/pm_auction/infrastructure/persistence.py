"""ListingRepository / BidRepository — raw SQL persistence for the auction core.

All queries use raw text() SQL (no ORM). Seller, bidder and product names
come from the reference tables (users, products) via LEFT JOIN; the core
never writes to them.

Transaction ownership: the CALLER (AuctionService) commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_auction.domain.models import (
    Bid,
    Listing,
    ListingDetail,
    ProductRef,
    UserBid,
    UserRef,
)

# ---------------------------------------------------------------------------
# SQL: bid_listings
# ---------------------------------------------------------------------------

_LISTING_COLUMNS = """
    l.id, l.seller_id, l.product_id, l.title, l.description,
    l.starting_price, l.current_price, l.minimum_increment,
    l.end_time, l.status, l.created_at
"""

_INSERT_LISTING_SQL = text("""
    INSERT INTO bid_listings (seller_id, product_id, title, description,
        starting_price, current_price, minimum_increment, end_time, status)
    VALUES (:seller_id, :product_id, :title, :description,
        :starting_price, :current_price, :minimum_increment, :end_time, :status)
    RETURNING id, created_at
""")

_GET_LISTING_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM bid_listings l
    WHERE l.id = :listing_id
""")

# Row lock: serializes bid placement and closing per listing.
_GET_LISTING_FOR_UPDATE_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM bid_listings l
    WHERE l.id = :listing_id
    FOR UPDATE
""")

_GET_LISTING_DETAIL_SQL = text(f"""
    SELECT {_LISTING_COLUMNS},
           u.username AS seller_username,
           p.name AS product_name, p.price AS product_price
    FROM bid_listings l
    LEFT JOIN users u ON u.id = l.seller_id
    LEFT JOIN products p ON p.id = l.product_id
    WHERE l.id = :listing_id
""")

_LIST_ACTIVE_SQL = text(f"""
    SELECT {_LISTING_COLUMNS}
    FROM bid_listings l
    WHERE l.status = 'ACTIVE' AND l.end_time > :now
    ORDER BY l.created_at DESC, l.id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_ACTIVE_SQL = text("""
    SELECT COUNT(*)
    FROM bid_listings
    WHERE status = 'ACTIVE' AND end_time > :now
""")

# Expired-but-ACTIVE listings, plus listings flipped to ENDED at bid time
# whose bids were never settled.
_LIST_CLOSABLE_IDS_SQL = text("""
    SELECT l.id
    FROM bid_listings l
    WHERE (l.status = 'ACTIVE' AND l.end_time <= :now)
       OR (l.status = 'ENDED' AND EXISTS (
               SELECT 1 FROM bids b
               WHERE b.listing_id = l.id AND b.status = 'ACTIVE'
           ))
    ORDER BY l.end_time, l.id
""")

_UPDATE_PRICE_SQL = text("""
    UPDATE bid_listings
    SET current_price = :current_price
    WHERE id = :listing_id
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE bid_listings
    SET status = :status
    WHERE id = :listing_id
""")

# ---------------------------------------------------------------------------
# SQL: bids
# ---------------------------------------------------------------------------

_INSERT_BID_SQL = text("""
    INSERT INTO bids (listing_id, bidder_id, amount, status)
    VALUES (:listing_id, :bidder_id, :amount, :status)
    RETURNING id, created_at
""")

_LIST_BIDS_FOR_LISTING_SQL = text("""
    SELECT b.id, b.listing_id, b.bidder_id, b.amount, b.status, b.created_at,
           u.username AS bidder_username
    FROM bids b
    LEFT JOIN users u ON u.id = b.bidder_id
    WHERE b.listing_id = :listing_id
    ORDER BY b.created_at, b.id
""")

_LIST_BIDS_BY_BIDDER_SQL = text("""
    SELECT b.id, b.listing_id, b.bidder_id, b.amount, b.status, b.created_at,
           l.title AS listing_title, l.status AS listing_status,
           l.end_time AS listing_end_time, l.current_price,
           l.product_id, p.name AS product_name
    FROM bids b
    JOIN bid_listings l ON l.id = b.listing_id
    LEFT JOIN products p ON p.id = l.product_id
    WHERE b.bidder_id = :bidder_id
    ORDER BY b.created_at DESC, b.id DESC
""")

_SETTLE_BIDS_SQL = text("""
    UPDATE bids
    SET status = CASE WHEN id = :winning_bid_id THEN 'WON' ELSE 'LOST' END
    WHERE listing_id = :listing_id AND status = 'ACTIVE'
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    return Listing(
        id=row.id,
        seller_id=row.seller_id,
        product_id=row.product_id,
        title=row.title,
        description=row.description,
        starting_price=row.starting_price,
        current_price=row.current_price,
        minimum_increment=row.minimum_increment,
        end_time=row.end_time,
        status=row.status,
        created_at=row.created_at,
    )


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        listing_id=row.listing_id,
        bidder_id=row.bidder_id,
        amount=row.amount,
        status=row.status,
        created_at=row.created_at,
        bidder_username=getattr(row, "bidder_username", None),
    )


def _row_to_user_bid(row: Any) -> UserBid:
    return UserBid(
        bid=_row_to_bid(row),
        listing_title=row.listing_title,
        listing_status=row.listing_status,
        listing_end_time=row.listing_end_time,
        current_price=row.current_price,
        product_id=row.product_id,
        product_name=row.product_name,
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete implementation of ListingRepositoryProtocol."""

    async def create(self, db: AsyncSession, listing: Listing) -> Listing:
        result = await db.execute(
            _INSERT_LISTING_SQL,
            {
                "seller_id": listing.seller_id,
                "product_id": listing.product_id,
                "title": listing.title,
                "description": listing.description,
                "starting_price": listing.starting_price,
                "current_price": listing.current_price,
                "minimum_increment": listing.minimum_increment,
                "end_time": listing.end_time,
                "status": listing.status,
            },
        )
        row = result.fetchone()
        listing.id = row.id
        listing.created_at = row.created_at
        return listing

    async def get_by_id(self, db: AsyncSession, listing_id: int) -> Listing | None:
        result = await db.execute(_GET_LISTING_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def get_for_update(
        self, db: AsyncSession, listing_id: int
    ) -> Listing | None:
        result = await db.execute(
            _GET_LISTING_FOR_UPDATE_SQL, {"listing_id": listing_id}
        )
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def get_detail(
        self, db: AsyncSession, listing_id: int
    ) -> ListingDetail | None:
        result = await db.execute(_GET_LISTING_DETAIL_SQL, {"listing_id": listing_id})
        row = result.fetchone()
        if row is None:
            return None
        bids_result = await db.execute(
            _LIST_BIDS_FOR_LISTING_SQL, {"listing_id": listing_id}
        )
        return ListingDetail(
            listing=_row_to_listing(row),
            seller=UserRef(id=row.seller_id, username=row.seller_username),
            product=ProductRef(
                id=row.product_id, name=row.product_name, price=row.product_price
            ),
            bids=[_row_to_bid(r) for r in bids_result.fetchall()],
        )

    async def list_active(
        self, db: AsyncSession, now: datetime, offset: int, limit: int
    ) -> tuple[list[Listing], int]:
        result = await db.execute(
            _LIST_ACTIVE_SQL, {"now": now, "offset": offset, "limit": limit}
        )
        listings = [_row_to_listing(row) for row in result.fetchall()]
        count_result = await db.execute(_COUNT_ACTIVE_SQL, {"now": now})
        total = int(count_result.scalar_one())
        return listings, total

    async def list_closable_ids(self, db: AsyncSession, now: datetime) -> list[int]:
        result = await db.execute(_LIST_CLOSABLE_IDS_SQL, {"now": now})
        return [row.id for row in result.fetchall()]

    async def update_current_price(
        self, db: AsyncSession, listing_id: int, current_price: Decimal
    ) -> None:
        await db.execute(
            _UPDATE_PRICE_SQL,
            {"listing_id": listing_id, "current_price": current_price},
        )

    async def update_status(
        self, db: AsyncSession, listing_id: int, status: str
    ) -> None:
        await db.execute(
            _UPDATE_STATUS_SQL, {"listing_id": listing_id, "status": status}
        )


class BidRepository:
    """Concrete implementation of BidRepositoryProtocol."""

    async def add(self, db: AsyncSession, bid: Bid) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "listing_id": bid.listing_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "status": bid.status,
            },
        )
        row = result.fetchone()
        bid.id = row.id
        bid.created_at = row.created_at
        return bid

    async def list_for_listing(self, db: AsyncSession, listing_id: int) -> list[Bid]:
        result = await db.execute(
            _LIST_BIDS_FOR_LISTING_SQL, {"listing_id": listing_id}
        )
        return [_row_to_bid(row) for row in result.fetchall()]

    async def list_by_bidder(self, db: AsyncSession, bidder_id: int) -> list[UserBid]:
        result = await db.execute(_LIST_BIDS_BY_BIDDER_SQL, {"bidder_id": bidder_id})
        return [_row_to_user_bid(row) for row in result.fetchall()]

    async def settle(
        self, db: AsyncSession, listing_id: int, winning_bid_id: int
    ) -> None:
        """Mark the winner WON and every other still-ACTIVE bid LOST."""
        await db.execute(
            _SETTLE_BIDS_SQL,
            {"listing_id": listing_id, "winning_bid_id": winning_bid_id},
        )
