"""AuctionService — listing creation, bid placement and auction closing.

Concurrency model: the database is the only shared state. Every mutation of
a listing happens inside a transaction that first takes the listing's row
lock (SELECT ... FOR UPDATE), so bid placement and closing are serialized
per listing and agree on one answer to "is this listing still biddable".

Write operations use try/commit/except-rollback on the caller's session.
The sweep opens its own session per listing so one failure cannot poison
the rest of the pass.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_auction.application.schemas import CreateListingRequest, PlaceBidRequest
from src.pm_auction.domain.models import (
    Bid,
    Listing,
    ListingDetail,
    SweepResult,
    UserBid,
)
from src.pm_auction.domain.repository import (
    BidRepositoryProtocol,
    ListingRepositoryProtocol,
)
from src.pm_auction.domain.rules import (
    is_expired,
    minimum_next_bid,
    select_winning_bid,
)
from src.pm_auction.infrastructure.persistence import BidRepository, ListingRepository
from src.pm_common.database import async_session_factory
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import BidStatus, ListingStatus
from src.pm_common.errors import (
    AuctionEndedError,
    BidTooLowError,
    InvalidListingError,
    ListingNotActiveError,
    ListingNotFoundError,
    ProductNotFoundError,
)
from src.pm_common.money import to_money
from src.pm_product.domain.repository import ProductRepositoryProtocol
from src.pm_product.infrastructure.persistence import ProductRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class AuctionService:
    def __init__(
        self,
        listing_repo: ListingRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        product_repo: ProductRepositoryProtocol | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listing_repo or ListingRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._products: ProductRepositoryProtocol = product_repo or ProductRepository()
        self._session_factory: SessionFactory = session_factory or async_session_factory

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def create_listing(
        self, db: AsyncSession, req: CreateListingRequest, seller_id: int
    ) -> Listing:
        starting_price = to_money(req.starting_price)
        minimum_increment = to_money(req.minimum_increment)
        if starting_price < 0:
            raise InvalidListingError(f"starting_price must be >= 0, got {starting_price}")
        if minimum_increment < 0:
            raise InvalidListingError(
                f"minimum_increment must be >= 0, got {minimum_increment}"
            )

        try:
            product = await self._products.get_by_id(db, req.product_id)
            if product is None:
                raise ProductNotFoundError(req.product_id)

            listing = await self._listings.create(
                db,
                Listing(
                    id=None,
                    seller_id=seller_id,
                    product_id=product.id,
                    title=req.title,
                    description=req.description,
                    starting_price=starting_price,
                    current_price=starting_price,
                    minimum_increment=minimum_increment,
                    end_time=req.end_time,
                    status=ListingStatus.ACTIVE.value,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Listing created: id=%s seller=%s product=%s start=%s ends=%s",
            listing.id, seller_id, product.id, starting_price, listing.end_time,
        )
        return listing

    async def get_active_listings(
        self, db: AsyncSession, page: int = 1, limit: int = 10
    ) -> tuple[list[Listing], int]:
        page = max(page, 1)
        limit = min(max(limit, 1), settings.LISTINGS_PAGE_LIMIT_MAX)
        return await self._listings.list_active(
            db, utc_now(), offset=(page - 1) * limit, limit=limit
        )

    async def get_listing_by_id(self, db: AsyncSession, listing_id: int) -> ListingDetail:
        detail = await self._listings.get_detail(db, listing_id)
        if detail is None:
            raise ListingNotFoundError(listing_id)
        return detail

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------

    async def place_bid(
        self,
        db: AsyncSession,
        listing_id: int,
        bidder_id: int,
        req: PlaceBidRequest,
    ) -> Bid:
        amount = to_money(req.amount)
        ended = False
        try:
            listing = await self._listings.get_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.status != ListingStatus.ACTIVE:
                raise ListingNotActiveError(listing_id, listing.status)

            if is_expired(listing.end_time, utc_now()):
                # Not swept yet: close it to bidding now, the sweep settles the bids.
                await self._listings.update_status(
                    db, listing_id, ListingStatus.ENDED.value
                )
                ended = True
            else:
                minimum = minimum_next_bid(listing)
                if amount < minimum:
                    raise BidTooLowError(amount, minimum)
                bid = await self._bids.add(
                    db,
                    Bid(
                        id=None,
                        listing_id=listing_id,
                        bidder_id=bidder_id,
                        amount=amount,
                        status=BidStatus.ACTIVE.value,
                    ),
                )
                await self._listings.update_current_price(db, listing_id, amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if ended:
            logger.info("Bid rejected on expired listing %s; status -> ENDED", listing_id)
            raise AuctionEndedError(listing_id)

        logger.info(
            "Bid accepted: id=%s listing=%s bidder=%s amount=%s",
            bid.id, listing_id, bidder_id, amount,
        )
        return bid

    async def get_user_bids(self, db: AsyncSession, user_id: int) -> list[UserBid]:
        return await self._bids.list_by_bidder(db, user_id)

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    async def close_expired_listings(self) -> SweepResult:
        """Close every listing past its end_time and declare winners.

        Idempotent: a listing that is already closed (or was closed by a
        concurrent pass) is skipped after its lock is taken.
        """
        result = SweepResult()
        async with self._session_factory() as db:
            listing_ids = await self._listings.list_closable_ids(db, utc_now())

        for listing_id in listing_ids:
            try:
                async with self._session_factory() as db:
                    outcome = await self._close_listing(db, listing_id)
            except Exception:
                result.failed += 1
                logger.exception("Failed to close listing %s", listing_id)
                continue
            if outcome is None:
                continue
            result.closed += 1
            if outcome == ListingStatus.SOLD:
                result.sold += 1

        if listing_ids:
            logger.info(
                "Auction sweep: candidates=%d closed=%d sold=%d failed=%d",
                len(listing_ids), result.closed, result.sold, result.failed,
            )
        return result

    # Name the scheduler calls.
    check_and_end_expired_listings = close_expired_listings

    async def _close_listing(
        self, db: AsyncSession, listing_id: int
    ) -> ListingStatus | None:
        """Close one listing under its row lock. Returns the final status, or None if skipped."""
        try:
            listing = await self._listings.get_for_update(db, listing_id)
            if listing is None:
                await db.rollback()
                return None

            bids = await self._bids.list_for_listing(db, listing_id)
            open_bids = [b for b in bids if b.status == BidStatus.ACTIVE]

            if listing.status == ListingStatus.ACTIVE:
                if not is_expired(listing.end_time, utc_now()):
                    await db.rollback()
                    return None
            elif listing.status != ListingStatus.ENDED or not open_bids:
                await db.rollback()
                return None

            winner = select_winning_bid(open_bids)
            if winner is None:
                final = ListingStatus.ENDED
            else:
                await self._bids.settle(db, listing_id, winner.id)  # type: ignore[arg-type]
                final = ListingStatus.SOLD
            await self._listings.update_status(db, listing_id, final.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if winner is None:
            logger.info("Listing %s ended with no bids", listing_id)
        else:
            logger.info(
                "Listing %s sold: winning bid=%s bidder=%s amount=%s (bids=%d)",
                listing_id, winner.id, winner.bidder_id, winner.amount, len(open_bids),
            )
        return final
