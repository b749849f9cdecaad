# src/pm_auction/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

Unit tests inject a mock (or an in-memory fake) that conforms to these
Protocols. Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_auction.domain.models import Bid, Listing, ListingDetail, UserBid


class ListingRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, listing: Listing) -> Listing: ...

    async def get_by_id(self, db: AsyncSession, listing_id: int) -> Listing | None: ...

    async def get_for_update(
        self, db: AsyncSession, listing_id: int
    ) -> Listing | None: ...

    async def get_detail(
        self, db: AsyncSession, listing_id: int
    ) -> ListingDetail | None: ...

    async def list_active(
        self, db: AsyncSession, now: datetime, offset: int, limit: int
    ) -> tuple[list[Listing], int]: ...

    async def list_closable_ids(self, db: AsyncSession, now: datetime) -> list[int]: ...

    async def update_current_price(
        self, db: AsyncSession, listing_id: int, current_price: Decimal
    ) -> None: ...

    async def update_status(
        self, db: AsyncSession, listing_id: int, status: str
    ) -> None: ...


class BidRepositoryProtocol(Protocol):
    async def add(self, db: AsyncSession, bid: Bid) -> Bid: ...

    async def list_for_listing(self, db: AsyncSession, listing_id: int) -> list[Bid]: ...

    async def list_by_bidder(self, db: AsyncSession, bidder_id: int) -> list[UserBid]: ...

    async def settle(
        self, db: AsyncSession, listing_id: int, winning_bid_id: int
    ) -> None: ...
