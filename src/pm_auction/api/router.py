"""pm_auction REST endpoints.

POST /auctions                        — create listing (seller = caller)
GET  /auctions                        — active listings, page/limit pagination
GET  /auctions/bids/me                — caller's bids, newest first
GET  /auctions/{listing_id}           — listing + seller + product + bid history
POST /auctions/{listing_id}/bids      — place bid
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_auction.application.schemas import (
    BidResponse,
    CreateListingRequest,
    ListingDetailResponse,
    ListingPageResponse,
    ListingResponse,
    PlaceBidRequest,
    UserBidResponse,
)
from src.pm_auction.application.service import AuctionService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("", status_code=201)
async def create_listing(
    req: CreateListingRequest,
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    listing = await _service.create_listing(db, req, user_id)
    return success_response(
        ListingResponse.from_domain(listing).model_dump(mode="json"), _request_id(request)
    )


@router.get("")
async def list_active_listings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.LISTINGS_PAGE_LIMIT_MAX),
) -> ApiResponse:
    listings, total = await _service.get_active_listings(db, page, limit)
    result = ListingPageResponse(
        items=[ListingResponse.from_domain(lst) for lst in listings],
        total=total,
        page=page,
        limit=limit,
    )
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.get("/bids/me")
async def list_my_bids(
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    bids = await _service.get_user_bids(db, user_id)
    data = [UserBidResponse.from_domain(b).model_dump(mode="json") for b in bids]
    return success_response(data, _request_id(request))


@router.get("/{listing_id}")
async def get_listing(
    listing_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    detail = await _service.get_listing_by_id(db, listing_id)
    return success_response(
        ListingDetailResponse.from_domain(detail).model_dump(mode="json"),
        _request_id(request),
    )


@router.post("/{listing_id}/bids", status_code=201)
async def place_bid(
    listing_id: int,
    req: PlaceBidRequest,
    request: Request,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    bid = await _service.place_bid(db, listing_id, user_id, req)
    return success_response(
        BidResponse.from_domain(bid).model_dump(mode="json"), _request_id(request)
    )
