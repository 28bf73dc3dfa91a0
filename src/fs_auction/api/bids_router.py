"""fs_auction REST endpoints — bid ledger.

POST   /auctions/{auction_id}/bids     — submit or replace caller's bid
GET    /auctions/{auction_id}/bids/me  — caller's active bid + demand analysis
DELETE /auctions/{auction_id}/bids/me  — withdraw caller's bid
GET    /auctions/{auction_id}/bids     — all active bids (operator)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.application.bid_service import BidApplicationService
from src.fs_auction.application.schemas import SubmitBidRequest
from src.fs_common.database import get_db_session
from src.fs_common.response import ApiResponse, success_response
from src.fs_gateway.auth.dependencies import Principal, get_current_user, require_operator

router = APIRouter(prefix="/auctions/{auction_id}/bids", tags=["bids"])

_service = BidApplicationService()


def get_bid_service() -> BidApplicationService:
    return _service


@router.post("", status_code=201)
async def submit_bid(
    auction_id: str,
    req: SubmitBidRequest,
    request: Request,
    bidder: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
) -> ApiResponse:
    result = await service.submit_bid(db, auction_id, bidder, req)
    return success_response(result.model_dump(), request)


@router.get("/me")
async def get_my_bid(
    auction_id: str,
    request: Request,
    bidder: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
) -> ApiResponse:
    result = await service.get_my_bid(db, auction_id, bidder)
    return success_response(result.model_dump(), request)


@router.delete("/me")
async def withdraw_bid(
    auction_id: str,
    request: Request,
    bidder: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
) -> ApiResponse:
    result = await service.withdraw_bid(db, auction_id, bidder)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_bids(
    auction_id: str,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BidApplicationService, Depends(get_bid_service)],
) -> ApiResponse:
    result = await service.list_bids(db, auction_id, operator)
    return success_response(result.model_dump(), request)
