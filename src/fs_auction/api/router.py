"""fs_auction REST endpoints — auction lifecycle.

POST /auctions                      — create draft (operator)
GET  /auctions                      — list with cursor pagination
GET  /auctions/{auction_id}         — detail
POST /auctions/{auction_id}/start   — open the collection window (operator)
POST /auctions/{auction_id}/cancel  — cancel before completion (operator)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.application.schemas import CreateAuctionRequest
from src.fs_auction.application.service import AuctionApplicationService
from src.fs_common.database import get_db_session
from src.fs_common.enums import AuctionStatus
from src.fs_common.response import ApiResponse, success_response
from src.fs_gateway.auth.dependencies import Principal, get_current_user, require_operator

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionApplicationService()


def get_auction_service() -> AuctionApplicationService:
    return _service


@router.post("", status_code=201)
async def create_auction(
    req: CreateAuctionRequest,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionApplicationService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.create_auction(db, req, operator)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_auctions(
    request: Request,
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionApplicationService, Depends(get_auction_service)],
    company_id: str | None = Query(None),
    status: AuctionStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await service.list_auctions(
        db, company_id, status.value if status else None, cursor, limit
    )
    return success_response(result.model_dump(), request)


@router.get("/{auction_id}")
async def get_auction(
    auction_id: str,
    request: Request,
    current_user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionApplicationService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.get_auction(db, auction_id)
    return success_response(result.model_dump(), request)


@router.post("/{auction_id}/start")
async def start_auction(
    auction_id: str,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionApplicationService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.start_auction(db, auction_id, operator)
    return success_response(result.model_dump(), request)


@router.post("/{auction_id}/cancel")
async def cancel_auction(
    auction_id: str,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AuctionApplicationService, Depends(get_auction_service)],
) -> ApiResponse:
    result = await service.cancel_auction(db, auction_id, operator)
    return success_response(result.model_dump(), request)
