"""fs_settlement REST endpoints.

GET  /auctions/{auction_id}/settlement                   — dashboard (operator)
POST /auctions/{auction_id}/settlement                   — bulk transition (operator)
GET  /auctions/{auction_id}/settlement/{allocation_id}   — detail (operator or owning bidder)
POST /auctions/{auction_id}/settlement/{allocation_id}   — single transition or add_notes (operator)

A bulk call with per-id failures answers 207 with code 6004; the successful
ids are committed and listed in data.succeeded.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.database import get_db_session
from src.fs_common.errors import PartialBatchFailureError
from src.fs_common.response import ApiResponse, error_response, success_response
from src.fs_gateway.auth.dependencies import Principal, get_current_user, require_operator
from src.fs_settlement.application.schemas import (
    AllocationActionRequest,
    BulkSettlementRequest,
    BulkSettlementResponse,
    TransitionResponse,
)
from src.fs_settlement.application.service import SettlementService

router = APIRouter(prefix="/auctions/{auction_id}/settlement", tags=["settlement"])

_service = SettlementService()


def get_settlement_service() -> SettlementService:
    return _service


@router.get("")
async def get_dashboard(
    auction_id: str,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    result = await service.get_dashboard(db, auction_id, operator)
    return success_response(result.model_dump(), request)


@router.post("", response_model=None)
async def bulk_transition(
    auction_id: str,
    req: BulkSettlementRequest,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse | JSONResponse:
    result = await service.apply_bulk(
        db, auction_id, req.action, req.allocation_ids, operator, req.payment_reference, req.notes
    )
    partial = PartialBatchFailureError(result.failures) if result.has_failures else None
    data = BulkSettlementResponse(
        auction_id=auction_id,
        action=req.action.value,
        processed_count=len(result.succeeded),
        succeeded=[
            TransitionResponse.from_outcome(o, req.action.value) for o in result.succeeded
        ],
        failures=partial.failure_details() if partial else {},
        all_settlements_completed=result.all_completed,
    )
    if partial is None:
        return success_response(data.model_dump(), request)

    resp = error_response(partial.code, partial.message, data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=partial.http_status, content=resp.model_dump())


@router.get("/{allocation_id}")
async def get_allocation_detail(
    auction_id: str,
    allocation_id: str,
    request: Request,
    viewer: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    result = await service.get_allocation_detail(db, auction_id, allocation_id, viewer)
    return success_response(result.model_dump(), request)


@router.post("/{allocation_id}")
async def allocation_action(
    auction_id: str,
    allocation_id: str,
    req: AllocationActionRequest,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    if req.action == "add_notes":
        # notes presence is enforced by AllocationActionRequest
        notes = await service.add_notes(db, auction_id, allocation_id, req.notes or "", operator)
        return success_response(notes.model_dump(), request)

    outcome = await service.apply_action(
        db, auction_id, allocation_id, req.action, operator, req.payment_reference, req.notes
    )
    data = TransitionResponse.from_outcome(outcome, req.action.value)
    return success_response(data.model_dump(), request)
