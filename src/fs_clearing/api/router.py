"""fs_clearing REST endpoints.

POST /auctions/process-expired         — scheduled sweep (scheduler token)
POST /auctions/{auction_id}/clear      — trigger clearing (operator)
GET  /auctions/{auction_id}/clearing   — stored result (operator: all, bidder: own)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_clearing.application.orchestrator import ClearingOrchestrator, ClearingRunResult
from src.fs_clearing.application.schemas import (
    ClearingResultResponse,
    ClearingRunResponse,
    ClearingViewResponse,
    ClearRequest,
    SweepResponse,
)
from src.fs_clearing.application.sweeper import ExpiredAuctionSweeper
from src.fs_common.database import get_db_session
from src.fs_common.response import ApiResponse, success_response
from src.fs_gateway.auth.dependencies import (
    Principal,
    get_current_user,
    require_operator,
    require_scheduler,
)
from src.fs_settlement.application.schemas import AllocationResponse

router = APIRouter(prefix="/auctions", tags=["clearing"])

_orchestrator = ClearingOrchestrator()
_sweeper = ExpiredAuctionSweeper(orchestrator=_orchestrator)


def get_orchestrator() -> ClearingOrchestrator:
    return _orchestrator


def get_sweeper() -> ExpiredAuctionSweeper:
    return _sweeper


def _run_to_response(run: ClearingRunResult) -> ClearingRunResponse:
    return ClearingRunResponse(
        status=run.status.value,
        auction_id=run.auction.id,
        clearing_result=ClearingResultResponse.from_domain(run.result),
        allocations=[AllocationResponse.from_domain(a) for a in run.allocations],
    )


@router.post("/process-expired", dependencies=[Depends(require_scheduler)])
async def process_expired(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    sweeper: Annotated[ExpiredAuctionSweeper, Depends(get_sweeper)],
) -> ApiResponse:
    report = await sweeper.process_expired_auctions(db)
    data = SweepResponse(
        processed=report.processed,
        successful=report.successful,
        skipped=report.skipped,
        errors=report.errors,
        results=report.results,
        events_relayed=report.events_relayed,
    )
    return success_response(data.model_dump(), request)


@router.post("/{auction_id}/clear")
async def clear_auction(
    auction_id: str,
    request: Request,
    operator: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[ClearingOrchestrator, Depends(get_orchestrator)],
    req: ClearRequest | None = None,
) -> ApiResponse:
    manual = req.manual_trigger if req is not None else False
    run = await orchestrator.trigger_clearing(
        db, auction_id, manual_trigger=manual, operator=operator
    )
    return success_response(_run_to_response(run).model_dump(), request)


@router.get("/{auction_id}/clearing")
async def get_clearing(
    auction_id: str,
    request: Request,
    viewer: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    orchestrator: Annotated[ClearingOrchestrator, Depends(get_orchestrator)],
) -> ApiResponse:
    record, allocations = await orchestrator.get_clearing(db, auction_id, viewer)
    data = ClearingViewResponse(
        auction_id=auction_id,
        viewer_role="operator" if viewer.is_operator else "bidder",
        clearing_result=ClearingResultResponse.from_domain(record),
        allocations=[AllocationResponse.from_domain(a) for a in allocations],
    )
    return success_response(data.model_dump(), request)
