"""ClearingOrchestrator — guards, idempotency and atomic persistence around the calculator.

One transaction per clearing run:
  1. Lock the auction row FOR UPDATE and check the guards
     (not already cleared, collecting_bids, window closed unless manual).
  2. Load active bids, validate, calculate.
  3. Insert the clearing result (ON CONFLICT DO NOTHING), every allocation row,
     mark the auction completed, write the AUCTION_CLEARED event row.
Any error rolls the whole run back. A run that finds the auction already
cleared returns the stored result with status already_cleared.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.domain.demand import bids_to_inputs
from src.fs_auction.domain.models import Auction
from src.fs_auction.domain.repository import AuctionRepositoryProtocol, BidRepositoryProtocol
from src.fs_auction.domain.rules import can_manage, check_manager
from src.fs_auction.infrastructure.persistence import AuctionRepository, BidRepository
from src.fs_clearing.domain.calculator import calculate_clearing, validate_bids
from src.fs_clearing.domain.models import AllocationLine, ClearingResultRecord
from src.fs_clearing.domain.repository import ClearingRepositoryProtocol
from src.fs_clearing.infrastructure.persistence import ClearingRepository
from src.fs_common.datetime_utils import utc_now
from src.fs_common.enums import AuctionStatus, ClearingRunStatus, SettlementStatus
from src.fs_common.errors import (
    AlreadyClearedError,
    AuctionNotFoundError,
    ClearingNotAllowedError,
    ClearingResultNotFoundError,
    ClearingWindowOpenError,
)
from src.fs_common.id_generator import generate_id
from src.fs_events.domain import events
from src.fs_events.infrastructure.outbox import write_event
from src.fs_events.infrastructure.publisher import EventPublisher
from src.fs_gateway.auth.dependencies import Principal
from src.fs_settlement.domain.models import Allocation
from src.fs_settlement.domain.repository import AllocationRepositoryProtocol
from src.fs_settlement.infrastructure.persistence import AllocationRepository

logger = logging.getLogger(__name__)


@dataclass
class ClearingRunResult:
    status: ClearingRunStatus
    auction: Auction
    result: ClearingResultRecord
    allocations: list[Allocation]


def _to_allocation(auction_id: str, line: AllocationLine, now: datetime) -> Allocation:
    won = line.allocated_quantity > 0
    return Allocation(
        id=generate_id("alc"),
        auction_id=auction_id,
        bid_id=line.bid_id,
        bidder_id=line.bidder_id,
        bidder_email=line.bidder_email,
        original_quantity=line.original_quantity,
        allocated_quantity=line.allocated_quantity,
        clearing_price=line.clearing_price,
        total_amount=line.total_amount,
        allocation_type=line.allocation_type.value,
        pro_rata_percentage=line.pro_rata_percentage,
        settlement_status=SettlementStatus.PENDING_PAYMENT.value if won else None,
        settlement_date=now if won else None,
        settlement_updated_at=now if won else None,
        created_at=now,
    )


class ClearingOrchestrator:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        clearing_repo: ClearingRepositoryProtocol | None = None,
        allocation_repo: AllocationRepositoryProtocol | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._results: ClearingRepositoryProtocol = clearing_repo or ClearingRepository()
        self._allocations: AllocationRepositoryProtocol = allocation_repo or AllocationRepository()
        self._publisher = publisher or EventPublisher()

    async def trigger_clearing(
        self,
        db: AsyncSession,
        auction_id: str,
        manual_trigger: bool = False,
        now: datetime | None = None,
        operator: Principal | None = None,
    ) -> ClearingRunResult:
        """Clear one auction. operator is None for the scheduled sweep."""
        now = now or utc_now()
        try:
            async with db.begin():
                auction = await self._auctions.get_by_id(db, auction_id, lock="update")
                if auction is None:
                    raise AuctionNotFoundError(auction_id)
                if operator is not None:
                    check_manager(auction, operator.user_id, operator.is_operator)
                if await self._results.get_by_auction(db, auction_id) is not None:
                    raise AlreadyClearedError(auction_id)
                if auction.status != AuctionStatus.COLLECTING_BIDS:
                    raise ClearingNotAllowedError(auction_id, auction.status)
                if not manual_trigger and not auction.window_closed(now):
                    raise ClearingWindowOpenError(auction_id, auction.window_end_display)

                inputs = bids_to_inputs(await self._bids.list_active(db, auction_id))
                validate_bids(inputs, auction.min_price, auction.max_price)
                outcome = calculate_clearing(inputs, auction.shares_count, auction.min_price)

                record = ClearingResultRecord(
                    id=generate_id("clr"),
                    auction_id=auction_id,
                    clearing_price=outcome.clearing_price,
                    total_bids_count=outcome.total_bids_count,
                    total_demand=outcome.total_demand,
                    shares_allocated=outcome.shares_allocated,
                    shares_remaining=outcome.shares_remaining,
                    pro_rata_applied=outcome.pro_rata_applied,
                    calculation_details=outcome.calculation_details(),
                )
                await self._results.insert_result(db, record)

                allocations = [_to_allocation(auction_id, line, now) for line in outcome.allocations]
                await self._allocations.insert_many(db, allocations)
                await self._auctions.mark_cleared(
                    db, auction_id, outcome.clearing_price, outcome.total_demand, now
                )
                auction.status = AuctionStatus.COMPLETED.value
                auction.clearing_price = outcome.clearing_price
                auction.total_demand = outcome.total_demand
                auction.clearing_calculated_at = now

                event = await write_event(
                    events.auction_cleared(
                        auction.to_event_dict(),
                        record.to_event_dict(),
                        [a.to_event_dict() for a in allocations],
                    ),
                    db,
                )
        except AlreadyClearedError:
            logger.info("Auction %s already cleared; returning stored result", auction_id)
            return await self._stored_run(db, auction_id)

        logger.info(
            "Auction %s cleared at %d cents (%s): demand=%d allocated=%d/%d manual=%s",
            auction_id, outcome.clearing_price, outcome.clearing_logic.value,
            outcome.total_demand, outcome.shares_allocated, outcome.supply, manual_trigger,
        )
        await self._publisher.publish(db, [event])
        return ClearingRunResult(ClearingRunStatus.CLEARED, auction, record, allocations)

    async def _stored_run(self, db: AsyncSession, auction_id: str) -> ClearingRunResult:
        async with db.begin():
            auction = await self._auctions.get_by_id(db, auction_id)
            record = await self._results.get_by_auction(db, auction_id)
            allocations = await self._allocations.list_by_auction(db, auction_id)
        if auction is None or record is None:
            raise ClearingResultNotFoundError(auction_id)
        return ClearingRunResult(ClearingRunStatus.ALREADY_CLEARED, auction, record, allocations)

    async def get_clearing(
        self, db: AsyncSession, auction_id: str, viewer: Principal
    ) -> tuple[ClearingResultRecord, list[Allocation]]:
        """Stored result; the managing operator sees every allocation, others only their own."""
        auction = await self._auctions.get_by_id(db, auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        record = await self._results.get_by_auction(db, auction_id)
        if record is None:
            raise ClearingResultNotFoundError(auction_id)
        if can_manage(auction, viewer.user_id, viewer.is_operator):
            return record, await self._allocations.list_by_auction(db, auction_id)
        own = await self._allocations.get_for_bidder(db, auction_id, viewer.user_id)
        return record, [own] if own else []
