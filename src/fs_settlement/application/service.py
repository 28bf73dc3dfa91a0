"""SettlementService — drives allocations through the settlement workflow.

Every allocation transition runs in its own savepoint with the allocation row
locked FOR UPDATE, so a failing id in a bulk request rolls back only itself.
Event rows are written inside the same savepoint as the status change and
published after the outer transaction commits.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.domain.models import Auction
from src.fs_auction.domain.repository import AuctionRepositoryProtocol
from src.fs_auction.domain.rules import can_manage, check_manager
from src.fs_auction.infrastructure.persistence import AuctionRepository
from src.fs_common.datetime_utils import utc_now
from src.fs_common.enums import AuctionStatus, SettlementAction, SettlementStatus
from src.fs_common.errors import (
    AllocationNotFoundError,
    AuctionNotClearedError,
    AuctionNotFoundError,
    InvalidSettlementTransitionError,
)
from src.fs_events.domain import events
from src.fs_events.domain.events import OutboundEvent
from src.fs_events.infrastructure.outbox import write_event
from src.fs_events.infrastructure.publisher import EventPublisher
from src.fs_gateway.auth.dependencies import Principal
from src.fs_settlement.application.schemas import (
    AllocationDetailResponse,
    AllocationResponse,
    NotesResponse,
    SettlementDashboardResponse,
)
from src.fs_settlement.domain.models import BulkTransitionResult, TransitionOutcome
from src.fs_settlement.domain.reporting import summarize
from src.fs_settlement.domain.repository import AllocationRepositoryProtocol
from src.fs_settlement.domain.state_machine import (
    AUTO_PROCESS_REFERENCE,
    append_note,
    next_steps,
    plan_step,
    timeline,
    transition_note,
)
from src.fs_settlement.infrastructure.persistence import AllocationRepository

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        allocation_repo: AllocationRepositoryProtocol | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._allocations: AllocationRepositoryProtocol = allocation_repo or AllocationRepository()
        self._publisher = publisher or EventPublisher()

    async def _require_cleared(
        self, db: AsyncSession, auction_id: str, operator: Principal | None = None
    ) -> Auction:
        """Load a cleared auction; with operator given, also require that it manages it."""
        auction = await self._auctions.get_by_id(db, auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        if operator is not None:
            check_manager(auction, operator.user_id, operator.is_operator)
        if auction.status != AuctionStatus.COMPLETED:
            raise AuctionNotClearedError(auction_id)
        return auction

    async def _transition_one(
        self,
        db: AsyncSession,
        auction: Auction,
        allocation_id: str,
        action: SettlementAction,
        payment_reference: str | None,
        notes: str | None,
        now: datetime,
    ) -> tuple[TransitionOutcome, list[OutboundEvent]]:
        allocation = await self._allocations.get(db, auction.id, allocation_id, for_update=True)
        if allocation is None:
            raise AllocationNotFoundError(allocation_id)
        step = plan_step(allocation.id, allocation.settlement_status, action)

        allocation.settlement_status = step.new_status.value
        allocation.settlement_updated_at = now
        if step.new_status == SettlementStatus.PAYMENT_RECEIVED:
            allocation.payment_confirmation_date = now
            if action == SettlementAction.AUTO_PROCESS:
                payment_reference = payment_reference or AUTO_PROCESS_REFERENCE
            allocation.payment_reference = payment_reference
        elif step.new_status == SettlementStatus.SHARES_TRANSFERRED:
            allocation.share_transfer_date = now
        elif step.new_status == SettlementStatus.COMPLETED:
            allocation.settlement_completed_at = now
        allocation.settlement_notes = append_note(
            allocation.settlement_notes, transition_note(step.new_status, now, notes)
        )
        await self._allocations.save_settlement(db, allocation)

        written = [
            await write_event(
                events.settlement_status_changed(
                    auction.id,
                    allocation.to_event_dict(),
                    step.old_status.value,
                    step.new_status.value,
                ),
                db,
            )
        ]
        if step.new_status == SettlementStatus.SHARES_TRANSFERRED:
            written.append(
                await write_event(
                    events.shares_transfer_confirmed(
                        auction.id,
                        auction.company_id,
                        allocation.id,
                        allocation.bidder_id,
                        allocation.allocated_quantity,
                        allocation.clearing_price,
                    ),
                    db,
                )
            )
        return TransitionOutcome(allocation, step.old_status, step.new_status), written

    async def apply_bulk(
        self,
        db: AsyncSession,
        auction_id: str,
        action: SettlementAction,
        allocation_ids: list[str],
        operator: Principal,
        payment_reference: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> BulkTransitionResult:
        """Apply one action to many allocations; each id succeeds or fails on its own."""
        now = now or utc_now()
        result = BulkTransitionResult()
        written: list[OutboundEvent] = []

        async with db.begin():
            auction = await self._require_cleared(db, auction_id, operator)
            for allocation_id in dict.fromkeys(allocation_ids):
                try:
                    async with db.begin_nested():
                        outcome, emitted = await self._transition_one(
                            db, auction, allocation_id, action, payment_reference, notes, now
                        )
                except (AllocationNotFoundError, InvalidSettlementTransitionError) as exc:
                    result.failures[allocation_id] = exc
                    continue
                result.succeeded.append(outcome)
                written.extend(emitted)

            if any(o.new_status == SettlementStatus.COMPLETED for o in result.succeeded):
                # Serialize "last one completes" checks across concurrent batches.
                await self._auctions.get_by_id(db, auction_id, lock="update")
                if await self._allocations.count_unfinished(db, auction_id) == 0:
                    summary = summarize(await self._allocations.list_by_auction(db, auction_id))
                    written.append(
                        await write_event(
                            events.all_settlements_completed(auction_id, summary.to_dict()), db
                        )
                    )
                    result.all_completed = True

        logger.info(
            "Settlement %s on auction %s: %d succeeded, %d failed",
            action.value, auction_id, len(result.succeeded), len(result.failures),
        )
        if result.all_completed:
            logger.info("All settlements completed for auction %s", auction_id)
        await self._publisher.publish(db, written)
        return result

    async def apply_action(
        self,
        db: AsyncSession,
        auction_id: str,
        allocation_id: str,
        action: SettlementAction,
        operator: Principal,
        payment_reference: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> TransitionOutcome:
        """Single-allocation transition; the failure is raised instead of reported."""
        result = await self.apply_bulk(
            db, auction_id, action, [allocation_id], operator, payment_reference, notes, now
        )
        if allocation_id in result.failures:
            raise result.failures[allocation_id]
        return result.succeeded[0]

    async def add_notes(
        self,
        db: AsyncSession,
        auction_id: str,
        allocation_id: str,
        notes: str,
        operator: Principal,
        now: datetime | None = None,
    ) -> NotesResponse:
        now = now or utc_now()
        async with db.begin():
            await self._require_cleared(db, auction_id, operator)
            allocation = await self._allocations.get(db, auction_id, allocation_id, for_update=True)
            if allocation is None:
                raise AllocationNotFoundError(allocation_id)
            allocation.settlement_notes = append_note(
                allocation.settlement_notes, f"Note added: {now.isoformat()}\nNotes: {notes}"
            )
            allocation.settlement_updated_at = now
            await self._allocations.save_settlement(db, allocation)
        return NotesResponse(allocation_id=allocation_id, settlement_notes=allocation.settlement_notes)

    async def get_dashboard(
        self, db: AsyncSession, auction_id: str, operator: Principal
    ) -> SettlementDashboardResponse:
        auction = await self._require_cleared(db, auction_id, operator)
        allocations = await self._allocations.list_by_auction(db, auction_id)
        return SettlementDashboardResponse.build(
            auction_id, auction.title, summarize(allocations), allocations
        )

    async def get_allocation_detail(
        self,
        db: AsyncSession,
        auction_id: str,
        allocation_id: str,
        viewer: Principal,
    ) -> AllocationDetailResponse:
        auction = await self._require_cleared(db, auction_id)
        allocation = await self._allocations.get(db, auction_id, allocation_id)
        is_operator = can_manage(auction, viewer.user_id, viewer.is_operator)
        # Allocations outside the caller's reach look missing.
        if allocation is None or not (is_operator or allocation.bidder_id == viewer.user_id):
            raise AllocationNotFoundError(allocation_id)

        status = allocation.settlement_status
        return AllocationDetailResponse(
            allocation=AllocationResponse.from_domain(allocation),
            auction_title=auction.title,
            settlement_timeline=timeline(allocation),
            next_steps=next_steps(status) if is_operator else [],
            user_role="operator" if is_operator else "bidder",
            actions_available={
                "can_confirm_payment": is_operator and status == SettlementStatus.PENDING_PAYMENT,
                "can_transfer_shares": is_operator and status == SettlementStatus.PAYMENT_RECEIVED,
                "can_complete_settlement": (
                    is_operator and status == SettlementStatus.SHARES_TRANSFERRED
                ),
                "can_view_details": True,
                "can_add_notes": is_operator,
            },
        )
