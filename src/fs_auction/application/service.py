"""AuctionApplicationService — auction lifecycle.

Writes run inside `async with db.begin()`; the lifecycle event row is written
in the same transaction and published after commit.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fs_auction.application.schemas import (
    AuctionListResponse,
    AuctionResponse,
    CreateAuctionRequest,
    cursor_decode,
    cursor_encode,
)
from src.fs_auction.domain.models import Auction
from src.fs_auction.domain.repository import AuctionRepositoryProtocol
from src.fs_auction.domain.rules import (
    check_auction_parameters,
    check_manager,
    check_transition,
)
from src.fs_auction.infrastructure.persistence import AuctionRepository
from src.fs_common.datetime_utils import utc_now, window_end
from src.fs_common.enums import AuctionStatus
from src.fs_common.errors import AuctionNotFoundError
from src.fs_common.id_generator import generate_id
from src.fs_events.domain import events
from src.fs_events.infrastructure.outbox import write_event
from src.fs_events.infrastructure.publisher import EventPublisher
from src.fs_gateway.auth.dependencies import Principal

logger = logging.getLogger(__name__)


class AuctionApplicationService:
    def __init__(
        self,
        repo: AuctionRepositoryProtocol | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._publisher = publisher or EventPublisher()

    async def create_auction(
        self, db: AsyncSession, req: CreateAuctionRequest, operator: Principal
    ) -> AuctionResponse:
        duration = req.duration_minutes or settings.AUCTION_DEFAULT_DURATION_MINUTES
        check_auction_parameters(
            req.shares_count, req.max_price_cents, req.min_price_cents, duration
        )
        now = utc_now()
        auction = Auction(
            id=generate_id("auc"),
            company_id=req.company_id,
            title=req.title,
            description=req.description,
            shares_count=req.shares_count,
            max_price=req.max_price_cents,
            min_price=req.min_price_cents,
            duration_minutes=duration,
            status=AuctionStatus.DRAFT.value,
            invited_members=req.invited_members,
            created_by=operator.user_id,
            created_at=now,
            updated_at=now,
        )
        async with db.begin():
            await self._repo.create(db, auction)
        logger.info("Auction %s created for company %s", auction.id, auction.company_id)
        return AuctionResponse.from_domain(auction)

    async def list_auctions(
        self,
        db: AsyncSession,
        company_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> AuctionListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        auctions = await self._repo.list_auctions(db, company_id, status, cursor_id, limit + 1)
        has_more = len(auctions) > limit
        page = auctions[:limit]
        return AuctionListResponse(
            items=[AuctionResponse.from_domain(a) for a in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def get_auction(self, db: AsyncSession, auction_id: str) -> AuctionResponse:
        auction = await self._repo.get_by_id(db, auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return AuctionResponse.from_domain(auction)

    async def start_auction(
        self,
        db: AsyncSession,
        auction_id: str,
        operator: Principal,
        now: datetime | None = None,
    ) -> AuctionResponse:
        now = now or utc_now()
        async with db.begin():
            auction = await self._repo.get_by_id(db, auction_id, lock="update")
            if auction is None:
                raise AuctionNotFoundError(auction_id)
            check_manager(auction, operator.user_id, operator.is_operator)
            check_transition(auction, AuctionStatus.COLLECTING_BIDS)

            end = window_end(now, auction.duration_minutes)
            await self._repo.mark_started(db, auction_id, now, end)
            auction.status = AuctionStatus.COLLECTING_BIDS.value
            auction.bid_collection_start_time = now
            auction.bid_collection_end_time = end
            event = await write_event(
                events.auction_started(
                    auction.id, auction.company_id, end.isoformat(), auction.invited_members
                ),
                db,
            )

        logger.info("Auction %s collecting bids until %s", auction_id, end.isoformat())
        await self._publisher.publish(db, [event])
        return AuctionResponse.from_domain(auction)

    async def cancel_auction(
        self,
        db: AsyncSession,
        auction_id: str,
        operator: Principal,
        now: datetime | None = None,
    ) -> AuctionResponse:
        now = now or utc_now()
        async with db.begin():
            auction = await self._repo.get_by_id(db, auction_id, lock="update")
            if auction is None:
                raise AuctionNotFoundError(auction_id)
            check_manager(auction, operator.user_id, operator.is_operator)
            check_transition(auction, AuctionStatus.CANCELLED)

            previous = auction.status
            await self._repo.mark_cancelled(db, auction_id, now)
            auction.status = AuctionStatus.CANCELLED.value
            auction.cancelled_at = now
            event = await write_event(
                events.auction_cancelled(auction.id, auction.company_id, previous), db
            )

        logger.info("Auction %s cancelled (was %s)", auction_id, previous)
        await self._publisher.publish(db, [event])
        return AuctionResponse.from_domain(auction)
