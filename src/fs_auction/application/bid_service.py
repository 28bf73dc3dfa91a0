"""BidApplicationService — the bid ledger.

One active bid per (auction, bidder). Submission and withdrawal hold a shared
lock on the auction row, so they serialize against clearing (which takes
FOR UPDATE) but not against each other.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.application.schemas import (
    BidListResponse,
    BidResponse,
    DemandAnalysisResponse,
    MyBidResponse,
    SubmitBidRequest,
    SubmitBidResponse,
    WithdrawBidResponse,
)
from src.fs_auction.domain.demand import analyze_demand
from src.fs_auction.domain.models import Auction, Bid
from src.fs_auction.domain.repository import (
    AuctionRepositoryProtocol,
    BidRepositoryProtocol,
    RowLock,
)
from src.fs_auction.domain.rules import (
    check_accepting_bids,
    check_bid_range,
    check_invited,
    check_manager,
)
from src.fs_auction.infrastructure.persistence import AuctionRepository, BidRepository
from src.fs_common.datetime_utils import utc_now
from src.fs_common.enums import AuctionStatus
from src.fs_common.errors import AuctionNotFoundError, BidNotFoundError
from src.fs_common.id_generator import generate_id
from src.fs_gateway.auth.dependencies import Principal

logger = logging.getLogger(__name__)


class BidApplicationService:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()

    async def _load(self, db: AsyncSession, auction_id: str, lock: RowLock = None) -> Auction:
        auction = await self._auctions.get_by_id(db, auction_id, lock=lock)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    async def submit_bid(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder: Principal,
        req: SubmitBidRequest,
        now: datetime | None = None,
    ) -> SubmitBidResponse:
        now = now or utc_now()
        async with db.begin():
            auction = await self._load(db, auction_id, lock="share")
            check_accepting_bids(auction, now)
            check_invited(auction, bidder.email)
            check_bid_range(auction, req.quantity, req.max_price_cents)

            bid, inserted = await self._bids.upsert_active(
                db,
                Bid(
                    id=generate_id("bid"),
                    auction_id=auction_id,
                    bidder_id=bidder.user_id,
                    bidder_email=bidder.email,
                    quantity_requested=req.quantity,
                    max_price=req.max_price_cents,
                    bid_time=now,
                ),
            )
            active = await self._bids.list_active(db, auction_id)

        logger.info(
            "Bid %s %s: auction=%s bidder=%s qty=%d price=%d",
            bid.id, "placed" if inserted else "replaced",
            auction_id, bidder.user_id, bid.quantity_requested, bid.max_price,
        )
        return SubmitBidResponse(
            bid=BidResponse.from_domain(bid),
            replaced_existing=not inserted,
            demand=DemandAnalysisResponse.from_domain(analyze_demand(auction, active)),
        )

    async def get_my_bid(
        self, db: AsyncSession, auction_id: str, bidder: Principal
    ) -> MyBidResponse:
        auction = await self._load(db, auction_id)
        bid = await self._bids.get_active(db, auction_id, bidder.user_id)
        demand = None
        if auction.status == AuctionStatus.COLLECTING_BIDS:
            active = await self._bids.list_active(db, auction_id)
            demand = DemandAnalysisResponse.from_domain(analyze_demand(auction, active))
        return MyBidResponse(
            bid=BidResponse.from_domain(bid) if bid else None,
            demand=demand,
        )

    async def withdraw_bid(
        self,
        db: AsyncSession,
        auction_id: str,
        bidder: Principal,
        now: datetime | None = None,
    ) -> WithdrawBidResponse:
        now = now or utc_now()
        async with db.begin():
            auction = await self._load(db, auction_id, lock="share")
            check_accepting_bids(auction, now)
            withdrawn = await self._bids.withdraw(db, auction_id, bidder.user_id)
            if not withdrawn:
                raise BidNotFoundError(auction_id)
        logger.info("Bid withdrawn: auction=%s bidder=%s", auction_id, bidder.user_id)
        return WithdrawBidResponse(auction_id=auction_id, withdrawn=True)

    async def list_bids(
        self, db: AsyncSession, auction_id: str, operator: Principal
    ) -> BidListResponse:
        auction = await self._load(db, auction_id)
        check_manager(auction, operator.user_id, operator.is_operator)
        bids = await self._bids.list_active(db, auction_id)
        return BidListResponse(
            auction_id=auction_id,
            items=[BidResponse.from_domain(b) for b in bids],
            total_demand=sum(b.quantity_requested for b in bids),
        )
