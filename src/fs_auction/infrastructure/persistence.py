"""AuctionRepository and BidRepository — raw text() SQL, no ORM.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
Row locks are opt-in per call: clearing takes FOR UPDATE on the auction row,
bid submission takes FOR SHARE so bids cannot land after clearing began.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.domain.models import Auction, Bid
from src.fs_auction.domain.repository import RowLock

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_AUCTION_COLUMNS = """
    id, company_id, title, description, shares_count, max_price, min_price,
    duration_minutes, invited_members, status,
    bid_collection_start_time, bid_collection_end_time,
    clearing_price, total_demand, clearing_calculated_at, cancelled_at,
    created_by, created_at, updated_at
"""

_INSERT_AUCTION_SQL = text("""
    INSERT INTO auctions (id, company_id, title, description, shares_count,
        max_price, min_price, duration_minutes, invited_members, status, created_by)
    VALUES (:id, :company_id, :title, :description, :shares_count,
        :max_price, :min_price, :duration_minutes,
        CAST(:invited_members AS TEXT[]), :status, :created_by)
""")

_GET_AUCTION_SQL = f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id"

_GET_AUCTION_PLAIN_SQL = text(_GET_AUCTION_SQL)
_GET_AUCTION_FOR_UPDATE_SQL = text(_GET_AUCTION_SQL + " FOR UPDATE")
_GET_AUCTION_FOR_SHARE_SQL = text(_GET_AUCTION_SQL + " FOR SHARE")

_LIST_AUCTIONS_SQL = text(f"""
    SELECT {_AUCTION_COLUMNS}
    FROM auctions
    WHERE (CAST(:company_id AS TEXT) IS NULL OR company_id = CAST(:company_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_EXPIRED_SQL = text("""
    SELECT a.id
    FROM auctions a
    WHERE a.status = 'collecting_bids'
      AND a.bid_collection_end_time <= :now
      AND NOT EXISTS (
          SELECT 1 FROM auction_clearing_results r WHERE r.auction_id = a.id
      )
    ORDER BY a.bid_collection_end_time, a.id
""")

_MARK_STARTED_SQL = text("""
    UPDATE auctions
    SET status = 'collecting_bids',
        bid_collection_start_time = :start,
        bid_collection_end_time = :end_time
    WHERE id = :auction_id AND status = 'draft'
""")

_MARK_CANCELLED_SQL = text("""
    UPDATE auctions
    SET status = 'cancelled', cancelled_at = :now
    WHERE id = :auction_id AND status IN ('draft', 'collecting_bids')
""")

_MARK_CLEARED_SQL = text("""
    UPDATE auctions
    SET status = 'completed',
        clearing_price = :clearing_price,
        total_demand = :total_demand,
        clearing_calculated_at = :now
    WHERE id = :auction_id AND status = 'collecting_bids'
""")

_BID_COLUMNS = """
    id, auction_id, bidder_id, bidder_email, quantity_requested, max_price,
    bid_time, active, created_at, updated_at
"""

# Partial unique index uq_auction_bids_active (auction_id, bidder_id) WHERE active.
# xmax = 0 only for a freshly inserted tuple.
_UPSERT_BID_SQL = text(f"""
    INSERT INTO auction_bids (id, auction_id, bidder_id, bidder_email,
        quantity_requested, max_price, bid_time, active)
    VALUES (:id, :auction_id, :bidder_id, :bidder_email,
        :quantity_requested, :max_price, :bid_time, TRUE)
    ON CONFLICT (auction_id, bidder_id) WHERE active
    DO UPDATE SET
        bidder_email = EXCLUDED.bidder_email,
        quantity_requested = EXCLUDED.quantity_requested,
        max_price = EXCLUDED.max_price,
        bid_time = EXCLUDED.bid_time
    RETURNING {_BID_COLUMNS}, (xmax = 0) AS inserted
""")

_GET_ACTIVE_BID_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM auction_bids
    WHERE auction_id = :auction_id AND bidder_id = :bidder_id AND active
""")

_WITHDRAW_BID_SQL = text("""
    UPDATE auction_bids
    SET active = FALSE
    WHERE auction_id = :auction_id AND bidder_id = :bidder_id AND active
    RETURNING id
""")

_LIST_ACTIVE_BIDS_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM auction_bids
    WHERE auction_id = :auction_id AND active
    ORDER BY max_price DESC, bid_time ASC, bidder_id ASC
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_auction(row: Any) -> Auction:
    return Auction(
        id=row.id,
        company_id=row.company_id,
        title=row.title,
        description=row.description,
        shares_count=row.shares_count,
        max_price=row.max_price,
        min_price=row.min_price,
        duration_minutes=row.duration_minutes,
        invited_members=list(row.invited_members or []),
        status=row.status,
        bid_collection_start_time=row.bid_collection_start_time,
        bid_collection_end_time=row.bid_collection_end_time,
        clearing_price=row.clearing_price,
        total_demand=row.total_demand,
        clearing_calculated_at=row.clearing_calculated_at,
        cancelled_at=row.cancelled_at,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        auction_id=row.auction_id,
        bidder_id=row.bidder_id,
        bidder_email=row.bidder_email,
        quantity_requested=row.quantity_requested,
        max_price=row.max_price,
        bid_time=row.bid_time,
        active=row.active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class AuctionRepository:
    """Concrete implementation of AuctionRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, auction: Auction) -> None:
        await db.execute(
            _INSERT_AUCTION_SQL,
            {
                "id": auction.id,
                "company_id": auction.company_id,
                "title": auction.title,
                "description": auction.description,
                "shares_count": auction.shares_count,
                "max_price": auction.max_price,
                "min_price": auction.min_price,
                "duration_minutes": auction.duration_minutes,
                "invited_members": auction.invited_members,
                "status": auction.status,
                "created_by": auction.created_by,
            },
        )

    async def get_by_id(
        self, db: AsyncSession, auction_id: str, lock: RowLock = None
    ) -> Auction | None:
        if lock == "update":
            stmt = _GET_AUCTION_FOR_UPDATE_SQL
        elif lock == "share":
            stmt = _GET_AUCTION_FOR_SHARE_SQL
        else:
            stmt = _GET_AUCTION_PLAIN_SQL
        row = (await db.execute(stmt, {"auction_id": auction_id})).fetchone()
        return _row_to_auction(row) if row else None

    async def list_auctions(
        self,
        db: AsyncSession,
        company_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Auction]:
        result = await db.execute(
            _LIST_AUCTIONS_SQL,
            {
                "company_id": company_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_auction(r) for r in result.fetchall()]

    async def list_expired_ids(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(_LIST_EXPIRED_SQL, {"now": now})
        return [r.id for r in result.fetchall()]

    async def mark_started(
        self, db: AsyncSession, auction_id: str, start: datetime, end: datetime
    ) -> None:
        await db.execute(
            _MARK_STARTED_SQL,
            {"auction_id": auction_id, "start": start, "end_time": end},
        )

    async def mark_cancelled(self, db: AsyncSession, auction_id: str, now: datetime) -> None:
        await db.execute(_MARK_CANCELLED_SQL, {"auction_id": auction_id, "now": now})

    async def mark_cleared(
        self,
        db: AsyncSession,
        auction_id: str,
        clearing_price: int,
        total_demand: int,
        now: datetime,
    ) -> None:
        await db.execute(
            _MARK_CLEARED_SQL,
            {
                "auction_id": auction_id,
                "clearing_price": clearing_price,
                "total_demand": total_demand,
                "now": now,
            },
        )


class BidRepository:
    """Concrete implementation of BidRepositoryProtocol using raw SQL."""

    async def upsert_active(self, db: AsyncSession, bid: Bid) -> tuple[Bid, bool]:
        """Insert or replace the caller's active bid. Returns (bid, inserted)."""
        row = (
            await db.execute(
                _UPSERT_BID_SQL,
                {
                    "id": bid.id,
                    "auction_id": bid.auction_id,
                    "bidder_id": bid.bidder_id,
                    "bidder_email": bid.bidder_email,
                    "quantity_requested": bid.quantity_requested,
                    "max_price": bid.max_price,
                    "bid_time": bid.bid_time,
                },
            )
        ).fetchone()
        return _row_to_bid(row), bool(row.inserted)

    async def get_active(
        self, db: AsyncSession, auction_id: str, bidder_id: str
    ) -> Bid | None:
        row = (
            await db.execute(
                _GET_ACTIVE_BID_SQL, {"auction_id": auction_id, "bidder_id": bidder_id}
            )
        ).fetchone()
        return _row_to_bid(row) if row else None

    async def withdraw(self, db: AsyncSession, auction_id: str, bidder_id: str) -> bool:
        row = (
            await db.execute(
                _WITHDRAW_BID_SQL, {"auction_id": auction_id, "bidder_id": bidder_id}
            )
        ).fetchone()
        return row is not None

    async def list_active(self, db: AsyncSession, auction_id: str) -> list[Bid]:
        result = await db.execute(_LIST_ACTIVE_BIDS_SQL, {"auction_id": auction_id})
        return [_row_to_bid(r) for r in result.fetchall()]
