"""AllocationRepository — raw SQL for bid_allocations.

Clearing fields are written once by insert_many. save_settlement only touches
the settlement columns; callers hold the row lock from get(for_update=True).
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_settlement.domain.models import Allocation

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, auction_id, bid_id, bidder_id, bidder_email,
    original_quantity, allocated_quantity, clearing_price, total_amount,
    allocation_type, pro_rata_percentage,
    settlement_status, settlement_date, payment_confirmation_date, payment_reference,
    share_transfer_date, settlement_completed_at, settlement_notes,
    settlement_updated_at, created_at
"""

_INSERT_SQL = text("""
    INSERT INTO bid_allocations (id, auction_id, bid_id, bidder_id, bidder_email,
        original_quantity, allocated_quantity, clearing_price, total_amount,
        allocation_type, pro_rata_percentage, settlement_status, settlement_date,
        settlement_updated_at)
    VALUES (:id, :auction_id, :bid_id, :bidder_id, :bidder_email,
        :original_quantity, :allocated_quantity, :clearing_price, :total_amount,
        :allocation_type, :pro_rata_percentage, :settlement_status, :settlement_date,
        :settlement_date)
""")

_LIST_BY_AUCTION_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM bid_allocations
    WHERE auction_id = :auction_id
    ORDER BY allocated_quantity DESC, id
""")

_GET_SQL = f"""
    SELECT {_COLUMNS}
    FROM bid_allocations
    WHERE id = :allocation_id AND auction_id = :auction_id
"""
_GET_PLAIN_SQL = text(_GET_SQL)
_GET_FOR_UPDATE_SQL = text(_GET_SQL + " FOR UPDATE")

_GET_FOR_BIDDER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM bid_allocations
    WHERE auction_id = :auction_id AND bidder_id = :bidder_id
""")

_SAVE_SETTLEMENT_SQL = text("""
    UPDATE bid_allocations
    SET settlement_status = :settlement_status,
        payment_confirmation_date = :payment_confirmation_date,
        payment_reference = :payment_reference,
        share_transfer_date = :share_transfer_date,
        settlement_completed_at = :settlement_completed_at,
        settlement_notes = :settlement_notes,
        settlement_updated_at = :settlement_updated_at
    WHERE id = :id
""")

_COUNT_UNFINISHED_SQL = text("""
    SELECT COUNT(*) FROM bid_allocations
    WHERE auction_id = :auction_id
      AND allocated_quantity > 0
      AND settlement_status <> 'completed'
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_allocation(row: Any) -> Allocation:
    pct = row.pro_rata_percentage
    return Allocation(
        id=row.id,
        auction_id=row.auction_id,
        bid_id=row.bid_id,
        bidder_id=row.bidder_id,
        bidder_email=row.bidder_email,
        original_quantity=row.original_quantity,
        allocated_quantity=row.allocated_quantity,
        clearing_price=row.clearing_price,
        total_amount=row.total_amount,
        allocation_type=row.allocation_type,
        pro_rata_percentage=Decimal(pct) if pct is not None else None,
        settlement_status=row.settlement_status,
        settlement_date=row.settlement_date,
        payment_confirmation_date=row.payment_confirmation_date,
        payment_reference=row.payment_reference,
        share_transfer_date=row.share_transfer_date,
        settlement_completed_at=row.settlement_completed_at,
        settlement_notes=row.settlement_notes,
        settlement_updated_at=row.settlement_updated_at,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AllocationRepository:
    async def insert_many(self, db: AsyncSession, allocations: list[Allocation]) -> None:
        if not allocations:
            return
        await db.execute(
            _INSERT_SQL,
            [
                {
                    "id": a.id,
                    "auction_id": a.auction_id,
                    "bid_id": a.bid_id,
                    "bidder_id": a.bidder_id,
                    "bidder_email": a.bidder_email,
                    "original_quantity": a.original_quantity,
                    "allocated_quantity": a.allocated_quantity,
                    "clearing_price": a.clearing_price,
                    "total_amount": a.total_amount,
                    "allocation_type": a.allocation_type,
                    "pro_rata_percentage": a.pro_rata_percentage,
                    "settlement_status": a.settlement_status,
                    "settlement_date": a.settlement_date,
                }
                for a in allocations
            ],
        )

    async def list_by_auction(self, db: AsyncSession, auction_id: str) -> list[Allocation]:
        result = await db.execute(_LIST_BY_AUCTION_SQL, {"auction_id": auction_id})
        return [_row_to_allocation(r) for r in result.fetchall()]

    async def get(
        self, db: AsyncSession, auction_id: str, allocation_id: str, for_update: bool = False
    ) -> Allocation | None:
        stmt = _GET_FOR_UPDATE_SQL if for_update else _GET_PLAIN_SQL
        row = (
            await db.execute(stmt, {"allocation_id": allocation_id, "auction_id": auction_id})
        ).fetchone()
        return _row_to_allocation(row) if row else None

    async def get_for_bidder(
        self, db: AsyncSession, auction_id: str, bidder_id: str
    ) -> Allocation | None:
        row = (
            await db.execute(
                _GET_FOR_BIDDER_SQL, {"auction_id": auction_id, "bidder_id": bidder_id}
            )
        ).fetchone()
        return _row_to_allocation(row) if row else None

    async def save_settlement(self, db: AsyncSession, allocation: Allocation) -> None:
        await db.execute(
            _SAVE_SETTLEMENT_SQL,
            {
                "id": allocation.id,
                "settlement_status": allocation.settlement_status,
                "payment_confirmation_date": allocation.payment_confirmation_date,
                "payment_reference": allocation.payment_reference,
                "share_transfer_date": allocation.share_transfer_date,
                "settlement_completed_at": allocation.settlement_completed_at,
                "settlement_notes": allocation.settlement_notes,
                "settlement_updated_at": allocation.settlement_updated_at,
            },
        )

    async def count_unfinished(self, db: AsyncSession, auction_id: str) -> int:
        return (await db.execute(_COUNT_UNFINISHED_SQL, {"auction_id": auction_id})).scalar_one()
