"""ClearingRepository — raw SQL for auction_clearing_results.

UNIQUE(auction_id) is the persisted "already cleared" fact. The insert uses
ON CONFLICT DO NOTHING so a lost race surfaces as AlreadyClearedError instead
of an IntegrityError that would poison the surrounding transaction.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_clearing.domain.models import ClearingResultRecord
from src.fs_common.errors import AlreadyClearedError

_INSERT_RESULT_SQL = text("""
    INSERT INTO auction_clearing_results (id, auction_id, clearing_price,
        total_bids_count, total_demand, shares_allocated, shares_remaining,
        pro_rata_applied, calculation_details)
    VALUES (:id, :auction_id, :clearing_price,
        :total_bids_count, :total_demand, :shares_allocated, :shares_remaining,
        :pro_rata_applied, CAST(:calculation_details AS JSONB))
    ON CONFLICT (auction_id) DO NOTHING
    RETURNING id, created_at
""")

_GET_BY_AUCTION_SQL = text("""
    SELECT id, auction_id, clearing_price, total_bids_count, total_demand,
           shares_allocated, shares_remaining, pro_rata_applied,
           calculation_details, created_at
    FROM auction_clearing_results
    WHERE auction_id = :auction_id
""")


def _row_to_record(row: Any) -> ClearingResultRecord:
    details = row.calculation_details
    if isinstance(details, str):
        details = json.loads(details)
    return ClearingResultRecord(
        id=row.id,
        auction_id=row.auction_id,
        clearing_price=row.clearing_price,
        total_bids_count=row.total_bids_count,
        total_demand=row.total_demand,
        shares_allocated=row.shares_allocated,
        shares_remaining=row.shares_remaining,
        pro_rata_applied=row.pro_rata_applied,
        calculation_details=details or {},
        created_at=row.created_at,
    )


class ClearingRepository:
    async def insert_result(self, db: AsyncSession, record: ClearingResultRecord) -> None:
        """Insert the immutable clearing result; raises AlreadyClearedError on conflict."""
        row = (
            await db.execute(
                _INSERT_RESULT_SQL,
                {
                    "id": record.id,
                    "auction_id": record.auction_id,
                    "clearing_price": record.clearing_price,
                    "total_bids_count": record.total_bids_count,
                    "total_demand": record.total_demand,
                    "shares_allocated": record.shares_allocated,
                    "shares_remaining": record.shares_remaining,
                    "pro_rata_applied": record.pro_rata_applied,
                    "calculation_details": json.dumps(record.calculation_details),
                },
            )
        ).fetchone()
        if row is None:
            raise AlreadyClearedError(record.auction_id)
        record.created_at = row.created_at

    async def get_by_auction(
        self, db: AsyncSession, auction_id: str
    ) -> ClearingResultRecord | None:
        row = (await db.execute(_GET_BY_AUCTION_SQL, {"auction_id": auction_id})).fetchone()
        return _row_to_record(row) if row else None
