"""Scheduled sweep: clear every auction whose collection window has closed.

Called by an external cron through POST /auctions/process-expired. Each
auction clears in its own transaction; one failure never blocks the rest.
The sweep also relays outbox events whose first publish attempt failed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.domain.repository import AuctionRepositoryProtocol
from src.fs_auction.infrastructure.persistence import AuctionRepository
from src.fs_clearing.application.orchestrator import ClearingOrchestrator
from src.fs_common.datetime_utils import utc_now
from src.fs_common.enums import ClearingRunStatus
from src.fs_common.errors import AppError
from src.fs_events.infrastructure.publisher import EventPublisher

logger = logging.getLogger(__name__)

# 9xxx: internal errors with no AppError of their own
_DATABASE_ERROR_CODE = 9001


@dataclass
class SweepReport:
    processed: int = 0
    successful: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    results: list[dict[str, Any]] = field(default_factory=list)
    events_relayed: int = 0


class ExpiredAuctionSweeper:
    def __init__(
        self,
        orchestrator: ClearingOrchestrator | None = None,
        auction_repo: AuctionRepositoryProtocol | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._publisher = publisher or EventPublisher()
        self._orchestrator = orchestrator or ClearingOrchestrator(publisher=self._publisher)
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()

    async def process_expired_auctions(
        self, db: AsyncSession, now: datetime | None = None
    ) -> SweepReport:
        now = now or utc_now()
        async with db.begin():
            auction_ids = await self._auctions.list_expired_ids(db, now)

        report = SweepReport(processed=len(auction_ids))
        for auction_id in auction_ids:
            try:
                run = await self._orchestrator.trigger_clearing(db, auction_id, now=now)
            except AppError as exc:
                logger.warning("Sweep could not clear auction %s: %s", auction_id, exc.message)
                report.errors.append(
                    {"auction_id": auction_id, "code": exc.code, "message": exc.message}
                )
                continue
            except SQLAlchemyError as exc:
                logger.exception("Sweep hit a database error on auction %s", auction_id)
                report.errors.append(
                    {
                        "auction_id": auction_id,
                        "code": _DATABASE_ERROR_CODE,
                        "message": f"Database error ({type(exc).__name__})",
                    }
                )
                continue
            if run.status == ClearingRunStatus.ALREADY_CLEARED:
                report.skipped += 1
            else:
                report.successful += 1
            report.results.append({
                "auction_id": auction_id,
                "status": run.status.value,
                "clearing_price": run.result.clearing_price,
                "shares_allocated": run.result.shares_allocated,
            })

        report.events_relayed = await self._publisher.relay_unpublished(db)
        logger.info(
            "Expired-auction sweep: processed=%d successful=%d skipped=%d errors=%d",
            report.processed, report.successful, report.skipped, len(report.errors),
        )
        return report
