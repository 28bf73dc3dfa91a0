# src/fs_auction/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

Unit tests inject mocks that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from datetime import datetime
from typing import Literal, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_auction.domain.models import Auction, Bid

RowLock = Literal["update", "share"] | None


class AuctionRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, auction: Auction) -> None: ...

    async def get_by_id(
        self, db: AsyncSession, auction_id: str, lock: RowLock = None
    ) -> Auction | None: ...

    async def list_auctions(
        self,
        db: AsyncSession,
        company_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Auction]: ...

    async def list_expired_ids(self, db: AsyncSession, now: datetime) -> list[str]: ...

    async def mark_started(
        self, db: AsyncSession, auction_id: str, start: datetime, end: datetime
    ) -> None: ...

    async def mark_cancelled(self, db: AsyncSession, auction_id: str, now: datetime) -> None: ...

    async def mark_cleared(
        self,
        db: AsyncSession,
        auction_id: str,
        clearing_price: int,
        total_demand: int,
        now: datetime,
    ) -> None: ...


class BidRepositoryProtocol(Protocol):
    async def upsert_active(self, db: AsyncSession, bid: Bid) -> tuple[Bid, bool]: ...

    async def get_active(
        self, db: AsyncSession, auction_id: str, bidder_id: str
    ) -> Bid | None: ...

    async def withdraw(self, db: AsyncSession, auction_id: str, bidder_id: str) -> bool: ...

    async def list_active(self, db: AsyncSession, auction_id: str) -> list[Bid]: ...
