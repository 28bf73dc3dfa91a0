# src/fs_settlement/domain/repository.py
"""AllocationRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_settlement.domain.models import Allocation


class AllocationRepositoryProtocol(Protocol):
    async def insert_many(self, db: AsyncSession, allocations: list[Allocation]) -> None: ...

    async def list_by_auction(self, db: AsyncSession, auction_id: str) -> list[Allocation]: ...

    async def get(
        self, db: AsyncSession, auction_id: str, allocation_id: str, for_update: bool = False
    ) -> Allocation | None: ...

    async def get_for_bidder(
        self, db: AsyncSession, auction_id: str, bidder_id: str
    ) -> Allocation | None: ...

    async def save_settlement(self, db: AsyncSession, allocation: Allocation) -> None: ...

    async def count_unfinished(self, db: AsyncSession, auction_id: str) -> int: ...
