# src/fs_clearing/domain/repository.py
"""ClearingRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_clearing.domain.models import ClearingResultRecord


class ClearingRepositoryProtocol(Protocol):
    async def insert_result(self, db: AsyncSession, record: ClearingResultRecord) -> None: ...

    async def get_by_auction(
        self, db: AsyncSession, auction_id: str
    ) -> ClearingResultRecord | None: ...
