"""Best-effort event publisher: outbox rows -> Redis stream.

Runs after the business transaction has committed. A Redis or bookkeeping
failure is logged and left for relay_unpublished; it never propagates into
clearing or settlement results.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.fs_common.redis_client import get_redis
from src.fs_events.domain.events import OutboundEvent
from src.fs_events.infrastructure.outbox import list_unpublished, mark_published

logger = logging.getLogger(__name__)


class EventPublisher:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        stream_key: str | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._stream_key = stream_key or settings.EVENT_STREAM_KEY

    async def publish(self, db: AsyncSession, events: list[OutboundEvent]) -> int:
        """Push committed events to the stream; returns how many were delivered."""
        if not events:
            return 0
        delivered: list[int] = []
        try:
            redis = await self._redis_factory()
            for event in events:
                await redis.xadd(
                    self._stream_key,
                    event.to_stream_fields(),
                    maxlen=settings.EVENT_STREAM_MAXLEN,
                    approximate=True,
                )
                if event.id is not None:
                    delivered.append(event.id)
        except (RedisError, OSError) as exc:
            logger.warning(
                "Event publish failed after %d/%d events: %s",
                len(delivered), len(events), exc,
            )

        if delivered:
            try:
                async with db.begin():
                    await mark_published(delivered, db)
            except SQLAlchemyError as exc:
                # Already on the stream; a later relay may publish a duplicate.
                logger.warning("Could not mark events %s as published: %s", delivered, exc)
        return len(delivered)

    async def relay_unpublished(self, db: AsyncSession, limit: int = 500) -> int:
        """Re-publish outbox rows whose first publish attempt failed."""
        async with db.begin():
            pending = await list_unpublished(db, limit)
        if pending:
            logger.info("Relaying %d unpublished auction events", len(pending))
        return await self.publish(db, pending)
