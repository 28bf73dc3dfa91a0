"""Unit tests for EventPublisher: post-commit delivery never breaks the caller."""

from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from src.fs_common.enums import EventType
from src.fs_events.domain.events import OutboundEvent
from src.fs_events.infrastructure.publisher import EventPublisher


def _events() -> list[OutboundEvent]:
    return [
        OutboundEvent(EventType.AUCTION_STARTED, "auc_1", {"company_id": "co_1"}, id=11),
        OutboundEvent(EventType.AUCTION_CANCELLED, "auc_2", {"company_id": "co_1"}, id=12),
    ]


async def test_publish_marks_delivered(db) -> None:
    redis = AsyncMock()
    publisher = EventPublisher(redis_factory=AsyncMock(return_value=redis), stream_key="test:events")

    with patch(
        "src.fs_events.infrastructure.publisher.mark_published", new_callable=AsyncMock
    ) as mark:
        delivered = await publisher.publish(db, _events())

    assert delivered == 2
    assert redis.xadd.await_count == 2
    stream, fields = redis.xadd.await_args_list[0].args
    assert stream == "test:events"
    assert fields["event_type"] == "AUCTION_STARTED"
    assert fields["event_id"] == "11"
    mark.assert_awaited_once_with([11, 12], db)


async def test_redis_failure_is_swallowed(db) -> None:
    redis = AsyncMock()
    redis.xadd.side_effect = RedisConnectionError("down")
    publisher = EventPublisher(redis_factory=AsyncMock(return_value=redis))

    with patch(
        "src.fs_events.infrastructure.publisher.mark_published", new_callable=AsyncMock
    ) as mark:
        delivered = await publisher.publish(db, _events())

    assert delivered == 0
    mark.assert_not_awaited()


async def test_partial_delivery_marks_only_sent(db) -> None:
    redis = AsyncMock()
    redis.xadd.side_effect = [b"1-0", RedisConnectionError("down")]
    publisher = EventPublisher(redis_factory=AsyncMock(return_value=redis))

    with patch(
        "src.fs_events.infrastructure.publisher.mark_published", new_callable=AsyncMock
    ) as mark:
        delivered = await publisher.publish(db, _events())

    assert delivered == 1
    mark.assert_awaited_once_with([11], db)


async def test_nothing_to_publish(db) -> None:
    factory = AsyncMock()
    assert await EventPublisher(redis_factory=factory).publish(db, []) == 0
    factory.assert_not_awaited()


async def test_relay_republishes_outbox_rows(db) -> None:
    publisher = EventPublisher(redis_factory=AsyncMock(return_value=AsyncMock()))
    with (
        patch(
            "src.fs_events.infrastructure.publisher.list_unpublished",
            new_callable=AsyncMock,
            return_value=_events(),
        ),
        patch("src.fs_events.infrastructure.publisher.mark_published", new_callable=AsyncMock),
    ):
        assert await publisher.relay_unpublished(db) == 2
