"""DB helpers for the auction_events outbox.

write_event is called inside the caller's business transaction, so an event
row exists if and only if the fact it describes was committed.
"""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fs_common.enums import EventType
from src.fs_events.domain.events import OutboundEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO auction_events (auction_id, event_type, payload)
    VALUES (:auction_id, :event_type, CAST(:payload AS JSONB))
    RETURNING id
""")

_LIST_UNPUBLISHED_SQL = text("""
    SELECT id, auction_id, event_type, payload
    FROM auction_events
    WHERE published_at IS NULL
    ORDER BY id
    LIMIT :limit
""")

_MARK_PUBLISHED_SQL = text("""
    UPDATE auction_events
    SET published_at = NOW()
    WHERE id = ANY(CAST(:ids AS BIGINT[]))
""")


async def write_event(event: OutboundEvent, db: AsyncSession) -> OutboundEvent:
    """Insert one outbox row within the caller's transaction and stamp event.id."""
    result = await db.execute(
        _INSERT_EVENT_SQL,
        {
            "auction_id": event.auction_id,
            "event_type": event.event_type.value,
            "payload": json.dumps(event.payload, default=str),
        },
    )
    event.id = result.scalar_one()
    return event


async def list_unpublished(db: AsyncSession, limit: int = 500) -> list[OutboundEvent]:
    rows = (await db.execute(_LIST_UNPUBLISHED_SQL, {"limit": limit})).fetchall()
    events: list[OutboundEvent] = []
    for row in rows:
        row_any: Any = row
        payload = row_any.payload
        if isinstance(payload, str):
            payload = json.loads(payload)
        events.append(
            OutboundEvent(
                event_type=EventType(row_any.event_type),
                auction_id=row_any.auction_id,
                payload=payload,
                id=row_any.id,
            )
        )
    return events


async def mark_published(ids: list[int], db: AsyncSession) -> None:
    if not ids:
        return
    await db.execute(_MARK_PUBLISHED_SQL, {"ids": ids})
