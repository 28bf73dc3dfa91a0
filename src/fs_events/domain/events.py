"""Outbound events consumed by the notifier and the cap-table ledger.

The engine never renders or delivers notifications itself. It records one of
these per business fact, inside the same transaction as the fact, and a
publisher pushes them to the event stream after commit.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from src.fs_common.enums import EventType


@dataclass
class OutboundEvent:
    event_type: EventType
    auction_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: int | None = None  # assigned by the outbox insert

    def to_stream_fields(self) -> dict[str, str]:
        return {
            "event_id": str(self.id) if self.id is not None else "",
            "event_type": self.event_type.value,
            "auction_id": self.auction_id,
            "payload": json.dumps(self.payload, default=str),
        }


def auction_started(auction_id: str, company_id: str, ends_at: str, invited: list[str]) -> OutboundEvent:
    return OutboundEvent(
        EventType.AUCTION_STARTED,
        auction_id,
        {"company_id": company_id, "bid_collection_end_time": ends_at, "invited_members": invited},
    )


def auction_cancelled(auction_id: str, company_id: str, previous_status: str) -> OutboundEvent:
    return OutboundEvent(
        EventType.AUCTION_CANCELLED,
        auction_id,
        {"company_id": company_id, "previous_status": previous_status},
    )


def auction_cleared(
    auction: dict[str, Any],
    clearing_result: dict[str, Any],
    allocations: list[dict[str, Any]],
) -> OutboundEvent:
    return OutboundEvent(
        EventType.AUCTION_CLEARED,
        auction["id"],
        {"auction": auction, "clearing_result": clearing_result, "allocations": allocations},
    )


def settlement_status_changed(
    auction_id: str,
    allocation: dict[str, Any],
    old_status: str,
    new_status: str,
) -> OutboundEvent:
    return OutboundEvent(
        EventType.SETTLEMENT_STATUS_CHANGED,
        auction_id,
        {"allocation": allocation, "old_status": old_status, "new_status": new_status},
    )


def shares_transfer_confirmed(
    auction_id: str,
    company_id: str,
    allocation_id: str,
    bidder_id: str,
    quantity: int,
    unit_price: int,
) -> OutboundEvent:
    """Signal for the external cap-table ledger; the engine never writes share ownership."""
    return OutboundEvent(
        EventType.SHARES_TRANSFER_CONFIRMED,
        auction_id,
        {
            "company_id": company_id,
            "allocation_id": allocation_id,
            "bidder_id": bidder_id,
            "quantity": quantity,
            "unit_price": unit_price,
        },
    )


def all_settlements_completed(auction_id: str, summary: dict[str, Any]) -> OutboundEvent:
    return OutboundEvent(EventType.ALL_SETTLEMENTS_COMPLETED, auction_id, {"summary": summary})
