"""Domain models for fs_auction — pure dataclasses.

Prices are int cents. max_price is the auction ceiling, min_price the floor.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.fs_common.datetime_utils import as_utc, iso_or_none
from src.fs_common.enums import AuctionStatus


@dataclass
class Auction:
    id: str
    company_id: str
    title: str
    description: str | None
    shares_count: int
    max_price: int
    min_price: int
    duration_minutes: int
    status: str
    invited_members: list[str] = field(default_factory=list)
    bid_collection_start_time: datetime | None = None
    bid_collection_end_time: datetime | None = None
    clearing_price: int | None = None
    total_demand: int | None = None
    clearing_calculated_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def status_enum(self) -> AuctionStatus:
        return AuctionStatus(self.status)

    def window_closed(self, now: datetime) -> bool:
        if self.bid_collection_end_time is None:
            return False
        return as_utc(now) >= as_utc(self.bid_collection_end_time)

    @property
    def window_end_display(self) -> str:
        end = self.bid_collection_end_time
        return as_utc(end).isoformat() if end is not None else "unscheduled"

    def is_managed_by(self, user_id: str) -> bool:
        """Operator actions are limited to the operator who created the auction."""
        return self.created_by is not None and self.created_by == user_id

    def is_invited(self, email: str) -> bool:
        """Empty invite list means the auction is open to any authenticated bidder."""
        if not self.invited_members:
            return True
        wanted = email.strip().lower()
        return any(m.strip().lower() == wanted for m in self.invited_members)

    def to_event_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "title": self.title,
            "shares_count": self.shares_count,
            "max_price": self.max_price,
            "min_price": self.min_price,
            "status": self.status,
            "bid_collection_end_time": iso_or_none(self.bid_collection_end_time),
        }


@dataclass
class Bid:
    id: str
    auction_id: str
    bidder_id: str
    bidder_email: str
    quantity_requested: int
    max_price: int
    bid_time: datetime
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class DemandAnalysis:
    """Anonymous demand picture shown to bidders while the window is open."""

    total_bids: int
    total_demand: int
    demand_ratio_pct: float
    estimated_clearing_price: int
    is_oversubscribed: bool
