"""Pydantic schemas for fs_auction requests and responses.

Prices travel as integer cents (`*_cents`) with a `*_display` dollar string
alongside. Auction list cursor: Base64 JSON {"id": "<auction_id>"}.
"""

import base64
import json

from pydantic import BaseModel, Field, field_validator

from src.fs_auction.domain.models import Auction, Bid, DemandAnalysis
from src.fs_common.cents import cents_to_display
from src.fs_common.datetime_utils import iso_or_none

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_auction_id: str) -> str:
    return base64.b64encode(json.dumps({"id": last_auction_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor back to the last seen auction id. Returns None on error."""
    if cursor is None:
        return None
    try:
        return str(json.loads(base64.b64decode(cursor.encode()).decode())["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateAuctionRequest(BaseModel):
    company_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    shares_count: int
    max_price_cents: int
    min_price_cents: int
    duration_minutes: int | None = None
    invited_members: list[str] = Field(default_factory=list)

    @field_validator("invited_members")
    @classmethod
    def normalize_emails(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for email in v:
            e = email.strip().lower()
            if e and e not in seen:
                seen.append(e)
        return seen


class SubmitBidRequest(BaseModel):
    quantity: int
    max_price_cents: int


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AuctionResponse(BaseModel):
    id: str
    company_id: str
    title: str
    description: str | None
    shares_count: int
    max_price_cents: int
    max_price_display: str
    min_price_cents: int
    min_price_display: str
    duration_minutes: int
    invited_members: list[str]
    status: str
    bid_collection_start_time: str | None
    bid_collection_end_time: str | None
    clearing_price_cents: int | None
    total_demand: int | None
    clearing_calculated_at: str | None
    cancelled_at: str | None
    created_by: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, a: Auction) -> "AuctionResponse":
        return cls(
            id=a.id,
            company_id=a.company_id,
            title=a.title,
            description=a.description,
            shares_count=a.shares_count,
            max_price_cents=a.max_price,
            max_price_display=cents_to_display(a.max_price),
            min_price_cents=a.min_price,
            min_price_display=cents_to_display(a.min_price),
            duration_minutes=a.duration_minutes,
            invited_members=a.invited_members,
            status=a.status,
            bid_collection_start_time=iso_or_none(a.bid_collection_start_time),
            bid_collection_end_time=iso_or_none(a.bid_collection_end_time),
            clearing_price_cents=a.clearing_price,
            total_demand=a.total_demand,
            clearing_calculated_at=iso_or_none(a.clearing_calculated_at),
            cancelled_at=iso_or_none(a.cancelled_at),
            created_by=a.created_by,
            created_at=iso_or_none(a.created_at),
        )


class AuctionListResponse(BaseModel):
    items: list[AuctionResponse]
    next_cursor: str | None
    has_more: bool


class BidResponse(BaseModel):
    id: str
    auction_id: str
    bidder_id: str
    bidder_email: str
    quantity_requested: int
    max_price_cents: int
    max_price_display: str
    bid_time: str
    active: bool

    @classmethod
    def from_domain(cls, b: Bid) -> "BidResponse":
        return cls(
            id=b.id,
            auction_id=b.auction_id,
            bidder_id=b.bidder_id,
            bidder_email=b.bidder_email,
            quantity_requested=b.quantity_requested,
            max_price_cents=b.max_price,
            max_price_display=cents_to_display(b.max_price),
            bid_time=b.bid_time.isoformat(),
            active=b.active,
        )


class DemandAnalysisResponse(BaseModel):
    total_bids: int
    total_demand: int
    demand_ratio_pct: float
    estimated_clearing_price_cents: int
    estimated_clearing_price_display: str
    is_oversubscribed: bool

    @classmethod
    def from_domain(cls, d: DemandAnalysis) -> "DemandAnalysisResponse":
        return cls(
            total_bids=d.total_bids,
            total_demand=d.total_demand,
            demand_ratio_pct=d.demand_ratio_pct,
            estimated_clearing_price_cents=d.estimated_clearing_price,
            estimated_clearing_price_display=cents_to_display(d.estimated_clearing_price),
            is_oversubscribed=d.is_oversubscribed,
        )


class SubmitBidResponse(BaseModel):
    bid: BidResponse
    replaced_existing: bool
    demand: DemandAnalysisResponse


class MyBidResponse(BaseModel):
    bid: BidResponse | None
    demand: DemandAnalysisResponse | None


class WithdrawBidResponse(BaseModel):
    auction_id: str
    withdrawn: bool


class BidListResponse(BaseModel):
    auction_id: str
    items: list[BidResponse]
    total_demand: int
