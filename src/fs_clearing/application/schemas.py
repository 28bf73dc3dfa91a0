"""Pydantic schemas for fs_clearing responses."""

from typing import Any

from pydantic import BaseModel

from src.fs_clearing.domain.models import ClearingResultRecord
from src.fs_common.cents import cents_to_display
from src.fs_common.datetime_utils import iso_or_none
from src.fs_settlement.application.schemas import AllocationResponse


class ClearRequest(BaseModel):
    manual_trigger: bool = False


class ClearingResultResponse(BaseModel):
    id: str
    auction_id: str
    clearing_price_cents: int
    clearing_price_display: str
    total_bids_count: int
    total_demand: int
    shares_allocated: int
    shares_remaining: int
    pro_rata_applied: bool
    calculation_details: dict[str, Any]
    created_at: str | None

    @classmethod
    def from_domain(cls, r: ClearingResultRecord) -> "ClearingResultResponse":
        return cls(
            id=r.id,
            auction_id=r.auction_id,
            clearing_price_cents=r.clearing_price,
            clearing_price_display=cents_to_display(r.clearing_price),
            total_bids_count=r.total_bids_count,
            total_demand=r.total_demand,
            shares_allocated=r.shares_allocated,
            shares_remaining=r.shares_remaining,
            pro_rata_applied=r.pro_rata_applied,
            calculation_details=r.calculation_details,
            created_at=iso_or_none(r.created_at),
        )


class ClearingRunResponse(BaseModel):
    status: str
    auction_id: str
    clearing_result: ClearingResultResponse
    allocations: list[AllocationResponse]


class ClearingViewResponse(BaseModel):
    auction_id: str
    viewer_role: str
    clearing_result: ClearingResultResponse
    allocations: list[AllocationResponse]


class SweepResponse(BaseModel):
    processed: int
    successful: int
    skipped: int
    errors: list[dict[str, Any]]
    results: list[dict[str, Any]]
    events_relayed: int
