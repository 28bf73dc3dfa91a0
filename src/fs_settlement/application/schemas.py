"""Pydantic schemas for fs_settlement requests and responses."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from src.fs_common.cents import cents_to_display
from src.fs_common.datetime_utils import iso_or_none
from src.fs_common.enums import SettlementAction
from src.fs_settlement.domain.models import Allocation, TransitionOutcome
from src.fs_settlement.domain.reporting import SettlementSummary
from src.fs_settlement.domain.state_machine import progress_percentage

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class BulkSettlementRequest(BaseModel):
    action: SettlementAction
    allocation_ids: list[str] = Field(min_length=1, max_length=500)
    payment_reference: str | None = None
    notes: str | None = None


class AllocationActionRequest(BaseModel):
    action: SettlementAction | Literal["add_notes"]
    payment_reference: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def notes_required_for_add_notes(self) -> "AllocationActionRequest":
        if self.action == "add_notes" and not (self.notes and self.notes.strip()):
            raise ValueError("notes are required for add_notes")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AllocationResponse(BaseModel):
    id: str
    auction_id: str
    bid_id: str
    bidder_id: str
    bidder_email: str
    original_quantity: int
    allocated_quantity: int
    clearing_price_cents: int
    clearing_price_display: str
    total_amount_cents: int
    total_amount_display: str
    allocation_type: str
    pro_rata_percentage: str | None
    settlement_status: str | None
    settlement_progress_percentage: int
    settlement_date: str | None
    payment_confirmation_date: str | None
    payment_reference: str | None
    share_transfer_date: str | None
    settlement_completed_at: str | None
    settlement_notes: str | None

    @classmethod
    def from_domain(cls, a: Allocation) -> "AllocationResponse":
        return cls(
            id=a.id,
            auction_id=a.auction_id,
            bid_id=a.bid_id,
            bidder_id=a.bidder_id,
            bidder_email=a.bidder_email,
            original_quantity=a.original_quantity,
            allocated_quantity=a.allocated_quantity,
            clearing_price_cents=a.clearing_price,
            clearing_price_display=cents_to_display(a.clearing_price),
            total_amount_cents=a.total_amount,
            total_amount_display=cents_to_display(a.total_amount),
            allocation_type=a.allocation_type,
            pro_rata_percentage=(
                str(a.pro_rata_percentage) if a.pro_rata_percentage is not None else None
            ),
            settlement_status=a.settlement_status,
            settlement_progress_percentage=progress_percentage(a.settlement_status),
            settlement_date=iso_or_none(a.settlement_date),
            payment_confirmation_date=iso_or_none(a.payment_confirmation_date),
            payment_reference=a.payment_reference,
            share_transfer_date=iso_or_none(a.share_transfer_date),
            settlement_completed_at=iso_or_none(a.settlement_completed_at),
            settlement_notes=a.settlement_notes,
        )


class TransitionResponse(BaseModel):
    allocation_id: str
    action: str
    old_status: str
    new_status: str
    allocation: AllocationResponse

    @classmethod
    def from_outcome(cls, outcome: TransitionOutcome, action: str) -> "TransitionResponse":
        return cls(
            allocation_id=outcome.allocation.id,
            action=action,
            old_status=outcome.old_status.value,
            new_status=outcome.new_status.value,
            allocation=AllocationResponse.from_domain(outcome.allocation),
        )


class BulkSettlementResponse(BaseModel):
    auction_id: str
    action: str
    processed_count: int
    succeeded: list[TransitionResponse]
    failures: dict[str, dict[str, Any]]
    all_settlements_completed: bool


class SettlementDashboardResponse(BaseModel):
    auction_id: str
    auction_title: str
    summary: dict[str, Any]
    allocations_by_status: dict[str, list[AllocationResponse]]
    rejected_allocations: list[AllocationResponse]

    @classmethod
    def build(
        cls,
        auction_id: str,
        auction_title: str,
        summary: SettlementSummary,
        allocations: list[Allocation],
    ) -> "SettlementDashboardResponse":
        grouped: dict[str, list[AllocationResponse]] = {
            status: [] for status in summary.count_by_status
        }
        rejected: list[AllocationResponse] = []
        for a in allocations:
            if a.settlement_status is None:
                rejected.append(AllocationResponse.from_domain(a))
            else:
                grouped[a.settlement_status].append(AllocationResponse.from_domain(a))
        return cls(
            auction_id=auction_id,
            auction_title=auction_title,
            summary=summary.to_dict(),
            allocations_by_status=grouped,
            rejected_allocations=rejected,
        )


class AllocationDetailResponse(BaseModel):
    allocation: AllocationResponse
    auction_title: str
    settlement_timeline: list[dict[str, Any]]
    next_steps: list[dict[str, Any]]
    user_role: Literal["operator", "bidder"]
    actions_available: dict[str, bool]


class NotesResponse(BaseModel):
    allocation_id: str
    settlement_notes: str | None
