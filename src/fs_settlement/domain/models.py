"""Domain models for fs_settlement — pure dataclasses, no SQLAlchemy dependency.

An Allocation row is produced once by clearing (write-once clearing fields)
and then carried through the settlement workflow. Zero allocations have no
settlement_status and never enter the workflow.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.fs_common.datetime_utils import iso_or_none
from src.fs_common.enums import SettlementStatus
from src.fs_common.errors import AppError


@dataclass
class Allocation:
    id: str
    auction_id: str
    bid_id: str
    bidder_id: str
    bidder_email: str
    original_quantity: int
    allocated_quantity: int
    clearing_price: int
    total_amount: int
    allocation_type: str
    pro_rata_percentage: Decimal | None = None
    settlement_status: str | None = None
    settlement_date: datetime | None = None
    payment_confirmation_date: datetime | None = None
    payment_reference: str | None = None
    share_transfer_date: datetime | None = None
    settlement_completed_at: datetime | None = None
    settlement_notes: str | None = None
    settlement_updated_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_successful(self) -> bool:
        return self.allocated_quantity > 0

    @property
    def status_enum(self) -> SettlementStatus | None:
        return SettlementStatus(self.settlement_status) if self.settlement_status else None

    def to_event_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "auction_id": self.auction_id,
            "bid_id": self.bid_id,
            "bidder_id": self.bidder_id,
            "bidder_email": self.bidder_email,
            "original_quantity": self.original_quantity,
            "allocated_quantity": self.allocated_quantity,
            "clearing_price": self.clearing_price,
            "total_amount": self.total_amount,
            "allocation_type": self.allocation_type,
            "pro_rata_percentage": (
                str(self.pro_rata_percentage) if self.pro_rata_percentage is not None else None
            ),
            "settlement_status": self.settlement_status,
            "payment_reference": self.payment_reference,
            "payment_confirmation_date": iso_or_none(self.payment_confirmation_date),
            "share_transfer_date": iso_or_none(self.share_transfer_date),
            "settlement_completed_at": iso_or_none(self.settlement_completed_at),
        }


@dataclass
class TransitionOutcome:
    """One applied settlement step."""

    allocation: Allocation
    old_status: SettlementStatus
    new_status: SettlementStatus


@dataclass
class BulkTransitionResult:
    succeeded: list[TransitionOutcome] = field(default_factory=list)
    failures: dict[str, AppError] = field(default_factory=dict)
    all_completed: bool = False

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
