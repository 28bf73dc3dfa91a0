"""Clearing domain models — pure dataclasses.

Calculator inputs and outputs are independent of persistence; the orchestrator
maps ClearingOutcome onto ClearingResultRecord and Allocation rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.fs_common.cents import line_total
from src.fs_common.enums import AllocationType, ClearingLogic


@dataclass(frozen=True)
class BidInput:
    bid_id: str
    bidder_id: str
    bidder_email: str
    quantity: int
    max_price: int
    bid_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "bid_id": self.bid_id,
            "bidder_id": self.bidder_id,
            "bidder_email": self.bidder_email,
            "quantity": self.quantity,
            "max_price": self.max_price,
            "bid_time": self.bid_time.isoformat(),
        }


@dataclass
class AllocationLine:
    bid_id: str
    bidder_id: str
    bidder_email: str
    original_quantity: int
    allocated_quantity: int
    clearing_price: int
    allocation_type: AllocationType
    pro_rata_percentage: Decimal | None = None

    @property
    def total_amount(self) -> int:
        return line_total(self.allocated_quantity, self.clearing_price)


@dataclass(frozen=True)
class BidStep:
    """One row of the demand walk, recorded for audit."""

    step: int
    bid_id: str
    bidder_email: str
    max_price: int
    quantity: int
    running_demand_before: int
    running_demand_after: int
    is_clearing_price: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "bid_id": self.bid_id,
            "bidder_email": self.bidder_email,
            "max_price": self.max_price,
            "quantity": self.quantity,
            "running_demand_before": self.running_demand_before,
            "running_demand_after": self.running_demand_after,
            "is_clearing_price": self.is_clearing_price,
        }


@dataclass
class ClearingOutcome:
    supply: int
    price_floor: int
    clearing_price: int
    clearing_logic: ClearingLogic
    allocations: list[AllocationLine]
    total_demand: int
    shares_allocated: int
    shares_remaining: int
    pro_rata_applied: bool
    pro_rata_fraction: Decimal | None = None
    bid_steps: list[BidStep] = field(default_factory=list)
    ordered_inputs: list[BidInput] = field(default_factory=list)

    @property
    def total_bids_count(self) -> int:
        return len(self.ordered_inputs)

    def calculation_details(self) -> dict[str, Any]:
        """JSON-ready snapshot that reproduces this outcome from stored inputs."""
        return {
            "supply": self.supply,
            "price_floor": self.price_floor,
            "total_bids": self.total_bids_count,
            "clearing_logic": self.clearing_logic.value,
            "bid_steps": [s.to_dict() for s in self.bid_steps],
            "pro_rata_percentage": (
                str(self.pro_rata_fraction) if self.pro_rata_fraction is not None else None
            ),
            "inputs": [b.to_dict() for b in self.ordered_inputs],
        }


@dataclass
class ClearingResultRecord:
    id: str
    auction_id: str
    clearing_price: int
    total_bids_count: int
    total_demand: int
    shares_allocated: int
    shares_remaining: int
    pro_rata_applied: bool
    calculation_details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    def to_event_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "auction_id": self.auction_id,
            "clearing_price": self.clearing_price,
            "total_bids_count": self.total_bids_count,
            "total_demand": self.total_demand,
            "shares_allocated": self.shares_allocated,
            "shares_remaining": self.shares_remaining,
            "pro_rata_applied": self.pro_rata_applied,
        }
