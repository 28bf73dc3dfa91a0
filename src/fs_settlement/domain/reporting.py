"""Settlement reporting view, recomputed from allocation rows on every read.

Only successful allocations (allocated_quantity > 0) count; rejected bids
never enter settlement. Percentages are count-based, rounded to 2 places.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from src.fs_common.enums import SettlementStatus
from src.fs_settlement.domain.models import Allocation

_PAID = frozenset({
    SettlementStatus.PAYMENT_RECEIVED,
    SettlementStatus.SHARES_TRANSFERRED,
    SettlementStatus.COMPLETED,
})
_TRANSFERRED = frozenset({SettlementStatus.SHARES_TRANSFERRED, SettlementStatus.COMPLETED})


@dataclass
class SettlementSummary:
    total_successful_allocations: int = 0
    count_by_status: dict[str, int] = field(default_factory=dict)
    amount_by_status: dict[str, int] = field(default_factory=dict)
    total_settlement_amount: int = 0
    confirmed_payment_amount: int = 0
    pending_payment_amount: int = 0
    total_shares_allocated: int = 0
    shares_transferred_to_cap_table: int = 0
    completion_percentage: float = 0.0
    payment_collection_percentage: float = 0.0
    all_settlements_completed: bool = False
    has_pending_payments: bool = False
    actions_available: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _pct(part: int, total: int) -> float:
    return round(part * 100 / total, 2) if total else 0.0


def summarize(allocations: list[Allocation]) -> SettlementSummary:
    counts = {s.value: 0 for s in SettlementStatus}
    amounts = {s.value: 0 for s in SettlementStatus}
    summary = SettlementSummary()

    for a in allocations:
        if not a.is_successful or a.settlement_status is None:
            continue
        status = SettlementStatus(a.settlement_status)
        counts[status.value] += 1
        amounts[status.value] += a.total_amount
        summary.total_successful_allocations += 1
        summary.total_settlement_amount += a.total_amount
        summary.total_shares_allocated += a.allocated_quantity
        if status in _PAID:
            summary.confirmed_payment_amount += a.total_amount
        else:
            summary.pending_payment_amount += a.total_amount
        if status in _TRANSFERRED:
            summary.shares_transferred_to_cap_table += a.allocated_quantity

    total = summary.total_successful_allocations
    pending = counts[SettlementStatus.PENDING_PAYMENT.value]
    received = counts[SettlementStatus.PAYMENT_RECEIVED.value]
    transferred = counts[SettlementStatus.SHARES_TRANSFERRED.value]
    completed = counts[SettlementStatus.COMPLETED.value]

    summary.count_by_status = counts
    summary.amount_by_status = amounts
    summary.completion_percentage = _pct(completed, total)
    summary.payment_collection_percentage = _pct(received + transferred + completed, total)
    summary.all_settlements_completed = total > 0 and completed == total
    summary.has_pending_payments = pending > 0
    summary.actions_available = {
        "can_confirm_payments": pending > 0,
        "can_transfer_shares": received > 0,
        "can_complete_settlements": transferred > 0,
        "can_bulk_confirm": pending > 1,
        "can_bulk_transfer": received > 1,
    }
    return summary
