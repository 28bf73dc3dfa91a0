"""Unit tests for the settlement summary."""

from src.fs_settlement.domain.models import Allocation
from src.fs_settlement.domain.reporting import summarize


def _alloc(i: int, qty: int, status: str | None, price: int = 10000) -> Allocation:
    return Allocation(
        id=f"alc_{i}", auction_id="auc_1", bid_id=f"bid_{i}", bidder_id=f"u_{i}",
        bidder_email=f"b{i}@example.com", original_quantity=max(qty, 1), allocated_quantity=qty,
        clearing_price=price, total_amount=qty * price,
        allocation_type="full" if qty else "rejected", settlement_status=status,
    )


def test_mixed_statuses() -> None:
    summary = summarize([
        _alloc(1, 10, "pending_payment"),
        _alloc(2, 20, "payment_received"),
        _alloc(3, 30, "shares_transferred"),
        _alloc(4, 40, "completed"),
        _alloc(5, 0, None),
    ])

    assert summary.total_successful_allocations == 4
    assert summary.count_by_status == {
        "pending_payment": 1,
        "payment_received": 1,
        "shares_transferred": 1,
        "completed": 1,
    }
    assert summary.total_settlement_amount == 100 * 10000
    assert summary.confirmed_payment_amount == 90 * 10000
    assert summary.pending_payment_amount == 10 * 10000
    assert summary.total_shares_allocated == 100
    assert summary.shares_transferred_to_cap_table == 70
    assert summary.completion_percentage == 25.0
    assert summary.payment_collection_percentage == 75.0
    assert summary.all_settlements_completed is False
    assert summary.has_pending_payments is True
    assert summary.actions_available["can_confirm_payments"] is True
    assert summary.actions_available["can_bulk_confirm"] is False


def test_rejected_allocations_are_ignored() -> None:
    summary = summarize([_alloc(1, 0, None), _alloc(2, 0, None)])
    assert summary.total_successful_allocations == 0
    assert summary.completion_percentage == 0.0
    assert summary.all_settlements_completed is False


def test_all_completed() -> None:
    summary = summarize([_alloc(1, 10, "completed"), _alloc(2, 5, "completed"), _alloc(3, 0, None)])
    assert summary.all_settlements_completed is True
    assert summary.completion_percentage == 100.0
    assert summary.has_pending_payments is False


def test_percentages_round_to_two_places() -> None:
    summary = summarize([
        _alloc(1, 10, "completed"),
        _alloc(2, 10, "pending_payment"),
        _alloc(3, 10, "pending_payment"),
    ])
    assert summary.completion_percentage == 33.33
    assert summary.actions_available["can_bulk_confirm"] is True
