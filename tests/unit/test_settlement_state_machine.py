"""Unit tests for the settlement workflow rules."""

from datetime import UTC, datetime

import pytest

from src.fs_common.enums import SettlementAction, SettlementStatus
from src.fs_common.errors import InvalidSettlementTransitionError
from src.fs_settlement.domain.models import Allocation
from src.fs_settlement.domain.state_machine import (
    append_note,
    next_steps,
    plan_step,
    progress_percentage,
    timeline,
    transition_note,
)

TS = datetime(2026, 5, 3, 12, 0, tzinfo=UTC)


class TestPlanStep:
    @pytest.mark.parametrize(
        "current, action, expected",
        [
            ("pending_payment", SettlementAction.CONFIRM_PAYMENT, SettlementStatus.PAYMENT_RECEIVED),
            ("payment_received", SettlementAction.TRANSFER_SHARES, SettlementStatus.SHARES_TRANSFERRED),
            ("shares_transferred", SettlementAction.COMPLETE_SETTLEMENT, SettlementStatus.COMPLETED),
        ],
    )
    def test_forward_steps(self, current, action, expected) -> None:
        step = plan_step("alc_1", current, action)
        assert step.new_status == expected
        assert step.old_status.value == current

    def test_skipping_a_step_is_rejected(self) -> None:
        with pytest.raises(InvalidSettlementTransitionError) as exc_info:
            plan_step("alc_1", "pending_payment", SettlementAction.TRANSFER_SHARES)
        assert exc_info.value.current_status == "pending_payment"
        assert "pending_payment" in exc_info.value.message

    def test_no_backward_moves(self) -> None:
        with pytest.raises(InvalidSettlementTransitionError):
            plan_step("alc_1", "completed", SettlementAction.CONFIRM_PAYMENT)

    @pytest.mark.parametrize(
        "current, resolved",
        [
            ("pending_payment", SettlementAction.CONFIRM_PAYMENT),
            ("payment_received", SettlementAction.TRANSFER_SHARES),
            ("shares_transferred", SettlementAction.COMPLETE_SETTLEMENT),
        ],
    )
    def test_auto_process_resolves_next_action(self, current, resolved) -> None:
        assert plan_step("alc_1", current, SettlementAction.AUTO_PROCESS).action == resolved

    def test_auto_process_on_completed_fails(self) -> None:
        with pytest.raises(InvalidSettlementTransitionError):
            plan_step("alc_1", "completed", SettlementAction.AUTO_PROCESS)

    def test_rejected_allocation_never_enters_workflow(self) -> None:
        with pytest.raises(InvalidSettlementTransitionError) as exc_info:
            plan_step("alc_1", None, SettlementAction.CONFIRM_PAYMENT)
        assert "rejected" in exc_info.value.message


class TestNotes:
    def test_transition_note_with_notes(self) -> None:
        line = transition_note(SettlementStatus.PAYMENT_RECEIVED, TS, "wire 991")
        assert line == f"Payment confirmed: {TS.isoformat()}\nNotes: wire 991"

    def test_transition_note_without_notes(self) -> None:
        line = transition_note(SettlementStatus.COMPLETED, TS, None)
        assert line == f"Settlement completed: {TS.isoformat()}"

    def test_append_keeps_history(self) -> None:
        assert append_note(None, "first") == "first"
        assert append_note("first", "second") == "first\nsecond"


def test_progress_percentage() -> None:
    assert progress_percentage(None) == 0
    assert progress_percentage("pending_payment") == 25
    assert progress_percentage("shares_transferred") == 75
    assert progress_percentage("completed") == 100


def test_next_steps() -> None:
    assert next_steps("payment_received")[0]["action"] == "transfer_shares"
    assert next_steps("completed") == []
    assert next_steps(None) == []


def test_timeline_lists_reached_milestones_in_order() -> None:
    allocation = Allocation(
        id="alc_1", auction_id="auc_1", bid_id="bid_1", bidder_id="u_1",
        bidder_email="one@example.com", original_quantity=10, allocated_quantity=10,
        clearing_price=10000, total_amount=100000, allocation_type="full",
        settlement_status="payment_received", settlement_date=TS,
        payment_confirmation_date=TS, payment_reference="wire 991",
    )
    entries = timeline(allocation)
    assert [e["status"] for e in entries] == ["settlement_initiated", "payment_confirmed"]
    assert entries[1]["reference"] == "wire 991"
