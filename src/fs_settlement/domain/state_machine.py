"""Settlement workflow: pending_payment -> payment_received -> shares_transferred -> completed.

Strictly forward, one step per action. Zero allocations carry no status and
never enter the workflow; every action on them is an invalid transition.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.fs_common.datetime_utils import iso_or_none
from src.fs_common.enums import SettlementAction, SettlementStatus
from src.fs_common.errors import InvalidSettlementTransitionError
from src.fs_settlement.domain.models import Allocation

# action -> (required current status, resulting status)
ACTION_TRANSITIONS: dict[SettlementAction, tuple[SettlementStatus, SettlementStatus]] = {
    SettlementAction.CONFIRM_PAYMENT: (
        SettlementStatus.PENDING_PAYMENT,
        SettlementStatus.PAYMENT_RECEIVED,
    ),
    SettlementAction.TRANSFER_SHARES: (
        SettlementStatus.PAYMENT_RECEIVED,
        SettlementStatus.SHARES_TRANSFERRED,
    ),
    SettlementAction.COMPLETE_SETTLEMENT: (
        SettlementStatus.SHARES_TRANSFERRED,
        SettlementStatus.COMPLETED,
    ),
}

_NEXT_ACTION: dict[SettlementStatus, SettlementAction] = {
    current: action for action, (current, _) in ACTION_TRANSITIONS.items()
}

PROGRESS: dict[SettlementStatus, int] = {
    SettlementStatus.PENDING_PAYMENT: 25,
    SettlementStatus.PAYMENT_RECEIVED: 50,
    SettlementStatus.SHARES_TRANSFERRED: 75,
    SettlementStatus.COMPLETED: 100,
}

AUTO_PROCESS_REFERENCE = "Auto-processed"

_NOTE_PREFIX: dict[SettlementStatus, str] = {
    SettlementStatus.PAYMENT_RECEIVED: "Payment confirmed",
    SettlementStatus.SHARES_TRANSFERRED: "Shares transferred to cap table",
    SettlementStatus.COMPLETED: "Settlement completed",
}


@dataclass(frozen=True)
class Step:
    action: SettlementAction
    old_status: SettlementStatus
    new_status: SettlementStatus


def plan_step(allocation_id: str, current: str | None, action: SettlementAction) -> Step:
    """Resolve `action` against the current status, or raise InvalidSettlementTransitionError.

    auto_process resolves to whichever concrete action is next for `current`.
    """
    status = SettlementStatus(current) if current else None
    if action == SettlementAction.AUTO_PROCESS:
        if status is None or status not in _NEXT_ACTION:
            raise InvalidSettlementTransitionError(allocation_id, current, action.value)
        action = _NEXT_ACTION[status]

    required, target = ACTION_TRANSITIONS[action]
    if status != required:
        raise InvalidSettlementTransitionError(allocation_id, current, action.value)
    return Step(action=action, old_status=required, new_status=target)


def progress_percentage(status: str | None) -> int:
    return PROGRESS[SettlementStatus(status)] if status else 0


def append_note(existing: str | None, line: str) -> str:
    return f"{existing}\n{line}" if existing else line


def transition_note(new_status: SettlementStatus, now: datetime, notes: str | None) -> str:
    line = f"{_NOTE_PREFIX[new_status]}: {now.isoformat()}"
    if notes:
        line += f"\nNotes: {notes}"
    return line


def timeline(allocation: Allocation) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    if allocation.settlement_date:
        entries.append({
            "status": "settlement_initiated",
            "timestamp": iso_or_none(allocation.settlement_date),
            "description": "Settlement process initiated",
        })
    if allocation.payment_confirmation_date:
        entries.append({
            "status": "payment_confirmed",
            "timestamp": iso_or_none(allocation.payment_confirmation_date),
            "description": "Payment confirmed by company admin",
            "reference": allocation.payment_reference,
        })
    if allocation.share_transfer_date:
        entries.append({
            "status": "shares_transferred",
            "timestamp": iso_or_none(allocation.share_transfer_date),
            "description": "Shares transferred to cap table",
        })
    if allocation.settlement_completed_at:
        entries.append({
            "status": "settlement_completed",
            "timestamp": iso_or_none(allocation.settlement_completed_at),
            "description": "Settlement process completed",
        })
    return entries


_STEP_DESCRIPTIONS: dict[SettlementAction, str] = {
    SettlementAction.CONFIRM_PAYMENT: "Confirm that payment has been received",
    SettlementAction.TRANSFER_SHARES: "Transfer shares to cap table",
    SettlementAction.COMPLETE_SETTLEMENT: "Mark settlement as completed",
}


def next_steps(status: str | None) -> list[dict[str, Any]]:
    if not status:
        return []
    action = _NEXT_ACTION.get(SettlementStatus(status))
    if action is None:
        return []
    return [{"action": action.value, "description": _STEP_DESCRIPTIONS[action], "required": True}]
