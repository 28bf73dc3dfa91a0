"""Tests for fs_common.enums — values must match the DB CHECK constraints."""

from src.fs_common.enums import (
    AUCTION_TRANSITIONS,
    AllocationType,
    AuctionStatus,
    SettlementAction,
    SettlementStatus,
)


def test_auction_status_values() -> None:
    assert [s.value for s in AuctionStatus] == ["draft", "collecting_bids", "completed", "cancelled"]


def test_terminal_auction_statuses_have_no_exits() -> None:
    assert AUCTION_TRANSITIONS[AuctionStatus.COMPLETED] == frozenset()
    assert AUCTION_TRANSITIONS[AuctionStatus.CANCELLED] == frozenset()


def test_draft_cannot_complete_directly() -> None:
    assert AuctionStatus.COMPLETED not in AUCTION_TRANSITIONS[AuctionStatus.DRAFT]


def test_settlement_values() -> None:
    assert [s.value for s in SettlementStatus] == [
        "pending_payment", "payment_received", "shares_transferred", "completed",
    ]
    assert SettlementAction("auto_process") == SettlementAction.AUTO_PROCESS


def test_str_enum_compares_to_db_value() -> None:
    assert AllocationType.PRO_RATA == "pro_rata"
