"""Unit tests for ExpiredAuctionSweeper."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from src.fs_clearing.application.sweeper import ExpiredAuctionSweeper
from src.fs_common.enums import ClearingRunStatus
from src.fs_common.errors import ClearingNotAllowedError

NOW = datetime(2026, 5, 2, 9, 5, tzinfo=UTC)


def _run(status: ClearingRunStatus, price: int = 10000) -> SimpleNamespace:
    return SimpleNamespace(
        status=status,
        result=SimpleNamespace(clearing_price=price, shares_allocated=100),
    )


async def test_sweep_isolates_failures(db, publisher) -> None:
    auctions = AsyncMock()
    auctions.list_expired_ids.return_value = ["auc_1", "auc_2", "auc_3"]
    orchestrator = AsyncMock()
    orchestrator.trigger_clearing.side_effect = [
        _run(ClearingRunStatus.CLEARED),
        ClearingNotAllowedError("auc_2", "cancelled"),
        _run(ClearingRunStatus.ALREADY_CLEARED, 8000),
    ]
    publisher.relay_unpublished.return_value = 2

    sweeper = ExpiredAuctionSweeper(orchestrator=orchestrator, auction_repo=auctions, publisher=publisher)
    report = await sweeper.process_expired_auctions(db, now=NOW)

    assert report.processed == 3
    assert report.successful == 1
    assert report.skipped == 1
    assert report.errors == [{
        "auction_id": "auc_2",
        "code": 5001,
        "message": "Auction auc_2 is not in bid collection phase (status=cancelled)",
    }]
    assert [r["auction_id"] for r in report.results] == ["auc_1", "auc_3"]
    assert report.results[1]["status"] == "already_cleared"
    assert report.events_relayed == 2
    auctions.list_expired_ids.assert_awaited_once_with(db, NOW)
    orchestrator.trigger_clearing.assert_any_await(db, "auc_2", now=NOW)


async def test_sweep_with_nothing_expired(db, publisher) -> None:
    auctions = AsyncMock()
    auctions.list_expired_ids.return_value = []
    orchestrator = AsyncMock()

    sweeper = ExpiredAuctionSweeper(orchestrator=orchestrator, auction_repo=auctions, publisher=publisher)
    report = await sweeper.process_expired_auctions(db, now=NOW)

    assert report.processed == 0
    assert report.results == []
    orchestrator.trigger_clearing.assert_not_awaited()
    publisher.relay_unpublished.assert_awaited_once_with(db)


async def test_database_error_does_not_stop_the_sweep(db, publisher) -> None:
    auctions = AsyncMock()
    auctions.list_expired_ids.return_value = ["auc_1", "auc_2"]
    orchestrator = AsyncMock()
    orchestrator.trigger_clearing.side_effect = [
        OperationalError("SELECT ... FOR UPDATE", {}, Exception("deadlock detected")),
        _run(ClearingRunStatus.CLEARED),
    ]
    publisher.relay_unpublished.return_value = 1

    sweeper = ExpiredAuctionSweeper(orchestrator=orchestrator, auction_repo=auctions, publisher=publisher)
    report = await sweeper.process_expired_auctions(db, now=NOW)

    assert orchestrator.trigger_clearing.await_count == 2
    assert report.successful == 1
    assert report.errors == [{
        "auction_id": "auc_1",
        "code": 9001,
        "message": "Database error (OperationalError)",
    }]
    assert report.events_relayed == 1
