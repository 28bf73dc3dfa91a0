"""Unit tests for AuctionApplicationService using mock repository and publisher."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.fs_auction.application.schemas import CreateAuctionRequest, cursor_decode
from src.fs_auction.application.service import AuctionApplicationService
from src.fs_auction.domain.models import Auction
from src.fs_common.enums import EventType
from src.fs_common.errors import (
    AuctionAccessDeniedError,
    AuctionNotFoundError,
    InvalidAuctionParametersError,
    InvalidAuctionTransitionError,
)
from src.fs_gateway.auth.dependencies import Principal

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)
OPERATOR = Principal(user_id="op_1", email="ops@fairstock.example", role="operator")


def _auction(**kwargs) -> Auction:
    defaults = dict(
        id="auc_1", company_id="co_1", title="Secondary", description=None,
        shares_count=1000, max_price=5000, min_price=1000, duration_minutes=90,
        status="draft", invited_members=["a@example.com"], created_by="op_1",
    )
    defaults.update(kwargs)
    return Auction(**defaults)


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


class TestCreateAuction:
    async def test_creates_draft(self, db, repo, publisher) -> None:
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        req = CreateAuctionRequest(
            company_id="co_1", title="Secondary", shares_count=1000,
            max_price_cents=5000, min_price_cents=1000, duration_minutes=90,
            invited_members=[" A@example.com", "a@example.com", "b@example.com"],
        )

        resp = await svc.create_auction(db, req, OPERATOR)

        assert resp.status == "draft"
        assert resp.id.startswith("auc_")
        assert resp.invited_members == ["a@example.com", "b@example.com"]
        assert resp.min_price_display == "$10.00"
        repo.create.assert_awaited_once()
        publisher.publish.assert_not_awaited()

    async def test_default_duration(self, db, repo, publisher) -> None:
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        req = CreateAuctionRequest(
            company_id="co_1", title="Secondary", shares_count=10,
            max_price_cents=5000, min_price_cents=1000,
        )
        resp = await svc.create_auction(db, req, OPERATOR)
        assert resp.duration_minutes == 24 * 60

    async def test_invalid_prices_rejected_before_write(self, db, repo, publisher) -> None:
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        req = CreateAuctionRequest(
            company_id="co_1", title="Bad", shares_count=10,
            max_price_cents=1000, min_price_cents=2000,
        )
        with pytest.raises(InvalidAuctionParametersError):
            await svc.create_auction(db, req, OPERATOR)
        repo.create.assert_not_awaited()


class TestStartAuction:
    async def test_opens_window_and_emits_event(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = _auction()
        svc = AuctionApplicationService(repo=repo, publisher=publisher)

        resp = await svc.start_auction(db, "auc_1", OPERATOR, now=NOW)

        assert resp.status == "collecting_bids"
        assert resp.bid_collection_end_time == (NOW + timedelta(minutes=90)).isoformat()
        repo.get_by_id.assert_awaited_once_with(db, "auc_1", lock="update")
        repo.mark_started.assert_awaited_once_with(db, "auc_1", NOW, NOW + timedelta(minutes=90))
        [events] = publisher.publish.await_args.args[1:]
        assert events[0].event_type == EventType.AUCTION_STARTED
        assert events[0].payload["invited_members"] == ["a@example.com"]

    async def test_not_found(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = None
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        with pytest.raises(AuctionNotFoundError):
            await svc.start_auction(db, "auc_x", OPERATOR, now=NOW)

    async def test_already_started(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = _auction(status="collecting_bids")
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        with pytest.raises(InvalidAuctionTransitionError):
            await svc.start_auction(db, "auc_1", OPERATOR, now=NOW)
        repo.mark_started.assert_not_awaited()
        publisher.publish.assert_not_awaited()

    async def test_other_operator_cannot_start(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = _auction()
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        other = Principal(user_id="op_2", email="ops2@fairstock.example", role="operator")

        with pytest.raises(AuctionAccessDeniedError):
            await svc.start_auction(db, "auc_1", other, now=NOW)

        repo.mark_started.assert_not_awaited()
        publisher.publish.assert_not_awaited()


class TestCancelAuction:
    async def test_cancel_collecting(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = _auction(status="collecting_bids")
        svc = AuctionApplicationService(repo=repo, publisher=publisher)

        resp = await svc.cancel_auction(db, "auc_1", OPERATOR, now=NOW)

        assert resp.status == "cancelled"
        assert resp.cancelled_at == NOW.isoformat()
        [events] = publisher.publish.await_args.args[1:]
        assert events[0].event_type == EventType.AUCTION_CANCELLED
        assert events[0].payload["previous_status"] == "collecting_bids"

    async def test_cannot_cancel_completed(self, db, repo, publisher) -> None:
        repo.get_by_id.return_value = _auction(status="completed")
        svc = AuctionApplicationService(repo=repo, publisher=publisher)
        with pytest.raises(InvalidAuctionTransitionError):
            await svc.cancel_auction(db, "auc_1", OPERATOR, now=NOW)
        repo.mark_cancelled.assert_not_awaited()


class TestListAuctions:
    async def test_has_more_sets_cursor(self, db, repo, publisher) -> None:
        repo.list_auctions.return_value = [_auction(id=f"auc_{i}") for i in range(6, 0, -1)]
        svc = AuctionApplicationService(repo=repo, publisher=publisher)

        resp = await svc.list_auctions(db, None, None, None, limit=5)

        assert resp.has_more is True
        assert len(resp.items) == 5
        assert cursor_decode(resp.next_cursor) == "auc_2"
        # limit+1 requested to detect has_more
        assert repo.list_auctions.await_args.args[-1] == 6

    async def test_bad_cursor_ignored(self, db, repo, publisher) -> None:
        repo.list_auctions.return_value = []
        svc = AuctionApplicationService(repo=repo, publisher=publisher)

        resp = await svc.list_auctions(db, "co_1", "draft", "not-base64!", limit=5)

        assert resp.items == []
        assert repo.list_auctions.await_args.args[3] is None
