"""HTTP-level tests: envelope, error mapping, auth guards, 207 partial batches.

Services are replaced through app.dependency_overrides; no DB or Redis needed.
"""

from unittest.mock import AsyncMock

from httpx import AsyncClient

from src.fs_auction.api.router import get_auction_service
from src.fs_clearing.api.router import get_orchestrator
from src.fs_common.database import get_db_session
from src.fs_common.enums import SettlementStatus
from src.fs_common.errors import (
    AuctionNotFoundError,
    ClearingWindowOpenError,
    InvalidSettlementTransitionError,
)
from src.fs_gateway.auth.dependencies import Principal, get_current_user, require_operator
from src.fs_gateway.auth.jwt_handler import create_access_token
from src.fs_settlement.api.router import get_settlement_service
from src.fs_settlement.domain.models import Allocation, BulkTransitionResult, TransitionOutcome
from src.main import app

OPERATOR = Principal("op_1", "ops@example.com", "operator")


async def _fake_db():
    yield None


def _as_operator() -> None:
    app.dependency_overrides[get_db_session] = _fake_db
    app.dependency_overrides[get_current_user] = lambda: OPERATOR
    app.dependency_overrides[require_operator] = lambda: OPERATOR


def _alloc(alloc_id: str, status: str) -> Allocation:
    return Allocation(
        id=alloc_id, auction_id="auc_1", bid_id="bid_1", bidder_id="u_1",
        bidder_email="one@example.com", original_quantity=10, allocated_quantity=10,
        clearing_price=10000, total_amount=100000, allocation_type="full",
        settlement_status=status,
    )


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_missing_token_is_401(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/auctions/auc_1")
    assert resp.status_code == 401


async def test_app_error_is_wrapped(client: AsyncClient) -> None:
    _as_operator()
    service = AsyncMock()
    service.get_auction.side_effect = AuctionNotFoundError("auc_404")
    app.dependency_overrides[get_auction_service] = lambda: service

    resp = await client.get("/api/v1/auctions/auc_404")

    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == 3001
    assert body["data"] is None
    assert body["request_id"] == resp.headers["X-Request-ID"]


async def test_bidder_cannot_bulk_settle(client: AsyncClient) -> None:
    app.dependency_overrides[get_db_session] = _fake_db
    token = create_access_token("u_1", "one@example.com", role="bidder")

    resp = await client.post(
        "/api/v1/auctions/auc_1/settlement",
        json={"action": "confirm_payment", "allocation_ids": ["alc_1"]},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert resp.status_code == 403
    assert resp.json()["code"] == 1002


async def test_bulk_with_failures_is_207(client: AsyncClient) -> None:
    _as_operator()
    service = AsyncMock()
    service.apply_bulk.return_value = BulkTransitionResult(
        succeeded=[
            TransitionOutcome(
                _alloc("alc_1", "payment_received"),
                SettlementStatus.PENDING_PAYMENT,
                SettlementStatus.PAYMENT_RECEIVED,
            )
        ],
        failures={
            "alc_2": InvalidSettlementTransitionError("alc_2", "completed", "confirm_payment"),
        },
    )
    app.dependency_overrides[get_settlement_service] = lambda: service

    resp = await client.post(
        "/api/v1/auctions/auc_1/settlement",
        json={"action": "confirm_payment", "allocation_ids": ["alc_1", "alc_2"]},
    )

    assert resp.status_code == 207
    body = resp.json()
    assert body["code"] == 6004
    assert body["data"]["processed_count"] == 1
    assert body["data"]["succeeded"][0]["new_status"] == "payment_received"
    assert body["data"]["failures"]["alc_2"]["code"] == 6002


async def test_bulk_all_succeed_is_200(client: AsyncClient) -> None:
    _as_operator()
    service = AsyncMock()
    service.apply_bulk.return_value = BulkTransitionResult(all_completed=True)
    app.dependency_overrides[get_settlement_service] = lambda: service

    resp = await client.post(
        "/api/v1/auctions/auc_1/settlement",
        json={"action": "complete_settlement", "allocation_ids": ["alc_1"]},
    )

    assert resp.status_code == 200
    assert resp.json()["code"] == 0
    assert resp.json()["data"]["all_settlements_completed"] is True


async def test_add_notes_requires_text(client: AsyncClient) -> None:
    _as_operator()
    app.dependency_overrides[get_settlement_service] = lambda: AsyncMock()

    resp = await client.post(
        "/api/v1/auctions/auc_1/settlement/alc_1", json={"action": "add_notes", "notes": "  "}
    )

    assert resp.status_code == 422


async def test_sweep_requires_scheduler_token(client: AsyncClient) -> None:
    app.dependency_overrides[get_db_session] = _fake_db

    resp = await client.post("/api/v1/auctions/process-expired")

    assert resp.status_code == 401
    assert resp.json()["code"] == 1003


async def test_clear_without_body_is_not_manual(client: AsyncClient) -> None:
    _as_operator()
    orchestrator = AsyncMock()
    orchestrator.trigger_clearing.side_effect = ClearingWindowOpenError(
        "auc_1", "2026-05-01T09:00:00+00:00"
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    resp = await client.post("/api/v1/auctions/auc_1/clear")

    assert resp.status_code == 422
    assert resp.json()["code"] == 5002
    orchestrator.trigger_clearing.assert_awaited_once()
    kwargs = orchestrator.trigger_clearing.await_args.kwargs
    assert kwargs["manual_trigger"] is False
    assert kwargs["operator"] == OPERATOR


async def test_clear_passes_explicit_manual_trigger(client: AsyncClient) -> None:
    _as_operator()
    orchestrator = AsyncMock()
    orchestrator.trigger_clearing.side_effect = AuctionNotFoundError("auc_1")
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    resp = await client.post("/api/v1/auctions/auc_1/clear", json={"manual_trigger": True})

    assert resp.status_code == 404
    assert orchestrator.trigger_clearing.await_args.kwargs["manual_trigger"] is True
