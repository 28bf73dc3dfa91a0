"""Tests for fs_common.errors and fs_common.response."""

from src.fs_common.errors import (
    AppError,
    AuctionNotFoundError,
    BidOutOfRangeError,
    InvalidSettlementTransitionError,
    PartialBatchFailureError,
)
from src.fs_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_auction_not_found(self) -> None:
        err = AuctionNotFoundError("auc_123")
        assert err.code == 3001
        assert err.http_status == 404
        assert "auc_123" in err.message

    def test_below_floor_shows_dollars(self) -> None:
        err = BidOutOfRangeError.below_floor(4000, 5000)
        assert err.code == 4002
        assert err.message == "Bid price $40.00 below auction minimum $50.00"

    def test_transition_on_rejected_allocation(self) -> None:
        err = InvalidSettlementTransitionError("alc_1", None, "confirm_payment")
        assert err.http_status == 422
        assert "rejected (no settlement)" in err.message
        assert err.current_status is None

    def test_partial_batch_details(self) -> None:
        err = PartialBatchFailureError({
            "alc_5": InvalidSettlementTransitionError("alc_5", "completed", "confirm_payment"),
        })
        assert err.http_status == 207
        assert err.failure_details()["alc_5"]["code"] == 6002


class TestApiResponse:
    def test_success_defaults(self) -> None:
        resp = success_response({"id": "auc_1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "auc_1"}
        assert resp.request_id.startswith("req_")

    def test_error_carries_partial_data(self) -> None:
        resp = error_response(6004, "1 allocation(s) failed", {"succeeded": []})
        assert isinstance(resp, ApiResponse)
        assert resp.code == 6004
        assert resp.data == {"succeeded": []}
