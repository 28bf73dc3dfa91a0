"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth / caller identity
  3xxx: Auction lifecycle
  4xxx: Bids
  5xxx: Clearing
  6xxx: Settlement
  9xxx: Internal (database failures reported per item by batch jobs)

Messages name the violated rule so operators and bidders can self-correct.
"""

from src.fs_common.cents import cents_to_display


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Access token is invalid or expired", 401)


class OperatorRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Only auction operators can perform this action", 403)


class SchedulerUnauthorizedError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Scheduler token is missing or invalid", 401)


# --- 3xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3001, f"Auction not found: {auction_id}", 404)


class InvalidAuctionParametersError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid auction parameters: {detail}", 422)


class AuctionAccessDeniedError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(
            3004, f"Only the operator who created auction {auction_id} can manage it", 403
        )


class InvalidAuctionTransitionError(AppError):
    def __init__(self, auction_id: str, current: str, target: str) -> None:
        super().__init__(
            3003,
            f"Auction {auction_id} cannot move from {current} to {target}",
            422,
        )
        self.auction_id = auction_id
        self.current_status = current


# --- 4xxx: Bids ---

class AuctionNotAcceptingBidsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Auction is not accepting bids: {detail}", 422)


class BidOutOfRangeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, detail, 422)

    @classmethod
    def below_floor(cls, price: int, floor: int) -> "BidOutOfRangeError":
        return cls(
            f"Bid price {cents_to_display(price)} below auction minimum {cents_to_display(floor)}"
        )

    @classmethod
    def above_ceiling(cls, price: int, ceiling: int) -> "BidOutOfRangeError":
        return cls(
            f"Bid price {cents_to_display(price)} above auction maximum {cents_to_display(ceiling)}"
        )

    @classmethod
    def bad_quantity(cls, quantity: int) -> "BidOutOfRangeError":
        return cls(f"Bid quantity must be greater than 0, got {quantity}")


class BidderNotInvitedError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(4003, f"You are not invited to participate in auction {auction_id}", 403)


class BidNotFoundError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(4004, f"No active bid in auction {auction_id}", 404)


# --- 5xxx: Clearing ---

class ClearingNotAllowedError(AppError):
    def __init__(self, auction_id: str, status: str) -> None:
        super().__init__(
            5001,
            f"Auction {auction_id} is not in bid collection phase (status={status})",
            422,
        )


class ClearingWindowOpenError(AppError):
    def __init__(self, auction_id: str, ends_at: str) -> None:
        super().__init__(
            5002,
            f"Bid collection for auction {auction_id} has not ended yet (ends {ends_at})",
            422,
        )


class AlreadyClearedError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(5003, f"Clearing has already been calculated for auction {auction_id}", 409)
        self.auction_id = auction_id


class ClearingResultNotFoundError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(5004, f"Auction {auction_id} has not been cleared", 404)


# --- 6xxx: Settlement ---

class AllocationNotFoundError(AppError):
    def __init__(self, allocation_id: str) -> None:
        super().__init__(6001, f"Allocation not found: {allocation_id}", 404)


class InvalidSettlementTransitionError(AppError):
    def __init__(self, allocation_id: str, current_status: str | None, action: str) -> None:
        shown = current_status or "rejected (no settlement)"
        super().__init__(
            6002,
            f"Cannot {action} allocation {allocation_id}: current status is {shown}",
            422,
        )
        self.allocation_id = allocation_id
        self.current_status = current_status


class AuctionNotClearedError(AppError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(6003, f"Auction {auction_id} has not been cleared yet", 422)


class PartialBatchFailureError(AppError):
    """Some ids of a bulk settlement action failed; the rest committed."""

    def __init__(self, failures: dict[str, AppError]) -> None:
        super().__init__(
            6004,
            f"{len(failures)} allocation(s) failed; remaining allocations were processed",
            207,
        )
        self.failures = failures

    def failure_details(self) -> dict[str, dict[str, object]]:
        return {
            allocation_id: {"code": err.code, "message": err.message}
            for allocation_id, err in self.failures.items()
        }
