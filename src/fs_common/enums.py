"""Global enums — values must match DB CHECK constraints exactly.

Status enums carry their transition tables next to them so that an illegal
move is a lookup miss, never a string comparison scattered across services.
"""

from enum import Enum


class AuctionStatus(str, Enum):
    DRAFT = "draft"
    COLLECTING_BIDS = "collecting_bids"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


AUCTION_TRANSITIONS: dict[AuctionStatus, frozenset[AuctionStatus]] = {
    AuctionStatus.DRAFT: frozenset({AuctionStatus.COLLECTING_BIDS, AuctionStatus.CANCELLED}),
    AuctionStatus.COLLECTING_BIDS: frozenset({AuctionStatus.COMPLETED, AuctionStatus.CANCELLED}),
    AuctionStatus.COMPLETED: frozenset(),
    AuctionStatus.CANCELLED: frozenset(),
}


class AllocationType(str, Enum):
    FULL = "full"
    PRO_RATA = "pro_rata"
    REJECTED = "rejected"


class ClearingLogic(str, Enum):
    """How the clearing price was reached (stored in calculation_details)."""
    UNDERSUBSCRIBED = "undersubscribed"
    FULL_ALLOCATION = "full_allocation"
    PRO_RATA_AT_CLEARING_PRICE = "pro_rata_at_clearing_price"


class SettlementStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_RECEIVED = "payment_received"
    SHARES_TRANSFERRED = "shares_transferred"
    COMPLETED = "completed"


class SettlementAction(str, Enum):
    CONFIRM_PAYMENT = "confirm_payment"
    TRANSFER_SHARES = "transfer_shares"
    COMPLETE_SETTLEMENT = "complete_settlement"
    # Advance one step from whatever the current status is
    AUTO_PROCESS = "auto_process"


class EventType(str, Enum):
    AUCTION_STARTED = "AUCTION_STARTED"
    AUCTION_CANCELLED = "AUCTION_CANCELLED"
    AUCTION_CLEARED = "AUCTION_CLEARED"
    SETTLEMENT_STATUS_CHANGED = "SETTLEMENT_STATUS_CHANGED"
    SHARES_TRANSFER_CONFIRMED = "SHARES_TRANSFER_CONFIRMED"
    ALL_SETTLEMENTS_COMPLETED = "ALL_SETTLEMENTS_COMPLETED"


class ClearingRunStatus(str, Enum):
    CLEARED = "cleared"
    ALREADY_CLEARED = "already_cleared"
