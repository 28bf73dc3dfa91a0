"""Validation rules for auctions and bids.

Each rule raises a typed AppError naming the violated constraint and returns
None otherwise. Rules never touch the database; callers load state first.
"""

from datetime import datetime

from src.fs_auction.domain.models import Auction
from src.fs_common.cents import cents_to_display
from src.fs_common.enums import AUCTION_TRANSITIONS, AuctionStatus
from src.fs_common.errors import (
    AuctionAccessDeniedError,
    AuctionNotAcceptingBidsError,
    BidderNotInvitedError,
    BidOutOfRangeError,
    InvalidAuctionParametersError,
    InvalidAuctionTransitionError,
)


def check_auction_parameters(
    shares_count: int, max_price: int, min_price: int, duration_minutes: int
) -> None:
    if shares_count <= 0:
        raise InvalidAuctionParametersError(
            f"shares_count must be greater than 0, got {shares_count}"
        )
    if min_price <= 0:
        raise InvalidAuctionParametersError(
            f"minimum price must be greater than $0.00, got {cents_to_display(min_price)}"
        )
    if max_price <= min_price:
        raise InvalidAuctionParametersError(
            f"maximum price {cents_to_display(max_price)} must be greater than "
            f"minimum price {cents_to_display(min_price)}"
        )
    if duration_minutes <= 0:
        raise InvalidAuctionParametersError(
            f"duration must be at least 1 minute, got {duration_minutes}"
        )


def check_transition(auction: Auction, target: AuctionStatus) -> None:
    current = auction.status_enum
    if target not in AUCTION_TRANSITIONS[current]:
        raise InvalidAuctionTransitionError(auction.id, current.value, target.value)


def can_manage(auction: Auction, user_id: str, is_operator: bool) -> bool:
    return is_operator and auction.is_managed_by(user_id)


def check_manager(auction: Auction, user_id: str, is_operator: bool) -> None:
    if not can_manage(auction, user_id, is_operator):
        raise AuctionAccessDeniedError(auction.id)


def check_accepting_bids(auction: Auction, now: datetime) -> None:
    if auction.status != AuctionStatus.COLLECTING_BIDS:
        raise AuctionNotAcceptingBidsError(f"current status is {auction.status}")
    if auction.window_closed(now):
        raise AuctionNotAcceptingBidsError(f"bid collection ended at {auction.window_end_display}")


def check_bid_range(auction: Auction, quantity: int, max_price: int) -> None:
    if quantity <= 0:
        raise BidOutOfRangeError.bad_quantity(quantity)
    if max_price < auction.min_price:
        raise BidOutOfRangeError.below_floor(max_price, auction.min_price)
    if max_price > auction.max_price:
        raise BidOutOfRangeError.above_ceiling(max_price, auction.max_price)


def check_invited(auction: Auction, email: str) -> None:
    if not auction.is_invited(email):
        raise BidderNotInvitedError(auction.id)
