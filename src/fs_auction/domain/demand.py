"""Live demand analysis shown to bidders while collection is open.

The estimated clearing price is the calculator's answer for the current
active bids, so bidders see the same rule that will settle the auction.
"""

from src.fs_auction.domain.models import Auction, Bid, DemandAnalysis
from src.fs_clearing.domain.calculator import calculate_clearing
from src.fs_clearing.domain.models import BidInput


def bids_to_inputs(bids: list[Bid]) -> list[BidInput]:
    return [
        BidInput(
            bid_id=b.id,
            bidder_id=b.bidder_id,
            bidder_email=b.bidder_email,
            quantity=b.quantity_requested,
            max_price=b.max_price,
            bid_time=b.bid_time,
        )
        for b in bids
    ]


def analyze_demand(auction: Auction, bids: list[Bid]) -> DemandAnalysis:
    outcome = calculate_clearing(bids_to_inputs(bids), auction.shares_count, auction.min_price)
    ratio = round(outcome.total_demand * 100 / auction.shares_count, 1)
    return DemandAnalysis(
        total_bids=len(bids),
        total_demand=outcome.total_demand,
        demand_ratio_pct=ratio,
        estimated_clearing_price=outcome.clearing_price,
        is_oversubscribed=outcome.total_demand > auction.shares_count,
    )
