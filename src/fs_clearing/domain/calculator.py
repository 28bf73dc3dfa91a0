"""Uniform-price clearing for a single-shot modified Dutch auction.

Pure functions: no I/O, no clock. Given the same bids, supply and floor the
result is identical, which is what lets the stored calculation_details
reproduce any historical clearing.

Algorithm:
  1. Order bids by max_price desc, bid_time asc, bidder_id asc (total order).
  2. Walk the order accumulating requested quantity. The marginal bid is the
     first one where running demand reaches supply; its price clears.
  3. Bids strictly above the clearing price fill in full. Bids at the clearing
     price share what is left in proportion to their requests (floor division),
     and leftover units go one at a time to the earliest bids of that tier.
     Bids below the clearing price get nothing.
  4. If demand never reaches supply, every bid fills at the auction floor.
"""

from decimal import ROUND_HALF_UP, Decimal

from src.fs_clearing.domain.models import AllocationLine, BidInput, BidStep, ClearingOutcome
from src.fs_common.datetime_utils import as_utc
from src.fs_common.enums import AllocationType, ClearingLogic
from src.fs_common.errors import BidOutOfRangeError, InvalidAuctionParametersError

_FRACTION_QUANTUM = Decimal("0.0001")


def sort_bids(bids: list[BidInput]) -> list[BidInput]:
    return sorted(bids, key=lambda b: (-b.max_price, as_utc(b.bid_time), b.bidder_id))


def validate_bids(bids: list[BidInput], price_floor: int, price_ceiling: int | None = None) -> None:
    """Reject malformed bids before any clearing arithmetic runs."""
    seen: set[str] = set()
    for bid in bids:
        if not bid.bidder_id or not bid.bidder_id.strip():
            raise InvalidAuctionParametersError(f"bid {bid.bid_id} has no bidder id")
        if bid.bidder_id in seen:
            raise InvalidAuctionParametersError(
                f"bidder {bid.bidder_id} has more than one active bid"
            )
        seen.add(bid.bidder_id)
        if bid.quantity <= 0:
            raise BidOutOfRangeError.bad_quantity(bid.quantity)
        if bid.max_price < price_floor:
            raise BidOutOfRangeError.below_floor(bid.max_price, price_floor)
        if price_ceiling is not None and bid.max_price > price_ceiling:
            raise BidOutOfRangeError.above_ceiling(bid.max_price, price_ceiling)


def _walk_demand(ordered: list[BidInput], supply: int) -> tuple[list[BidStep], int | None]:
    """Return the demand steps up to the marginal bid and its index (None if never reached)."""
    steps: list[BidStep] = []
    running = 0
    for i, bid in enumerate(ordered):
        before = running
        running += bid.quantity
        reached = running >= supply
        steps.append(
            BidStep(
                step=i + 1,
                bid_id=bid.bid_id,
                bidder_email=bid.bidder_email,
                max_price=bid.max_price,
                quantity=bid.quantity,
                running_demand_before=before,
                running_demand_after=running,
                is_clearing_price=reached,
            )
        )
        if reached:
            return steps, i
    return steps, None


def _split_tier(tier: list[BidInput], capacity: int) -> dict[str, int]:
    """Share `capacity` across one price tier, keyed by bid_id.

    Floor division by requested quantity first, then one extra unit per bid in
    tier order until capacity is exhausted. No bid exceeds its request.
    """
    tier_demand = sum(b.quantity for b in tier)
    if tier_demand <= capacity:
        return {b.bid_id: b.quantity for b in tier}

    shares = {b.bid_id: b.quantity * capacity // tier_demand for b in tier}
    leftover = capacity - sum(shares.values())
    while leftover > 0:
        for bid in tier:
            if leftover == 0:
                break
            if shares[bid.bid_id] < bid.quantity:
                shares[bid.bid_id] += 1
                leftover -= 1
    return shares


def _tag(requested: int, allocated: int) -> AllocationType:
    if allocated == 0:
        return AllocationType.REJECTED
    if allocated == requested:
        return AllocationType.FULL
    return AllocationType.PRO_RATA


def calculate_clearing(bids: list[BidInput], supply: int, price_floor: int) -> ClearingOutcome:
    if supply <= 0:
        raise InvalidAuctionParametersError(f"total supply must be greater than 0, got {supply}")

    ordered = sort_bids(bids)
    total_demand = sum(b.quantity for b in ordered)

    if not ordered:
        return ClearingOutcome(
            supply=supply,
            price_floor=price_floor,
            clearing_price=price_floor,
            clearing_logic=ClearingLogic.UNDERSUBSCRIBED,
            allocations=[],
            total_demand=0,
            shares_allocated=0,
            shares_remaining=supply,
            pro_rata_applied=False,
        )

    steps, marginal_idx = _walk_demand(ordered, supply)

    if marginal_idx is None:
        allocations = [
            AllocationLine(
                bid_id=b.bid_id,
                bidder_id=b.bidder_id,
                bidder_email=b.bidder_email,
                original_quantity=b.quantity,
                allocated_quantity=b.quantity,
                clearing_price=price_floor,
                allocation_type=AllocationType.FULL,
            )
            for b in ordered
        ]
        return ClearingOutcome(
            supply=supply,
            price_floor=price_floor,
            clearing_price=price_floor,
            clearing_logic=ClearingLogic.UNDERSUBSCRIBED,
            allocations=allocations,
            total_demand=total_demand,
            shares_allocated=total_demand,
            shares_remaining=supply - total_demand,
            pro_rata_applied=False,
            bid_steps=steps,
            ordered_inputs=ordered,
        )

    clearing_price = ordered[marginal_idx].max_price
    above = [b for b in ordered if b.max_price > clearing_price]
    tier = [b for b in ordered if b.max_price == clearing_price]
    capacity = supply - sum(b.quantity for b in above)
    tier_demand = sum(b.quantity for b in tier)

    pro_rata_applied = tier_demand > capacity
    fraction: Decimal | None = None
    if pro_rata_applied:
        fraction = (Decimal(capacity) / Decimal(tier_demand)).quantize(
            _FRACTION_QUANTUM, rounding=ROUND_HALF_UP
        )
    tier_shares = _split_tier(tier, capacity)

    allocations: list[AllocationLine] = []
    for bid in ordered:
        if bid.max_price > clearing_price:
            allocated = bid.quantity
        elif bid.max_price == clearing_price:
            allocated = tier_shares[bid.bid_id]
        else:
            allocated = 0
        allocations.append(
            AllocationLine(
                bid_id=bid.bid_id,
                bidder_id=bid.bidder_id,
                bidder_email=bid.bidder_email,
                original_quantity=bid.quantity,
                allocated_quantity=allocated,
                clearing_price=clearing_price,
                allocation_type=_tag(bid.quantity, allocated),
                pro_rata_percentage=fraction if bid.max_price == clearing_price else None,
            )
        )

    shares_allocated = sum(a.allocated_quantity for a in allocations)
    return ClearingOutcome(
        supply=supply,
        price_floor=price_floor,
        clearing_price=clearing_price,
        clearing_logic=(
            ClearingLogic.PRO_RATA_AT_CLEARING_PRICE
            if pro_rata_applied
            else ClearingLogic.FULL_ALLOCATION
        ),
        allocations=allocations,
        total_demand=total_demand,
        shares_allocated=shares_allocated,
        shares_remaining=supply - shares_allocated,
        pro_rata_applied=pro_rata_applied,
        pro_rata_fraction=fraction,
        bid_steps=steps,
        ordered_inputs=ordered,
    )
