"""
Resolution - Validation, winner selection and payment for a round.

Rules:
- A bid is valid iff it was revealed and its value is >= reserve
- Winner: highest valid value; exact ties go to the lowest participant
  rank (honest before synthetic, then lowest index)
- Payment: max(reserve, second-highest valid value) with two or more
  valid bids, reserve with exactly one, nothing with none
- Every invalid opening or non-reveal forfeits the collateral, routed
  by the round's ForfeitPolicy

All functions here are pure; the round calls them exactly once.
"""

from typing import List, Optional, Sequence, Tuple

from dra.core.auction.models import (
    Bid,
    ForfeitPolicy,
    Participant,
    ResolutionRecord,
    RevealStatus,
)
from dra.utils.logger import get_logger

logger = get_logger("resolution")


# =============================================================================
# Validation
# =============================================================================


def is_valid_bid(bid: Bid, reserve: float) -> bool:
    """Revealed and meets the reserve."""
    return bid.status == RevealStatus.REVEALED and bid.revealed_value >= reserve


def collect_valid_bids(bids: Sequence[Bid], reserve: float) -> List[Tuple[Participant, float]]:
    """Valid (participant, value) pairs in commit order."""
    return [(b.participant, b.revealed_value) for b in bids if is_valid_bid(b, reserve)]


# =============================================================================
# Winner Selection
# =============================================================================


def ranking_key(entry: Tuple[Participant, float]):
    """
    Sort key placing the winner first.

    Highest value first, then participant rank.
    """
    participant, value = entry
    return (-value, participant)


def select_winner(
    valid: Sequence[Tuple[Participant, float]],
) -> Tuple[Optional[Tuple[Participant, float]], Optional[float]]:
    """
    Pick the winner and the runner-up value.

    Args:
        valid: Valid (participant, value) pairs

    Returns:
        (winner_entry, second_value); both None/None when no valid bids
    """
    if not valid:
        return None, None

    ranked = sorted(valid, key=ranking_key)
    second = ranked[1][1] if len(ranked) > 1 else None
    return ranked[0], second


def compute_payment(reserve: float, second: Optional[float]) -> float:
    """Second-price payment floored at the reserve."""
    if second is None:
        return reserve
    return max(reserve, second)


# =============================================================================
# Resolution
# =============================================================================


def resolve_bids(
    bids: Sequence[Bid],
    reserve: float,
    collateral: float,
    policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER,
) -> ResolutionRecord:
    """
    Resolve a round from its final bids.

    Args:
        bids: Bids in commit order, with PENDING already settled
        reserve: Frozen reserve price
        collateral: Frozen per-bid collateral
        policy: Where forfeited collateral goes

    Returns:
        ResolutionRecord
    """
    valid = collect_valid_bids(bids, reserve)
    winner_entry, second = select_winner(valid)

    forfeited_by = tuple(b.participant for b in bids if b.status.forfeits)
    forfeited = 0.0
    for _ in forfeited_by:
        forfeited += collateral

    if winner_entry is None:
        winner, winning_bid, payment = None, 0.0, 0.0
    else:
        winner, winning_bid = winner_entry
        payment = compute_payment(reserve, second)

    # Nobody to transfer to without a winner
    if policy == ForfeitPolicy.TRANSFER and winner is not None:
        transferred, to_auctioneer = forfeited, 0.0
    else:
        transferred, to_auctioneer = 0.0, forfeited

    for participant in forfeited_by:
        logger.warning(f"{participant.tag} forfeits collateral {collateral}")

    return ResolutionRecord(
        reserve=reserve,
        collateral=collateral,
        winner=winner,
        winning_bid=winning_bid,
        payment=payment,
        transferred_collateral=transferred,
        forfeited_to_auctioneer=to_auctioneer,
        valid_bids=tuple(valid),
        forfeited_by=forfeited_by,
    )


__all__ = [
    "is_valid_bid",
    "collect_valid_bids",
    "ranking_key",
    "select_winner",
    "compute_payment",
    "resolve_bids",
]
