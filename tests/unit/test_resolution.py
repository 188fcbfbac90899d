"""
Tests for validation, winner selection and payment.

These tests verify:
1. Bid validity against the reserve
2. Tie-break determinism
3. Second-price payment floored at the reserve
4. Collateral routing for forfeits
5. Record serialization
"""

import dataclasses
import math

import pytest

from dra.core.auction import (
    NO_WINNER_TAG,
    Bid,
    ForfeitPolicy,
    Participant,
    RevealStatus,
    compute_payment,
    resolve_bids,
    select_winner,
)
from dra.core.auction.resolution import collect_valid_bids, is_valid_bid
from dra.core.commitment import Commitment


# =============================================================================
# Test Fixtures
# =============================================================================


def make_bid(participant, value, status=RevealStatus.REVEALED, order=0):
    return Bid(
        participant=participant,
        commitment=Commitment("sha-baseline", bytes([order]) * 32),
        order_index=order,
        value=value,
        status=status,
        revealed_value=value if status == RevealStatus.REVEALED else None,
    )


H0, H1, H2 = Participant.honest(0), Participant.honest(1), Participant.honest(2)
S0 = Participant.synthetic(0)


# =============================================================================
# Validity
# =============================================================================


class TestValidity:

    def test_revealed_at_reserve_is_valid(self):
        assert is_valid_bid(make_bid(H0, 5.0), 5.0)

    def test_below_reserve_invalid(self):
        assert not is_valid_bid(make_bid(H0, 4.99), 5.0)

    def test_unrevealed_never_valid(self):
        for status in (RevealStatus.PENDING, RevealStatus.NON_REVEALED, RevealStatus.INVALID_OPENING):
            assert not is_valid_bid(make_bid(H0, 9.0, status), 5.0)

    def test_collect_keeps_commit_order(self):
        bids = [make_bid(H2, 7.0, order=0), make_bid(H0, 3.0, order=1), make_bid(H1, 5.0, order=2)]
        assert collect_valid_bids(bids, 5.0) == [(H2, 7.0), (H1, 5.0)]


# =============================================================================
# Winner Selection
# =============================================================================


class TestSelectWinner:

    def test_highest_value_wins(self):
        winner, second = select_winner([(H0, 15.0), (H1, 9.0), (H2, 11.0)])
        assert winner == (H0, 15.0)
        assert second == 11.0

    def test_tie_goes_to_lowest_index(self):
        winner, second = select_winner([(H1, 12.0), (H0, 12.0)])
        assert winner == (H0, 12.0)
        assert second == 12.0

    def test_tie_goes_to_honest_over_synthetic(self):
        winner, _ = select_winner([(S0, 12.0), (H2, 12.0)])
        assert winner == (H2, 12.0)

    def test_input_order_irrelevant(self):
        entries = [(S0, 8.0), (H1, 8.0), (H0, 6.0)]
        assert select_winner(entries) == select_winner(list(reversed(entries)))

    def test_single_bid(self):
        assert select_winner([(H1, 6.0)]) == ((H1, 6.0), None)

    def test_empty(self):
        assert select_winner([]) == (None, None)


class TestPayment:

    def test_second_price(self):
        assert compute_payment(5.0, 7.0) == 7.0

    def test_floored_at_reserve(self):
        assert compute_payment(5.0, 3.0) == 5.0

    def test_single_bidder_pays_reserve(self):
        assert compute_payment(5.0, None) == 5.0


# =============================================================================
# Resolution
# =============================================================================


class TestResolveBids:

    def test_no_valid_bids(self):
        record = resolve_bids([make_bid(H0, 0.2), make_bid(H1, 0.5)], 1.0, 1.0)
        assert record.winner is None
        assert record.winner_tag == NO_WINNER_TAG
        assert record.winning_bid == 0.0
        assert record.payment == 0.0
        assert record.valid_bids == ()

    def test_forfeits_to_auctioneer(self):
        bids = [
            make_bid(H0, 7.0),
            make_bid(S0, 20.0, RevealStatus.NON_REVEALED),
        ]
        record = resolve_bids(bids, 5.0, 5.0, ForfeitPolicy.AUCTIONEER)
        assert record.forfeited_to_auctioneer == 5.0
        assert record.transferred_collateral == 0.0
        assert record.forfeited_by == (S0,)

    def test_forfeits_transferred_to_winner(self):
        bids = [
            make_bid(H0, 7.0),
            make_bid(H1, 6.0, RevealStatus.INVALID_OPENING),
            make_bid(S0, 20.0, RevealStatus.NON_REVEALED),
        ]
        record = resolve_bids(bids, 5.0, 5.0, ForfeitPolicy.TRANSFER)
        assert record.transferred_collateral == 10.0
        assert record.forfeited_to_auctioneer == 0.0
        assert record.forfeited_by == (H1, S0)

    def test_transfer_without_winner_goes_to_auctioneer(self):
        bids = [make_bid(H0, 2.0), make_bid(S0, 20.0, RevealStatus.NON_REVEALED)]
        record = resolve_bids(bids, 5.0, 5.0, ForfeitPolicy.TRANSFER)
        assert record.winner is None
        assert record.transferred_collateral == 0.0
        assert record.forfeited_to_auctioneer == 5.0

    def test_below_reserve_does_not_forfeit(self):
        record = resolve_bids([make_bid(H0, 2.0)], 5.0, 5.0)
        assert record.forfeited_by == ()
        assert record.forfeited_to_auctioneer == 0.0

    def test_infinite_collateral_without_forfeits(self):
        record = resolve_bids([make_bid(H0, 7.0)], 5.0, math.inf)
        assert record.forfeited_to_auctioneer == 0.0
        assert not math.isnan(record.transferred_collateral)

    def test_infinite_collateral_with_forfeit(self):
        bids = [make_bid(H0, 7.0), make_bid(S0, 9.0, RevealStatus.NON_REVEALED)]
        record = resolve_bids(bids, 5.0, math.inf)
        assert math.isinf(record.forfeited_to_auctioneer)

    def test_record_is_immutable(self):
        record = resolve_bids([make_bid(H0, 7.0)], 5.0, 5.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.payment = 0.0


class TestRecordSerialization:

    def test_to_dict(self):
        bids = [make_bid(H1, 5.0), make_bid(H2, 7.0)]
        record = resolve_bids(bids, 5.0, 5.0)
        assert record.to_dict() == {
            "reserve": 5.0,
            "collateral": 5.0,
            "winner": "honest:2",
            "winning_bid": 7.0,
            "payment": 5.0,
            "transferred_collateral": 0.0,
            "forfeited_to_auctioneer": 0.0,
            "valid_bids": [["honest:1", 5.0], ["honest:2", 7.0]],
        }

    def test_infinities_as_strings(self):
        record = resolve_bids([make_bid(S0, 9.0, RevealStatus.NON_REVEALED)], math.inf, math.inf)
        data = record.to_dict()
        assert data["reserve"] == "inf"
        assert data["collateral"] == "inf"
        assert data["forfeited_to_auctioneer"] == "inf"
        assert data["winner"] == "none"

    def test_valid_values(self):
        record = resolve_bids([make_bid(H1, 5.0), make_bid(H2, 7.0)], 5.0, 5.0)
        assert record.valid_values() == [5.0, 7.0]


class TestParticipant:

    def test_tags_round_trip(self):
        assert H2.tag == "honest:2"
        assert S0.tag == "synthetic:0"
        assert Participant.from_tag("synthetic:3") == Participant.synthetic(3)

    def test_rank_order(self):
        assert sorted([S0, H2, H0]) == [H0, H2, S0]
