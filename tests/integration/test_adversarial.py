"""
Adversarial Tests - Auctioneer deviations against the DRA.

Tests verify:
1. The adaptive-reserve attack pays off with a centralized forwarder
2. The public broadcast leaves no room for selective delivery
3. Withheld false bids cost the auctioneer its collateral
4. Bidders cannot change their bid after commitment
"""

import random

import pytest

from dra.core.auction import ForfeitPolicy, Participant, RevealStatus
from dra.core.auction.round import AuctionRound
from dra.core.commitment import NonMalleableCommitment, ShaCommitment
from dra.core.distribution import Exponential, Uniform
from dra.core.errors import InvalidParameters
from dra.network import AUCTIONEER, BroadcastChannel, MessageKind
from dra.sim import (
    CentralizedAuctioneer,
    FalseBid,
    adaptive_reserve_deviation,
    auctioneer_revenue,
    run_protocol,
    scripted_adaptive_reserve_run,
)


A, B = Participant.honest(0), Participant.honest(1)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def dist():
    """Exponential(0.01): reserve and collateral 100 at alpha = 1."""
    return Exponential(0.01)


@pytest.fixture
def driver(dist):
    return CentralizedAuctioneer(dist, 1.0, 2)


# =============================================================================
# Centralized Auctioneer
# =============================================================================


class TestAdaptiveReserve:
    """Closed-form and scripted adaptive-reserve deviation."""

    def test_deviation_beats_baseline(self, dist):
        report = adaptive_reserve_deviation(dist, 1.0, 150.0, 400.0, 120.0)
        assert report.baseline_revenue == pytest.approx(150.0)
        assert report.deviation_revenue == pytest.approx(250.0)
        assert report.gain > 0

    def test_below_threshold_matches_baseline(self, dist):
        report = adaptive_reserve_deviation(dist, 1.0, 150.0, 400.0, 200.0)
        assert report.deviation_revenue == report.baseline_revenue

    def test_scripted_run_profits(self, dist):
        result = scripted_adaptive_reserve_run(dist, 1.0, 150.0, 400.0, 120.0)
        assert result.report.deviation_revenue > result.report.baseline_revenue
        assert result.report.deviation_revenue == pytest.approx(250.0)

    def test_scripted_run_censors_commitment(self, dist):
        result = scripted_adaptive_reserve_run(dist, 1.0, 150.0, 400.0, 120.0)
        hidden = result.channel.omitted_for(B)
        assert any(m.kind == MessageKind.COMMITMENT and m.subject == "honest:0" for m in hidden)

    def test_shill_hidden_from_observed_buyer(self, dist):
        result = scripted_adaptive_reserve_run(dist, 1.0, 150.0, 400.0, 120.0)
        hidden = result.channel.omitted_for(A)
        assert any(m.kind == MessageKind.COMMITMENT and m.subject == "synthetic:0" for m in hidden)


class TestCentralizedDriver:
    """Message-level scripting of the centralized forwarder."""

    def test_staggered_commit_end(self, driver):
        driver.commit_real(0, 150.0)
        driver.commit_real(1, 400.0)
        driver.announce_commit_end_staggered([A], [B])
        for buyer in (A, B):
            assert any(m.kind == MessageKind.END_PHASE for m in driver.channel.omitted_for(buyer))

    def test_private_commitments_reach_only_auctioneer(self, driver):
        driver.commit_real(0, 150.0)
        assert driver.channel.per_recipient_view(AUCTIONEER)[0].subject == "honest:0"
        assert driver.channel.per_recipient_view(B) == []

    def test_timeout_notice_can_be_hidden(self, driver):
        driver.notify_timeout(A, [AUCTIONEER])
        assert driver.channel.omitted_for(B)[0].kind == MessageKind.TIMEOUT

    def test_resolves_with_shared_engine(self, driver):
        driver.commit_real(0, 150.0)
        driver.commit_real(1, 400.0)
        driver.commit_false(0, 300.0, reveal=False)
        driver.set_false_bid_reveal(0, True)
        record, transcript, _ = driver.resolve(rng_seed=3)
        assert record.winner == B
        assert record.payment == 300.0
        assert len(transcript) == 3

    def test_withheld_real_reveal(self, driver):
        driver.commit_real(0, 150.0)
        driver.commit_real(1, 400.0)
        driver.withhold_real_reveal(1)
        record, _, _ = driver.resolve(rng_seed=3)
        assert record.winner == A
        assert record.forfeited_by == (B,)

    def test_resolve_requires_all_commits(self, driver):
        driver.commit_real(0, 150.0)
        with pytest.raises(InvalidParameters, match="never committed"):
            driver.resolve()

    def test_buyer_index_checked(self, driver):
        with pytest.raises(InvalidParameters):
            driver.commit_real(2, 10.0)


# =============================================================================
# Public Broadcast
# =============================================================================


class TestBroadcastContrast:
    """With a public channel every bidder sees the same transcript."""

    def test_identical_views(self, dist):
        channel = BroadcastChannel(subscribers=[AUCTIONEER, A.tag, B.tag])
        auction = AuctionRound(dist, ShaCommitment(), 1.0, 2, channel=channel)
        auction.commit(A, 150.0, b"\x01" * 32)
        auction.commit(B, 400.0, b"\x02" * 32)
        auction.close_commit()
        auction.reveal(A, 150.0, b"\x01" * 32)
        auction.reveal(B, 400.0, b"\x02" * 32)
        auction.resolve()

        everything = list(auction.log.messages)
        assert auction.log.per_recipient_view(A) == everything
        assert auction.log.per_recipient_view(B) == everything
        assert auction.record.payment == 150.0

    def test_shill_commitment_seen_by_all(self, dist):
        auction = run_protocol(dist, 1.0, [150.0, 400.0], false_bids=[FalseBid(250.0)], rng=random.Random(8))
        shill_commit = [
            m for m in auction.log.messages
            if m.kind == MessageKind.COMMITMENT and m.subject == "synthetic:0"
        ][0]
        for buyer in (A, B):
            assert shill_commit in auction.log.per_recipient_view(buyer)


# =============================================================================
# Withheld False Bids
# =============================================================================


class TestWithheldFalseBid:
    """A false bid that is never revealed forfeits collateral."""

    def test_no_gain_under_transfer(self):
        dist = Exponential(1.0)
        base = run_protocol(dist, 1.0, [0.5, 3.0], forfeit_policy=ForfeitPolicy.TRANSFER).record
        dev = run_protocol(
            dist, 1.0, [0.5, 3.0],
            false_bids=[FalseBid(2.0, reveal=False)],
            forfeit_policy=ForfeitPolicy.TRANSFER,
        ).record
        assert dev.winner == base.winner
        assert dev.transferred_collateral == 1.0
        assert auctioneer_revenue(dev) < auctioneer_revenue(base)

    def test_no_gain_under_auctioneer_policy(self):
        dist = Exponential(1.0)
        base = run_protocol(dist, 1.0, [0.5, 3.0]).record
        dev = run_protocol(dist, 1.0, [0.5, 3.0], false_bids=[FalseBid(2.0, reveal=False)]).record
        assert auctioneer_revenue(dev) == auctioneer_revenue(base)

    def test_synthetic_winner_leaves_item_unsold(self):
        record = run_protocol(Uniform(0.0, 10.0), 1.0, [6.0], false_bids=[FalseBid(9.0)]).record
        assert record.winner.is_synthetic
        assert auctioneer_revenue(record) == 0.0


# =============================================================================
# Binding Commitments
# =============================================================================


class TestBinding:
    """A bidder cannot open to a different value than committed."""

    @pytest.mark.parametrize("scheme", [ShaCommitment(), NonMalleableCommitment()], ids=["sha", "non-malleable"])
    def test_raised_bid_rejected(self, scheme):
        auction = AuctionRound(Uniform(0.0, 10.0), scheme, 1.0, 2)
        auction.commit(A, 6.0, b"\x01" * 32)
        auction.commit(B, 7.0, b"\x02" * 32)
        auction.close_commit()
        auction.reveal(A, 9.0, b"\x01" * 32)
        auction.reveal(B, 7.0, b"\x02" * 32)
        record = auction.resolve()

        assert auction.bid_for(A).status == RevealStatus.INVALID_OPENING
        assert record.winner == B
        assert record.payment == 5.0
        assert record.forfeited_by == (A,)

    def test_copied_commitment_cannot_be_opened(self):
        """Replaying another bidder's commitment without its opening fails."""
        scheme = NonMalleableCommitment()
        auction = AuctionRound(Uniform(0.0, 10.0), scheme, 1.0, 2)
        original = auction.commit(A, 8.0, b"\x01" * 32)
        assert scheme.open(original.commitment, 8.0, b"\x01" * 32)
        assert not scheme.open(original.commitment, 8.0, b"\x03" * 32)
        assert not scheme.open(original.commitment, 8.5, b"\x01" * 32)
