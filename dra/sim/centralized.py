"""
Centralized Auctioneer - Comparison driver without a public broadcast.

Here the auctioneer relays every message itself and may show each
bidder a different subset. That is enough to script the adaptive-reserve
attack: the auctioneer learns one bid privately, hides it from the other
bidder, and then inserts a shill bid sized against what it saw. The
broadcast engine rules this out because every commitment reaches every
subscriber.

Resolution still uses the same engine so outcomes are directly
comparable with the broadcast rounds.
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from dra.core.auction.models import (
    ForfeitPolicy,
    Participant,
    Phase,
    ResolutionRecord,
)
from dra.core.auction.transcript import AuditTranscript
from dra.core.collateral import collateral_requirement
from dra.core.commitment import CommitmentScheme, create_scheme
from dra.core.distribution import Distribution
from dra.core.errors import InvalidParameters
from dra.network.channel import (
    AUCTIONEER,
    CentralizedChannel,
    Identity,
    Message,
    MessageKind,
    commitment_message,
    end_phase_message,
    identity_tag,
    reveal_message,
    timeout_message,
)
from dra.sim.harness import FalseBid, run_protocol
from dra.utils.logger import get_logger

logger = get_logger("centralized")


# =============================================================================
# Driver
# =============================================================================


class CentralizedAuctioneer:
    """
    Scriptable auctioneer forwarding messages over a CentralizedChannel.

    Args:
        dist: Value distribution
        alpha: Strong-regularity parameter
        buyers: Number of honest buyers
        scheme: Commitment backend used at resolution
    """

    def __init__(
        self,
        dist: Distribution,
        alpha: float,
        buyers: int,
        scheme: Optional[CommitmentScheme] = None,
    ):
        self.dist = dist
        self.alpha = alpha
        self.buyers = buyers
        self.scheme = scheme if scheme is not None else create_scheme("sha-baseline")
        self.collateral = collateral_requirement(buyers, dist, alpha)

        self.valuations: List[Optional[float]] = [None] * buyers
        self.real_reveals: List[bool] = [True] * buyers
        self.false_bids: List[FalseBid] = []
        self.channel = CentralizedChannel([Participant.honest(i) for i in range(buyers)])

    def _check_buyer(self, idx: int) -> None:
        if not 0 <= idx < self.buyers:
            raise InvalidParameters(f"buyer index {idx} out of range [0, {self.buyers})")

    # =========================================================================
    # Commit Phase
    # =========================================================================

    def commit_real(self, idx: int, bid: float) -> None:
        """Buyer sends its commitment privately to the auctioneer."""
        self._check_buyer(idx)
        self.valuations[idx] = bid
        self.real_reveals[idx] = True
        self.channel.private_message(AUCTIONEER, commitment_message(Participant.honest(idx), Phase.COMMITTING))

    def commit_false(self, idx: int, bid: float, reveal: bool) -> None:
        """Auctioneer inserts a bid under a synthetic identity."""
        participant = Participant.synthetic(idx, reveal=reveal)
        self.false_bids.append(FalseBid(bid, reveal))
        self.channel.register(participant)
        self.channel.private_message(AUCTIONEER, commitment_message(participant, Phase.COMMITTING))

    def forward_commit_to(self, origin: Identity, recipients: Sequence[Identity]) -> int:
        """Relay a commitment from `origin` to the chosen recipients only."""
        message = Message(MessageKind.COMMITMENT, AUCTIONEER, Phase.COMMITTING, subject=identity_tag(origin))
        return self.channel.broadcast_subset(message, recipients)

    def announce_commit_end_to(self, recipients: Sequence[Identity]) -> int:
        return self.channel.broadcast_subset(end_phase_message(Phase.COMMITTING, Phase.REVEALING), recipients)

    def announce_commit_end_staggered(
        self,
        first_batch: Sequence[Identity],
        second_batch: Sequence[Identity],
    ) -> None:
        """End-of-commit notices to disjoint subsets, one after the other."""
        self.announce_commit_end_to(first_batch)
        self.announce_commit_end_to(second_batch)

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def announce_reveal_end_to(self, recipients: Sequence[Identity]) -> int:
        return self.channel.broadcast_subset(end_phase_message(Phase.REVEALING, Phase.RESOLVED), recipients)

    def notify_timeout(self, target: Identity, recipients: Sequence[Identity]) -> int:
        return self.channel.broadcast_subset(timeout_message(target, Phase.REVEALING), recipients)

    def publish_reveal_to(self, origin: Identity, recipients: Sequence[Identity], success: bool = True) -> int:
        return self.channel.broadcast_subset(reveal_message(origin, Phase.REVEALING, success), recipients)

    def withhold_real_reveal(self, idx: int) -> None:
        self._check_buyer(idx)
        self.real_reveals[idx] = False

    def set_false_bid_reveal(self, idx: int, reveal: bool) -> None:
        if 0 <= idx < len(self.false_bids):
            self.false_bids[idx] = FalseBid(self.false_bids[idx].bid, reveal)

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(
        self,
        rng_seed: Optional[int] = None,
        forfeit_policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER,
    ) -> Tuple[ResolutionRecord, AuditTranscript, CentralizedChannel]:
        """
        Resolve with the shared engine.

        Raises:
            InvalidParameters: a buyer never committed
        """
        missing = [i for i, v in enumerate(self.valuations) if v is None]
        if missing:
            raise InvalidParameters(f"buyers {missing} never committed")

        rng = random.Random(rng_seed) if rng_seed is not None else None
        transcript = AuditTranscript()
        auction = run_protocol(
            self.dist,
            self.alpha,
            self.valuations,
            self.false_bids,
            self.scheme,
            rng,
            forfeit_policy,
            real_reveals=self.real_reveals,
            transcript=transcript,
        )
        return auction.record, transcript, self.channel


# =============================================================================
# Adaptive-Reserve Deviation
# =============================================================================


@dataclass
class AdaptiveReserveReport:
    baseline_revenue: float
    deviation_revenue: float

    @property
    def gain(self) -> float:
        return self.deviation_revenue - self.baseline_revenue

    def to_dict(self) -> dict:
        return {
            "baseline_revenue": self.baseline_revenue,
            "deviation_revenue": self.deviation_revenue,
        }


@dataclass
class CentralizedDeviationResult:
    report: AdaptiveReserveReport
    channel: CentralizedChannel = field(repr=False)


def _revenue(record: ResolutionRecord) -> float:
    return record.payment + record.forfeited_to_auctioneer


def adaptive_revenue(
    reserve: float,
    collateral: float,
    threshold: float,
    buyer_a: float,
    buyer_b: float,
    baseline: float,
) -> float:
    """
    Revenue of the adaptive-reserve strategy against two buyers.

    Once buyer A's value is seen to clear the threshold, the auctioneer
    effectively re-prices against buyer B using A's value plus the
    collateral as a shill ceiling.
    """
    if buyer_a < threshold:
        return baseline
    if reserve >= max(buyer_a, buyer_b):
        return 0.0
    if buyer_b < buyer_a and buyer_a > reserve:
        return max(reserve, buyer_b)
    if buyer_a <= buyer_b <= buyer_a + collateral and buyer_b > reserve:
        return max(reserve, buyer_a)
    if buyer_b > buyer_a + collateral:
        return buyer_a + collateral
    return baseline


def adaptive_reserve_deviation(
    dist: Distribution,
    alpha: float,
    buyer_a: float,
    buyer_b: float,
    threshold: float,
) -> AdaptiveReserveReport:
    """
    Closed-form adaptive-reserve deviation against the honest baseline.

    Args:
        dist: Value distribution
        alpha: Strong-regularity parameter
        buyer_a: Value of the buyer the auctioneer observes first
        buyer_b: Value of the buyer kept in the dark
        threshold: Observed value above which the auctioneer deviates
    """
    baseline = run_protocol(dist, alpha, [buyer_a, buyer_b], rng=random.Random(11)).record
    baseline_revenue = _revenue(baseline)
    deviation = adaptive_revenue(
        dist.reserve_price(),
        collateral_requirement(2, dist, alpha),
        threshold,
        buyer_a,
        buyer_b,
        baseline_revenue,
    )
    return AdaptiveReserveReport(baseline_revenue, deviation)


def scripted_adaptive_reserve_run(
    dist: Distribution,
    alpha: float,
    buyer_a: float,
    buyer_b: float,
    threshold: float,
) -> CentralizedDeviationResult:
    """
    Play the adaptive-reserve attack message by message.

    Buyer A's commitment is never forwarded to buyer B. After A reveals
    privately, the auctioneer inserts a revealed shill at A's value plus
    the collateral, shown only to B.
    """
    baseline = run_protocol(dist, alpha, [buyer_a, buyer_b], rng=random.Random(31)).record
    baseline_revenue = _revenue(baseline)

    a, b = Participant.honest(0), Participant.honest(1)
    driver = CentralizedAuctioneer(dist, alpha, 2)
    driver.commit_real(0, buyer_a)
    driver.commit_real(1, buyer_b)
    driver.forward_commit_to(b, [a])
    driver.forward_commit_to(a, [])
    driver.announce_commit_end_to([a])
    driver.publish_reveal_to(a, [AUCTIONEER])

    if buyer_a >= threshold:
        shill = Participant.synthetic(0)
        driver.commit_false(0, buyer_a + driver.collateral, reveal=True)
        driver.forward_commit_to(shill, [b])
        logger.info(f"Adaptive reserve: shill bid {buyer_a + driver.collateral} shown only to {b.tag}")

    driver.announce_commit_end_to([b])
    driver.publish_reveal_to(b, [AUCTIONEER])

    record, _, channel = driver.resolve(rng_seed=57)
    report = AdaptiveReserveReport(baseline_revenue, _revenue(record))
    return CentralizedDeviationResult(report=report, channel=channel)


__all__ = [
    "CentralizedAuctioneer",
    "AdaptiveReserveReport",
    "CentralizedDeviationResult",
    "adaptive_revenue",
    "adaptive_reserve_deviation",
    "scripted_adaptive_reserve_run",
]
