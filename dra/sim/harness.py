"""
Simulation Harness - Monte-Carlo drivers for the DRA engine.

All randomness lives here: valuations are sampled and commitment
randomness is drawn from a seeded random.Random, then fed to the engine
as already-realized values. The engine itself stays deterministic.

Drivers:
- run_protocol: one scripted round (honest bidders plus auctioneer
  false bids)
- simulate_deviation: baseline vs. deviated revenue under a deviation model
- simulate_safe_deviation_bound: checks that withheld false bids never
  raise auctioneer revenue
- simulate_timed_protocol: rounds driven by a logical clock with deadlines
"""

import math
import random
import secrets
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Sequence

from dra.core.auction.models import (
    ForfeitPolicy,
    Participant,
    PhaseSchedule,
    ResolutionRecord,
    Role,
)
from dra.core.auction.round import AuctionRound
from dra.core.auction.transcript import AuditTranscript
from dra.core.commitment import CommitmentScheme, create_scheme
from dra.core.distribution import Distribution
from dra.core.errors import ProtocolError
from dra.network.channel import BroadcastLog
from dra.utils.logger import get_logger
from dra.utils.validation import require, validate_count

logger = get_logger("harness")

RANDOMNESS_SIZE = 32

# Revenue comparisons tolerate float noise
REVENUE_EPSILON = 1e-9


# =============================================================================
# Deviation Models
# =============================================================================


@dataclass(frozen=True)
class FalseBid:
    """A bid inserted by the auctioneer under a synthetic identity."""
    bid: float
    reveal: bool = True


@dataclass(frozen=True)
class FixedDeviation:
    """Always insert one false bid."""
    false_bid: FalseBid

    def false_bids(self, top_real: float) -> List[FalseBid]:
        return [self.false_bid]


@dataclass(frozen=True)
class MultipleDeviation:
    """Insert several false bids."""
    bids: Sequence[FalseBid]

    def false_bids(self, top_real: float) -> List[FalseBid]:
        return list(self.bids)


@dataclass(frozen=True)
class ThresholdReveal:
    """Insert one false bid; reveal it only if the top honest value is high enough."""
    bid: float
    reveal_if_top_at_least: float

    def false_bids(self, top_real: float) -> List[FalseBid]:
        return [FalseBid(self.bid, reveal=top_real >= self.reveal_if_top_at_least)]


# =============================================================================
# Reports
# =============================================================================


@dataclass
class SimulationResult:
    baseline_revenue: float
    deviated_revenue: float
    allocation_change_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SafeDeviationStats:
    satisfied: bool
    max_violation: float
    trials: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TimedSimulationReport:
    successful_runs: int
    deadline_failures: int
    average_revenue: float
    broadcast_log: Optional[BroadcastLog] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "successful_runs": self.successful_runs,
            "deadline_failures": self.deadline_failures,
            "average_revenue": self.average_revenue,
        }


# =============================================================================
# Helpers
# =============================================================================


def draw_randomness(rng: Optional[random.Random] = None) -> bytes:
    """Commitment randomness; seeded when an rng is given."""
    if rng is None:
        return secrets.token_bytes(RANDOMNESS_SIZE)
    return rng.randbytes(RANDOMNESS_SIZE)


def sample_valuations(
    dist: Distribution,
    buyers: int,
    rng: random.Random,
    scheme: Optional[CommitmentScheme] = None,
) -> List[float]:
    """Sample buyer values, mapped into the backend's value domain."""
    values = [dist.sample(rng) for _ in range(buyers)]
    if scheme is not None:
        values = [scheme.quantize(v) for v in values]
    return values


def _times(count: int, amount: float) -> float:
    return amount * count if count else 0.0


def auctioneer_revenue(record: ResolutionRecord) -> float:
    """
    Net auctioneer revenue from a resolved round.

    The auctioneer posts the collateral for its own false bids, so a
    synthetic forfeit is a wash when routed back to the auctioneer and a
    loss when transferred to the winner. A synthetic winner means the
    item stays unsold.
    """
    revenue = 0.0
    if record.winner is not None and not record.winner.is_synthetic:
        revenue += record.payment

    synthetic = sum(1 for p in record.forfeited_by if p.is_synthetic)
    honest = len(record.forfeited_by) - synthetic
    if record.transferred_collateral > 0:
        revenue -= _times(synthetic, record.collateral)
    else:
        revenue += _times(honest, record.collateral)
    return revenue


def _build_scheme(backend: str, options: Optional[dict]) -> CommitmentScheme:
    return create_scheme(backend, **(options or {}))


# =============================================================================
# Single Round Driver
# =============================================================================


def run_protocol(
    dist: Distribution,
    alpha: float,
    valuations: Sequence[float],
    false_bids: Sequence[FalseBid] = (),
    scheme: Optional[CommitmentScheme] = None,
    rng: Optional[random.Random] = None,
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER,
    real_reveals: Optional[Sequence[bool]] = None,
    transcript: Optional[AuditTranscript] = None,
) -> AuctionRound:
    """
    Run one untimed round end to end.

    Honest bidders commit first in index order, then the false bids.
    Everyone reveals except withheld honest bidders and false bids with
    reveal=False.

    Args:
        dist: Value distribution
        alpha: Strong-regularity parameter
        valuations: Honest bid values
        false_bids: Auctioneer-inserted bids
        scheme: Commitment backend (SHA baseline if omitted)
        rng: Seeded source for commitment randomness
        forfeit_policy: Collateral routing
        real_reveals: Per-honest-bidder reveal flags (all True if omitted)
        transcript: Audit transcript to record into

    Returns:
        The resolved AuctionRound
    """
    scheme = scheme if scheme is not None else create_scheme("sha-baseline")
    if real_reveals is None:
        real_reveals = [True] * len(valuations)

    auction = AuctionRound(
        dist,
        scheme,
        alpha,
        max(len(valuations), 1),
        transcript=transcript,
        forfeit_policy=forfeit_policy,
    )

    openings = []
    for i, value in enumerate(valuations):
        participant = Participant(Role.HONEST, i, withhold_reveal=not real_reveals[i])
        openings.append((participant, value, draw_randomness(rng)))
    for j, fb in enumerate(false_bids):
        openings.append((Participant.synthetic(j, reveal=fb.reveal), fb.bid, draw_randomness(rng)))

    for participant, value, randomness in openings:
        auction.commit(participant, value, randomness)
    auction.close_commit()

    for participant, value, randomness in openings:
        if not participant.withhold_reveal:
            auction.reveal(participant, value, randomness)
    auction.resolve()
    return auction


# =============================================================================
# Monte-Carlo Drivers
# =============================================================================


def simulate_deviation(
    dist: Distribution,
    alpha: float,
    buyers: int,
    trials: int,
    deviation,
    seed: int,
    backend: str = "sha-baseline",
    backend_options: Optional[dict] = None,
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.TRANSFER,
) -> SimulationResult:
    """
    Compare baseline revenue with revenue under a deviation model.

    Args:
        dist: Value distribution
        alpha: Strong-regularity parameter
        buyers: Honest bidders per round
        trials: Number of sampled rounds
        deviation: FixedDeviation, MultipleDeviation or ThresholdReveal
        seed: RNG seed
        backend: Commitment backend name
        backend_options: Backend constructor options
        forfeit_policy: Collateral routing

    Returns:
        SimulationResult with mean revenues and allocation change rate
    """
    require(validate_count(buyers, "buyers"))
    require(validate_count(trials, "trials", max_val=10**7))
    rng = random.Random(seed)

    baseline_total = 0.0
    deviated_total = 0.0
    changes = 0
    for _ in range(trials):
        scheme = _build_scheme(backend, backend_options)
        values = sample_valuations(dist, buyers, rng, scheme)
        false_bids = [
            FalseBid(scheme.quantize(fb.bid), fb.reveal)
            for fb in deviation.false_bids(max(values))
        ]

        base = run_protocol(dist, alpha, values, (), scheme, rng, forfeit_policy).record
        scheme = _build_scheme(backend, backend_options)
        dev = run_protocol(dist, alpha, values, false_bids, scheme, rng, forfeit_policy).record

        baseline_total += auctioneer_revenue(base)
        deviated_total += auctioneer_revenue(dev)
        if base.winner != dev.winner:
            changes += 1

    result = SimulationResult(
        baseline_revenue=baseline_total / trials,
        deviated_revenue=deviated_total / trials,
        allocation_change_rate=changes / trials,
    )
    logger.info(
        f"Deviation sim ({dist.name}, {trials} trials): baseline={result.baseline_revenue:.4f} "
        f"deviated={result.deviated_revenue:.4f} changes={result.allocation_change_rate:.3f}"
    )
    return result


def simulate_safe_deviation_bound(
    dist: Distribution,
    alpha: float,
    buyers: int,
    trials: int,
    false_bids: Sequence[FalseBid],
    seed: int,
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.TRANSFER,
) -> SafeDeviationStats:
    """
    Check that a fixed set of false bids never beats the honest mechanism.

    The honest baseline (second price with the monopoly reserve) is the
    revenue-optimal mechanism for the sampled values; any trial where the
    deviation earns more is a violation.

    Returns:
        SafeDeviationStats with the largest observed violation
    """
    require(validate_count(buyers, "buyers"))
    require(validate_count(trials, "trials", max_val=10**7))
    rng = random.Random(seed)

    max_violation = 0.0
    for _ in range(trials):
        values = sample_valuations(dist, buyers, rng)
        base = run_protocol(dist, alpha, values, (), None, rng, forfeit_policy).record
        dev = run_protocol(dist, alpha, values, false_bids, None, rng, forfeit_policy).record

        gain = auctioneer_revenue(dev) - auctioneer_revenue(base)
        if math.isnan(gain):
            continue
        if gain > REVENUE_EPSILON:
            max_violation = max(max_violation, gain)

    stats = SafeDeviationStats(
        satisfied=max_violation <= REVENUE_EPSILON,
        max_violation=max_violation,
        trials=trials,
    )
    if not stats.satisfied:
        logger.warning(f"Deviation bound violated by {max_violation:.6f} for {dist.name}")
    return stats


def simulate_timed_protocol(
    dist: Distribution,
    alpha: float,
    buyers: int,
    trials: int,
    deviation,
    schedule: PhaseSchedule,
    seed: int,
    backend: str = "sha-baseline",
    backend_options: Optional[dict] = None,
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.TRANSFER,
) -> TimedSimulationReport:
    """
    Drive rounds with a logical clock and phase deadlines.

    Each commit and each reveal takes one clock tick. A round whose
    messages do not fit inside its windows fails with a protocol error
    and is counted as a deadline failure.

    Returns:
        TimedSimulationReport; broadcast_log is the last successful round's
    """
    require(validate_count(buyers, "buyers"))
    require(validate_count(trials, "trials", max_val=10**7))
    rng = random.Random(seed)

    successes = 0
    failures = 0
    revenue_sum = 0.0
    last_log = None

    for _ in range(trials):
        scheme = _build_scheme(backend, backend_options)
        values = sample_valuations(dist, buyers, rng, scheme)
        false_bids = deviation.false_bids(max(values))

        auction = AuctionRound(
            dist,
            scheme,
            alpha,
            buyers,
            forfeit_policy=forfeit_policy,
            schedule=schedule,
        )

        openings = [(Participant.honest(i), v, draw_randomness(rng)) for i, v in enumerate(values)]
        openings += [
            (Participant.synthetic(j, reveal=fb.reveal), scheme.quantize(fb.bid), draw_randomness(rng))
            for j, fb in enumerate(false_bids)
        ]

        now = 0
        try:
            for participant, value, randomness in openings:
                auction.advance_to(now)
                auction.commit(participant, value, randomness)
                now += 1

            now = max(now, schedule.commit_deadline)
            auction.advance_to(now)

            for participant, value, randomness in openings:
                if participant.withhold_reveal:
                    continue
                auction.advance_to(now)
                auction.reveal(participant, value, randomness)
                now += 1

            auction.advance_to(max(now, schedule.reveal_deadline))
        except ProtocolError as e:
            logger.debug(f"Timed round {auction.round_id} missed a deadline: {e}")
            failures += 1
            continue

        revenue_sum += auctioneer_revenue(auction.record)
        successes += 1
        last_log = auction.log

    return TimedSimulationReport(
        successful_runs=successes,
        deadline_failures=failures,
        average_revenue=revenue_sum / successes if successes else 0.0,
        broadcast_log=last_log,
    )


__all__ = [
    "FalseBid",
    "FixedDeviation",
    "MultipleDeviation",
    "ThresholdReveal",
    "SimulationResult",
    "SafeDeviationStats",
    "TimedSimulationReport",
    "draw_randomness",
    "sample_valuations",
    "auctioneer_revenue",
    "run_protocol",
    "simulate_deviation",
    "simulate_safe_deviation_bound",
    "simulate_timed_protocol",
]
