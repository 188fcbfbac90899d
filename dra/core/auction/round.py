"""
Auction Round - Commit / reveal / resolve state machine for one DRA.

Lifecycle:
1. INIT -> COMMITTING: reserve and collateral are computed and frozen
2. COMMITTING: each participant commits exactly once; every commitment
   is published on the broadcast channel and, when a transcript is
   attached, recorded with a receipt
3. REVEALING: participants open their commitments; a bad opening is
   recorded on the bid as INVALID_OPENING, never raised
4. RESOLVED: still-pending bids become NON_REVEALED, resolution runs
   once and the round accepts no further mutation

Phases advance either explicitly (close_commit / resolve) or, for timed
sessions, from advance_to() on the logical clock. Fired transitions are
final.

Every operation takes the round's lock. A protocol error leaves the
round exactly as it was.
"""

import itertools
import threading
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from dra.core.auction.models import (
    Bid,
    ForfeitPolicy,
    Participant,
    Phase,
    PhaseSchedule,
    ResolutionRecord,
    RevealStatus,
    TransitionReason,
)
from dra.core.auction.resolution import resolve_bids
from dra.core.auction.transcript import AuditTranscript
from dra.core.collateral import collateral_requirement
from dra.core.commitment.base import CommitmentScheme
from dra.core.distribution import Distribution
from dra.core.errors import (
    ClockRewind,
    DuplicateCommit,
    DuplicateReveal,
    MissingCommit,
    PhaseViolation,
    ProtocolError,
    RevealWithheld,
)
from dra.network.channel import (
    BroadcastChannel,
    BroadcastLog,
    commitment_message,
    end_phase_message,
    reveal_message,
    timeout_message,
)
from dra.utils.logger import get_logger
from dra.utils.validation import require, validate_number

logger = get_logger("round")

_round_ids = itertools.count(1)


class AuctionRound:
    """
    A single deferred-revelation auction round.

    Args:
        distribution: Buyer value distribution
        scheme: Commitment backend
        alpha: Strong-regularity parameter used for collateral
        bidders: Number of bidders n used for collateral
        transcript: Audit transcript; defaults to the scheme's own, if any
        forfeit_policy: Where forfeited collateral goes
        schedule: Deadlines for a timed session
        channel: Broadcast channel; a fresh one is created if omitted

    Raises:
        InvalidParameters: distribution / alpha / bidders out of domain
    """

    def __init__(
        self,
        distribution: Distribution,
        scheme: CommitmentScheme,
        alpha: float,
        bidders: int,
        transcript: Optional[AuditTranscript] = None,
        forfeit_policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER,
        schedule: Optional[PhaseSchedule] = None,
        channel: Optional[BroadcastChannel] = None,
    ):
        self.round_id = next(_round_ids)
        self.distribution = distribution
        self.scheme = scheme
        self.alpha = alpha
        self.bidders = bidders
        self.forfeit_policy = ForfeitPolicy(forfeit_policy)
        self.schedule = schedule
        self.transcript = transcript if transcript is not None else scheme.transcript
        self.channel = channel if channel is not None else BroadcastChannel()

        self._lock = threading.RLock()
        self._phase = Phase.INIT
        self._bids: List[Bid] = []
        self._index: Dict[Participant, int] = {}
        self._record: Optional[ResolutionRecord] = None
        self._now = 0

        # Frozen for the lifetime of the round
        self.collateral = collateral_requirement(bidders, distribution, alpha)
        self.reserve = distribution.reserve_price()

        self._phase = Phase.COMMITTING
        logger.info(
            f"Round {self.round_id} open: {distribution.name} reserve={self.reserve:.4f} "
            f"collateral={self.collateral:.4f} backend={scheme.name}"
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def bids(self) -> Tuple[Bid, ...]:
        """Bids in commit order."""
        with self._lock:
            return tuple(self._bids)

    @property
    def record(self) -> Optional[ResolutionRecord]:
        return self._record

    @property
    def now(self) -> int:
        return self._now

    @property
    def log(self) -> BroadcastLog:
        return self.channel.log

    def bid_for(self, participant: Participant) -> Optional[Bid]:
        with self._lock:
            idx = self._index.get(participant)
            return self._bids[idx] if idx is not None else None

    def withholding(self) -> List[Participant]:
        """Committed participants scripted never to reveal."""
        with self._lock:
            return [b.participant for b in self._bids if b.participant.withhold_reveal]

    # =========================================================================
    # Commit Phase
    # =========================================================================

    def commit(self, participant: Participant, value: float, randomness: bytes) -> Bid:
        """
        Commit a bid.

        Args:
            participant: Committer
            value: Bid value, kept private until reveal
            randomness: Committer-held opening randomness

        Returns:
            The PENDING bid as published

        Raises:
            PhaseViolation: not in COMMITTING
            DuplicateCommit: participant already committed
            InvalidParameters: value or randomness rejected by the backend
        """
        with self._lock:
            self._require_phase("commit", Phase.COMMITTING)
            if participant in self._index:
                self._fail(DuplicateCommit(participant))
            require(validate_number(value, "value"))

            commitment = self.scheme.commit(value, randomness)

            receipt = None
            if self.transcript is not None:
                receipt = self.transcript.append(participant, commitment)

            bid = Bid(
                participant=participant,
                commitment=commitment,
                order_index=len(self._bids),
                value=float(value),
                receipt=receipt,
            )
            self._index[participant] = len(self._bids)
            self._bids.append(bid)

            self.channel.subscribe(participant)
            self.channel.publish(commitment_message(participant, self._phase, self._now))

            logger.debug(f"Round {self.round_id}: commit #{bid.order_index} from {participant.tag} {commitment.short()}")
            return bid

    def close_commit(self) -> None:
        """
        End the commit phase.

        Raises:
            PhaseViolation: not in COMMITTING
        """
        with self._lock:
            self._require_phase("close_commit", Phase.COMMITTING)
            self._transition(Phase.REVEALING, TransitionReason.MANUAL)

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def reveal(self, participant: Participant, value: float, randomness: bytes) -> Bid:
        """
        Open a previously committed bid.

        Args:
            participant: Revealer
            value: Claimed committed value
            randomness: Opening randomness

        Returns:
            Updated bid (REVEALED or INVALID_OPENING)

        Raises:
            PhaseViolation: not in REVEALING
            MissingCommit: participant never committed
            DuplicateReveal: participant already revealed
            RevealWithheld: the bid was committed as never disclosed
        """
        with self._lock:
            self._require_phase("reveal", Phase.REVEALING)
            idx = self._index.get(participant)
            if idx is None:
                self._fail(MissingCommit(participant))
            bid = self._bids[idx]
            if bid.status != RevealStatus.PENDING:
                self._fail(DuplicateReveal(participant))
            if bid.participant.withhold_reveal:
                self._fail(RevealWithheld(bid.participant))

            opened = self.scheme.open(bid.commitment, value, randomness)
            if opened:
                updated = replace(bid, status=RevealStatus.REVEALED, revealed_value=float(value))
                logger.debug(f"Round {self.round_id}: {participant.tag} revealed {float(value)}")
            else:
                updated = replace(bid, status=RevealStatus.INVALID_OPENING)
                logger.warning(f"Round {self.round_id}: invalid opening from {participant.tag}")
            self._bids[idx] = updated

            self.channel.publish(reveal_message(participant, self._phase, opened, self._now))
            return updated

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self) -> ResolutionRecord:
        """
        End the reveal phase and resolve the round.

        Returns:
            The round's ResolutionRecord

        Raises:
            PhaseViolation: not in REVEALING
        """
        with self._lock:
            self._require_phase("resolve", Phase.REVEALING)
            return self._resolve(TransitionReason.MANUAL)

    def _resolve(self, reason: TransitionReason) -> ResolutionRecord:
        for i, bid in enumerate(self._bids):
            if bid.status == RevealStatus.PENDING:
                self._bids[i] = replace(bid, status=RevealStatus.NON_REVEALED)
                self.channel.publish(timeout_message(bid.participant, self._phase, self._now))
                logger.warning(f"Round {self.round_id}: {bid.participant.tag} did not reveal")

        self._record = resolve_bids(self._bids, self.reserve, self.collateral, self.forfeit_policy)
        self._transition(Phase.RESOLVED, reason)

        logger.info(
            f"Round {self.round_id} resolved: winner={self._record.winner_tag} "
            f"payment={self._record.payment} valid={len(self._record.valid_bids)}"
        )
        return self._record

    # =========================================================================
    # Timed Sessions
    # =========================================================================

    def advance_to(self, now: int) -> Phase:
        """
        Move the logical clock and fire due deadline transitions.

        Handles both transitions in one call if `now` is past both
        deadlines.

        Args:
            now: New clock value

        Returns:
            Phase after firing transitions

        Raises:
            ProtocolError: round has no schedule
            ClockRewind: now is earlier than the current clock
        """
        with self._lock:
            if self.schedule is None:
                self._fail(ProtocolError(f"round {self.round_id} has no schedule"))
            if now < self._now:
                self._fail(ClockRewind(now, self._now))
            self._now = now

            if self._phase == Phase.COMMITTING and now >= self.schedule.commit_deadline:
                self._transition(Phase.REVEALING, TransitionReason.DEADLINE)

            # Not elif: a late clock may fire both deadlines
            if self._phase == Phase.REVEALING and now >= self.schedule.reveal_deadline:
                self._resolve(TransitionReason.DEADLINE)

            return self._phase

    # =========================================================================
    # Internals
    # =========================================================================

    def _transition(self, next_phase: Phase, reason: TransitionReason) -> None:
        ended = self._phase
        self._phase = next_phase
        self.channel.publish(end_phase_message(ended, next_phase, reason, self._now))
        logger.info(f"Round {self.round_id}: {ended.name} -> {next_phase.name} ({reason.value})")

    def _require_phase(self, operation: str, expected: Phase) -> None:
        if self._phase != expected:
            self._fail(PhaseViolation(operation, self._phase))

    def _fail(self, error: ProtocolError) -> None:
        logger.warning(f"Round {self.round_id}: {error}")
        raise error

    def __repr__(self) -> str:
        return (
            f"AuctionRound(id={self.round_id}, phase={self._phase.name}, "
            f"bids={len(self._bids)}, backend={self.scheme.name})"
        )


__all__ = [
    "AuctionRound",
]
