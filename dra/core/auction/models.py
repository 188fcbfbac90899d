"""
Auction data model: participants, bids, phases and the resolution record.

Bids are immutable snapshots. Commit creates a PENDING bid; reveal and
resolution replace it with a new snapshot carrying the disclosure
outcome, so the committed value and commitment are never mutated.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

from dra.core.commitment.base import Commitment
from dra.utils.validation import require, validate_count


NO_WINNER_TAG = "none"

# Upper bound on logical clock values
MAX_CLOCK = 2**63 - 1


# =============================================================================
# Enums
# =============================================================================


class Phase(IntEnum):
    """State of an auction round. Transitions only move forward."""
    INIT = 0
    COMMITTING = 1
    REVEALING = 2
    RESOLVED = 3


class Role(IntEnum):
    """Participant role. Lower value wins exact ties."""
    HONEST = 0
    SYNTHETIC = 1


class RevealStatus(Enum):
    """Disclosure outcome of a bid."""
    PENDING = "pending"
    REVEALED = "revealed"
    INVALID_OPENING = "invalid_opening"
    NON_REVEALED = "non_revealed"

    @property
    def forfeits(self) -> bool:
        """Whether this outcome forfeits the posted collateral."""
        return self in (RevealStatus.INVALID_OPENING, RevealStatus.NON_REVEALED)


class ForfeitPolicy(Enum):
    """Where forfeited collateral goes."""
    AUCTIONEER = "auctioneer"
    TRANSFER = "transfer"


class TransitionReason(Enum):
    MANUAL = "manual"
    DEADLINE = "deadline"


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True, order=True)
class Participant:
    """
    A bidder in a round.

    Ordering (role, index) is the tie-break rank: honest before
    synthetic, then lowest index.
    """
    role: Role
    index: int
    withhold_reveal: bool = field(default=False, compare=False)

    @classmethod
    def honest(cls, index: int) -> "Participant":
        return cls(Role.HONEST, index)

    @classmethod
    def synthetic(cls, index: int, reveal: bool = True) -> "Participant":
        return cls(Role.SYNTHETIC, index, withhold_reveal=not reveal)

    @property
    def tag(self) -> str:
        """Serialized identity, e.g. 'honest:2' or 'synthetic:0'."""
        return f"{self.role.name.lower()}:{self.index}"

    @property
    def is_synthetic(self) -> bool:
        return self.role == Role.SYNTHETIC

    @classmethod
    def from_tag(cls, tag: str) -> "Participant":
        role, _, index = tag.partition(":")
        return cls(Role[role.upper()], int(index))

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class AuditReceipt:
    """Receipt handed to a committer; re-derivable from the transcript."""
    order_index: int
    digest: bytes


@dataclass(frozen=True)
class Bid:
    """
    One participant's bid in a round.

    `value` is the committer's private intended value; resolution only
    ever reads `revealed_value`.
    """
    participant: Participant
    commitment: Commitment
    order_index: int
    value: float = field(repr=False)
    status: RevealStatus = RevealStatus.PENDING
    revealed_value: Optional[float] = None
    receipt: Optional[AuditReceipt] = None

    @property
    def is_revealed(self) -> bool:
        return self.status == RevealStatus.REVEALED


@dataclass(frozen=True)
class PhaseSchedule:
    """Logical-clock deadlines for a timed session."""
    commit_deadline: int
    reveal_deadline: int

    def __post_init__(self):
        require(validate_count(self.commit_deadline, "commit_deadline", min_val=0, max_val=MAX_CLOCK))
        require(validate_count(
            self.reveal_deadline, "reveal_deadline", min_val=self.commit_deadline, max_val=MAX_CLOCK
        ))


def _number(x: float) -> Any:
    return "inf" if math.isinf(x) else x


@dataclass(frozen=True)
class ResolutionRecord:
    """Terminal output of a round."""
    reserve: float
    collateral: float
    winner: Optional[Participant]
    winning_bid: float
    payment: float
    transferred_collateral: float
    forfeited_to_auctioneer: float
    valid_bids: Tuple[Tuple[Participant, float], ...]
    forfeited_by: Tuple[Participant, ...] = ()

    @property
    def winner_tag(self) -> str:
        return self.winner.tag if self.winner is not None else NO_WINNER_TAG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reserve": _number(self.reserve),
            "collateral": _number(self.collateral),
            "winner": self.winner_tag,
            "winning_bid": self.winning_bid,
            "payment": self.payment,
            "transferred_collateral": _number(self.transferred_collateral),
            "forfeited_to_auctioneer": _number(self.forfeited_to_auctioneer),
            "valid_bids": [[p.tag, v] for p, v in self.valid_bids],
        }

    def valid_values(self) -> List[float]:
        return [v for _, v in self.valid_bids]


__all__ = [
    "NO_WINNER_TAG",
    "Phase",
    "Role",
    "RevealStatus",
    "ForfeitPolicy",
    "TransitionReason",
    "Participant",
    "AuditReceipt",
    "Bid",
    "PhaseSchedule",
    "ResolutionRecord",
]
