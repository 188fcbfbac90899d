"""
DRA Auction Module.

This module provides the deferred-revelation auction:
- Participants, bids and resolution records
- Audit transcript and receipts
- Validation, tie-break and second-price payment

The round state machine lives in dra.core.auction.round.
"""

from dra.core.auction.models import (
    NO_WINNER_TAG,
    AuditReceipt,
    Bid,
    ForfeitPolicy,
    Participant,
    Phase,
    PhaseSchedule,
    ResolutionRecord,
    RevealStatus,
    Role,
    TransitionReason,
)
from dra.core.auction.transcript import AuditEntry, AuditTranscript, audit
from dra.core.auction.resolution import compute_payment, resolve_bids, select_winner

__all__ = [
    # Models
    "NO_WINNER_TAG",
    "AuditReceipt",
    "Bid",
    "ForfeitPolicy",
    "Participant",
    "Phase",
    "PhaseSchedule",
    "ResolutionRecord",
    "RevealStatus",
    "Role",
    "TransitionReason",
    # Transcript
    "AuditEntry",
    "AuditTranscript",
    "audit",
    # Resolution
    "compute_payment",
    "resolve_bids",
    "select_winner",
]
