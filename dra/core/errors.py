"""
Error taxonomy for the DRA protocol engine.

- InvalidParameters: malformed distribution / collateral / config input,
  rejected before a round exists.
- ProtocolError and subclasses: caller misuse of a round. The round is
  left exactly as it was before the failing call.
- AuditMismatch: a transcript does not match the bids it claims to cover.

Invalid openings and missing reveals are *outcomes*, recorded on bids as
RevealStatus values, and never raised.
"""

from typing import Any


class DRAError(Exception):
    """Base class for all DRA errors."""


class InvalidParameters(DRAError, ValueError):
    """Distribution, collateral or configuration parameters are out of domain."""


# =============================================================================
# Protocol usage errors
# =============================================================================


class ProtocolError(DRAError):
    """A round operation was invoked incorrectly."""


class PhaseViolation(ProtocolError):
    """Operation is not permitted in the round's current phase."""

    def __init__(self, operation: str, phase: Any):
        self.operation = operation
        self.phase = phase
        super().__init__(f"{operation} not allowed in phase {getattr(phase, 'name', phase)}")


class DuplicateCommit(ProtocolError):
    """Participant already committed in this round."""

    def __init__(self, participant: Any):
        self.participant = participant
        super().__init__(f"{participant} already committed")


class DuplicateReveal(ProtocolError):
    """Participant already revealed in this round."""

    def __init__(self, participant: Any):
        self.participant = participant
        super().__init__(f"{participant} already revealed")


class MissingCommit(ProtocolError):
    """Reveal from a participant that never committed."""

    def __init__(self, participant: Any):
        self.participant = participant
        super().__init__(f"no commitment found for {participant}")


class RevealWithheld(ProtocolError):
    """Reveal for a bid committed by a participant that never discloses."""

    def __init__(self, participant: Any):
        self.participant = participant
        super().__init__(f"{participant} is committed as withholding its reveal")


class ClockRewind(ProtocolError):
    """Timed session clock moved backwards."""

    def __init__(self, requested: int, current: int):
        self.requested = requested
        self.current = current
        super().__init__(f"clock rewind: requested {requested}, current {current}")


# =============================================================================
# Verification errors
# =============================================================================


class AuditMismatch(DRAError):
    """Transcript entry at `index` does not match the round's bid."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"audit mismatch at index {index}: {reason}")


__all__ = [
    "DRAError",
    "InvalidParameters",
    "ProtocolError",
    "PhaseViolation",
    "DuplicateCommit",
    "DuplicateReveal",
    "MissingCommit",
    "RevealWithheld",
    "ClockRewind",
    "AuditMismatch",
]
