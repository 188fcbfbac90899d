"""
Audited commitment backend.

Delegates the cryptography to an inner backend and carries an
AuditTranscript. Rounds built on this backend append every commitment to
the transcript at commit time and hand the committer a receipt, which an
auditor later re-derives from the transcript entry.
"""

from typing import Optional, TYPE_CHECKING

from dra.core.commitment.base import Commitment, CommitmentScheme
from dra.core.commitment.nonmalleable import NonMalleableCommitment

if TYPE_CHECKING:
    from dra.core.auction.transcript import AuditTranscript


class AuditedCommitment(CommitmentScheme):
    """Wrapper that records commitments into an append-only transcript."""

    name = "audited"

    def __init__(
        self,
        inner: Optional[CommitmentScheme] = None,
        transcript: Optional["AuditTranscript"] = None,
    ):
        from dra.core.auction.transcript import AuditTranscript

        self.inner = inner or NonMalleableCommitment()
        self.transcript = transcript if transcript is not None else AuditTranscript()

    def quantize(self, value: float) -> float:
        return self.inner.quantize(value)

    def _commit(self, value: float, randomness: bytes) -> bytes:
        return self.inner.commit(value, randomness).data

    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        return self.inner.open(Commitment(self.inner.name, data), value, randomness)

    def __repr__(self) -> str:
        return f"AuditedCommitment({self.inner!r}, entries={len(self.transcript)})"
