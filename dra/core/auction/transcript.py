"""
Audit Transcript - Append-only record of every commitment in a round.

Each commit appends one entry (participant, commitment, order index)
and hands the committer a receipt:

    digest = SHA256(DOMAIN_RECEIPT || order || tag || scheme || data)

An auditor replays the transcript against the round's bids with
`audit()`. The transcript exposes no update or removal API; entries are
frozen once written.
"""

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from dra.core.auction.models import AuditReceipt, Bid, Participant
from dra.core.commitment.base import Commitment
from dra.core.errors import AuditMismatch
from dra.crypto import DOMAIN_RECEIPT, tagged_hash
from dra.utils.logger import get_logger

logger = get_logger("transcript")


# =============================================================================
# Transcript Entries
# =============================================================================


@dataclass(frozen=True)
class AuditEntry:
    """One recorded commitment."""
    participant: Participant
    commitment: Commitment
    order_index: int

    def receipt(self) -> AuditReceipt:
        """Re-derive the receipt issued when this entry was appended."""
        digest = tagged_hash(
            DOMAIN_RECEIPT,
            self.order_index.to_bytes(4, "big"),
            self.participant.tag.encode(),
            self.commitment.scheme.encode(),
            self.commitment.data,
        )
        return AuditReceipt(order_index=self.order_index, digest=digest)


class AuditTranscript:
    """
    Append-only commitment log.

    Supports len(), indexing and iteration; entries are returned as
    frozen AuditEntry values so readers cannot alter history.
    """

    def __init__(self):
        self._entries = []

    def append(self, participant: Participant, commitment: Commitment) -> AuditReceipt:
        """
        Record a commitment and issue its receipt.

        Args:
            participant: Committer
            commitment: Published commitment

        Returns:
            AuditReceipt for the new entry
        """
        entry = AuditEntry(participant, commitment, len(self._entries))
        self._entries.append(entry)
        logger.debug(f"Transcript entry #{entry.order_index}: {participant.tag} {commitment.short()}")
        return entry.receipt()

    @property
    def entries(self) -> Tuple[AuditEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> AuditEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(tuple(self._entries))

    def __repr__(self) -> str:
        return f"AuditTranscript(entries={len(self._entries)})"


# =============================================================================
# Verification
# =============================================================================


def audit(transcript: AuditTranscript, bids: Sequence[Bid]) -> None:
    """
    Check that a transcript covers exactly the given bids, in order.

    Bids carrying a receipt must match the receipt re-derived from their
    entry. Running this twice on an untouched transcript gives the same
    result.

    Args:
        transcript: Transcript recorded during the round
        bids: Round bids in commit order

    Raises:
        AuditMismatch: first discrepancy found
    """
    entries = transcript.entries
    for i, bid in enumerate(bids):
        if i >= len(entries):
            raise AuditMismatch(i, "transcript is missing this entry")

        entry = entries[i]
        if entry.order_index != i:
            raise AuditMismatch(i, f"order index {entry.order_index} out of sequence")
        if entry.participant != bid.participant:
            raise AuditMismatch(i, f"participant {entry.participant.tag} != {bid.participant.tag}")
        if entry.commitment != bid.commitment:
            raise AuditMismatch(i, "commitment differs from the published bid")
        if bid.order_index != i:
            raise AuditMismatch(i, f"bid order index {bid.order_index} out of sequence")
        if bid.receipt is not None and bid.receipt != entry.receipt():
            raise AuditMismatch(i, "receipt does not match transcript entry")

    if len(entries) > len(bids):
        raise AuditMismatch(len(bids), "transcript has entries with no matching bid")

    logger.debug(f"Audit passed over {len(bids)} entries")


__all__ = [
    "AuditEntry",
    "AuditTranscript",
    "audit",
]
