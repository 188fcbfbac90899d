"""
SHA-256 baseline commitment.

C = SHA256("DRA-BID" || value || salt || mask), with salt and mask
derived independently from the randomness. Hiding and binding in the
random-oracle model; not non-malleable in any formal sense.
"""

import hmac

from dra.core.commitment.base import CommitmentScheme
from dra.crypto import DOMAIN_BID, DOMAIN_MASK, DOMAIN_SALT, encode_value, sha256, tagged_hash


class ShaCommitment(CommitmentScheme):
    """Hash-based commitment."""

    name = "sha-baseline"

    @staticmethod
    def _digest(value: float, randomness: bytes) -> bytes:
        salt = tagged_hash(DOMAIN_SALT, randomness)
        mask = tagged_hash(DOMAIN_MASK, randomness)
        return sha256(DOMAIN_BID + encode_value(value) + salt + mask)

    def _commit(self, value: float, randomness: bytes) -> bytes:
        return self._digest(value, randomness)

    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        return hmac.compare_digest(data, self._digest(value, randomness))
