"""
Pedersen commitment over secp256k1.

C = m*G + r*H where m encodes the bid value and r is derived from the
randomness. Perfectly hiding, computationally binding (discrete log).
Additively homomorphic, hence malleable.
"""

from dra.core.commitment.base import CommitmentScheme
from dra.crypto import DOMAIN_BLIND, derive_scalar, value_to_scalar
from dra.crypto.group import pedersen, point_from_bytes, point_to_bytes


class PedersenCommitment(CommitmentScheme):
    """Discrete-log hiding/binding commitment."""

    name = "pedersen"

    def _commit(self, value: float, randomness: bytes) -> bytes:
        m = value_to_scalar(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        return point_to_bytes(pedersen(m, r))

    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        c = point_from_bytes(data)
        m = value_to_scalar(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        return pedersen(m, r) == c
