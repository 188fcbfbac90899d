"""
Non-malleable commitment: Pedersen plus a Schnorr proof of knowledge.

    C = m*G + r*H
    T = k1*G + k2*H
    e = Keccak(C, T)                      (Fiat-Shamir)
    s1 = k1 + e*m,  s2 = k2 + e*r

Verification checks s1*G + s2*H == T + e*C. Mauling C (e.g. C + G) yields
a commitment for which the adversary cannot produce a proof without
knowing (m, r), so a copied-and-shifted bid is rejected at reveal.

Encoding: C (64) || T (64) || s1 (32) || s2 (32).
"""

from dra.core.commitment.base import CommitmentScheme
from dra.crypto import DOMAIN_BLIND, DOMAIN_NONCE, challenge_scalar, derive_scalar, value_to_scalar
from dra.crypto.group import (
    G,
    ORDER,
    POINT_SIZE,
    SCALAR_SIZE,
    generator_h,
    pedersen,
    point_add,
    point_from_bytes,
    point_mul,
    point_to_bytes,
    scalar_from_bytes,
    scalar_to_bytes,
)

PROOF_DOMAIN = b"DRA-SCHNORR-POK"
ENCODED_SIZE = 2 * POINT_SIZE + 2 * SCALAR_SIZE


def prove_opening(c_bytes: bytes, m: int, r: int, randomness: bytes) -> bytes:
    """Schnorr proof of knowledge of (m, r) for C = m*G + r*H."""
    k1 = derive_scalar(DOMAIN_NONCE, randomness, 1)
    k2 = derive_scalar(DOMAIN_NONCE, randomness, 2)
    t = point_to_bytes(pedersen(k1, k2))
    e = challenge_scalar(PROOF_DOMAIN, c_bytes, t)
    s1 = (k1 + e * m) % ORDER
    s2 = (k2 + e * r) % ORDER
    return t + scalar_to_bytes(s1) + scalar_to_bytes(s2)


def verify_proof(c_bytes: bytes, proof: bytes) -> bool:
    """Verify a proof produced by prove_opening."""
    c = point_from_bytes(c_bytes)
    t_bytes = proof[:POINT_SIZE]
    t = point_from_bytes(t_bytes)
    s1 = scalar_from_bytes(proof[POINT_SIZE:POINT_SIZE + SCALAR_SIZE])
    s2 = scalar_from_bytes(proof[POINT_SIZE + SCALAR_SIZE:])
    e = challenge_scalar(PROOF_DOMAIN, c_bytes, t_bytes)
    lhs = point_add(point_mul(G, s1), point_mul(generator_h(), s2))
    rhs = point_add(t, point_mul(c, e))
    return lhs == rhs


class NonMalleableCommitment(CommitmentScheme):
    """Pedersen commitment bound to a Fiat-Shamir proof of knowledge."""

    name = "fischlin-style-non-malleable"

    def _commit(self, value: float, randomness: bytes) -> bytes:
        m = value_to_scalar(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        c_bytes = point_to_bytes(pedersen(m, r))
        return c_bytes + prove_opening(c_bytes, m, r, randomness)

    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        if len(data) != ENCODED_SIZE:
            return False
        c_bytes, proof = data[:POINT_SIZE], data[POINT_SIZE:]
        if not verify_proof(c_bytes, proof):
            return False
        m = value_to_scalar(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        return point_to_bytes(pedersen(m, r)) == c_bytes
