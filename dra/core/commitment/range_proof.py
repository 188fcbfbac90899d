"""
Range-proof backed commitment.

The bid is committed as a Pedersen commitment to a fixed-point amount
m = value * scale, accompanied by a proof that 0 <= m < 2^bits:

- m is split into bits b_i with bit commitments C_i = b_i*G + r_i*H,
  where the r_i are chosen so that sum(2^i * C_i) == C.
- each C_i carries a Cramer-Damgard-Schoenmakers OR-proof that it
  commits to 0 or to 1 (knowledge of log_H of C_i or of C_i - G).

The supported value domain is the non-negative multiples of 1/scale
below 2^bits / scale; anything else is rejected at commit time and
fails to open.

Encoding: bits (1) || C (64) || C_0..C_{k-1} (64 each) || proofs (128 each).
"""

import math

from dra.core.commitment.base import CommitmentScheme
from dra.core.errors import InvalidParameters
from dra.crypto import DOMAIN_BLIND, challenge_scalar, derive_scalar
from dra.crypto.group import (
    G,
    ORDER,
    POINT_SIZE,
    SCALAR_SIZE,
    Point,
    generator_h,
    pedersen,
    point_from_bytes,
    point_mul,
    point_sub,
    point_to_bytes,
    scalar_from_bytes,
    scalar_to_bytes,
    weighted_sum,
)

# Domain separators
DOMAIN_RANGE = b"DRA-RANGE-OR"
DOMAIN_BIT_BLIND = b"DRA-BIT-BLIND"
DOMAIN_BIT_NONCE = b"DRA-BIT-NONCE"
DOMAIN_SIM_CHALLENGE = b"DRA-BIT-SIM-E"
DOMAIN_SIM_RESPONSE = b"DRA-BIT-SIM-Z"

DEFAULT_BITS = 24
DEFAULT_SCALE = 100
MAX_BITS = 64

PROOF_SIZE = 4 * SCALAR_SIZE


def _or_points(c_i: Point, e0: int, e1: int, z0: int, z1: int):
    """Recompute the OR-proof announcements A_0, A_1."""
    h = generator_h()
    y0 = c_i
    y1 = point_sub(c_i, G)
    a0 = point_sub(point_mul(h, z0), point_mul(y0, e0))
    a1 = point_sub(point_mul(h, z1), point_mul(y1, e1))
    return a0, a1


def _or_challenge(c_bytes: bytes, index: int, ci_bytes: bytes, a0: Point, a1: Point) -> int:
    return challenge_scalar(
        DOMAIN_RANGE,
        c_bytes,
        index.to_bytes(2, "big"),
        ci_bytes,
        point_to_bytes(a0),
        point_to_bytes(a1),
    )


def prove_bit(c_bytes: bytes, index: int, c_i: Point, bit: int, r_i: int, randomness: bytes) -> bytes:
    """OR-proof that c_i = r_i*H (bit 0) or c_i - G = r_i*H (bit 1)."""
    h = generator_h()
    targets = (c_i, point_sub(c_i, G))
    sim = 1 - bit

    e_sim = derive_scalar(DOMAIN_SIM_CHALLENGE, randomness, index)
    z_sim = derive_scalar(DOMAIN_SIM_RESPONSE, randomness, index)
    a_sim = point_sub(point_mul(h, z_sim), point_mul(targets[sim], e_sim))

    k = derive_scalar(DOMAIN_BIT_NONCE, randomness, index)
    a_real = point_mul(h, k)

    announcements = [None, None]
    announcements[bit] = a_real
    announcements[sim] = a_sim
    e = _or_challenge(c_bytes, index, point_to_bytes(c_i), announcements[0], announcements[1])

    e_real = (e - e_sim) % ORDER
    z_real = (k + e_real * r_i) % ORDER

    challenges = [0, 0]
    responses = [0, 0]
    challenges[bit], responses[bit] = e_real, z_real
    challenges[sim], responses[sim] = e_sim, z_sim
    return b"".join(scalar_to_bytes(s) for s in (challenges[0], challenges[1], responses[0], responses[1]))


def verify_bit(c_bytes: bytes, index: int, ci_bytes: bytes, proof: bytes) -> bool:
    c_i = point_from_bytes(ci_bytes)
    e0, e1, z0, z1 = (scalar_from_bytes(proof[i:i + SCALAR_SIZE]) for i in range(0, PROOF_SIZE, SCALAR_SIZE))
    a0, a1 = _or_points(c_i, e0, e1, z0, z1)
    return (e0 + e1) % ORDER == _or_challenge(c_bytes, index, ci_bytes, a0, a1)


class RangeProofCommitment(CommitmentScheme):
    """Pedersen commitment with a bit-decomposition range proof."""

    name = "bulletproof-backed"

    def __init__(self, bits: int = DEFAULT_BITS, scale: int = DEFAULT_SCALE):
        if not 1 <= bits <= MAX_BITS:
            raise InvalidParameters(f"bits must be in [1, {MAX_BITS}], got {bits}")
        if scale < 1:
            raise InvalidParameters(f"scale must be >= 1, got {scale}")
        self.bits = bits
        self.scale = scale

    @property
    def max_value(self) -> float:
        return (2 ** self.bits - 1) / self.scale

    def quantize(self, value: float) -> float:
        """
        Round a value onto the supported grid, clamped to the range.

        Raises:
            InvalidParameters: value is NaN or infinite
        """
        if not math.isfinite(value):
            raise InvalidParameters(f"range commitment needs a finite value, got {value}")
        m = min(max(round(value * self.scale), 0), 2 ** self.bits - 1)
        return m / self.scale

    def to_fixed(self, value: float) -> int:
        """
        Fixed-point amount for an exactly representable value.

        Raises:
            InvalidParameters: negative, non-finite, off-grid or too large
        """
        if not math.isfinite(value) or value < 0:
            raise InvalidParameters(f"range commitment needs a finite value >= 0, got {value}")
        m = round(value * self.scale)
        if m / self.scale != value:
            raise InvalidParameters(f"{value} is not a multiple of 1/{self.scale}")
        if m >= 2 ** self.bits:
            raise InvalidParameters(f"{value} exceeds range maximum {self.max_value}")
        return m

    def _bit_blindings(self, r: int, randomness: bytes):
        blinds = [derive_scalar(DOMAIN_BIT_BLIND, randomness, i) for i in range(self.bits - 1)]
        partial = sum((1 << i) * r_i for i, r_i in enumerate(blinds)) % ORDER
        top_weight_inv = pow(1 << (self.bits - 1), -1, ORDER)
        blinds.append(((r - partial) * top_weight_inv) % ORDER)
        return blinds

    def _commit(self, value: float, randomness: bytes) -> bytes:
        m = self.to_fixed(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        c_bytes = point_to_bytes(pedersen(m, r))

        bit_points = []
        proofs = []
        for i, r_i in enumerate(self._bit_blindings(r, randomness)):
            bit = (m >> i) & 1
            c_i = pedersen(bit, r_i)
            bit_points.append(point_to_bytes(c_i))
            proofs.append(prove_bit(c_bytes, i, c_i, bit, r_i, randomness))

        return bytes([self.bits]) + c_bytes + b"".join(bit_points) + b"".join(proofs)

    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        if not data or data[0] != self.bits:
            return False
        expected = 1 + POINT_SIZE + self.bits * (POINT_SIZE + PROOF_SIZE)
        if len(data) != expected:
            return False

        c_bytes = data[1:1 + POINT_SIZE]
        offset = 1 + POINT_SIZE
        bit_bytes = [data[offset + i * POINT_SIZE: offset + (i + 1) * POINT_SIZE] for i in range(self.bits)]
        offset += self.bits * POINT_SIZE
        proofs = [data[offset + i * PROOF_SIZE: offset + (i + 1) * PROOF_SIZE] for i in range(self.bits)]

        # Opening first: cheap rejection of wrong values
        m = self.to_fixed(value)
        r = derive_scalar(DOMAIN_BLIND, randomness)
        c = pedersen(m, r)
        if point_to_bytes(c) != c_bytes:
            return False

        if weighted_sum([point_from_bytes(b) for b in bit_bytes]) != c:
            return False

        return all(verify_bit(c_bytes, i, bit_bytes[i], proofs[i]) for i in range(self.bits))

    def __repr__(self) -> str:
        return f"RangeProofCommitment(bits={self.bits}, scale={self.scale})"
