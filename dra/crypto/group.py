"""
secp256k1 group helpers for the discrete-log commitment backends.

Points are affine (x, y) integer tuples as used by py_ecc; the identity
is (0, 0), matching what py_ecc returns for a zero scalar.

Generators:
- G: the standard secp256k1 base point
- H: a nothing-up-my-sleeve point from try-and-increment hashing, so no
  one knows log_G(H). Pedersen binding relies on this.
"""

from functools import lru_cache
from typing import Sequence, Tuple

from py_ecc.secp256k1 import secp256k1

from dra.crypto import sha256

Point = Tuple[int, int]

# Field prime and group order
FIELD_P = secp256k1.P
ORDER = secp256k1.N

G: Point = secp256k1.G
IDENTITY: Point = (0, 0)

POINT_SIZE = 64
SCALAR_SIZE = 32


# =============================================================================
# Point Arithmetic
# =============================================================================


def is_identity(p: Point) -> bool:
    return p[0] == 0 and p[1] == 0


def is_on_curve(p: Point) -> bool:
    """Check y^2 = x^3 + 7 over the base field (identity counts)."""
    if is_identity(p):
        return True
    x, y = p
    if not (0 <= x < FIELD_P and 0 <= y < FIELD_P):
        return False
    return (y * y - x * x * x - 7) % FIELD_P == 0


def point_add(a: Point, b: Point) -> Point:
    if is_identity(a):
        return b
    if is_identity(b):
        return a
    return secp256k1.add(a, b)


def point_neg(p: Point) -> Point:
    if is_identity(p):
        return p
    return (p[0], (FIELD_P - p[1]) % FIELD_P)


def point_sub(a: Point, b: Point) -> Point:
    return point_add(a, point_neg(b))


def point_mul(p: Point, scalar: int) -> Point:
    scalar %= ORDER
    if scalar == 0 or is_identity(p):
        return IDENTITY
    return secp256k1.multiply(p, scalar)


def point_double(p: Point) -> Point:
    return point_add(p, p)


def weighted_sum(points: Sequence[Point]) -> Point:
    """
    Compute sum(2^i * points[i]) by Horner's rule (doublings only).
    """
    acc = IDENTITY
    for p in reversed(points):
        acc = point_add(point_double(acc), p)
    return acc


# =============================================================================
# Serialization
# =============================================================================


def point_to_bytes(p: Point) -> bytes:
    """64-byte x || y encoding (identity is all zeros)."""
    return p[0].to_bytes(32, "big") + p[1].to_bytes(32, "big")


def point_from_bytes(data: bytes) -> Point:
    """Decode and validate a 64-byte point."""
    if len(data) != POINT_SIZE:
        raise ValueError(f"Point must be {POINT_SIZE} bytes, got {len(data)}")
    p = (int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))
    if not is_on_curve(p):
        raise ValueError("Point is not on secp256k1")
    return p


def scalar_to_bytes(s: int) -> bytes:
    return (s % ORDER).to_bytes(SCALAR_SIZE, "big")


def scalar_from_bytes(data: bytes) -> int:
    if len(data) != SCALAR_SIZE:
        raise ValueError(f"Scalar must be {SCALAR_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "big")


# =============================================================================
# Generators
# =============================================================================


def hash_to_point(seed: bytes) -> Point:
    """
    Map a seed to a curve point by try-and-increment.

    FIELD_P = 3 mod 4, so sqrt(a) = a^((p+1)/4) when a is a square.
    """
    counter = 0
    while True:
        x = int.from_bytes(sha256(seed + counter.to_bytes(4, "big")), "big") % FIELD_P
        rhs = (pow(x, 3, FIELD_P) + 7) % FIELD_P
        y = pow(rhs, (FIELD_P + 1) // 4, FIELD_P)
        if (y * y) % FIELD_P == rhs:
            if y % 2 == 1:
                y = FIELD_P - y
            return (x, y)
        counter += 1


@lru_cache(maxsize=None)
def generator_h() -> Point:
    """Second Pedersen generator."""
    return hash_to_point(b"DRA-PEDERSEN-H")


def pedersen(m: int, r: int) -> Point:
    """Pedersen commitment m*G + r*H."""
    return point_add(point_mul(G, m), point_mul(generator_h(), r))


__all__ = [
    "Point",
    "FIELD_P",
    "ORDER",
    "G",
    "IDENTITY",
    "POINT_SIZE",
    "SCALAR_SIZE",
    "is_identity",
    "is_on_curve",
    "point_add",
    "point_neg",
    "point_sub",
    "point_mul",
    "point_double",
    "weighted_sum",
    "point_to_bytes",
    "point_from_bytes",
    "scalar_to_bytes",
    "scalar_from_bytes",
    "hash_to_point",
    "generator_h",
    "pedersen",
]
