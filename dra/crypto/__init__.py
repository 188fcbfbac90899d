"""
Cryptographic primitives for DRA.

This module provides:
- Hashing functions (SHA-256, Keccak-256)
- Domain-separated hash-to-scalar for Fiat-Shamir challenges and
  deterministic derivation of blinding factors
- Canonical encoding of bid values

Design Notes:
-------------
Commitment backends receive caller-supplied randomness as opaque bytes
and derive every secret scalar from it with `derive_scalar`, so a round
is reproducible from (seed, commit order, values).

SHA-256 is used for the hash baseline and for audit receipts; Keccak-256
is used for Fiat-Shamir challenges in the group-based backends.
"""

import hashlib
import struct

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 group order
SECP256K1_ORDER = secp256k1.N

# Domain separators
DOMAIN_BID = b"DRA-BID"
DOMAIN_SALT = b"DRA-SALT"
DOMAIN_MASK = b"DRA-MASK"
DOMAIN_BLIND = b"DRA-BLIND"
DOMAIN_NONCE = b"DRA-NONCE"
DOMAIN_CHALLENGE = b"DRA-CHALLENGE"
DOMAIN_RECEIPT = b"DRA-RECEIPT"


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Used for: hash commitments, audit receipts.
    """
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: Fiat-Shamir challenges.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def tagged_hash(domain: bytes, *parts: bytes) -> bytes:
    """
    SHA-256 over a domain tag and length-prefixed parts.

    Length prefixes keep (b"ab", b"c") and (b"a", b"bc") distinct.
    """
    h = hashlib.sha256()
    h.update(domain)
    for part in parts:
        h.update(len(part).to_bytes(4, "big"))
        h.update(part)
    return h.digest()


def derive_scalar(domain: bytes, randomness: bytes, index: int = 0) -> int:
    """
    Derive a non-zero scalar mod the group order from randomness.

    Args:
        domain: Domain separator (blinding, nonce, ...)
        randomness: Caller-supplied randomness
        index: Sub-index for deriving several scalars

    Returns:
        Integer in [1, order-1]
    """
    digest = tagged_hash(domain, randomness, index.to_bytes(4, "big"))
    wide = digest + sha256(digest)
    return int.from_bytes(wide, "big") % (SECP256K1_ORDER - 1) + 1


def challenge_scalar(*parts: bytes) -> int:
    """
    Fiat-Shamir challenge: Keccak-256 over length-prefixed parts, mod order.
    """
    payload = b"".join(len(p).to_bytes(4, "big") + p for p in parts)
    return int.from_bytes(keccak256(DOMAIN_CHALLENGE + payload), "big") % SECP256K1_ORDER


# =============================================================================
# Encoding
# =============================================================================


def encode_value(value: float) -> bytes:
    """
    Canonical 8-byte big-endian IEEE-754 encoding of a bid value.

    -0.0 is folded into 0.0 so both open the same commitment.
    """
    value = float(value)
    if value == 0.0:
        value = 0.0
    return struct.pack(">d", value)


def value_to_scalar(value: float) -> int:
    """Map a bid value to a group scalar (injective on finite floats)."""
    return int.from_bytes(encode_value(value), "big") % SECP256K1_ORDER


def int_to_bytes32(value: int) -> bytes:
    """Convert a non-negative integer to 32 big-endian bytes."""
    return value.to_bytes(32, byteorder="big")


def bytes32_to_int(data: bytes) -> int:
    """Convert 32 big-endian bytes to an integer."""
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    return int.from_bytes(data, byteorder="big")


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


__all__ = [
    "SECP256K1_ORDER",
    "DOMAIN_BID",
    "DOMAIN_SALT",
    "DOMAIN_MASK",
    "DOMAIN_BLIND",
    "DOMAIN_NONCE",
    "DOMAIN_CHALLENGE",
    "DOMAIN_RECEIPT",
    "sha256",
    "keccak256",
    "tagged_hash",
    "derive_scalar",
    "challenge_scalar",
    "encode_value",
    "value_to_scalar",
    "int_to_bytes32",
    "bytes32_to_int",
    "bytes_to_hex",
    "hex_to_bytes",
]
