"""
DRA Commitment Module.

Pluggable commitment backends behind one capability:
- sha-baseline: SHA-256 hash commitment
- pedersen: Pedersen over secp256k1
- fischlin-style-non-malleable: Pedersen + Schnorr proof of knowledge
- bulletproof-backed: Pedersen + bit-decomposition range proof
- audited: any of the above, recorded into an audit transcript
"""

from typing import Callable, Dict

from dra.core.commitment.base import Commitment, CommitmentScheme
from dra.core.commitment.sha import ShaCommitment
from dra.core.commitment.pedersen import PedersenCommitment
from dra.core.commitment.nonmalleable import NonMalleableCommitment
from dra.core.commitment.range_proof import RangeProofCommitment
from dra.core.commitment.audited import AuditedCommitment
from dra.core.errors import InvalidParameters


BACKENDS: Dict[str, Callable[..., CommitmentScheme]] = {
    ShaCommitment.name: ShaCommitment,
    PedersenCommitment.name: PedersenCommitment,
    NonMalleableCommitment.name: NonMalleableCommitment,
    RangeProofCommitment.name: RangeProofCommitment,
    AuditedCommitment.name: AuditedCommitment,
}


def create_scheme(name: str, **options) -> CommitmentScheme:
    """
    Build a commitment backend by its config name.

    Args:
        name: One of BACKENDS
        **options: Backend constructor options (e.g. bits/scale)

    Raises:
        InvalidParameters: unknown backend
    """
    factory = BACKENDS.get(name)
    if factory is None:
        raise InvalidParameters(f"unknown commitment backend: {name!r}")
    return factory(**options)


__all__ = [
    "Commitment",
    "CommitmentScheme",
    "ShaCommitment",
    "PedersenCommitment",
    "NonMalleableCommitment",
    "RangeProofCommitment",
    "AuditedCommitment",
    "BACKENDS",
    "create_scheme",
]
