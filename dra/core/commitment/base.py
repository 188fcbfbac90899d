"""
Commitment capability shared by every backend.

    commit(value, randomness) -> Commitment
    open(commitment, value, randomness) -> bool

Backends must be hiding and binding; the non-malleable ones additionally
prevent deriving a related commitment without the opening. The engine
relies on these properties but never checks them, and never looks inside
a Commitment beyond equality.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from dra.crypto import bytes_to_hex, sha256
from dra.utils.validation import require, validate_randomness

if TYPE_CHECKING:
    from dra.core.auction.transcript import AuditTranscript


@dataclass(frozen=True)
class Commitment:
    """
    Opaque commitment published during the commit phase.

    Attributes:
        scheme: Name of the backend that produced it
        data: Backend-specific canonical encoding
    """
    scheme: str
    data: bytes

    @property
    def digest(self) -> bytes:
        """Short fingerprint for logs and broadcasts."""
        return sha256(self.scheme.encode() + self.data)

    def short(self) -> str:
        return bytes_to_hex(self.digest)[:18]

    def __repr__(self) -> str:
        return f"Commitment({self.scheme}, {self.short()})"


class CommitmentScheme(ABC):
    """Sender-side commitment primitive."""

    name: str = "abstract"

    # Audited backends carry a transcript that rounds record into.
    transcript: Optional["AuditTranscript"] = None

    def commit(self, value: float, randomness: bytes) -> Commitment:
        """
        Commit to `value` using caller-supplied randomness.

        Raises:
            InvalidParameters: randomness malformed or value outside the backend's domain
        """
        require(validate_randomness(randomness))
        return Commitment(scheme=self.name, data=self._commit(float(value), bytes(randomness)))

    def open(self, commitment: Commitment, value: float, randomness: bytes) -> bool:
        """
        Check that `commitment` opens to `value` under `randomness`.

        Never raises on malformed input: a bad opening is simply False.
        """
        if commitment.scheme != self.name:
            return False
        valid, _ = validate_randomness(randomness)
        if not valid:
            return False
        try:
            return self._open(commitment.data, float(value), bytes(randomness))
        except (ValueError, TypeError, OverflowError):
            return False

    def quantize(self, value: float) -> float:
        """Map a value into the backend's supported domain (identity by default)."""
        return value

    @abstractmethod
    def _commit(self, value: float, randomness: bytes) -> bytes:
        """Return the canonical commitment encoding."""

    @abstractmethod
    def _open(self, data: bytes, value: float, randomness: bytes) -> bool:
        """Verify an opening against the canonical encoding."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
