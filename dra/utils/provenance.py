"""
Provenance - Report which third-party crypto libraries are installed.

For each distribution the commitment backends depend on, reports the
installed version and a digest over its RECORD file hashes, so two
environments can be compared for identical crypto code.
"""

from importlib import metadata
from typing import Dict, List, Optional, Sequence

from dra.crypto import bytes_to_hex, sha256

# Distributions providing curve arithmetic and keccak
CRYPTO_DISTRIBUTIONS = ("py_ecc", "pycryptodome")


def record_digest(dist: metadata.Distribution) -> Optional[str]:
    """
    SHA-256 over the sorted `path=hash` lines of a distribution's RECORD.

    Returns None when the installer left no RECORD.
    """
    files = dist.files
    if not files:
        return None
    lines = sorted(f"{f}={f.hash.mode}:{f.hash.value}" for f in files if f.hash is not None)
    if not lines:
        return None
    return bytes_to_hex(sha256("\n".join(lines).encode()))


def provenance_report(names: Sequence[str] = CRYPTO_DISTRIBUTIONS) -> List[Dict]:
    """
    Version and RECORD digest per distribution.

    Args:
        names: Distribution names to inspect

    Returns:
        One dict per name: name, version, record_digest, files
    """
    report = []
    for name in names:
        try:
            dist = metadata.distribution(name)
        except metadata.PackageNotFoundError:
            report.append({"name": name, "version": None, "record_digest": None, "files": 0})
            continue
        report.append({
            "name": name,
            "version": dist.version,
            "record_digest": record_digest(dist),
            "files": len(dist.files or []),
        })
    return report


__all__ = ["CRYPTO_DISTRIBUTIONS", "record_digest", "provenance_report"]
