"""
Tests for the crypto dependency provenance report.
"""

from importlib import metadata

from dra.utils.provenance import CRYPTO_DISTRIBUTIONS, provenance_report, record_digest


class TestProvenance:

    def test_reports_crypto_distributions(self):
        report = provenance_report()
        assert [entry["name"] for entry in report] == list(CRYPTO_DISTRIBUTIONS)
        for entry in report:
            assert entry["version"]
            assert entry["files"] > 0

    def test_missing_distribution(self):
        (entry,) = provenance_report(["dra-no-such-distribution"])
        assert entry == {"name": "dra-no-such-distribution", "version": None, "record_digest": None, "files": 0}

    def test_record_digest_stable(self):
        dist = metadata.distribution("pytest")
        digest = record_digest(dist)
        assert digest is None or digest.startswith("0x")
        assert record_digest(dist) == digest
