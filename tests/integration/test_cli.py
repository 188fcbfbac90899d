"""
CLI tests - `dra run`, `dra simulate`, `dra provenance`.

Logging is raised to ERROR so command output is pure JSON.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from dra.cli.main import cli
from dra.utils.logger import setup_logging


QUIET = {"DRA_LOG_LEVEL": "ERROR", "DRA_LOG_TO_FILE": "0"}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner():
    yield CliRunner()
    # Re-bind the console handler away from the runner's closed stream
    setup_logging(logging.WARNING)


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps({
        "distribution": {"type": "uniform", "low": 0.0, "high": 10.0},
        "valuations": [3.0, 5.0, 7.0],
        "false_bids": [{"bid": 20.0, "reveal": False}],
        "alpha": 1.0,
        "rng_seed": 1,
    }))
    return path


def invoke(runner, args):
    return runner.invoke(cli, args, env=QUIET)


# =============================================================================
# Run
# =============================================================================


class TestRunCommand:

    def test_prints_record(self, runner, scenario_file):
        result = invoke(runner, ["run", str(scenario_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["winner"] == "honest:2"
        assert data["payment"] == 5.0
        assert data["forfeited_to_auctioneer"] == 5.0
        assert data["valid_bids"] == [["honest:1", 5.0], ["honest:2", 7.0]]

    def test_full_output(self, runner, scenario_file):
        result = invoke(runner, ["run", str(scenario_file), "--full"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["forfeited_by"] == ["synthetic:0"]
        assert [e["order_index"] for e in data["transcript"]] == [0, 1, 2, 3]
        assert data["transcript"][3]["participant"] == "synthetic:0"
        assert data["broadcast_log"][0]["kind"] == "commitment"

    def test_invalid_scenario(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"distribution": {"type": "cauchy"}, "valuations": [1.0]}))
        result = invoke(runner, ["run", str(path)])
        assert result.exit_code == 1
        assert "invalid scenario" in result.output

    def test_overflowing_valuation(self, runner, tmp_path):
        path = tmp_path / "huge.json"
        path.write_text(
            '{"distribution": {"type": "uniform", "low": 0, "high": 10}, '
            '"valuations": [3, 1e400], "commitment_backend": "bulletproof-backed"}'
        )
        result = invoke(runner, ["run", str(path)])
        assert result.exit_code == 1
        assert "invalid scenario" in result.output

    def test_unsupported_alpha(self, runner, tmp_path):
        path = tmp_path / "alpha.json"
        path.write_text(json.dumps({
            "distribution": {"type": "exponential", "rate": 1.0},
            "valuations": [1.0],
            "alpha": 3.0,
        }))
        result = invoke(runner, ["run", str(path)])
        assert result.exit_code == 1
        assert "strong regularity" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = invoke(runner, ["run", str(tmp_path / "absent.json")])
        assert result.exit_code == 2


# =============================================================================
# Simulate
# =============================================================================


class TestSimulateCommand:

    def test_deviation_mode(self, runner):
        result = invoke(runner, ["simulate", "--dist", "exponential", "--param", "rate=1", "--trials", "20"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["mode"] == "deviation"
        assert data["false_bid"] == 2.0
        assert data["allocation_change_rate"] == 0.0

    def test_safe_mode(self, runner):
        result = invoke(runner, ["simulate", "--mode", "safe", "--param", "rate=1", "--trials", "30"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["satisfied"] is True
        assert data["trials"] == 30

    def test_timed_mode(self, runner):
        result = invoke(runner, ["simulate", "--mode", "timed", "--param", "rate=1", "--buyers", "2", "--trials", "5"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["successful_runs"] + data["deadline_failures"] == 5

    def test_uniform_family(self, runner):
        result = invoke(runner, [
            "simulate", "--dist", "uniform", "--param", "low=0", "--param", "high=10",
            "--false-bid", "8", "--reveal", "--trials", "10",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["alpha"] == 2.0

    def test_unbounded_collateral_needs_false_bid(self, runner):
        result = invoke(runner, ["simulate", "--dist", "equal_revenue", "--trials", "5"])
        assert result.exit_code == 2
        assert "--false-bid" in result.output

    def test_bad_param(self, runner):
        result = invoke(runner, ["simulate", "--param", "rate"])
        assert result.exit_code == 2

    def test_unknown_family(self, runner):
        result = invoke(runner, ["simulate", "--dist", "cauchy"])
        assert result.exit_code == 1
        assert "unknown distribution" in result.output


# =============================================================================
# Provenance
# =============================================================================


class TestProvenanceCommand:

    def test_lists_crypto_dependencies(self, runner):
        result = invoke(runner, ["provenance"])
        assert result.exit_code == 0, result.output
        names = [entry["name"] for entry in json.loads(result.output)]
        assert names == ["py_ecc", "pycryptodome"]


class TestGlobalOptions:

    def test_bad_env_setting(self, runner):
        result = runner.invoke(cli, ["provenance"], env={**QUIET, "DRA_BACKEND": "rot13"})
        assert result.exit_code == 1
        assert "DRA_BACKEND" in result.output

    def test_version(self, runner):
        result = invoke(runner, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
