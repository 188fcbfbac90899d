"""
Tests for engine configuration and the scenario schema.
"""

import json
import os

import pytest
from pydantic import ValidationError

from dra.core.auction import ForfeitPolicy
from dra.core.config import (
    EngineConfig,
    ScenarioConfig,
    UniformConfig,
    load_config,
    load_scenario,
    parse_scenario,
)
from dra.core.distribution import Exponential, LogNormal, Uniform
from dra.core.errors import InvalidParameters


ENV_KEYS = (
    "DRA_BACKEND",
    "DRA_FORFEIT_POLICY",
    "DRA_RANGE_BITS",
    "DRA_RANGE_SCALE",
    "DRA_COMMIT_WINDOW",
    "DRA_REVEAL_WINDOW",
    "DRA_LOG_LEVEL",
    "DRA_LOG_DIR",
    "DRA_LOG_TO_FILE",
)


@pytest.fixture
def clean_env():
    """Strip DRA_* settings before and after, including ones a .env load set."""
    saved = {k: os.environ.pop(k) for k in ENV_KEYS if k in os.environ}
    yield
    for k in ENV_KEYS:
        os.environ.pop(k, None)
    os.environ.update(saved)


def scenario(**overrides):
    data = {
        "distribution": {"type": "uniform", "low": 0.0, "high": 10.0},
        "valuations": [3.0, 5.0, 7.0],
    }
    data.update(overrides)
    return data


# =============================================================================
# Engine Configuration
# =============================================================================


class TestEngineConfig:

    def test_defaults(self, clean_env):
        config = load_config()
        assert config.commitment_backend == "sha-baseline"
        assert config.forfeit_policy == ForfeitPolicy.AUCTIONEER
        assert config.range_bits == 24
        assert config.log_to_file is False

    def test_environment_overrides(self, clean_env):
        os.environ["DRA_BACKEND"] = "pedersen"
        os.environ["DRA_FORFEIT_POLICY"] = "TRANSFER"
        os.environ["DRA_RANGE_BITS"] = "16"
        os.environ["DRA_LOG_LEVEL"] = "debug"
        config = load_config()
        assert config.commitment_backend == "pedersen"
        assert config.forfeit_policy == ForfeitPolicy.TRANSFER
        assert config.range_bits == 16
        assert config.log_level == "DEBUG"

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DRA_COMMIT_WINDOW=7\nDRA_REVEAL_WINDOW=9\n")
        config = load_config(str(env_file))
        assert (config.commit_window, config.reveal_window) == (7, 9)

    def test_unknown_backend(self, clean_env):
        os.environ["DRA_BACKEND"] = "rot13"
        with pytest.raises(InvalidParameters, match="DRA_BACKEND"):
            load_config()

    def test_unknown_policy(self, clean_env):
        os.environ["DRA_FORFEIT_POLICY"] = "burn"
        with pytest.raises(InvalidParameters, match="DRA_FORFEIT_POLICY"):
            load_config()

    def test_non_integer(self, clean_env):
        os.environ["DRA_RANGE_BITS"] = "lots"
        with pytest.raises(InvalidParameters, match="DRA_RANGE_BITS"):
            load_config()

    def test_backend_options(self):
        config = EngineConfig(range_bits=10, range_scale=1)
        assert config.backend_options("bulletproof-backed") == {"bits": 10, "scale": 1}
        assert config.backend_options("pedersen") == {}
        assert config.backend_options() == {}


# =============================================================================
# Scenario Schema
# =============================================================================


class TestScenarioConfig:

    def test_minimal(self):
        config = parse_scenario(scenario())
        assert isinstance(config.distribution, UniformConfig)
        assert config.false_bids == []
        assert config.commitment_backend == "sha-baseline"
        assert config.forfeit_policy == ForfeitPolicy.AUCTIONEER

    def test_builds_distribution(self):
        dist = parse_scenario(scenario()).build_distribution()
        assert dist == Uniform(0.0, 10.0)

    def test_discriminated_families(self):
        config = parse_scenario(scenario(distribution={"type": "exponential", "rate": 2.0}))
        assert config.build_distribution() == Exponential(2.0)
        config = parse_scenario(scenario(distribution={"type": "lognormal"}))
        assert config.build_distribution() == LogNormal(0.0, 1.0)

    def test_alpha_defaults_to_family_constant(self):
        config = parse_scenario(scenario())
        assert config.resolved_alpha(config.build_distribution()) == 2.0

    def test_alpha_falls_back_to_one(self):
        config = parse_scenario(scenario(distribution={"type": "lognormal"}))
        assert config.resolved_alpha(config.build_distribution()) == 1.0

    def test_explicit_alpha(self):
        config = parse_scenario(scenario(alpha=0.5))
        assert config.resolved_alpha(config.build_distribution()) == 0.5

    def test_false_bids_and_policy(self):
        config = parse_scenario(scenario(
            false_bids=[{"bid": 20.0, "reveal": False}, {"bid": 4.0}],
            forfeit_policy="transfer",
        ))
        assert [(fb.bid, fb.reveal) for fb in config.false_bids] == [(20.0, False), (4.0, True)]
        assert config.forfeit_policy == ForfeitPolicy.TRANSFER

    def test_from_json_text(self):
        config = parse_scenario(json.dumps(scenario(rng_seed=3)))
        assert isinstance(config, ScenarioConfig)
        assert config.rng_seed == 3

    @pytest.mark.parametrize("overrides", [
        {"distribution": {"type": "cauchy"}},
        {"distribution": {"type": "uniform", "high": 10.0, "mode": 3.0}},
        {"valuations": []},
        {"alpha": -1.0},
        {"rng_seed": -5},
        {"commitment_backend": "rot13"},
        {"forfeit_policy": "burn"},
        {"bidders": 3},
    ])
    def test_schema_violations(self, overrides):
        with pytest.raises(InvalidParameters, match="invalid scenario"):
            parse_scenario(scenario(**overrides))

    @pytest.mark.parametrize("overrides", [
        {"valuations": [3.0, float("inf")]},
        {"valuations": [float("nan")]},
        {"false_bids": [{"bid": float("inf"), "reveal": False}]},
        {"distribution": {"type": "uniform", "low": 0.0, "high": float("inf")}},
    ])
    def test_non_finite_numbers_rejected(self, overrides):
        with pytest.raises(InvalidParameters, match="invalid scenario"):
            parse_scenario(scenario(**overrides))

    def test_overflowing_json_number_rejected(self):
        """1e400 parses to infinity and must not reach a backend."""
        text = json.dumps(scenario(commitment_backend="bulletproof-backed")).replace("7.0", "1e400")
        with pytest.raises(InvalidParameters, match="invalid scenario"):
            parse_scenario(text)

    def test_malformed_json(self):
        with pytest.raises(InvalidParameters):
            parse_scenario("{not json")

    def test_domain_checked_at_build(self):
        config = parse_scenario(scenario(distribution={"type": "exponential", "rate": -1.0}))
        with pytest.raises(InvalidParameters):
            config.build_distribution()

    def test_frozen(self):
        config = parse_scenario(scenario())
        with pytest.raises(ValidationError):
            config.alpha = 3.0


class TestLoadScenario:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps(scenario()))
        assert load_scenario(path).valuations == [3.0, 5.0, 7.0]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidParameters, match="cannot read"):
            load_scenario(tmp_path / "absent.json")
