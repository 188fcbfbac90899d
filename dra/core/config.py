"""
Configuration for DRA.

Two layers:
- EngineConfig: process-wide defaults (backend, forfeit policy,
  range-proof parameters, timed-session windows), read from the
  environment / a .env file.
- ScenarioConfig: one auction scenario as JSON input, validated with
  pydantic. Schema violations surface as InvalidParameters.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dra.core.auction.models import ForfeitPolicy
from dra.core.commitment import BACKENDS
from dra.core.distribution import (
    Distribution,
    EqualRevenue,
    Exponential,
    LogNormal,
    Pareto,
    Uniform,
)
from dra.core.errors import InvalidParameters


# =============================================================================
# Engine Configuration
# =============================================================================


@dataclass
class EngineConfig:
    """Process-wide defaults"""

    # Commitment
    commitment_backend: str = "sha-baseline"
    range_bits: int = 24  # Range-proof bit width
    range_scale: int = 100  # Fixed-point scale (cents)

    # Resolution
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER

    # Timed sessions (logical clock ticks)
    commit_window: int = 4
    reveal_window: int = 4

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    def backend_options(self, name: Optional[str] = None) -> dict:
        """Constructor options for a backend by name."""
        if (name or self.commitment_backend) == "bulletproof-backed":
            return {"bits": self.range_bits, "scale": self.range_scale}
        return {}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidParameters(f"{name} must be an integer, got {raw!r}") from e


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration from the environment.

    Args:
        env_file: Optional .env path; the default lookup is used if None

    Returns:
        EngineConfig instance

    Raises:
        InvalidParameters: malformed environment values
    """
    load_dotenv(env_file)
    defaults = EngineConfig()

    backend = os.environ.get("DRA_BACKEND", defaults.commitment_backend)
    if backend not in BACKENDS:
        raise InvalidParameters(f"DRA_BACKEND: unknown commitment backend {backend!r}")

    policy_raw = os.environ.get("DRA_FORFEIT_POLICY", defaults.forfeit_policy.value)
    try:
        policy = ForfeitPolicy(policy_raw.lower())
    except ValueError as e:
        raise InvalidParameters(f"DRA_FORFEIT_POLICY: unknown policy {policy_raw!r}") from e

    return EngineConfig(
        commitment_backend=backend,
        range_bits=_env_int("DRA_RANGE_BITS", defaults.range_bits),
        range_scale=_env_int("DRA_RANGE_SCALE", defaults.range_scale),
        forfeit_policy=policy,
        commit_window=_env_int("DRA_COMMIT_WINDOW", defaults.commit_window),
        reveal_window=_env_int("DRA_REVEAL_WINDOW", defaults.reveal_window),
        log_level=os.environ.get("DRA_LOG_LEVEL", defaults.log_level).upper(),
        log_dir=Path(os.environ.get("DRA_LOG_DIR", str(defaults.log_dir))),
        log_to_file=os.environ.get("DRA_LOG_TO_FILE", "").strip().lower() in ("1", "true", "yes", "on"),
    )


# =============================================================================
# Scenario Schema
# =============================================================================


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)


class ExponentialConfig(_Strict):
    type: Literal["exponential"]
    rate: float

    def build(self) -> Distribution:
        return Exponential(self.rate)


class UniformConfig(_Strict):
    type: Literal["uniform"]
    low: float = 0.0
    high: float

    def build(self) -> Distribution:
        return Uniform(self.low, self.high)


class ParetoConfig(_Strict):
    type: Literal["pareto"]
    shape: float
    scale: float = 1.0

    def build(self) -> Distribution:
        return Pareto(self.shape, self.scale)


class LogNormalConfig(_Strict):
    type: Literal["lognormal"]
    mu: float = 0.0
    sigma: float = 1.0

    def build(self) -> Distribution:
        return LogNormal(self.mu, self.sigma)


class EqualRevenueConfig(_Strict):
    type: Literal["equal_revenue"]
    scale: float = 1.0

    def build(self) -> Distribution:
        return EqualRevenue(self.scale)


DistributionConfig = Annotated[
    Union[ExponentialConfig, UniformConfig, ParetoConfig, LogNormalConfig, EqualRevenueConfig],
    Field(discriminator="type"),
]


class FalseBidConfig(_Strict):
    """A bid the auctioneer inserts, and whether it is later revealed."""
    bid: float
    reveal: bool = True


class ScenarioConfig(_Strict):
    """
    One auction scenario.

    `alpha` defaults to the distribution's strong-regularity constant,
    or 1.0 when the family does not report one.
    """
    distribution: DistributionConfig
    valuations: List[float] = Field(min_length=1)
    false_bids: List[FalseBidConfig] = Field(default_factory=list)
    alpha: Optional[float] = Field(default=None, ge=0.0)
    rng_seed: Optional[int] = Field(default=None, ge=0)
    commitment_backend: str = "sha-baseline"
    forfeit_policy: ForfeitPolicy = ForfeitPolicy.AUCTIONEER

    @field_validator("commitment_backend")
    @classmethod
    def _known_backend(cls, v: str) -> str:
        if v not in BACKENDS:
            raise ValueError(f"unknown commitment backend {v!r}; expected one of {sorted(BACKENDS)}")
        return v

    def build_distribution(self) -> Distribution:
        """
        Raises:
            InvalidParameters: parameters out of the family's domain
        """
        return self.distribution.build()

    def resolved_alpha(self, dist: Distribution) -> float:
        if self.alpha is not None:
            return self.alpha
        supported = dist.strong_regularity()
        return supported if supported is not None else 1.0


def parse_scenario(data: Union[dict, str, bytes]) -> ScenarioConfig:
    """
    Validate a scenario from a dict or JSON text.

    Raises:
        InvalidParameters: malformed JSON or schema violation
    """
    try:
        if isinstance(data, (str, bytes)):
            return ScenarioConfig.model_validate_json(data)
        return ScenarioConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidParameters(f"invalid scenario: {e}") from e


def load_scenario(path: Union[str, Path]) -> ScenarioConfig:
    """
    Load and validate a scenario JSON file.

    Raises:
        InvalidParameters: unreadable file, malformed JSON or schema violation
    """
    try:
        text = Path(path).read_text()
    except OSError as e:
        raise InvalidParameters(f"cannot read scenario {path}: {e}") from e
    return parse_scenario(text)


def dump_json(data) -> str:
    """Serialize output records; infinities are already strings."""
    return json.dumps(data, indent=2, sort_keys=False)


__all__ = [
    "EngineConfig",
    "load_config",
    "ExponentialConfig",
    "UniformConfig",
    "ParetoConfig",
    "LogNormalConfig",
    "EqualRevenueConfig",
    "DistributionConfig",
    "FalseBidConfig",
    "ScenarioConfig",
    "parse_scenario",
    "load_scenario",
    "dump_json",
]
