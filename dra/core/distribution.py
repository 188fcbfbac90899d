"""
Value distributions for reserve price, virtual value and collateral.

Each family supplies the quantities the protocol needs:
- cdf / pdf / survival
- virtual value  phi(x) = x - (1 - F(x)) / f(x)
- reserve price  r(D): the monopoly price, root of phi(r) = 0
- strong regularity: largest alpha with phi(y) - phi(x) >= alpha (y - x)
- sample(rng): draws for the simulation harness

Families override the generic numeric machinery with closed forms where
one exists.
"""

import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from statistics import NormalDist
from typing import Dict, Optional, Type

from dra.core.errors import InvalidParameters
from dra.utils.logger import get_logger
from dra.utils.validation import require, validate_number, validate_positive

logger = get_logger("distribution")


# =============================================================================
# Constants
# =============================================================================

# Bracketing / bisection limits for the generic reserve search
RESERVE_BRACKET_STEPS = 64
RESERVE_BISECT_STEPS = 96

_STANDARD_NORMAL = NormalDist()


# =============================================================================
# Base Class
# =============================================================================


class Distribution(ABC):
    """A bidder value distribution."""

    name: str = "distribution"

    @abstractmethod
    def cdf(self, x: float) -> float:
        """Cumulative distribution function F(x)."""

    @abstractmethod
    def pdf(self, x: float) -> float:
        """Probability density f(x)."""

    @abstractmethod
    def sample(self, rng: random.Random) -> float:
        """Draw one value."""

    def survival(self, x: float) -> float:
        """1 - F(x)."""
        return 1.0 - self.cdf(x)

    def virtual_value(self, x: float) -> float:
        """
        Myerson virtual value phi(x) = x - (1 - F(x)) / f(x).

        Returns -inf where the density vanishes.
        """
        f = self.pdf(x)
        if f <= 0.0:
            return -math.inf
        return x - self.survival(x) / f

    def reserve_price(self) -> float:
        """
        Monopoly price r(D) with phi(r) = 0, found by bracketing and bisection.

        Falls back to the last bracket bound when phi stays negative.
        """
        lo, hi = 0.0, 1.0
        for _ in range(RESERVE_BRACKET_STEPS):
            if self.virtual_value(hi) >= 0.0:
                break
            hi *= 2.0
        if self.virtual_value(hi) < 0.0:
            logger.warning(f"{self.name}: virtual value never reached zero, using {hi}")
            return hi
        for _ in range(RESERVE_BISECT_STEPS):
            mid = 0.5 * (lo + hi)
            if self.virtual_value(mid) >= 0.0:
                hi = mid
            else:
                lo = mid
        return hi

    def strong_regularity(self) -> Optional[float]:
        """Alpha for which the distribution is alpha-strongly regular, if known."""
        return None

    def expected_revenue_at(self, price: float) -> float:
        """Revenue of posting `price` to a single bidder: p * (1 - F(p))."""
        if math.isinf(price):
            return 0.0
        return price * self.survival(price)


# =============================================================================
# Families
# =============================================================================


@dataclass(frozen=True)
class Exponential(Distribution):
    """Exponential with rate lambda (mean 1/lambda). MHR, so alpha = 1."""
    rate: float

    name = "exponential"

    def __post_init__(self):
        require(validate_positive(self.rate, "rate"))

    def cdf(self, x: float) -> float:
        if x <= 0.0:
            return 0.0
        return -math.expm1(-self.rate * x)

    def pdf(self, x: float) -> float:
        if x < 0.0:
            return 0.0
        return self.rate * math.exp(-self.rate * x)

    def survival(self, x: float) -> float:
        if x <= 0.0:
            return 1.0
        return math.exp(-self.rate * x)

    def virtual_value(self, x: float) -> float:
        return x - 1.0 / self.rate

    def reserve_price(self) -> float:
        return 1.0 / self.rate

    def strong_regularity(self) -> Optional[float]:
        return 1.0

    def sample(self, rng: random.Random) -> float:
        return rng.expovariate(self.rate)


@dataclass(frozen=True)
class Uniform(Distribution):
    """Uniform on [low, high]."""
    low: float
    high: float

    name = "uniform"

    def __post_init__(self):
        require(validate_number(self.low, "low"))
        require(validate_number(self.high, "high"))
        if self.high <= self.low:
            raise InvalidParameters(f"uniform requires low < high, got low={self.low}, high={self.high}")

    def cdf(self, x: float) -> float:
        if x <= self.low:
            return 0.0
        if x >= self.high:
            return 1.0
        return (x - self.low) / (self.high - self.low)

    def pdf(self, x: float) -> float:
        if x < self.low or x > self.high:
            return 0.0
        return 1.0 / (self.high - self.low)

    def virtual_value(self, x: float) -> float:
        if x < self.low or x > self.high:
            return -math.inf
        return 2.0 * x - self.high

    def reserve_price(self) -> float:
        # phi(x) = 2x - high
        return max(self.low, 0.5 * self.high)

    def strong_regularity(self) -> Optional[float]:
        return 2.0

    def sample(self, rng: random.Random) -> float:
        return rng.uniform(self.low, self.high)


@dataclass(frozen=True)
class Pareto(Distribution):
    """
    Pareto with shape a > 0 and scale x_m > 0: F(x) = 1 - (x_m / x)^a.

    phi(x) = x (1 - 1/a). For a < 1 revenue p^(1-a) grows without bound,
    so there is no finite monopoly price and the reserve is +inf.
    """
    shape: float
    scale: float = 1.0

    name = "pareto"

    def __post_init__(self):
        require(validate_positive(self.shape, "shape"))
        require(validate_positive(self.scale, "scale"))

    def cdf(self, x: float) -> float:
        if x <= self.scale:
            return 0.0
        return 1.0 - (self.scale / x) ** self.shape

    def pdf(self, x: float) -> float:
        if x < self.scale:
            return 0.0
        return self.shape * self.scale ** self.shape / x ** (self.shape + 1.0)

    def survival(self, x: float) -> float:
        if x <= self.scale:
            return 1.0
        return (self.scale / x) ** self.shape

    def virtual_value(self, x: float) -> float:
        if x < self.scale:
            return -math.inf
        return x * (1.0 - 1.0 / self.shape)

    def reserve_price(self) -> float:
        if self.shape < 1.0:
            return math.inf
        return self.scale

    def strong_regularity(self) -> Optional[float]:
        if self.shape < 1.0:
            return None
        return 1.0 - 1.0 / self.shape

    def sample(self, rng: random.Random) -> float:
        return self.scale * rng.paretovariate(self.shape)


@dataclass(frozen=True)
class LogNormal(Distribution):
    """Log-normal: ln X ~ N(mu, sigma^2). Reserve is found numerically."""
    mu: float = 0.0
    sigma: float = 1.0

    name = "lognormal"

    def __post_init__(self):
        require(validate_number(self.mu, "mu"))
        require(validate_positive(self.sigma, "sigma"))

    def _z(self, x: float) -> float:
        return (math.log(x) - self.mu) / self.sigma

    def cdf(self, x: float) -> float:
        if x <= 0.0:
            return 0.0
        return _STANDARD_NORMAL.cdf(self._z(x))

    def survival(self, x: float) -> float:
        if x <= 0.0:
            return 1.0
        return _STANDARD_NORMAL.cdf(-self._z(x))

    def pdf(self, x: float) -> float:
        if x <= 0.0:
            return 0.0
        return _STANDARD_NORMAL.pdf(self._z(x)) / (x * self.sigma)

    def sample(self, rng: random.Random) -> float:
        return rng.lognormvariate(self.mu, self.sigma)


@dataclass(frozen=True)
class EqualRevenue(Distribution):
    """
    Equal-revenue distribution F(x) = 1 - scale/x on [scale, inf).

    Every posted price earns the same revenue and phi is identically zero;
    the reserve is taken at the bottom of the support. Regular but not
    strongly regular (alpha = 0), so no finite collateral is credible.
    """
    scale: float = 1.0

    name = "equal_revenue"

    def __post_init__(self):
        require(validate_positive(self.scale, "scale"))

    def cdf(self, x: float) -> float:
        if x <= self.scale:
            return 0.0
        return 1.0 - self.scale / x

    def survival(self, x: float) -> float:
        if x <= self.scale:
            return 1.0
        return self.scale / x

    def pdf(self, x: float) -> float:
        if x < self.scale:
            return 0.0
        return self.scale / (x * x)

    def virtual_value(self, x: float) -> float:
        if x < self.scale:
            return -math.inf
        return 0.0

    def reserve_price(self) -> float:
        return self.scale

    def strong_regularity(self) -> Optional[float]:
        return 0.0

    def sample(self, rng: random.Random) -> float:
        # Inverse CDF; 1 - U keeps the draw away from zero.
        return self.scale / (1.0 - rng.random())


# =============================================================================
# Factory
# =============================================================================


DISTRIBUTIONS: Dict[str, Type[Distribution]] = {
    "exponential": Exponential,
    "uniform": Uniform,
    "pareto": Pareto,
    "lognormal": LogNormal,
    "equal_revenue": EqualRevenue,
}


def make_distribution(kind: str, **params) -> Distribution:
    """
    Build a distribution from its config name and parameters.

    Raises:
        InvalidParameters: unknown family or bad parameters
    """
    cls = DISTRIBUTIONS.get(kind)
    if cls is None:
        raise InvalidParameters(f"unknown distribution type: {kind!r}")
    try:
        return cls(**params)
    except TypeError as e:
        raise InvalidParameters(f"bad parameters for {kind}: {e}") from e


__all__ = [
    "Distribution",
    "Exponential",
    "Uniform",
    "Pareto",
    "LogNormal",
    "EqualRevenue",
    "DISTRIBUTIONS",
    "make_distribution",
]
