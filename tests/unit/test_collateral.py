"""
Tests for the collateral requirement f(n, D, alpha).
"""

import math

import pytest

from dra.core.collateral import collateral_requirement, validate_alpha
from dra.core.distribution import EqualRevenue, Exponential, Pareto, Uniform
from dra.core.errors import InvalidParameters


class TestCollateral:
    """Closed-form collateral amounts."""

    def test_alpha_at_least_one_is_reserve(self):
        assert collateral_requirement(3, Exponential(1.0), 1.0) == 1.0
        assert collateral_requirement(3, Uniform(0.0, 10.0), 1.0) == 5.0
        assert collateral_requirement(3, Uniform(0.0, 10.0), 2.0) == 5.0

    def test_fractional_alpha(self):
        """Pareto(2, 1): f = 1 * (n / 0.5)^1 * 2^2."""
        dist = Pareto(2.0, 1.0)
        assert collateral_requirement(2, dist, 0.5) == pytest.approx(16.0)
        assert collateral_requirement(4, dist, 0.5) == pytest.approx(32.0)

    def test_grows_with_bidders(self):
        dist = Exponential(1.0)
        amounts = [collateral_requirement(n, dist, 0.5) for n in (1, 2, 8, 64)]
        assert amounts == sorted(amounts)
        assert amounts[0] < amounts[-1]

    def test_zero_alpha_is_unbounded(self):
        assert math.isinf(collateral_requirement(2, Exponential(1.0), 0.0))
        assert math.isinf(collateral_requirement(2, EqualRevenue(1.0), 0.0))

    def test_infinite_reserve_is_unbounded(self):
        assert math.isinf(collateral_requirement(2, Pareto(0.5), 0.5))


class TestAlphaValidation:
    """alpha must be non-negative and supported by the family."""

    def test_alpha_above_family_constant(self):
        with pytest.raises(InvalidParameters, match="exceeds strong regularity"):
            collateral_requirement(2, Exponential(1.0), 1.5)

    def test_equal_revenue_only_accepts_zero(self):
        with pytest.raises(InvalidParameters):
            validate_alpha(EqualRevenue(1.0), 0.1)

    def test_negative_alpha(self):
        with pytest.raises(InvalidParameters):
            collateral_requirement(2, Exponential(1.0), -0.5)

    def test_nan_alpha(self):
        with pytest.raises(InvalidParameters):
            collateral_requirement(2, Exponential(1.0), float("nan"))

    def test_needs_a_bidder(self):
        with pytest.raises(InvalidParameters):
            collateral_requirement(0, Exponential(1.0), 1.0)

    def test_family_without_constant_accepts_any_alpha(self):
        """Heavy-tailed Pareto reports no constant, so alpha is unchecked."""
        validate_alpha(Pareto(0.5), 3.0)
