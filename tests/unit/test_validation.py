"""
Tests for input validators.
"""

import pytest

from dra.core.errors import InvalidParameters
from dra.utils.validation import (
    MIN_RANDOMNESS_SIZE,
    require,
    validate_count,
    validate_non_negative,
    validate_number,
    validate_positive,
    validate_randomness,
)


class TestValidateNumber:

    def test_accepts_int_and_float(self):
        assert validate_number(3, "x") == (True, "")
        assert validate_number(2.5, "x") == (True, "")

    def test_rejects_bool_and_str(self):
        assert not validate_number(True, "x")[0]
        assert not validate_number("3", "x")[0]

    def test_rejects_nan(self):
        valid, err = validate_number(float("nan"), "x")
        assert not valid
        assert "NaN" in err

    def test_infinity_opt_in(self):
        assert not validate_number(float("inf"), "x")[0]
        assert validate_number(float("inf"), "x", allow_inf=True)[0]

    def test_bounds(self):
        assert not validate_number(-1, "x", min_val=0)[0]
        assert not validate_number(0, "x", min_val=0, strict_min=True)[0]
        assert not validate_number(11, "x", max_val=10)[0]

    def test_positive_and_non_negative(self):
        assert validate_non_negative(0.0, "x")[0]
        assert not validate_positive(0.0, "x")[0]


class TestValidateCount:

    def test_range(self):
        assert validate_count(1, "n")[0]
        assert not validate_count(0, "n")[0]
        assert not validate_count(1.0, "n")[0]
        assert validate_count(0, "n", min_val=0)[0]


class TestValidateRandomness:

    def test_size_limits(self):
        assert validate_randomness(b"\x00" * MIN_RANDOMNESS_SIZE)[0]
        assert not validate_randomness(b"\x00" * (MIN_RANDOMNESS_SIZE - 1))[0]
        assert not validate_randomness("not bytes")[0]


class TestRequire:

    def test_raises_on_failure(self):
        with pytest.raises(InvalidParameters, match="n must be >= 1"):
            require(validate_count(0, "n"))

    def test_passes_through(self):
        require((True, ""))
