"""
Input Validation - Parameter checks for distributions, collateral and rounds.

Validators return (is_valid, error_message) so callers can aggregate or
report; `require` turns a failed check into InvalidParameters.
"""

import math
from typing import Any, Optional, Tuple

from dra.core.errors import InvalidParameters

# =============================================================================
# Constants
# =============================================================================

# Maximum sizes
MIN_RANDOMNESS_SIZE = 16
MAX_RANDOMNESS_SIZE = 1024
MAX_BIDDERS = 2**16


# =============================================================================
# Validation Functions
# =============================================================================


def validate_number(
    value: Any,
    name: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    strict_min: bool = False,
    allow_inf: bool = False,
) -> Tuple[bool, str]:
    """
    Validate a real number within bounds.

    Args:
        value: Value to validate
        name: Field name for error messages
        min_val: Lower bound (inclusive unless strict_min)
        max_val: Upper bound (inclusive)
        strict_min: Require value > min_val
        allow_inf: Accept +/- infinity

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, f"{name} must be a number, got {type(value).__name__}"

    if math.isnan(value):
        return False, f"{name} must not be NaN"

    if math.isinf(value) and not allow_inf:
        return False, f"{name} must be finite, got {value}"

    if min_val is not None:
        if strict_min and value <= min_val:
            return False, f"{name} must be > {min_val}, got {value}"
        if value < min_val:
            return False, f"{name} must be >= {min_val}, got {value}"

    if max_val is not None and value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_positive(value: Any, name: str) -> Tuple[bool, str]:
    """Validate a strictly positive finite number."""
    return validate_number(value, name, min_val=0.0, strict_min=True)


def validate_non_negative(value: Any, name: str) -> Tuple[bool, str]:
    """Validate a finite number >= 0."""
    return validate_number(value, name, min_val=0.0)


def validate_count(value: Any, name: str, min_val: int = 1, max_val: int = MAX_BIDDERS) -> Tuple[bool, str]:
    """Validate an integer count within bounds."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_randomness(data: Any, name: str = "randomness") -> Tuple[bool, str]:
    """Validate commitment randomness bytes."""
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if len(data) < MIN_RANDOMNESS_SIZE:
        return False, f"{name} must be at least {MIN_RANDOMNESS_SIZE} bytes, got {len(data)}"

    if len(data) > MAX_RANDOMNESS_SIZE:
        return False, f"{name} exceeds max length {MAX_RANDOMNESS_SIZE}, got {len(data)}"

    return True, ""


def require(result: Tuple[bool, str]) -> None:
    """Raise InvalidParameters if a validator failed."""
    valid, err = result
    if not valid:
        raise InvalidParameters(err)
