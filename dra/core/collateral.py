"""
Collateral requirement f(n, D, alpha).

The amount every bidder posts so that an auctioneer who inserts and then
withholds a bid forfeits at least what the deviation could gain:

    alpha >= 1      f = r(D)
    0 < alpha < 1   f = r(D) * (n / alpha)^((1 - alpha) / alpha) * (1 / (1 - alpha))^(1 / alpha)
    alpha == 0      f = inf   (regular but not strongly regular: nothing finite suffices)

alpha may not exceed the distribution's strong-regularity constant when
the family reports one.
"""

import math

from dra.core.distribution import Distribution
from dra.core.errors import InvalidParameters
from dra.utils.logger import get_logger
from dra.utils.validation import require, validate_count, validate_non_negative

logger = get_logger("collateral")

# exp() overflows above this
_LOG_FLOAT_MAX = math.log(1.7976931348623157e308)

# Slack when comparing alpha to the family's regularity constant
ALPHA_TOLERANCE = 1e-12


def validate_alpha(dist: Distribution, alpha: float) -> None:
    """
    Check alpha against the family's strong-regularity constant.

    Raises:
        InvalidParameters: alpha < 0 or larger than the family supports
    """
    require(validate_non_negative(alpha, "alpha"))
    supported = dist.strong_regularity()
    if supported is not None and alpha > supported + ALPHA_TOLERANCE:
        raise InvalidParameters(
            f"alpha={alpha} exceeds strong regularity {supported} of {dist.name}"
        )


def collateral_requirement(n: int, dist: Distribution, alpha: float) -> float:
    """
    Collateral each bidder must post.

    Args:
        n: Number of bidders (>= 1)
        dist: Value distribution
        alpha: Strong-regularity parameter (>= 0)

    Returns:
        Non-negative collateral amount (possibly +inf)

    Raises:
        InvalidParameters: n < 1, alpha < 0, or alpha unsupported by dist
    """
    require(validate_count(n, "n"))
    validate_alpha(dist, alpha)

    reserve = dist.reserve_price()
    if alpha >= 1.0:
        return reserve
    if alpha == 0.0 or math.isinf(reserve):
        logger.debug(f"collateral unbounded for {dist.name} at alpha={alpha}")
        return math.inf
    if reserve == 0.0:
        return 0.0

    log_amount = (
        math.log(reserve)
        + ((1.0 - alpha) / alpha) * math.log(n / alpha)
        + (1.0 / alpha) * math.log(1.0 / (1.0 - alpha))
    )
    if log_amount >= _LOG_FLOAT_MAX:
        return math.inf
    return math.exp(log_amount)


__all__ = ["collateral_requirement", "validate_alpha", "ALPHA_TOLERANCE"]
