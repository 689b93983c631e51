"""
Margin of safety calculations.

"The margin of safety is the difference between the intrinsic value of a
stock and its market price." (Graham, The Intelligent Investor)

Every function here leans conservative: invalid inputs are reported as
overvalued, never as fair.
"""

import logging
from typing import Mapping, Optional

from intrinsic.domain.constants import MARGIN_EXCELLENT
from intrinsic.domain.constants import MARGIN_GOOD
from intrinsic.domain.constants import MARGIN_MINIMUM
from intrinsic.domain.constants import MARGIN_OVERVALUED_LIMIT
from intrinsic.domain.types import CombinedMarginOfSafety
from intrinsic.domain.types import MarginOfSafetyResult
from intrinsic.domain.types import RequiredDrop

logger = logging.getLogger(__name__)

# (lower bound, rating, status, risk, recommendation), checked top-down
_BANDS = (
    (MARGIN_EXCELLENT, 'excellent', 'undervalued', 'low',
     'Significantly undervalued with excellent margin of safety. '
     'Verify there are no fundamental problems causing the low price.'),
    (MARGIN_GOOD, 'good', 'undervalued', 'low',
     'Undervalued with good margin of safety. '
     'Consider for purchase if fundamentals are strong.'),
    (MARGIN_MINIMUM, 'acceptable', 'undervalued', 'medium',
     'Moderately undervalued with acceptable margin of safety. '
     'May be suitable for patient investors.'),
    (0.0, 'fair', 'fair', 'medium',
     'Trading near fair value with minimal safety margin. '
     'Wait for a better entry point unless you have high conviction.'),
    (MARGIN_OVERVALUED_LIMIT, 'moderately_overvalued', 'overvalued', 'high',
     'Moderately overvalued. Not recommended for value investors. '
     'Consider waiting for a price correction.'),
)

_SIGNIFICANTLY_OVERVALUED = (
    'significantly_overvalued', 'overvalued', 'high',
    'Significantly overvalued. High risk of price decline. '
    'Avoid purchase and consider selling if held.')

INVALID_RECOMMENDATION = 'Unable to calculate - invalid values'
NO_VALUATION_RECOMMENDATION = (
    'Unable to calculate - no valid valuation methods')


def calculate_margin_of_safety(current_price: float,
                               intrinsic_value: float) -> MarginOfSafetyResult:
  """
  Calculate the margin of safety of a price against an intrinsic value.

  Margin of Safety = (Intrinsic Value - Current Price) / Intrinsic Value

  Args:
    current_price: Current market price
    intrinsic_value: Estimated intrinsic value per share

  Returns:
    MarginOfSafetyResult. When either input is not positive, the margin
    is 0 and the status overvalued with high risk.
  """
  if intrinsic_value <= 0 or current_price <= 0:
    return MarginOfSafetyResult(
        margin_of_safety=0.0,
        current_price=current_price,
        intrinsic_value=intrinsic_value,
        status='overvalued',
        rating='invalid',
        recommendation=INVALID_RECOMMENDATION,
        risk_level='high',
    )

  margin = (intrinsic_value - current_price) / intrinsic_value

  rating, status, risk, recommendation = _SIGNIFICANTLY_OVERVALUED
  for lower, *band in _BANDS:
    if margin >= lower:
      rating, status, risk, recommendation = band
      break

  return MarginOfSafetyResult(
      margin_of_safety=margin,
      current_price=current_price,
      intrinsic_value=intrinsic_value,
      status=status,
      rating=rating,
      recommendation=recommendation,
      risk_level=risk,
  )


def calculate_combined_margin_of_safety(
    current_price: float,
    valuations: Mapping[str, Optional[float]],
) -> CombinedMarginOfSafety:
  """
  Combine several valuation methods conservatively.

  Valuations that are None or not positive are discarded. The effective
  intrinsic value is the lesser of the minimum and the mean of the rest,
  so the result is never more optimistic than the worst single estimate.

  Args:
    current_price: Current market price
    valuations: Method name to intrinsic value (None if not computable)

  Returns:
    CombinedMarginOfSafety. With no usable valuation the combined margin
    is -1 and the status overvalued.
  """
  individual = {}
  valid = []
  for method, value in valuations.items():
    if value is not None and value > 0:
      individual[method] = (value - current_price) / value
      valid.append(value)
    else:
      individual[method] = None

  if not valid:
    logger.debug('No usable valuations among %s', list(valuations))
    return CombinedMarginOfSafety(
        individual=individual,
        effective_intrinsic_value=0.0,
        minimum_intrinsic_value=0.0,
        mean_intrinsic_value=0.0,
        combined_margin_of_safety=-1.0,
        status='overvalued',
        recommendation=NO_VALUATION_RECOMMENDATION,
    )

  minimum = min(valid)
  mean = sum(valid) / len(valid)
  effective = min(minimum, mean)

  result = calculate_margin_of_safety(current_price, effective)

  return CombinedMarginOfSafety(
      individual=individual,
      effective_intrinsic_value=effective,
      minimum_intrinsic_value=minimum,
      mean_intrinsic_value=mean,
      combined_margin_of_safety=result.margin_of_safety,
      status=result.status,
      recommendation=result.recommendation,
  )


def calculate_target_price(intrinsic_value: float,
                           desired_margin: float = MARGIN_MINIMUM) -> float:
  """
  Maximum purchase price for a desired margin of safety.

  Args:
    intrinsic_value: Estimated intrinsic value
    desired_margin: Desired margin of safety (default 25%)

  Returns:
    intrinsic_value * (1 - desired_margin), or 0 when the value is not
    positive
  """
  if intrinsic_value <= 0:
    return 0.0
  return intrinsic_value * (1.0 - desired_margin)


def calculate_required_drop(
    current_price: float,
    intrinsic_value: float,
    required_margin: float = MARGIN_MINIMUM,
) -> RequiredDrop:
  """
  How far the price must fall to reach an adequate margin of safety.

  Args:
    current_price: Current market price
    intrinsic_value: Estimated intrinsic value
    required_margin: Required margin of safety (default 25%)

  Returns:
    RequiredDrop with the target price, fractional drop from the current
    price, and whether the price is already at or below target. A
    non-positive price gives a zero drop that is never adequate.
  """
  target_price = calculate_target_price(intrinsic_value, required_margin)
  if current_price <= 0:
    return RequiredDrop(target_price=target_price,
                        percent_drop=0.0,
                        is_already_adequate=False)
  return RequiredDrop(
      target_price=target_price,
      percent_drop=(current_price - target_price) / current_price,
      is_already_adequate=current_price <= target_price,
  )
