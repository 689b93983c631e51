"""
Two-stage DCF engine.

Pure numeric functions: no I/O, no global state. Stage 1 projects free
cash flow with growth fading linearly to the terminal rate; stage 2 is a
Gordon Growth terminal value.

Key functions:
  calculate_dcf: Main entry point, intrinsic value per share
  project_fcf: Free cash flow projection for the explicit period
  compute_pv_explicit: PV of the explicit forecast period
  compute_terminal_value: Gordon growth terminal value and its PV
"""

import logging
from collections.abc import Sequence
from typing import List, Optional, Tuple

from intrinsic.domain.types import DCFAssumptions
from intrinsic.domain.types import DCFResult
from intrinsic.domain.types import StatementSeries
from intrinsic.policies.fade import linear_fade
from intrinsic.policies.growth import clamp_growth_rate
from intrinsic.policies.growth import estimate_growth_rate
from intrinsic.policies.terminal import safe_terminal_growth

logger = logging.getLogger(__name__)


def project_fcf(fcf0: float, growth_path: Sequence[float]) -> List[float]:
  """
  Compound free cash flow along a growth path.

  Args:
    fcf0: Starting free cash flow
    growth_path: Yearly growth rates [g1, g2, ..., gN]

  Returns:
    Projected free cash flow for years 1..N
  """
  projected = []
  fcf = fcf0
  for g in growth_path:
    fcf *= (1.0 + g)
    projected.append(fcf)
  return projected


def compute_pv_explicit(projected_fcf: Sequence[float],
                        discount_rate: float) -> float:
  """
  Compute present value of the explicit forecast period.

  Args:
    projected_fcf: Free cash flow for years 1..N
    discount_rate: Required return (r)

  Returns:
    Sum of each year's FCF discounted by (1 + r)^year
  """
  return sum(fcf / ((1.0 + discount_rate)**t)
             for t, fcf in enumerate(projected_fcf, start=1))


def compute_terminal_value(
    final_fcf: float,
    g_terminal: float,
    discount_rate: float,
    final_year: int,
) -> Tuple[float, float]:
  """
  Compute terminal value using the Gordon Growth Model.

  Args:
    final_fcf: FCF in the final explicit year
    g_terminal: Terminal (perpetual) growth rate, below discount_rate
    discount_rate: Required return (r)
    final_year: Number of years to discount back

  Returns:
    Tuple of (terminal_value, pv_of_terminal)
  """
  terminal_fcf = final_fcf * (1.0 + g_terminal)
  terminal_value = terminal_fcf / (discount_rate - g_terminal)
  pv_of_terminal = terminal_value / ((1.0 + discount_rate)**final_year)
  return terminal_value, pv_of_terminal


def _refused_result(
    discount_rate: float,
    terminal_growth_rate: float,
    projection_years: int,
) -> DCFResult:
  '''Result for a non-positive starting FCF: the model declines to value.'''
  return DCFResult(
      intrinsic_value=0.0,
      projected_fcf=(),
      terminal_value=0.0,
      pv_of_fcf=0.0,
      pv_of_terminal=0.0,
      enterprise_value=0.0,
      assumptions=DCFAssumptions(
          discount_rate=discount_rate,
          terminal_growth_rate=terminal_growth_rate,
          projection_years=projection_years,
          estimated_growth_rate=0.0,
          starting_fcf=0.0,
      ),
      diag={'error': 'non_positive_fcf'},
  )


def calculate_dcf(
    series: StatementSeries,
    discount_rate: float = 0.10,
    terminal_growth_rate: float = 0.03,
    projection_years: int = 10,
    growth_rate: Optional[float] = None,
) -> DCFResult:
  """
  Calculate DCF intrinsic value per share.

  Args:
    series: Annual statements, newest first
    discount_rate: Required return, validated to [0.01, 0.30]
    terminal_growth_rate: Perpetual growth, validated to [0, 0.10]
    projection_years: Explicit forecast years, validated to [5, 20]
    growth_rate: Override for the starting growth rate; estimated from
      history when None

  Returns:
    DCFResult. When the latest free cash flow is not positive, the model
    refuses: intrinsic value 0 and every other figure zeroed.

  Raises:
    ValueError: If projection_years < 1 or discount_rate <= -1
  """
  if projection_years < 1:
    raise ValueError(f'projection_years must be >= 1, got {projection_years}')
  if discount_rate <= -1:
    raise ValueError(f'discount_rate must be > -1, got {discount_rate}')

  latest = series.latest_cash_flow
  fcf0 = latest.free_cash_flow if latest else 0.0

  if fcf0 <= 0:
    logger.debug('%s: non-positive FCF (%.0f), DCF not applicable',
                 series.ticker, fcf0)
    return _refused_result(discount_rate, terminal_growth_rate,
                           projection_years)

  diag = {}
  if growth_rate is None:
    growth_result = estimate_growth_rate(series)
    diag.update({f'growth_{k}': v for k, v in growth_result.diag.items()})
    g0 = growth_result.value
  else:
    diag['growth_method'] = 'override'
    g0 = growth_rate
  g0 = clamp_growth_rate(g0)

  terminal_result = safe_terminal_growth(terminal_growth_rate, discount_rate)
  g_terminal = terminal_result.value
  diag.update({f'terminal_{k}': v for k, v in terminal_result.diag.items()})

  fade_result = linear_fade(g0, g_terminal, projection_years)
  projected = project_fcf(fcf0, fade_result.value)

  pv_of_fcf = compute_pv_explicit(projected, discount_rate)
  terminal_value, pv_of_terminal = compute_terminal_value(
      projected[-1], g_terminal, discount_rate, projection_years)
  enterprise_value = pv_of_fcf + pv_of_terminal

  balance = series.latest_balance
  net_debt = balance.total_debt - balance.cash if balance else 0.0
  equity_value = enterprise_value - net_debt

  income = series.latest_income
  shares = income.shares_outstanding if income else 0.0
  if shares and shares > 0:
    intrinsic_value = max(0.0, equity_value / shares)
  else:
    logger.debug('%s: no share count, intrinsic value set to 0',
                 series.ticker)
    diag['error'] = 'no_shares_outstanding'
    intrinsic_value = 0.0

  return DCFResult(
      intrinsic_value=intrinsic_value,
      projected_fcf=tuple(projected),
      terminal_value=terminal_value,
      pv_of_fcf=pv_of_fcf,
      pv_of_terminal=pv_of_terminal,
      enterprise_value=enterprise_value,
      net_debt=net_debt,
      equity_value=equity_value,
      shares_outstanding=shares or 0.0,
      assumptions=DCFAssumptions(
          discount_rate=discount_rate,
          terminal_growth_rate=g_terminal,
          projection_years=projection_years,
          estimated_growth_rate=g0,
          starting_fcf=fcf0,
      ),
      diag=diag,
  )
