"""
Economic moat analysis.

Scores five kinds of competitive advantage, each in [1, 5]:
  1. Brand power (intangible assets)
  2. Cost advantage
  3. Network effect
  4. Switching costs
  5. Economies of scale

The overall score is the strongest single dimension, not an average: one
durable advantage is enough to protect returns on capital.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from intrinsic.domain.constants import MOAT_NARROW
from intrinsic.domain.constants import MOAT_SCORE_MAX
from intrinsic.domain.constants import MOAT_SCORE_MIN
from intrinsic.domain.constants import MOAT_WIDE
from intrinsic.domain.types import CompanyProfile
from intrinsic.domain.types import Durability
from intrinsic.domain.types import MoatAnalysis
from intrinsic.domain.types import MoatDimension
from intrinsic.domain.types import MoatDimensions
from intrinsic.domain.types import MoatRating
from intrinsic.domain.types import Quote
from intrinsic.domain.types import Ratios
from intrinsic.domain.types import StatementSeries
from intrinsic.engine.ratios import calculate_financial_ratios

logger = logging.getLogger(__name__)


def calculate_stability(values: Sequence[float]) -> float:
  """
  Stability score in [0, 1], higher means more consistent.

  1 - coefficient of variation (population standard deviation over the
  absolute mean), clipped to [0, 1].

  Args:
    values: Observations in any order

  Returns:
    Stability score; 1 with fewer than two values or a zero mean
  """
  arr = np.asarray(values, dtype=float)
  if arr.size < 2:
    return 1.0
  mean = arr.mean()
  if mean == 0:
    return 1.0
  cv = arr.std() / abs(mean)
  return float(np.clip(1.0 - cv, 0.0, 1.0))


def _clamp_score(score: float) -> float:
  return max(MOAT_SCORE_MIN, min(MOAT_SCORE_MAX, score))


def _margin_history(series: StatementSeries, column: str) -> List[float]:
  '''Per-year margin of an income column over revenue, newest first.'''
  frame = series.income_frame()
  if frame.empty:
    return []
  revenue = frame['revenue'].astype(float)
  margins = (frame[column].astype(float) / revenue).where(revenue > 0, 0.0)
  return margins.tolist()


def analyze_brand_power(series: StatementSeries,
                        ratios: Ratios) -> MoatDimension:
  """
  Analyze brand power from gross margin level and stability.

  High and steady gross margins signal pricing power.
  """
  evidence = []
  score = 1.0
  gross_margin = ratios.gross_margin

  if gross_margin >= 0.60:
    score += 2
    evidence.append(f'Exceptional gross margin ({gross_margin:.1%}) '
                    'indicates strong pricing power')
  elif gross_margin >= 0.40:
    score += 1.5
    evidence.append(f'Strong gross margin ({gross_margin:.1%}) '
                    'suggests brand value')
  elif gross_margin >= 0.25:
    score += 0.5
    evidence.append(f'Moderate gross margin ({gross_margin:.1%})')
  else:
    evidence.append(f'Low gross margin ({gross_margin:.1%}) '
                    'suggests commodity-like products')

  stability = calculate_stability(_margin_history(series, 'gross_profit'))

  if stability >= 0.9:
    score += 1
    evidence.append('Very stable gross margins over time')
  elif stability >= 0.7:
    score += 0.5
    evidence.append('Reasonably stable gross margins')
  else:
    evidence.append('Volatile gross margins suggest weak pricing power')

  return MoatDimension(score=_clamp_score(score),
                       evidence=tuple(evidence),
                       metrics={
                           'gross_margin': gross_margin,
                           'gross_margin_stability': stability,
                       })


def analyze_cost_advantage(series: StatementSeries,
                           ratios: Ratios) -> MoatDimension:
  """
  Analyze cost advantage from operating margin level and trend.

  The trend compares the latest to the oldest operating margin, relative
  to the oldest; it needs at least three years.
  """
  evidence = []
  score = 1.0
  op_margin = ratios.operating_margin

  if op_margin >= 0.30:
    score += 2
    evidence.append(f'Exceptional operating margin ({op_margin:.1%})')
  elif op_margin >= 0.20:
    score += 1.5
    evidence.append(f'Strong operating margin ({op_margin:.1%})')
  elif op_margin >= 0.10:
    score += 0.5
    evidence.append(f'Adequate operating margin ({op_margin:.1%})')
  else:
    evidence.append(f'Low operating margin ({op_margin:.1%}) '
                    'indicates no cost advantage')

  op_margins = _margin_history(series, 'operating_income')
  trend = None
  if len(op_margins) >= 3:
    oldest = op_margins[-1]
    trend = (op_margins[0] - oldest) / abs(oldest or 1)

    if trend > 0.1:
      score += 1
      evidence.append('Operating margins improving over time')
    elif trend > 0:
      score += 0.5
      evidence.append('Operating margins stable to slightly improving')
    elif trend < -0.1:
      score -= 0.5
      evidence.append(
          'Operating margins declining - cost advantage may be eroding')

  return MoatDimension(score=_clamp_score(score),
                       evidence=tuple(evidence),
                       metrics={
                           'operating_margin': op_margin,
                           'operating_margin_trend': trend,
                           # Needs industry data
                           'operating_margin_vs_industry': None,
                       })


def analyze_network_effect(series: StatementSeries,
                           ratios: Ratios) -> MoatDimension:
  """
  Analyze network effect from revenue growth and margins scaling with it.
  """
  evidence = []
  score = 1.0
  revenue_growth = ratios.revenue_growth_5y

  if revenue_growth is not None:
    if revenue_growth >= 0.20:
      score += 2
      evidence.append(f'Strong revenue growth ({revenue_growth:.1%} CAGR) '
                      'may indicate network effects')
    elif revenue_growth >= 0.10:
      score += 1
      evidence.append(f'Good revenue growth ({revenue_growth:.1%} CAGR)')
    elif revenue_growth >= 0.05:
      score += 0.5
      evidence.append(f'Moderate revenue growth ({revenue_growth:.1%} CAGR)')
    else:
      evidence.append(f'Slow revenue growth ({revenue_growth:.1%} CAGR) '
                      '- limited network effects')

  revenues = [s.revenue for s in series.income_statements]
  net_margins = _margin_history(series, 'net_income')

  if len(revenues) >= 3:
    revenue_grew = revenues[0] > revenues[-1]
    margins_improved = net_margins[0] > net_margins[-1]
    if revenue_grew and margins_improved:
      score += 1
      evidence.append('Margins improving with scale - possible network effect')

  return MoatDimension(score=_clamp_score(score),
                       evidence=tuple(evidence),
                       metrics={
                           'revenue_growth': revenue_growth,
                           'user_growth': None,
                       })


def analyze_switching_costs(series: StatementSeries,
                            ratios: Ratios) -> MoatDimension:
  """
  Analyze switching costs from revenue stability and consistency.
  """
  evidence = []
  score = 1.0

  revenues = pd.Series([s.revenue for s in series.income_statements],
                       dtype=float)
  stability = calculate_stability(revenues.tolist())

  if stability >= 0.95:
    score += 2
    evidence.append('Very stable revenue base suggests high customer retention')
  elif stability >= 0.85:
    score += 1
    evidence.append('Stable revenue indicates moderate switching costs')
  elif stability >= 0.70:
    score += 0.5
    evidence.append('Moderately stable revenue')
  else:
    evidence.append('Volatile revenue suggests low switching costs')

  # Newest first, so a non-increasing sequence is non-decreasing revenue
  never_declined = bool(revenues.is_monotonic_decreasing)
  if never_declined and len(revenues) >= 3:
    score += 1
    evidence.append('Consistent revenue growth indicates customer stickiness')

  if ratios.gross_margin >= 0.50:
    score += 0.5
    evidence.append('High margins may indicate customer lock-in')

  return MoatDimension(score=_clamp_score(score),
                       evidence=tuple(evidence),
                       metrics={
                           'revenue_stability': stability,
                           'customer_retention': None,
                       })


def analyze_scale_economies(
    series: StatementSeries,
    quote: Quote,
    profile: Optional[CompanyProfile] = None,
) -> MoatDimension:
  """
  Analyze economies of scale from market cap and revenue per employee.
  """
  evidence = []
  score = 1.0
  market_cap = quote.market_cap

  if market_cap >= 200e9:
    score += 2
    evidence.append('Mega-cap company with significant scale advantages')
  elif market_cap >= 50e9:
    score += 1.5
    evidence.append('Large-cap company with scale benefits')
  elif market_cap >= 10e9:
    score += 0.5
    evidence.append('Mid-cap company with some scale advantages')
  else:
    evidence.append('Smaller company - limited scale advantages')

  latest = series.latest_income
  latest_revenue = latest.revenue if latest else 0.0
  employees = profile.employees if profile else None
  revenue_per_employee = None

  if employees and employees > 0:
    revenue_per_employee = latest_revenue / employees
    per_employee_k = revenue_per_employee / 1000
    if revenue_per_employee >= 1_000_000:
      score += 1.5
      evidence.append(f'High revenue per employee (${per_employee_k:.0f}K) '
                      'indicates efficiency')
    elif revenue_per_employee >= 500_000:
      score += 0.5
      evidence.append(f'Good revenue per employee (${per_employee_k:.0f}K)')
    else:
      evidence.append(f'Lower revenue per employee (${per_employee_k:.0f}K)')

  return MoatDimension(score=_clamp_score(score),
                       evidence=tuple(evidence),
                       metrics={
                           'market_cap': market_cap,
                           'revenue_per_employee': revenue_per_employee,
                       })


def moat_rating(overall_score: float) -> MoatRating:
  """Map an overall score to 'wide', 'narrow' or 'none'."""
  if overall_score >= MOAT_WIDE:
    return 'wide'
  if overall_score >= MOAT_NARROW:
    return 'narrow'
  return 'none'


def analyze_durability(series: StatementSeries,
                       overall_score: float) -> Durability:
  """
  Assess how durable the moat is.

  Starts from the overall moat score and adjusts for ROE consistency and
  free cash flow consistency.

  Args:
    series: Annual statements, newest first
    overall_score: Overall moat score

  Returns:
    Durability with score clamped to [1, 5]
  """
  factors = []
  score = overall_score

  roe_values = [
      income.net_income / (balance.total_equity or 1)
      for income, balance in zip(series.income_statements,
                                 series.balance_sheets)
  ]
  roe_stability = calculate_stability(roe_values)
  avg_roe = float(np.mean(roe_values)) if roe_values else 0.0

  if avg_roe >= 0.15 and roe_stability >= 0.8:
    score += 1
    factors.append('Consistently high ROE indicates durable advantage')
  elif avg_roe >= 0.10 and roe_stability >= 0.6:
    factors.append('Moderately consistent ROE')
  else:
    score -= 0.5
    factors.append('Inconsistent ROE raises durability concerns')

  fcf_values = [s.free_cash_flow for s in series.cash_flow_statements]
  positive_years = sum(1 for fcf in fcf_values if fcf > 0)

  if positive_years == len(fcf_values) and len(fcf_values) >= 3:
    score += 0.5
    factors.append('Consistently positive free cash flow')
  elif positive_years >= len(fcf_values) * 0.8:
    factors.append('Generally positive free cash flow')
  else:
    score -= 0.5
    factors.append('Inconsistent free cash flow')

  score = _clamp_score(score)

  if score >= MOAT_WIDE:
    assessment = 'strong'
    factors.append('Moat appears sustainable long-term')
  elif score >= MOAT_NARROW:
    assessment = 'moderate'
    factors.append('Moat durability is uncertain')
  else:
    assessment = 'weak'
    factors.append('Competitive advantages may be temporary')

  return Durability(score=score, assessment=assessment, factors=tuple(factors))


def analyze_moat(
    series: StatementSeries,
    quote: Quote,
    profile: Optional[CompanyProfile] = None,
    ratios: Optional[Ratios] = None,
) -> MoatAnalysis:
  """
  Analyze the economic moat.

  Args:
    series: Annual statements, newest first
    quote: Current quote
    profile: Company profile (employee count enables revenue/employee)
    ratios: Precomputed ratios; calculated from series and quote if None

  Returns:
    MoatAnalysis with per-dimension scores and durability
  """
  if ratios is None:
    ratios = calculate_financial_ratios(series, quote)

  dimensions = MoatDimensions(
      brand_power=analyze_brand_power(series, ratios),
      cost_advantage=analyze_cost_advantage(series, ratios),
      network_effect=analyze_network_effect(series, ratios),
      switching_costs=analyze_switching_costs(series, ratios),
      scale_economies=analyze_scale_economies(series, quote, profile),
  )

  overall_score = max(dimensions.scores())
  durability = analyze_durability(series, overall_score)

  logger.debug('%s: moat scores %s, overall %.1f', series.ticker,
               dimensions.scores(), overall_score)

  return MoatAnalysis(
      ticker=quote.ticker,
      company_name=quote.name or (profile.name if profile else ''),
      overall_score=overall_score,
      moat_rating=moat_rating(overall_score),
      dimensions=dimensions,
      durability=durability,
  )
