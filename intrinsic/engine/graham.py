"""
Graham valuation methods.

Benjamin Graham's formulas from "The Intelligent Investor" and "Security
Analysis":
  - Graham Number: price ceiling for a defensive investor
  - Graham Growth Value: V = EPS x (8.5 + 2g) x 4.4 / Y
  - Defensive investor criteria (Chapter 14)
"""

import logging
import math
from typing import List, Optional

from intrinsic.domain.constants import DEFAULT_BOND_YIELD
from intrinsic.domain.constants import DEFENSIVE_MAX_PB
from intrinsic.domain.constants import DEFENSIVE_MAX_PE
from intrinsic.domain.constants import DEFENSIVE_MIN_CURRENT_RATIO
from intrinsic.domain.constants import DEFENSIVE_MIN_EPS_GROWTH
from intrinsic.domain.constants import DEFENSIVE_MIN_MARKET_CAP
from intrinsic.domain.constants import GRAHAM_BASE_YIELD
from intrinsic.domain.constants import GRAHAM_MULTIPLIER
from intrinsic.domain.constants import GRAHAM_NO_GROWTH_PE
from intrinsic.domain.constants import MAINTENANCE_CAPEX_SHARE
from intrinsic.domain.constants import MAX_LOOKBACK_YEARS
from intrinsic.domain.constants import MIN_GROWTH_HISTORY
from intrinsic.domain.types import DefensiveCriterion
from intrinsic.domain.types import GrahamResult
from intrinsic.domain.types import Quote
from intrinsic.domain.types import StatementSeries
from intrinsic.engine.ratios import lookback_cagr

logger = logging.getLogger(__name__)


def graham_number(eps: float, book_value_per_share: float) -> float:
  """
  Calculate the Graham Number.

  22.5 is the product of Graham's P/E ceiling (15) and P/B ceiling (1.5).

  Args:
    eps: Earnings per share
    book_value_per_share: Book value per share

  Returns:
    sqrt(22.5 * EPS * BVPS), or 0 when either input is not positive
  """
  if eps <= 0 or book_value_per_share <= 0:
    return 0.0
  return math.sqrt(GRAHAM_MULTIPLIER * eps * book_value_per_share)


def graham_growth_value(eps: float, growth_rate: float,
                        bond_yield: float) -> Optional[float]:
  """
  Calculate Graham's growth formula value.

  V = EPS x (8.5 + 2g) x 4.4 / Y, with g and Y in whole percent. 8.5 is
  the P/E of a no-growth company and 4.4 the AAA yield of 1962.

  Args:
    eps: Earnings per share
    growth_rate: Expected growth rate (0.10 for 10%)
    bond_yield: Current AAA or Treasury yield (0.04 for 4%)

  Returns:
    Value floored at 0, or None when EPS or the bond yield is not positive
  """
  if eps <= 0 or bond_yield <= 0:
    return None
  g = growth_rate * 100
  value = eps * (GRAHAM_NO_GROWTH_PE + 2 * g) * GRAHAM_BASE_YIELD / (
      bond_yield * 100)
  return max(0.0, value)


def _book_value_per_share(series: StatementSeries) -> float:
  balance = series.latest_balance
  if balance is None:
    return 0.0
  if balance.book_value_per_share is not None:
    return balance.book_value_per_share
  income = series.latest_income
  if income is not None and income.shares_outstanding > 0:
    return balance.total_equity / income.shares_outstanding
  return 0.0


def historical_eps_growth(series: StatementSeries) -> Optional[float]:
  '''EPS CAGR over up to five years; None with under three years.'''
  return lookback_cagr([s.eps for s in series.income_statements],
                       min_history=MIN_GROWTH_HISTORY)


def evaluate_defensive_criteria(series: StatementSeries,
                                quote: Quote) -> List[DefensiveCriterion]:
  """
  Evaluate Graham's seven defensive investor criteria.

  1. Adequate size (market cap >= $500M)
  2. Strong financial condition (current ratio >= 2)
  3. Earnings stability (positive earnings every available year, up to 5)
  4. Dividend record (currently pays a dividend)
  5. Earnings growth (EPS up at least 33% over the lookback window)
  6. Moderate P/E (<= 15)
  7. Moderate P/B (<= 1.5, or P/E x P/B <= 22.5)

  Args:
    series: Annual statements, newest first
    quote: Current quote

  Returns:
    One DefensiveCriterion per check, in the order above
  """
  criteria = []
  statements = series.income_statements
  n_years = len(statements)

  criteria.append(
      DefensiveCriterion(
          criterion='Adequate Size',
          passed=quote.market_cap >= DEFENSIVE_MIN_MARKET_CAP,
          detail=(f'Market cap: ${quote.market_cap / 1e9:.2f}B '
                  '(minimum: $500M)'),
      ))

  balance = series.latest_balance
  current_ratio = 0.0
  if balance is not None:
    current_ratio = balance.current_assets / (balance.current_liabilities or 1)
  criteria.append(
      DefensiveCriterion(
          criterion='Strong Financial Condition',
          passed=current_ratio >= DEFENSIVE_MIN_CURRENT_RATIO,
          detail=f'Current ratio: {current_ratio:.2f} (minimum: 2.0)',
      ))

  positive_years = sum(1 for s in statements if s.net_income > 0)
  criteria.append(
      DefensiveCriterion(
          criterion='Earnings Stability',
          passed=positive_years >= min(n_years, MAX_LOOKBACK_YEARS),
          detail=f'Positive earnings: {positive_years} of {n_years} years',
      ))

  pays_dividend = quote.dividend_yield is not None and quote.dividend_yield > 0
  criteria.append(
      DefensiveCriterion(
          criterion='Dividend Record',
          passed=pays_dividend,
          detail=(f'Dividend yield: {quote.dividend_yield * 100:.2f}%'
                  if pays_dividend else 'No dividend'),
      ))

  eps_growth = 0.0
  if n_years >= MIN_GROWTH_HISTORY:
    years = min(n_years - 1, MAX_LOOKBACK_YEARS)
    oldest_eps = statements[years].eps
    newest_eps = statements[0].eps
    if oldest_eps > 0 and newest_eps > 0:
      eps_growth = (newest_eps - oldest_eps) / oldest_eps
  criteria.append(
      DefensiveCriterion(
          criterion='Earnings Growth',
          passed=eps_growth >= DEFENSIVE_MIN_EPS_GROWTH,
          detail=(f'EPS growth ({n_years}yr): {eps_growth * 100:.1f}% '
                  '(target: 33%)'),
      ))

  pe = quote.pe or 0.0
  criteria.append(
      DefensiveCriterion(
          criterion='Moderate P/E Ratio',
          passed=0 < pe <= DEFENSIVE_MAX_PE,
          detail=f'P/E: {pe:.2f} (maximum: 15)',
      ))

  pb = quote.pb or 0.0
  pe_pb = pe * pb
  passes_pb = (0 < pb <= DEFENSIVE_MAX_PB) or (0 < pe_pb <= GRAHAM_MULTIPLIER)
  criteria.append(
      DefensiveCriterion(
          criterion='Moderate Price to Assets',
          passed=passes_pb,
          detail=(f'P/B: {pb:.2f}, P/E x P/B: {pe_pb:.2f} '
                  '(max P/B: 1.5 or product: 22.5)'),
      ))

  return criteria


def calculate_graham_valuation(
    series: StatementSeries,
    quote: Quote,
    bond_yield: float = DEFAULT_BOND_YIELD,
) -> GrahamResult:
  """
  Calculate the full Graham valuation.

  The growth formula is only applied when historical EPS growth is
  defined and positive; flat or declining earners get None.

  Args:
    series: Annual statements, newest first
    quote: Current quote
    bond_yield: Current bond yield (default 4%)

  Returns:
    GrahamResult with both values, inputs and defensive criteria
  """
  income = series.latest_income
  eps = income.eps if income else 0.0
  bvps = _book_value_per_share(series)

  number = graham_number(eps, bvps)

  growth_rate = historical_eps_growth(series)
  growth_value = None
  if growth_rate is not None and growth_rate > 0:
    growth_value = graham_growth_value(eps, growth_rate, bond_yield)
  else:
    logger.debug('%s: EPS growth %s, growth formula not applied',
                 series.ticker, growth_rate)

  criteria = evaluate_defensive_criteria(series, quote)

  return GrahamResult(
      graham_number=number,
      graham_growth_value=growth_value,
      eps=eps,
      book_value_per_share=bvps,
      growth_rate=growth_rate,
      bond_yield=bond_yield,
      passes_defensive_criteria=all(c.passed for c in criteria),
      defensive_criteria=tuple(criteria),
  )


def calculate_owner_earnings(series: StatementSeries) -> float:
  """
  Estimate Buffett's owner earnings.

  Owner Earnings = Net Income + Depreciation - Maintenance CapEx, with
  maintenance capex taken as 70% of total capex.

  Args:
    series: Annual statements, newest first

  Returns:
    Owner earnings for the latest year, 0 when statements are missing
  """
  income = series.latest_income
  cash_flow = series.latest_cash_flow
  if income is None or cash_flow is None:
    return 0.0
  maintenance_capex = cash_flow.capex * MAINTENANCE_CAPEX_SHARE
  return income.net_income + cash_flow.depreciation - maintenance_capex
