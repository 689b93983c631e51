"""
Financial ratio calculations.

Pure functions deriving a Ratios snapshot from a statement series and an
optional quote. Values that cannot be computed are None, never zero.

Key functions:
  calculate_cagr: Compound annual growth rate
  calculate_financial_ratios: Ratio snapshot for the latest fiscal year
  evaluate_profitability: Score profitability ratios
  evaluate_safety: Score liquidity and solvency ratios
"""

import logging
from typing import Optional, Sequence

from intrinsic.domain.constants import DEFAULT_TAX_RATE
from intrinsic.domain.constants import MAX_LOOKBACK_YEARS
from intrinsic.domain.constants import MAX_TAX_RATE
from intrinsic.domain.types import QualityAssessment
from intrinsic.domain.types import Quote
from intrinsic.domain.types import Ratios
from intrinsic.domain.types import StatementSeries

logger = logging.getLogger(__name__)


def calculate_cagr(start_value: float, end_value: float,
                   years: float) -> Optional[float]:
  """
  Compute Compound Annual Growth Rate.

  Args:
    start_value: Initial value
    end_value: Final value
    years: Number of years between the two values

  Returns:
    CAGR as a decimal (0.10 = 10%), or None unless both values and the
    number of years are strictly positive
  """
  if start_value is None or end_value is None:
    return None
  if start_value <= 0 or end_value <= 0 or years <= 0:
    return None
  return (end_value / start_value)**(1.0 / years) - 1.0


def lookback_cagr(values: Sequence[Optional[float]],
                  min_history: int = 2) -> Optional[float]:
  """
  CAGR between the latest value and the one up to five years earlier.

  Args:
    values: History ordered newest first
    min_history: Minimum number of values required

  Returns:
    CAGR over min(len - 1, 5) years, or None when the history is too
    short or either endpoint is not positive
  """
  if len(values) < max(min_history, 2):
    return None
  years = min(len(values) - 1, MAX_LOOKBACK_YEARS)
  return calculate_cagr(values[years], values[0], years)


def _ratio(numerator: float, denominator: Optional[float]) -> float:
  if denominator is None or denominator <= 0:
    return 0.0
  return numerator / denominator


def estimate_tax_rate(net_income: float, operating_income: float) -> float:
  '''Effective tax rate implied by net vs operating income, in [0, 0.5].'''
  if net_income > 0 and operating_income > 0:
    rate = 1.0 - net_income / operating_income
  else:
    rate = DEFAULT_TAX_RATE
  return max(0.0, min(rate, MAX_TAX_RATE))


def calculate_financial_ratios(series: StatementSeries,
                               quote: Optional[Quote] = None) -> Ratios:
  """
  Calculate all financial ratios from financial statements.

  Args:
    series: Annual statements, newest first
    quote: Optional quote for market-based ratios

  Returns:
    Ratios for the most recent fiscal year. When the latest income,
    balance or cash-flow statement is missing, Ratios.empty().
  """
  income = series.latest_income
  balance = series.latest_balance
  cash_flow = series.latest_cash_flow

  if income is None or balance is None or cash_flow is None:
    logger.debug('%s: incomplete latest statements, using empty ratios',
                 series.ticker)
    return Ratios.empty()

  fcf = cash_flow.free_cash_flow

  gross_margin = _ratio(income.gross_profit, income.revenue)
  operating_margin = _ratio(income.operating_income, income.revenue)
  net_margin = _ratio(income.net_income, income.revenue)
  roe = _ratio(income.net_income, balance.total_equity)
  roa = _ratio(income.net_income, balance.total_assets)

  tax_rate = estimate_tax_rate(income.net_income, income.operating_income)
  nopat = income.operating_income * (1.0 - tax_rate)
  invested_capital = balance.total_equity + balance.total_debt - balance.cash
  roic = nopat / invested_capital if invested_capital > 0 else None

  inventory = balance.inventory or 0.0
  current_ratio = _ratio(balance.current_assets, balance.current_liabilities)
  quick_ratio = _ratio(balance.current_assets - inventory,
                       balance.current_liabilities)
  debt_to_equity = _ratio(balance.total_debt, balance.total_equity)
  debt_to_assets = _ratio(balance.total_debt, balance.total_assets)

  interest_coverage = None
  if income.interest_expense and income.interest_expense > 0:
    interest_coverage = income.operating_income / income.interest_expense

  net_debt = balance.total_debt - balance.cash
  net_debt_to_ebitda = net_debt / income.ebitda if income.ebitda > 0 else None

  market_cap = quote.market_cap if quote and quote.market_cap > 0 else None
  fcf_yield = fcf / market_cap if market_cap else None
  cash_conversion = fcf / income.net_income if income.net_income > 0 else None
  capex_to_depreciation = None
  if cash_flow.depreciation > 0:
    capex_to_depreciation = cash_flow.capex / cash_flow.depreciation

  revenue_growth = lookback_cagr([s.revenue for s in series.income_statements])
  eps_growth = lookback_cagr([s.eps for s in series.income_statements])
  fcf_growth = lookback_cagr(
      [s.free_cash_flow for s in series.cash_flow_statements])

  pe = quote.pe if quote else None
  pb = quote.pb if quote else None
  ps = quote.ps if quote else None

  peg = None
  if pe and eps_growth is not None and eps_growth > 0:
    peg = pe / (eps_growth * 100)

  ev_to_ebitda = None
  if market_cap and income.ebitda > 0:
    ev_to_ebitda = (market_cap + net_debt) / income.ebitda

  price_to_fcf = market_cap / fcf if market_cap and fcf > 0 else None

  return Ratios(
      pe=pe,
      pb=pb,
      ps=ps,
      peg=peg,
      ev_to_ebitda=ev_to_ebitda,
      price_to_fcf=price_to_fcf,
      gross_margin=gross_margin,
      operating_margin=operating_margin,
      net_margin=net_margin,
      roe=roe,
      roa=roa,
      roic=roic,
      current_ratio=current_ratio,
      quick_ratio=quick_ratio,
      debt_to_equity=debt_to_equity,
      debt_to_assets=debt_to_assets,
      interest_coverage=interest_coverage,
      net_debt_to_ebitda=net_debt_to_ebitda,
      fcf_yield=fcf_yield,
      cash_conversion=cash_conversion,
      capex_to_depreciation=capex_to_depreciation,
      revenue_growth_5y=revenue_growth,
      eps_growth_5y=eps_growth,
      fcf_growth_5y=fcf_growth,
      # Needs a dividend-per-share history
      dividend_growth_5y=None,
  )


def evaluate_profitability(ratios: Ratios) -> QualityAssessment:
  """
  Score profitability quality.

  ROE above 15% sustained over years, gross margin above 40% and a high
  ROIC point to a competitive advantage.

  Args:
    ratios: Ratio snapshot

  Returns:
    QualityAssessment with an integer score and supporting details
  """
  details = []
  score = 0

  if ratios.roe >= 0.20:
    score += 2
    details.append('Excellent ROE (>20%)')
  elif ratios.roe >= 0.15:
    score += 1
    details.append('Good ROE (15-20%)')
  elif ratios.roe >= 0.10:
    details.append('Adequate ROE (10-15%)')
  else:
    score -= 1
    details.append('Low ROE (<10%)')

  if ratios.gross_margin >= 0.40:
    score += 2
    details.append('Strong gross margin (>40%) - indicates pricing power')
  elif ratios.gross_margin >= 0.25:
    score += 1
    details.append('Moderate gross margin (25-40%)')
  else:
    details.append('Low gross margin (<25%) - commodity-like business')

  if ratios.operating_margin >= 0.20:
    score += 1
    details.append('Excellent operating margin (>20%)')
  elif ratios.operating_margin >= 0.10:
    details.append('Good operating margin (10-20%)')
  else:
    score -= 1
    details.append('Low operating margin (<10%)')

  if ratios.roic is not None:
    if ratios.roic >= 0.15:
      score += 1
      details.append('High ROIC (>15%) - efficient capital allocation')
    elif ratios.roic >= 0.10:
      details.append('Adequate ROIC (10-15%)')
    else:
      details.append('Low ROIC (<10%) - poor capital efficiency')

  if score >= 4:
    assessment = 'Excellent profitability - strong competitive advantage'
  elif score >= 2:
    assessment = 'Good profitability'
  elif score >= 0:
    assessment = 'Average profitability'
  else:
    assessment = 'Weak profitability - no clear competitive advantage'

  return QualityAssessment(score=score,
                           assessment=assessment,
                           details=tuple(details))


def evaluate_safety(ratios: Ratios) -> QualityAssessment:
  """
  Score financial safety along Graham's defensive lines.

  Args:
    ratios: Ratio snapshot

  Returns:
    QualityAssessment with an integer score and supporting details
  """
  details = []
  score = 0

  if ratios.current_ratio >= 2.0:
    score += 2
    details.append('Strong current ratio (>2.0) - excellent liquidity')
  elif ratios.current_ratio >= 1.5:
    score += 1
    details.append('Good current ratio (1.5-2.0)')
  elif ratios.current_ratio >= 1.0:
    details.append('Adequate current ratio (1.0-1.5)')
  else:
    score -= 2
    details.append('Weak current ratio (<1.0) - liquidity risk')

  if ratios.debt_to_equity < 0.5:
    score += 2
    details.append('Low debt to equity (<0.5) - conservative capital structure')
  elif ratios.debt_to_equity < 1.0:
    score += 1
    details.append('Moderate debt to equity (0.5-1.0)')
  elif ratios.debt_to_equity < 2.0:
    details.append('High debt to equity (1.0-2.0)')
  else:
    score -= 2
    details.append('Very high debt to equity (>2.0) - financial risk')

  if ratios.interest_coverage is not None:
    if ratios.interest_coverage >= 10:
      score += 1
      details.append('Excellent interest coverage (>10x)')
    elif ratios.interest_coverage >= 5:
      details.append('Good interest coverage (5-10x)')
    elif ratios.interest_coverage >= 2:
      score -= 1
      details.append('Low interest coverage (2-5x)')
    else:
      score -= 2
      details.append('Critical interest coverage (<2x)')

  if ratios.debt_to_assets < 0.30:
    score += 1
    details.append('Low debt to assets (<30%)')
  elif ratios.debt_to_assets > 0.50:
    score -= 1
    details.append('High debt to assets (>50%)')

  if score >= 4:
    assessment = 'Excellent financial safety - fortress balance sheet'
  elif score >= 2:
    assessment = 'Good financial safety'
  elif score >= 0:
    assessment = 'Adequate financial safety'
  else:
    assessment = 'Concerning financial safety - high risk'

  return QualityAssessment(score=score,
                           assessment=assessment,
                           details=tuple(details))
