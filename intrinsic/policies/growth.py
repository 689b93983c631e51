'''
Growth rate estimation policy.

Estimates the starting growth rate (g0) of the DCF model from historical
free cash flow, revenue and EPS growth.
'''

import logging
from typing import Dict, List, Optional

from intrinsic.domain.constants import DEFAULT_GROWTH_RATE
from intrinsic.domain.constants import GROWTH_CLAMP_MAX
from intrinsic.domain.constants import GROWTH_CLAMP_MIN
from intrinsic.domain.constants import GROWTH_HAIRCUT
from intrinsic.domain.constants import MIN_GROWTH_HISTORY
from intrinsic.domain.types import PolicyOutput
from intrinsic.domain.types import StatementSeries
from intrinsic.engine.ratios import lookback_cagr

logger = logging.getLogger(__name__)


def clamp_growth_rate(growth_rate: float) -> float:
  '''Clip a growth rate to [-10%, 25%].'''
  return max(GROWTH_CLAMP_MIN, min(growth_rate, GROWTH_CLAMP_MAX))


def historical_growth_candidates(
    series: StatementSeries) -> Dict[str, Optional[float]]:
  '''
  Compute FCF, revenue and EPS CAGR independently.

  Each metric needs at least three years of history and positive start
  and end values; otherwise its entry is None.

  Args:
    series: Annual statements, newest first

  Returns:
    Mapping of metric name to CAGR (or None)
  '''
  return {
      'fcf':
          lookback_cagr([s.free_cash_flow for s in series.cash_flow_statements],
                        min_history=MIN_GROWTH_HISTORY),
      'revenue':
          lookback_cagr([s.revenue for s in series.income_statements],
                        min_history=MIN_GROWTH_HISTORY),
      'eps':
          lookback_cagr([s.eps for s in series.income_statements],
                        min_history=MIN_GROWTH_HISTORY),
  }


def estimate_growth_rate(series: StatementSeries) -> PolicyOutput[float]:
  '''
  Estimate a conservative starting growth rate from history.

  Takes the median of the available FCF, revenue and EPS CAGRs (the
  upper-middle value when there are two), cuts it by 20%, and falls back
  to 5% when no metric has usable history. The result is not clamped;
  see clamp_growth_rate.

  Args:
    series: Annual statements, newest first

  Returns:
    PolicyOutput with the estimated growth rate and diagnostics
  '''
  candidates = historical_growth_candidates(series)
  rates: List[float] = sorted(g for g in candidates.values() if g is not None)

  if not rates:
    logger.debug('%s: no usable growth history, defaulting to %.1f%%',
                 series.ticker, DEFAULT_GROWTH_RATE * 100)
    return PolicyOutput(value=DEFAULT_GROWTH_RATE,
                        diag={
                            'growth_method': 'default',
                            'candidates': candidates,
                        })

  median = rates[len(rates) // 2]
  estimate = median * GROWTH_HAIRCUT

  return PolicyOutput(value=estimate,
                      diag={
                          'growth_method': 'median_cagr',
                          'candidates': candidates,
                          'median': median,
                          'haircut': GROWTH_HAIRCUT,
                      })
