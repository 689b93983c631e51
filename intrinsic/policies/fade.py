'''
Growth fade policy.

Determines how growth transitions from the starting rate (g0) to the
terminal rate over the explicit forecast period.
'''

from typing import List

from intrinsic.domain.types import PolicyOutput


def linear_fade(
    g0: float,
    g_terminal: float,
    n_years: int,
) -> PolicyOutput[List[float]]:
  '''
  Linearly interpolate growth from g0 down to g_terminal.

  Year t (1..N) grows at g0 - (g0 - g_terminal) * t / N, so the final
  explicit year already grows at the terminal rate.

  Args:
    g0: Starting growth rate
    g_terminal: Terminal (perpetual) growth rate
    n_years: Number of explicit forecast years

  Returns:
    PolicyOutput with growth rates [g_year1, ..., g_yearN]
  '''
  if n_years < 1:
    return PolicyOutput(value=[], diag={'fade_method': 'linear'})

  growth_rates = [
      g0 - (g0 - g_terminal) * (t / n_years) for t in range(1, n_years + 1)
  ]

  return PolicyOutput(value=growth_rates,
                      diag={
                          'fade_method': 'linear',
                          'g0': g0,
                          'g_terminal': g_terminal,
                      })
