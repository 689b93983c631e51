"""
Terminal growth policy.

Keeps the perpetual growth rate used in the Gordon Growth Model safely
below the discount rate.
"""

from intrinsic.domain.constants import TERMINAL_SPREAD
from intrinsic.domain.types import PolicyOutput


def safe_terminal_growth(g_terminal: float,
                         discount_rate: float) -> PolicyOutput[float]:
  """
  Cap terminal growth at one point below the discount rate.

  Args:
    g_terminal: Requested terminal growth rate
    discount_rate: Required return (r)

  Returns:
    PolicyOutput with min(g_terminal, discount_rate - 0.01)
  """
  ceiling = discount_rate - TERMINAL_SPREAD
  value = min(g_terminal, ceiling)
  return PolicyOutput(value=value,
                      diag={
                          'terminal_method': 'gordon',
                          'g_terminal_requested': g_terminal,
                          'g_terminal': value,
                          'clamped': value < g_terminal,
                      })
