"""
DCF input policies.

Each policy estimates one input of the DCF model (starting growth, fade
schedule, terminal growth) and returns both a value and diagnostic
information as a PolicyOutput.
"""

from intrinsic.policies.fade import linear_fade
from intrinsic.policies.growth import estimate_growth_rate
from intrinsic.policies.terminal import safe_terminal_growth

__all__ = [
  'estimate_growth_rate',
  'linear_fade',
  'safe_terminal_growth',
]
