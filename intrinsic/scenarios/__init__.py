"""Analysis configuration and scenario presets."""

from intrinsic.scenarios.config import AnalysisConfig
from intrinsic.scenarios.config import get_scenario
from intrinsic.scenarios.config import SCENARIOS

__all__ = [
  'AnalysisConfig',
  'SCENARIOS',
  'get_scenario',
]
