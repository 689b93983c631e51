"""
Analysis configuration for valuation runs.

AnalysisConfig is a serializable (JSON-friendly) set of assumptions. It is
validated at the boundary, before any engine sees it; the engines take the
individual values as plain arguments.
"""

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import replace
import json
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class AnalysisConfig:
  """
  Assumptions for a valuation scenario.

  Attributes:
    name: Human-readable scenario name
    discount_rate: DCF discount rate, in [0.01, 0.30]
    terminal_growth_rate: DCF perpetual growth, in [0, 0.10]
    projection_years: DCF explicit forecast years, integer in [5, 20]
    margin_of_safety_min: Required margin for target prices, in [0, 1]
    risk_free_rate: Bond yield for the Graham growth formula, in [0, 0.20]
    growth_rate: Optional DCF growth override, in [-0.50, 0.50]
  """
  name: str = 'default'
  discount_rate: float = 0.10
  terminal_growth_rate: float = 0.03
  projection_years: int = 10
  margin_of_safety_min: float = 0.25
  risk_free_rate: float = 0.04
  growth_rate: Optional[float] = None

  @classmethod
  def default(cls) -> 'AnalysisConfig':
    """
    Create default configuration.

    Uses:
      - 10% discount rate
      - 3% terminal growth
      - 10-year forecast
      - 25% required margin of safety
      - 4% bond yield
    """
    return cls()

  @classmethod
  def conservative(cls) -> 'AnalysisConfig':
    """Higher hurdle rate, lower terminal growth, wider margin."""
    return cls(
        name='conservative',
        discount_rate=0.12,
        terminal_growth_rate=0.02,
        projection_years=10,
        margin_of_safety_min=0.35,
        risk_free_rate=0.045,
    )

  @classmethod
  def aggressive(cls) -> 'AnalysisConfig':
    """Lower hurdle rate and longer explicit period."""
    return cls(
        name='aggressive',
        discount_rate=0.08,
        terminal_growth_rate=0.03,
        projection_years=15,
        margin_of_safety_min=0.20,
        risk_free_rate=0.04,
    )

  def with_overrides(self, **overrides: Any) -> 'AnalysisConfig':
    """Copy with the given fields replaced; None values are ignored."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    return replace(self, **changes)

  def errors(self) -> List[str]:
    """List every out-of-range field; empty when the config is valid."""
    problems = []

    def check(field_name: str, value: Optional[float], low: float,
              high: float) -> None:
      if value is None:
        return
      if not low <= value <= high:
        problems.append(
            f'{field_name}={value} outside [{low}, {high}]')

    check('discount_rate', self.discount_rate, 0.01, 0.30)
    check('terminal_growth_rate', self.terminal_growth_rate, 0.0, 0.10)
    check('margin_of_safety_min', self.margin_of_safety_min, 0.0, 1.0)
    check('risk_free_rate', self.risk_free_rate, 0.0, 0.20)
    check('growth_rate', self.growth_rate, -0.50, 0.50)

    if (isinstance(self.projection_years, bool) or
        not isinstance(self.projection_years, int)):
      problems.append(
          f'projection_years={self.projection_years!r} must be an integer')
    else:
      check('projection_years', self.projection_years, 5, 20)

    return problems

  def validate(self) -> 'AnalysisConfig':
    """
    Validate ranges.

    Returns:
      self, for chaining

    Raises:
      ValueError: If any field is out of range
    """
    problems = self.errors()
    if problems:
      raise ValueError(
          f"Invalid analysis config '{self.name}': " + '; '.join(problems))
    return self

  def to_dict(self) -> Dict[str, Any]:
    """Convert to dictionary."""
    return asdict(self)

  def to_json(self) -> str:
    """Serialize to JSON string."""
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
    """Create from dictionary."""
    return cls(**data)

  @classmethod
  def from_json(cls, json_str: str) -> 'AnalysisConfig':
    """Create from JSON string."""
    return cls.from_dict(json.loads(json_str))


SCENARIOS: Dict[str, Callable[[], AnalysisConfig]] = {
    'default': AnalysisConfig.default,
    'conservative': AnalysisConfig.conservative,
    'aggressive': AnalysisConfig.aggressive,
}


def get_scenario(name: str) -> AnalysisConfig:
  """
  Look up a named scenario preset.

  Raises:
    KeyError: If the name is not registered
  """
  try:
    factory = SCENARIOS[name]
  except KeyError as e:
    raise KeyError(f"Unknown scenario: '{name}'. "
                   f'Available: {list(SCENARIOS.keys())}') from e
  return factory()
