"""
Sensitivity analysis for DCF valuation.

Recomputes the full DCF model across a 5x5 grid of discount rates and
starting growth rates around a base case, exposing how fragile the point
estimate is. The grid is a diagnostic, not a decision input.

CLI Usage:
  python -m intrinsic.analysis.sensitivity \\
      --snapshot snapshots/ACME.json \\
      --scenario conservative \\
      --output acme_sensitivity.csv
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from intrinsic.data_loader import load_snapshot
from intrinsic.domain.types import SensitivityGrid
from intrinsic.domain.types import StatementSeries
from intrinsic.engine.dcf import calculate_dcf
from intrinsic.scenarios.config import get_scenario
from intrinsic.scenarios.config import SCENARIOS

logger = logging.getLogger(__name__)

STEPS = (-0.02, -0.01, 0.0, 0.01, 0.02)


def _around(base: float) -> List[float]:
  return [round(base + step, 12) for step in STEPS]


def dcf_sensitivity(
    series: StatementSeries,
    discount_rate: float = 0.10,
    terminal_growth_rate: float = 0.03,
    projection_years: int = 10,
    growth_rate: Optional[float] = None,
) -> SensitivityGrid:
  """
  Build the 5x5 discount rate x growth rate sensitivity grid.

  Discount rates are base -2, -1, 0, +1, +2 points; growth rates the same
  steps around the base growth, which is the override when given and the
  base run's estimated growth otherwise. Every cell is a full DCF run with
  the growth rate passed as an override.

  Args:
    series: Annual statements, newest first
    discount_rate: Base discount rate
    terminal_growth_rate: Terminal growth rate (held fixed)
    projection_years: Explicit forecast years (held fixed)
    growth_rate: Base growth rate; estimated from history when None

  Returns:
    SensitivityGrid with unmodified intrinsic values
  """
  if growth_rate is None:
    base = calculate_dcf(series, discount_rate, terminal_growth_rate,
                         projection_years)
    growth_rate = base.assumptions.estimated_growth_rate

  discount_rates = _around(discount_rate)
  growth_rates = _around(growth_rate)

  logger.debug('%s: sensitivity grid r=%s g=%s', series.ticker,
               discount_rates, growth_rates)

  values = []
  for r in discount_rates:
    row = []
    for g in growth_rates:
      result = calculate_dcf(series,
                             discount_rate=r,
                             terminal_growth_rate=terminal_growth_rate,
                             projection_years=projection_years,
                             growth_rate=g)
      row.append(result.intrinsic_value)
    values.append(tuple(row))

  return SensitivityGrid(
      discount_rates=tuple(discount_rates),
      growth_rates=tuple(growth_rates),
      values=tuple(values),
  )


def main() -> None:
  """CLI entrypoint for sensitivity analysis."""
  parser = argparse.ArgumentParser(description='DCF Sensitivity Analysis')
  parser.add_argument('--snapshot',
                      type=Path,
                      required=True,
                      help='Path to company snapshot JSON')
  parser.add_argument('--scenario',
                      type=str,
                      default='default',
                      choices=sorted(SCENARIOS),
                      help='Scenario preset')
  parser.add_argument('--discount-rate',
                      type=float,
                      help='Base discount rate (overrides scenario)')
  parser.add_argument('--growth-rate',
                      type=float,
                      help='Base growth rate (default: estimated)')
  parser.add_argument('--output', type=Path, help='Output CSV path (optional)')
  parser.add_argument('--verbose',
                      '-v',
                      action='store_true',
                      help='Verbose output')
  args = parser.parse_args()

  logging.basicConfig(
      level=logging.DEBUG if args.verbose else logging.INFO,
      format='%(asctime)s [%(levelname)s] %(message)s',
      datefmt='%Y-%m-%d %H:%M:%S',
  )

  config = get_scenario(args.scenario).with_overrides(
      discount_rate=args.discount_rate,
      growth_rate=args.growth_rate,
  ).validate()

  logger.info('Loading snapshot: %s', args.snapshot)
  snapshot = load_snapshot(args.snapshot)

  grid = dcf_sensitivity(
      snapshot.series,
      discount_rate=config.discount_rate,
      terminal_growth_rate=config.terminal_growth_rate,
      projection_years=config.projection_years,
      growth_rate=config.growth_rate,
  )
  table = grid.to_frame()

  separator = '=' * 70
  logger.info(separator)
  logger.info('Sensitivity Analysis: %s (scenario: %s)', snapshot.ticker,
              config.name)
  logger.info('Terminal Growth: %.2f%%', config.terminal_growth_rate * 100)
  logger.info('Forecast Years: %d', config.projection_years)
  logger.info(separator)
  logger.info('Intrinsic Value per Share\n%s',
              table.to_string(float_format=lambda x: f'{x:.2f}'))

  if args.output:
    table.to_csv(args.output)
    logger.info('Saved to: %s', args.output)


if __name__ == '__main__':
  main()
