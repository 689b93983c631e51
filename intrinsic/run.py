'''
Single-company valuation entrypoint.

This module provides the main entry point for running valuations. It:
1. Validates the analysis configuration
2. Computes financial ratios and quality assessments
3. Runs the DCF and Graham engines
4. Combines the valuations into margin-of-safety verdicts
5. Optionally scores the economic moat

Usage:
  from intrinsic.data_loader import load_snapshot
  from intrinsic.run import run_valuation
  from intrinsic.scenarios.config import AnalysisConfig

  report = run_valuation(
    load_snapshot(Path('snapshots/ACME.json')),
    config=AnalysisConfig.conservative(),
  )
  print(f"IV: ${report.dcf.intrinsic_value:.2f}")
'''

import argparse
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from intrinsic.data_loader import CompanySnapshot
from intrinsic.data_loader import load_snapshot
from intrinsic.domain.types import CombinedMarginOfSafety
from intrinsic.domain.types import DCFResult
from intrinsic.domain.types import GrahamResult
from intrinsic.domain.types import MarginOfSafetyResult
from intrinsic.domain.types import MoatAnalysis
from intrinsic.domain.types import QualityAssessment
from intrinsic.domain.types import Ratios
from intrinsic.domain.types import RequiredDrop
from intrinsic.engine.dcf import calculate_dcf
from intrinsic.engine.graham import calculate_graham_valuation
from intrinsic.engine.graham import calculate_owner_earnings
from intrinsic.engine.margin import calculate_combined_margin_of_safety
from intrinsic.engine.margin import calculate_margin_of_safety
from intrinsic.engine.margin import calculate_required_drop
from intrinsic.engine.margin import calculate_target_price
from intrinsic.engine.moat import analyze_moat
from intrinsic.engine.ratios import calculate_financial_ratios
from intrinsic.engine.ratios import evaluate_profitability
from intrinsic.engine.ratios import evaluate_safety
from intrinsic.scenarios.config import AnalysisConfig
from intrinsic.scenarios.config import get_scenario
from intrinsic.scenarios.config import SCENARIOS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntrinsicValueReport:
  '''
  Complete valuation output for one company.

  Attributes:
    ticker: Company ticker symbol
    price: Current market price used for every margin
    config: Analysis configuration used
    ratios: Financial ratios
    profitability: Profitability assessment
    safety: Financial safety assessment
    dcf: DCF result
    graham: Graham valuation
    owner_earnings: Owner earnings for the latest year
    margin_vs_dcf: Margin of safety against the DCF value
    margin_vs_graham: Margin of safety against the Graham Number
    combined: Conservative combination of all valuations
    target_prices: Method name to maximum purchase price at the required
      margin of safety
    required_drop: Price drop needed to reach the required margin against
      the combined value
    moat: Moat analysis, None when not requested
  '''
  ticker: str
  price: float
  config: AnalysisConfig
  ratios: Ratios
  profitability: QualityAssessment
  safety: QualityAssessment
  dcf: DCFResult
  graham: GrahamResult
  owner_earnings: float
  margin_vs_dcf: MarginOfSafetyResult
  margin_vs_graham: MarginOfSafetyResult
  combined: CombinedMarginOfSafety
  target_prices: Dict[str, float]
  required_drop: RequiredDrop
  moat: Optional[MoatAnalysis] = None

  def to_dict(self) -> Dict[str, Any]:
    '''Flatten to a dictionary for DataFrame creation.'''
    d: Dict[str, Any] = {
        'ticker': self.ticker,
        'scenario': self.config.name,
        'price': self.price,
    }
    d.update(self.dcf.to_dict())
    d.update({
        'graham_number': self.graham.graham_number,
        'graham_growth_value': self.graham.graham_growth_value,
        'graham_defensive': self.graham.passes_defensive_criteria,
        'owner_earnings': self.owner_earnings,
        'profitability_score': self.profitability.score,
        'safety_score': self.safety.score,
        'margin_vs_dcf': self.margin_vs_dcf.margin_of_safety,
        'margin_vs_graham': self.margin_vs_graham.margin_of_safety,
        'effective_intrinsic_value': self.combined.effective_intrinsic_value,
        'combined_margin_of_safety': self.combined.combined_margin_of_safety,
        'status': self.combined.status,
    })
    d.update({f'target_{k}': v for k, v in self.target_prices.items()})
    if self.moat is not None:
      d['moat_score'] = self.moat.overall_score
      d['moat_rating'] = self.moat.moat_rating
    return d


def run_valuation(
    snapshot: CompanySnapshot,
    config: Optional[AnalysisConfig] = None,
    include_moat: bool = False,
) -> IntrinsicValueReport:
  '''
  Run every valuation engine for a single company.

  Args:
    snapshot: Statements, quote and optional profile
    config: AnalysisConfig (default: AnalysisConfig.default())
    include_moat: Whether to run the moat analysis

  Returns:
    IntrinsicValueReport

  Raises:
    ValueError: If the configuration is out of range
  '''
  if config is None:
    config = AnalysisConfig.default()
  config.validate()

  series = snapshot.series
  quote = snapshot.quote

  ratios = calculate_financial_ratios(series, quote)

  dcf = calculate_dcf(
      series,
      discount_rate=config.discount_rate,
      terminal_growth_rate=config.terminal_growth_rate,
      projection_years=config.projection_years,
      growth_rate=config.growth_rate,
  )
  graham = calculate_graham_valuation(series,
                                      quote,
                                      bond_yield=config.risk_free_rate)

  valuations = {
      'dcf': dcf.intrinsic_value,
      'graham_number': graham.graham_number,
      'graham_growth': graham.graham_growth_value,
  }
  combined = calculate_combined_margin_of_safety(quote.price, valuations)

  target_prices = {
      method: calculate_target_price(value, config.margin_of_safety_min)
      for method, value in valuations.items()
      if value is not None
  }

  required_drop = calculate_required_drop(quote.price,
                                          combined.effective_intrinsic_value,
                                          config.margin_of_safety_min)

  moat = None
  if include_moat:
    moat = analyze_moat(series, quote, snapshot.profile, ratios)

  logger.debug('%s: dcf=%.2f graham=%.2f effective=%.2f', snapshot.ticker,
               dcf.intrinsic_value, graham.graham_number,
               combined.effective_intrinsic_value)

  return IntrinsicValueReport(
      ticker=snapshot.ticker,
      price=quote.price,
      config=config,
      ratios=ratios,
      profitability=evaluate_profitability(ratios),
      safety=evaluate_safety(ratios),
      dcf=dcf,
      graham=graham,
      owner_earnings=calculate_owner_earnings(series),
      margin_vs_dcf=calculate_margin_of_safety(quote.price,
                                               dcf.intrinsic_value),
      margin_vs_graham=calculate_margin_of_safety(quote.price,
                                                  graham.graham_number),
      combined=combined,
      target_prices=target_prices,
      required_drop=required_drop,
      moat=moat,
  )


def _log_report(report: IntrinsicValueReport) -> None:
  separator = '=' * 70
  logger.info(separator)
  logger.info('Intrinsic Value - %s', report.ticker)
  logger.info('Scenario: %s', report.config.name)
  logger.info(separator)

  logger.info('Current Price: $%.2f', report.price)
  logger.info('Profitability: %d/5 (%s)', report.profitability.score,
              report.profitability.assessment)
  logger.info('Financial Safety: %d/5 (%s)', report.safety.score,
              report.safety.assessment)

  dcf = report.dcf
  logger.info('DCF:')
  if dcf.refused:
    logger.info('  Not applicable (non-positive free cash flow)')
  else:
    logger.info('  Starting FCF: $%s', f'{dcf.assumptions.starting_fcf:,.0f}')
    logger.info('  Initial Growth: %.2f%%',
                dcf.assumptions.estimated_growth_rate * 100)
    logger.info('  Terminal Growth: %.2f%%',
                dcf.assumptions.terminal_growth_rate * 100)
    logger.info('  PV Explicit: $%s', f'{dcf.pv_of_fcf:,.0f}')
    logger.info('  PV Terminal: $%s', f'{dcf.pv_of_terminal:,.0f}')
  logger.info('  Intrinsic Value: $%.2f', dcf.intrinsic_value)

  graham = report.graham
  logger.info('Graham:')
  logger.info('  Graham Number: $%.2f', graham.graham_number)
  if graham.graham_growth_value is not None:
    logger.info('  Growth Value: $%.2f', graham.graham_growth_value)
  passed = sum(1 for c in graham.defensive_criteria if c.passed)
  logger.info('  Defensive Criteria: %d/%d passed', passed,
              len(graham.defensive_criteria))

  combined = report.combined
  logger.info('Margin of Safety:')
  logger.info('  vs DCF: %.1f%% (%s)',
              report.margin_vs_dcf.margin_of_safety * 100,
              report.margin_vs_dcf.rating)
  logger.info('  vs Graham Number: %.1f%% (%s)',
              report.margin_vs_graham.margin_of_safety * 100,
              report.margin_vs_graham.rating)
  logger.info('  Effective Intrinsic Value: $%.2f',
              combined.effective_intrinsic_value)
  logger.info('  Combined: %.1f%% -> %s',
              combined.combined_margin_of_safety * 100,
              combined.status.upper())
  logger.info('  %s', combined.recommendation)

  for method, target in report.target_prices.items():
    logger.info('  Buy below (%s): $%.2f', method, target)

  if report.moat is not None:
    logger.info('Moat: %s (%.1f/5), durability %s',
                report.moat.moat_rating.upper(), report.moat.overall_score,
                report.moat.durability.assessment)
  logger.info(separator)


def main() -> None:
  '''CLI entrypoint.'''
  parser = argparse.ArgumentParser(description='Run intrinsic valuation')
  parser.add_argument('--snapshot',
                      type=Path,
                      required=True,
                      help='Path to company snapshot JSON')
  parser.add_argument('--scenario',
                      type=str,
                      default='default',
                      choices=sorted(SCENARIOS),
                      help='Scenario preset')
  parser.add_argument('--discount-rate', type=float, help='Discount rate')
  parser.add_argument('--terminal-growth',
                      type=float,
                      help='Terminal growth rate')
  parser.add_argument('--years', type=int, help='Projection years')
  parser.add_argument('--growth-rate',
                      type=float,
                      help='Starting growth override')
  parser.add_argument('--margin',
                      type=float,
                      help='Required margin of safety')
  parser.add_argument('--moat',
                      action='store_true',
                      help='Include moat analysis')
  parser.add_argument('--verbose',
                      '-v',
                      action='store_true',
                      help='Verbose output')
  args = parser.parse_args()

  logging.basicConfig(
      level=logging.DEBUG if args.verbose else logging.INFO,
      format='%(message)s',
  )

  config = get_scenario(args.scenario).with_overrides(
      discount_rate=args.discount_rate,
      terminal_growth_rate=args.terminal_growth,
      projection_years=args.years,
      growth_rate=args.growth_rate,
      margin_of_safety_min=args.margin,
  )

  snapshot = load_snapshot(args.snapshot)
  report = run_valuation(snapshot, config=config, include_moat=args.moat)
  _log_report(report)


if __name__ == '__main__':
  main()
