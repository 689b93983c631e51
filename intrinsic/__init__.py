'''
Intrinsic value engine for value investing.

This package estimates what a business is worth from its annual financial
statements and compares that estimate with the market price. Each engine
(ratios, DCF, Graham, moat, margin of safety) is a set of pure functions
over immutable domain records, so any of them can be used on its own.

Usage:
  from intrinsic.data_loader import load_snapshot
  from intrinsic.run import run_valuation
  from intrinsic.scenarios.config import AnalysisConfig

  snapshot = load_snapshot(Path('snapshots/ACME.json'))
  report = run_valuation(snapshot, config=AnalysisConfig.default())
'''
