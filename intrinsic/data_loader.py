"""
Local snapshot loader.

Reads a company snapshot that a data-provider collaborator has already
fetched and normalized, and turns it into domain types. No network I/O.

Snapshot JSON layout:
  {
    "ticker": "ACME",
    "currency": "USD",
    "quote": {"price": 70.0, "market_cap": 7e9, "pe": 12.5, ...},
    "profile": {"name": "Acme", "employees": 12000, ...},
    "income_statements": [{"fiscal_year": "2023", "revenue": ...}, ...],
    "balance_sheets": [...],
    "cash_flow_statements": [...]
  }

Usage:
  snapshot = load_snapshot(Path('snapshots/ACME.json'))
  result = run_valuation(snapshot, AnalysisConfig.default())
"""

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from intrinsic.domain.types import CompanyProfile
from intrinsic.domain.types import Quote
from intrinsic.domain.types import StatementSeries

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = {
    'income_statements': [
        'fiscal_year', 'revenue', 'gross_profit', 'operating_income',
        'net_income', 'eps'
    ],
    'balance_sheets': [
        'fiscal_year', 'total_assets', 'current_assets', 'cash',
        'total_liabilities', 'current_liabilities', 'total_debt',
        'total_equity'
    ],
    'cash_flow_statements': [
        'fiscal_year', 'operating_cash_flow', 'capital_expenditure'
    ],
}


@dataclass(frozen=True)
class CompanySnapshot:
  '''
  Everything the engines need for one company.

  Attributes:
    series: Annual statements, newest first
    quote: Current quote
    profile: Company profile, None when not supplied
  '''
  series: StatementSeries
  quote: Quote
  profile: Optional[CompanyProfile] = None

  @property
  def ticker(self) -> str:
    return self.series.ticker


def _statement_frame(kind: str, rows: List[Dict[str, Any]],
                     currency: str) -> pd.DataFrame:
  '''Build and check one statement frame.'''
  frame = pd.DataFrame(rows)
  if frame.empty:
    return frame

  missing = [c for c in _REQUIRED_COLUMNS[kind] if c not in frame.columns]
  if missing:
    raise ValueError(f'{kind}: missing columns {missing}')

  if 'currency' in frame.columns:
    currencies = set(frame['currency'].dropna().unique())
    if currencies - {currency}:
      raise ValueError(f'{kind}: mixed currencies {sorted(currencies)}, '
                       f'expected {currency}')

  if frame['fiscal_year'].duplicated().any():
    raise ValueError(f'{kind}: duplicate fiscal years')

  return frame


def series_from_records(
    ticker: str,
    income: List[Dict[str, Any]],
    balance: List[Dict[str, Any]],
    cash_flow: List[Dict[str, Any]],
    currency: str = 'USD',
) -> StatementSeries:
  """
  Build a StatementSeries from lists of per-year records.

  Args:
    ticker: Company ticker symbol
    income: Income statement records
    balance: Balance sheet records
    cash_flow: Cash-flow records (any free_cash_flow field is ignored)
    currency: Reporting currency every record must share

  Returns:
    StatementSeries sorted newest fiscal year first

  Raises:
    ValueError: If required columns are missing, currencies are mixed or
      a fiscal year appears twice
  """
  return StatementSeries.from_frames(
      ticker=ticker,
      income=_statement_frame('income_statements', income, currency),
      balance=_statement_frame('balance_sheets', balance, currency),
      cash_flow=_statement_frame('cash_flow_statements', cash_flow, currency),
      currency=currency,
  )


def _known_fields(data: Dict[str, Any], record_type: type) -> Dict[str, Any]:
  allowed = record_type.__dataclass_fields__
  return {k: v for k, v in data.items() if k in allowed}


def snapshot_from_dict(data: Dict[str, Any]) -> CompanySnapshot:
  """
  Build a CompanySnapshot from a parsed snapshot document.

  Raises:
    ValueError: If the ticker or quote is missing, or statements are
      malformed
  """
  ticker = data.get('ticker')
  if not ticker:
    raise ValueError('Snapshot has no ticker')
  if 'quote' not in data:
    raise ValueError(f'Snapshot for {ticker} has no quote')

  currency = data.get('currency', 'USD')
  series = series_from_records(
      ticker=ticker,
      income=data.get('income_statements', []),
      balance=data.get('balance_sheets', []),
      cash_flow=data.get('cash_flow_statements', []),
      currency=currency,
  )

  quote_data = {'ticker': ticker, 'currency': currency, **data['quote']}
  quote = Quote(**_known_fields(quote_data, Quote))
  if quote.currency != currency:
    raise ValueError(f'{ticker}: quote currency {quote.currency} does not '
                     f'match statements ({currency})')

  profile = None
  if data.get('profile'):
    profile_data = {'ticker': ticker, **data['profile']}
    profile = CompanyProfile(**_known_fields(profile_data, CompanyProfile))

  logger.debug('%s: loaded %d/%d/%d income/balance/cash-flow years', ticker,
               len(series.income_statements), len(series.balance_sheets),
               len(series.cash_flow_statements))

  return CompanySnapshot(series=series, quote=quote, profile=profile)


def load_snapshot(path: Path) -> CompanySnapshot:
  """
  Load a company snapshot from a JSON file.

  Args:
    path: Path to the snapshot JSON

  Returns:
    CompanySnapshot

  Raises:
    FileNotFoundError: If the file does not exist
    ValueError: If the snapshot is malformed
  """
  if not path.exists():
    raise FileNotFoundError(f'Snapshot not found: {path}')

  with path.open(encoding='utf-8') as f:
    data = json.load(f)
  return snapshot_from_dict(data)


def load_statements_csv(
    ticker: str,
    income_path: Path,
    balance_path: Path,
    cash_flow_path: Path,
    currency: str = 'USD',
) -> StatementSeries:
  """
  Load a StatementSeries from three CSV exports, one row per fiscal year.

  Raises:
    FileNotFoundError: If any file does not exist
    ValueError: If a file is malformed
  """
  frames = []
  for path in (income_path, balance_path, cash_flow_path):
    if not path.exists():
      raise FileNotFoundError(f'Statement file not found: {path}')
    frame = pd.read_csv(path, dtype={'fiscal_year': str})
    frames.append(frame.to_dict(orient='records'))

  return series_from_records(ticker, frames[0], frames[1], frames[2], currency)
