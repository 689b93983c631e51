'''
Domain types for the valuation engine.

These dataclasses provide typed interfaces between components, so the
engines never depend on raw provider payloads or DataFrame columns.
Every record is frozen: it is built fresh per call and never mutated.
'''

from dataclasses import dataclass, field, fields, MISSING
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar

import pandas as pd

T = TypeVar('T')

ValuationStatus = Literal['undervalued', 'fair', 'overvalued']
RiskLevel = Literal['low', 'medium', 'high']
MoatRating = Literal['none', 'narrow', 'wide']
DurabilityAssessment = Literal['weak', 'moderate', 'strong']


@dataclass(frozen=True)
class PolicyOutput(Generic[T]):
  '''
  Standard output from any policy.

  Every policy returns both a computed value and diagnostic information
  explaining how the value was computed.

  Attributes:
    value: The computed value (type depends on policy)
    diag: Dictionary of diagnostic information
  '''
  value: T
  diag: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IncomeStatement:
  '''
  One fiscal year of income-statement data.

  Attributes:
    fiscal_year: Fiscal year label (e.g., '2023')
    revenue: Total revenue
    gross_profit: Revenue minus cost of revenue
    operating_income: Operating income (EBIT)
    net_income: Net income
    eps: Basic earnings per share
    ebitda: EBITDA
    shares_outstanding: Shares outstanding at year end
    interest_expense: Interest expense, None when not reported
    cost_of_revenue: Cost of goods sold, None when not reported
  '''
  fiscal_year: str
  revenue: float
  gross_profit: float
  operating_income: float
  net_income: float
  eps: float
  ebitda: float = 0.0
  shares_outstanding: float = 0.0
  interest_expense: Optional[float] = None
  cost_of_revenue: Optional[float] = None


@dataclass(frozen=True)
class BalanceSheet:
  '''
  One fiscal year of balance-sheet data.

  Attributes:
    fiscal_year: Fiscal year label
    total_assets: Total assets
    current_assets: Current assets
    cash: Cash and equivalents
    total_liabilities: Total liabilities
    current_liabilities: Current liabilities
    total_debt: Short plus long-term debt
    total_equity: Total stockholders' equity
    inventory: Inventory, None when not reported
    book_value_per_share: Book value per share, None when not reported
  '''
  fiscal_year: str
  total_assets: float
  current_assets: float
  cash: float
  total_liabilities: float
  current_liabilities: float
  total_debt: float
  total_equity: float
  inventory: Optional[float] = None
  book_value_per_share: Optional[float] = None


@dataclass(frozen=True)
class CashFlowStatement:
  '''
  One fiscal year of cash-flow data.

  Free cash flow is always derived from operating cash flow and capex.
  Providers disagree on the capex sign, so its magnitude is used.

  Attributes:
    fiscal_year: Fiscal year label
    operating_cash_flow: Cash from operations
    capital_expenditure: Capital expenditure (either sign)
    depreciation: Depreciation and amortization
    dividends_paid: Dividends paid, None when not reported
  '''
  fiscal_year: str
  operating_cash_flow: float
  capital_expenditure: float
  depreciation: float = 0.0
  dividends_paid: Optional[float] = None

  @property
  def capex(self) -> float:
    '''Capital expenditure as a positive outflow.'''
    return abs(self.capital_expenditure)

  @property
  def free_cash_flow(self) -> float:
    '''Operating cash flow minus capital expenditure.'''
    return self.operating_cash_flow - self.capex


def _records_frame(records: Tuple[Any, ...], record_type: type) -> pd.DataFrame:
  '''Build a DataFrame from dataclass records, newest year first.'''
  columns = [f.name for f in fields(record_type)]
  rows = [{name: getattr(r, name) for name in columns} for r in records]
  return pd.DataFrame(rows, columns=columns)


def _sort_newest_first(frame: pd.DataFrame) -> pd.DataFrame:
  '''Sort a statement frame by fiscal year, most recent first.'''
  if frame.empty:
    return frame
  frame = frame.copy()
  frame['fiscal_year'] = frame['fiscal_year'].astype(str)
  order = pd.to_numeric(frame['fiscal_year'].str[:4], errors='coerce')
  return frame.assign(_order=order).sort_values(
      '_order', ascending=False, kind='stable').drop(columns='_order')


def _frame_to_records(frame: Optional[pd.DataFrame],
                      record_type: type) -> Tuple[Any, ...]:
  '''Convert a statement frame into a tuple of dataclass records.'''
  if frame is None or frame.empty:
    return ()
  record_fields = {f.name: f for f in fields(record_type)}
  frame = _sort_newest_first(frame)
  records = []
  for row in frame.to_dict(orient='records'):
    kwargs = {}
    for name, value in row.items():
      if name not in record_fields:
        continue
      if not _is_missing(value):
        kwargs[name] = value
        continue
      # Missing cells: None for optional fields, the default otherwise
      default = record_fields[name].default
      if default is MISSING:
        raise ValueError(f'{record_type.__name__} {row.get("fiscal_year")}: '
                         f'missing required field {name}')
      if default is None:
        kwargs[name] = None
    records.append(record_type(**kwargs))
  return tuple(records)


def _is_missing(value: Any) -> bool:
  if value is None:
    return True
  try:
    return bool(pd.isna(value))
  except (TypeError, ValueError):
    return False


@dataclass(frozen=True)
class StatementSeries:
  '''
  Annual statement history for a single company.

  This is the primary input to every engine. Each tuple is ordered
  most recent fiscal year first, and all records share one currency.
  The three statement kinds may have different lengths.

  Attributes:
    ticker: Company ticker symbol
    income_statements: Income statements, newest first
    balance_sheets: Balance sheets, newest first
    cash_flow_statements: Cash-flow statements, newest first
    currency: Reporting currency shared by every record
  '''
  ticker: str
  income_statements: Tuple[IncomeStatement, ...] = ()
  balance_sheets: Tuple[BalanceSheet, ...] = ()
  cash_flow_statements: Tuple[CashFlowStatement, ...] = ()
  currency: str = 'USD'

  @classmethod
  def from_frames(
      cls,
      ticker: str,
      income: Optional[pd.DataFrame] = None,
      balance: Optional[pd.DataFrame] = None,
      cash_flow: Optional[pd.DataFrame] = None,
      currency: str = 'USD',
  ) -> 'StatementSeries':
    '''
    Construct StatementSeries from per-statement DataFrames.

    Rows are sorted newest fiscal year first. Columns that do not map to
    a record field are ignored. A missing cell becomes None for an optional
    field and the field default otherwise; a missing required field raises
    ValueError.

    Args:
      ticker: Company ticker symbol
      income: Income statement rows, one per fiscal year
      balance: Balance sheet rows, one per fiscal year
      cash_flow: Cash-flow rows, one per fiscal year
      currency: Reporting currency

    Returns:
      StatementSeries with records in descending fiscal-year order
    '''
    return cls(
        ticker=ticker,
        income_statements=_frame_to_records(income, IncomeStatement),
        balance_sheets=_frame_to_records(balance, BalanceSheet),
        cash_flow_statements=_frame_to_records(cash_flow, CashFlowStatement),
        currency=currency,
    )

  @property
  def latest_income(self) -> Optional[IncomeStatement]:
    return self.income_statements[0] if self.income_statements else None

  @property
  def latest_balance(self) -> Optional[BalanceSheet]:
    return self.balance_sheets[0] if self.balance_sheets else None

  @property
  def latest_cash_flow(self) -> Optional[CashFlowStatement]:
    return self.cash_flow_statements[0] if self.cash_flow_statements else None

  def income_frame(self) -> pd.DataFrame:
    '''Income statements as a DataFrame, newest first.'''
    return _records_frame(self.income_statements, IncomeStatement)

  def balance_frame(self) -> pd.DataFrame:
    '''Balance sheets as a DataFrame, newest first.'''
    return _records_frame(self.balance_sheets, BalanceSheet)

  def cash_flow_frame(self) -> pd.DataFrame:
    '''Cash-flow statements as a DataFrame, with derived free cash flow.'''
    frame = _records_frame(self.cash_flow_statements, CashFlowStatement)
    frame['free_cash_flow'] = [
        s.free_cash_flow for s in self.cash_flow_statements
    ]
    return frame


@dataclass(frozen=True)
class Quote:
  '''
  Current market snapshot.

  Attributes:
    ticker: Company ticker symbol
    price: Last traded price
    market_cap: Market capitalization
    name: Company name
    pe: Price to earnings (TTM), None when not meaningful
    pb: Price to book, None when not meaningful
    ps: Price to sales, None when not meaningful
    dividend_yield: Trailing dividend yield, None when no dividend
    week52_high: 52-week high
    week52_low: 52-week low
    currency: Quote currency
  '''
  ticker: str
  price: float
  market_cap: float
  name: str = ''
  pe: Optional[float] = None
  pb: Optional[float] = None
  ps: Optional[float] = None
  dividend_yield: Optional[float] = None
  week52_high: float = 0.0
  week52_low: float = 0.0
  currency: str = 'USD'


@dataclass(frozen=True)
class CompanyProfile:
  '''Descriptive company data used by the scale-economies analysis.'''
  ticker: str
  name: str = ''
  sector: str = ''
  industry: str = ''
  employees: Optional[int] = None


@dataclass(frozen=True)
class Ratios:
  '''
  Snapshot of financial ratios derived from a statement series.

  Optional fields are None when the ratio cannot be computed (missing
  quote, non-positive denominator, or insufficient history).
  '''
  # Valuation
  pe: Optional[float] = None
  pb: Optional[float] = None
  ps: Optional[float] = None
  peg: Optional[float] = None
  ev_to_ebitda: Optional[float] = None
  price_to_fcf: Optional[float] = None

  # Profitability
  gross_margin: float = 0.0
  operating_margin: float = 0.0
  net_margin: float = 0.0
  roe: float = 0.0
  roa: float = 0.0
  roic: Optional[float] = None

  # Liquidity & solvency
  current_ratio: float = 0.0
  quick_ratio: float = 0.0
  debt_to_equity: float = 0.0
  debt_to_assets: float = 0.0
  interest_coverage: Optional[float] = None
  net_debt_to_ebitda: Optional[float] = None

  # Cash flow
  fcf_yield: Optional[float] = None
  cash_conversion: Optional[float] = None
  capex_to_depreciation: Optional[float] = None

  # Growth (CAGR)
  revenue_growth_5y: Optional[float] = None
  eps_growth_5y: Optional[float] = None
  fcf_growth_5y: Optional[float] = None
  dividend_growth_5y: Optional[float] = None

  @classmethod
  def empty(cls) -> 'Ratios':
    '''All-zero / None ratios used when the latest statements are missing.'''
    return cls()

  def to_dict(self) -> Dict[str, Optional[float]]:
    return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class QualityAssessment:
  '''Score, summary and supporting details from a ratio evaluation.'''
  score: int
  assessment: str
  details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DCFAssumptions:
  '''
  Assumptions actually used by a DCF run.

  Attributes:
    discount_rate: Required return (r)
    terminal_growth_rate: Terminal growth after the safety clamp
    projection_years: Number of explicit forecast years
    estimated_growth_rate: Starting growth after estimation and clamping
    starting_fcf: Most recent free cash flow
  '''
  discount_rate: float
  terminal_growth_rate: float
  projection_years: int
  estimated_growth_rate: float
  starting_fcf: float


@dataclass(frozen=True)
class DCFResult:
  '''
  Two-stage DCF valuation with the assumptions that produced it.

  An intrinsic value of 0 with an empty projection means the model
  refused to estimate because starting free cash flow was not positive.

  Attributes:
    intrinsic_value: Equity value per share, floored at 0
    projected_fcf: Projected free cash flow for years 1..N
    terminal_value: Undiscounted Gordon terminal value
    pv_of_fcf: Present value of the explicit period
    pv_of_terminal: Present value of the terminal value
    enterprise_value: pv_of_fcf + pv_of_terminal
    net_debt: Total debt minus cash
    equity_value: enterprise_value - net_debt
    shares_outstanding: Share count used for the per-share figure
    assumptions: DCFAssumptions used
    diag: Diagnostics from growth estimation
  '''
  intrinsic_value: float
  projected_fcf: Tuple[float, ...]
  terminal_value: float
  pv_of_fcf: float
  pv_of_terminal: float
  enterprise_value: float
  assumptions: DCFAssumptions
  net_debt: float = 0.0
  equity_value: float = 0.0
  shares_outstanding: float = 0.0
  diag: Dict[str, Any] = field(default_factory=dict)

  @property
  def refused(self) -> bool:
    '''True when the model declined to estimate (non-positive FCF).'''
    return not self.projected_fcf

  def to_dict(self) -> Dict[str, Any]:
    '''Flatten to a dictionary for DataFrame creation.'''
    return {
        'dcf_intrinsic_value': self.intrinsic_value,
        'dcf_terminal_value': self.terminal_value,
        'dcf_pv_of_fcf': self.pv_of_fcf,
        'dcf_pv_of_terminal': self.pv_of_terminal,
        'dcf_enterprise_value': self.enterprise_value,
        'dcf_net_debt': self.net_debt,
        'dcf_equity_value': self.equity_value,
        'discount_rate': self.assumptions.discount_rate,
        'terminal_growth_rate': self.assumptions.terminal_growth_rate,
        'projection_years': self.assumptions.projection_years,
        'estimated_growth_rate': self.assumptions.estimated_growth_rate,
        'starting_fcf': self.assumptions.starting_fcf,
    }


@dataclass(frozen=True)
class SensitivityGrid:
  '''
  Intrinsic values across a grid of discount and growth rates.

  values[i][j] is the intrinsic value at discount_rates[i] and
  growth_rates[j].
  '''
  discount_rates: Tuple[float, ...]
  growth_rates: Tuple[float, ...]
  values: Tuple[Tuple[float, ...], ...]

  def to_frame(self) -> pd.DataFrame:
    '''Render the grid as a labelled DataFrame.'''
    df = pd.DataFrame(
        [list(row) for row in self.values],
        index=[f'{r:.1%}' for r in self.discount_rates],
        columns=[f'{g:.1%}' for g in self.growth_rates],
    )
    df.index.name = 'Discount Rate'
    df.columns.name = 'Growth Rate'
    return df


@dataclass(frozen=True)
class DefensiveCriterion:
  '''One of Graham's defensive-investor checks.'''
  criterion: str
  passed: bool
  detail: str


@dataclass(frozen=True)
class GrahamResult:
  '''
  Graham valuation with the inputs used.

  Attributes:
    graham_number: sqrt(22.5 * EPS * BVPS), 0 when not applicable
    graham_growth_value: Growth formula value, None when not applicable
    eps: EPS used
    book_value_per_share: BVPS used
    growth_rate: Historical EPS CAGR, None when insufficient history
    bond_yield: Bond yield used by the growth formula
    passes_defensive_criteria: True when all seven criteria pass
    defensive_criteria: Individual criterion results
  '''
  graham_number: float
  graham_growth_value: Optional[float]
  eps: float
  book_value_per_share: float
  growth_rate: Optional[float]
  bond_yield: float
  passes_defensive_criteria: bool
  defensive_criteria: Tuple[DefensiveCriterion, ...] = ()


@dataclass(frozen=True)
class MoatDimension:
  '''Score in [1, 5] for one competitive-advantage dimension.'''
  score: float
  evidence: Tuple[str, ...] = ()
  metrics: Dict[str, Optional[float]] = field(default_factory=dict)


@dataclass(frozen=True)
class MoatDimensions:
  '''Scores for the five moat dimensions.'''
  brand_power: MoatDimension
  cost_advantage: MoatDimension
  network_effect: MoatDimension
  switching_costs: MoatDimension
  scale_economies: MoatDimension

  def scores(self) -> List[float]:
    '''Dimension scores in a fixed order, brand power first.'''
    return [
        self.brand_power.score,
        self.cost_advantage.score,
        self.network_effect.score,
        self.switching_costs.score,
        self.scale_economies.score,
    ]


@dataclass(frozen=True)
class Durability:
  '''How long the moat is likely to last, scored in [1, 5].'''
  score: float
  assessment: DurabilityAssessment
  factors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MoatAnalysis:
  '''
  Economic moat analysis.

  Attributes:
    ticker: Company ticker symbol
    company_name: Company name
    overall_score: Strongest dimension score, in [1, 5]
    moat_rating: 'wide', 'narrow' or 'none'
    dimensions: Individual dimension results
    durability: Durability assessment
  '''
  ticker: str
  company_name: str
  overall_score: float
  moat_rating: MoatRating
  dimensions: MoatDimensions
  durability: Durability


@dataclass(frozen=True)
class MarginOfSafetyResult:
  '''
  Margin of safety of a price against one intrinsic value.

  Attributes:
    margin_of_safety: (intrinsic - price) / intrinsic
    current_price: Price used
    intrinsic_value: Intrinsic value used
    status: 'undervalued', 'fair' or 'overvalued'
    rating: Band name (e.g., 'excellent', 'fair', 'invalid')
    recommendation: Fixed recommendation text for the band
    risk_level: 'low', 'medium' or 'high'
  '''
  margin_of_safety: float
  current_price: float
  intrinsic_value: float
  status: ValuationStatus
  rating: str
  recommendation: str
  risk_level: RiskLevel


@dataclass(frozen=True)
class CombinedMarginOfSafety:
  '''
  Conservative combination of several valuation methods.

  Attributes:
    individual: Per-method margin, None for unusable valuations
    effective_intrinsic_value: min(minimum, mean) of usable valuations
    minimum_intrinsic_value: Lowest usable valuation
    mean_intrinsic_value: Arithmetic mean of usable valuations
    combined_margin_of_safety: Margin against the effective value
    status: Valuation status from the effective value
    recommendation: Recommendation text
  '''
  individual: Dict[str, Optional[float]]
  effective_intrinsic_value: float
  minimum_intrinsic_value: float
  mean_intrinsic_value: float
  combined_margin_of_safety: float
  status: ValuationStatus
  recommendation: str


@dataclass(frozen=True)
class RequiredDrop:
  '''Price drop needed to reach a required margin of safety.'''
  target_price: float
  percent_drop: float
  is_already_adequate: bool
