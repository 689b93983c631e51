from dataclasses import replace
from typing import List, Optional

import pytest

from intrinsic.data_loader import CompanySnapshot
from intrinsic.domain.types import BalanceSheet
from intrinsic.domain.types import CashFlowStatement
from intrinsic.domain.types import CompanyProfile
from intrinsic.domain.types import IncomeStatement
from intrinsic.domain.types import Quote
from intrinsic.domain.types import StatementSeries


def make_series(
    ticker: str,
    start_year: int,
    revenues: List[float],
    fcf_margin: float = 0.15,
    shares: float = 100.0,
    net_margin: float = 0.15,
    gross_margin: float = 0.50,
    operating_margin: float = 0.20,
    debt_share: float = 0.20,
    fcf_values: Optional[List[float]] = None,
) -> StatementSeries:
  """Helper to create a StatementSeries from oldest-first revenues.

  Every line item scales with revenue:
  - OCF = revenue * (fcf_margin + 0.05), capex = -0.05 * revenue
  - Balance sheet: assets 2x, equity 1.2x, current assets 0.8x,
    current liabilities 0.3x, cash and debt both debt_share x revenue
  """
  income, balance, cash_flow = [], [], []
  for i, revenue in enumerate(revenues):
    year = str(start_year + i)
    net_income = revenue * net_margin
    income.append(
        IncomeStatement(
            fiscal_year=year,
            revenue=revenue,
            gross_profit=revenue * gross_margin,
            operating_income=revenue * operating_margin,
            net_income=net_income,
            eps=net_income / shares,
            ebitda=revenue * 0.25,
            shares_outstanding=shares,
            interest_expense=revenue * 0.01,
        ))
    balance.append(
        BalanceSheet(
            fiscal_year=year,
            total_assets=revenue * 2.0,
            current_assets=revenue * 0.8,
            cash=revenue * debt_share,
            total_liabilities=revenue * 0.8,
            current_liabilities=revenue * 0.3,
            total_debt=revenue * debt_share,
            total_equity=revenue * 1.2,
            inventory=revenue * 0.1,
        ))
    capex = revenue * 0.05
    fcf = fcf_values[i] if fcf_values else revenue * fcf_margin
    cash_flow.append(
        CashFlowStatement(
            fiscal_year=year,
            operating_cash_flow=fcf + capex,
            capital_expenditure=-capex,
            depreciation=revenue * 0.04,
        ))

  return StatementSeries(
      ticker=ticker,
      income_statements=tuple(reversed(income)),
      balance_sheets=tuple(reversed(balance)),
      cash_flow_statements=tuple(reversed(cash_flow)),
  )


@pytest.fixture
def growing_series() -> StatementSeries:
  """Ten years of revenue, earnings and FCF compounding at exactly 10%."""
  revenues = [1000.0 * 1.1**i for i in range(10)]
  return make_series('GROW', 2014, revenues)


@pytest.fixture
def negative_fcf_series() -> StatementSeries:
  """Five years where the latest free cash flow is negative."""
  revenues = [1000.0, 1100.0, 1200.0, 1300.0, 1400.0]
  return make_series('BURN',
                     2019,
                     revenues,
                     fcf_values=[50.0, 20.0, -10.0, -40.0, -80.0])


@pytest.fixture
def series_builder():
  """make_series, for tests that need their own revenue path."""
  return make_series


@pytest.fixture
def improving_series() -> StatementSeries:
  """Five years of growth with margins rising from 10% to 18% and ROE 20%."""
  margins = [0.18, 0.16, 0.14, 0.12, 0.10]
  series = make_series('WIDE', 2019, [1000.0, 1100.0, 1200.0, 1300.0, 1400.0])
  income = tuple(
      replace(s,
              operating_income=s.revenue * m,
              net_income=s.revenue * m,
              eps=s.revenue * m / s.shares_outstanding)
      for s, m in zip(series.income_statements, margins))
  balance = tuple(
      replace(b, total_equity=s.net_income / 0.20)
      for b, s in zip(series.balance_sheets, income))
  return replace(series, income_statements=income, balance_sheets=balance)


@pytest.fixture
def minimal_series() -> StatementSeries:
  """Single fiscal year: too short for any growth history."""
  return make_series('MIN', 2023, [1000.0])


@pytest.fixture
def sample_quote() -> Quote:
  """Quote consistent with growing_series, market cap $2B."""
  return Quote(
      ticker='GROW',
      price=20.0,
      market_cap=2_000_000_000.0,
      name='Growth Co',
      pe=12.0,
      pb=1.2,
      ps=1.0,
      dividend_yield=0.02,
  )


@pytest.fixture
def sample_profile() -> CompanyProfile:
  return CompanyProfile(ticker='GROW',
                        name='Growth Co',
                        sector='Industrials',
                        industry='Machinery',
                        employees=10)


@pytest.fixture
def sample_snapshot(growing_series, sample_quote,
                    sample_profile) -> CompanySnapshot:
  return CompanySnapshot(series=growing_series,
                         quote=sample_quote,
                         profile=sample_profile)
