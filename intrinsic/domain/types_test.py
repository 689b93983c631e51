import math

import pandas as pd
import pytest

from intrinsic.domain.types import CashFlowStatement
from intrinsic.domain.types import DCFAssumptions
from intrinsic.domain.types import DCFResult
from intrinsic.domain.types import Ratios
from intrinsic.domain.types import SensitivityGrid
from intrinsic.domain.types import StatementSeries


class TestCashFlowStatement:
  """Tests for derived cash-flow fields."""

  def test_negative_capex_sign(self):
    """Capex reported as an outflow: FCF = 500 - 120 = 380."""
    cf = CashFlowStatement(fiscal_year='2023',
                           operating_cash_flow=500.0,
                           capital_expenditure=-120.0)

    assert cf.capex == 120.0
    assert cf.free_cash_flow == 380.0

  def test_positive_capex_sign(self):
    """Same FCF whichever sign the provider uses."""
    cf = CashFlowStatement(fiscal_year='2023',
                           operating_cash_flow=500.0,
                           capital_expenditure=120.0)

    assert cf.free_cash_flow == 380.0


class TestStatementSeriesFromFrames:
  """Tests for StatementSeries.from_frames."""

  def test_sorts_newest_first(self):
    """Rows arrive oldest first and are reordered."""
    income = pd.DataFrame({
        'fiscal_year': [2021, 2022, 2023],
        'revenue': [100.0, 110.0, 121.0],
        'gross_profit': [50.0, 55.0, 60.5],
        'operating_income': [20.0, 22.0, 24.2],
        'net_income': [15.0, 16.5, 18.15],
        'eps': [1.5, 1.65, 1.815],
    })

    series = StatementSeries.from_frames('ACME', income=income)

    years = [s.fiscal_year for s in series.income_statements]
    assert years == ['2023', '2022', '2021']
    assert series.latest_income.revenue == 121.0
    assert series.latest_balance is None
    assert series.latest_cash_flow is None

  def test_nan_becomes_none_and_unknown_columns_ignored(self):
    """Missing optional values map to None; extra columns are dropped."""
    balance = pd.DataFrame({
        'fiscal_year': ['2023', '2022'],
        'total_assets': [1000.0, 900.0],
        'current_assets': [400.0, 350.0],
        'cash': [100.0, 80.0],
        'total_liabilities': [500.0, 450.0],
        'current_liabilities': [200.0, 180.0],
        'total_debt': [300.0, 280.0],
        'total_equity': [500.0, 450.0],
        'inventory': [float('nan'), 50.0],
        'goodwill': [10.0, 10.0],
    })

    series = StatementSeries.from_frames('ACME', balance=balance)

    assert series.balance_sheets[0].inventory is None
    assert series.balance_sheets[1].inventory == 50.0

  def test_nan_in_defaulted_field_keeps_default(self):
    cash_flow = pd.DataFrame({
        'fiscal_year': ['2023', '2022'],
        'operating_cash_flow': [200.0, 150.0],
        'capital_expenditure': [-60.0, -50.0],
        'depreciation': [float('nan'), 40.0],
    })

    series = StatementSeries.from_frames('ACME', cash_flow=cash_flow)

    assert series.cash_flow_statements[0].depreciation == 0.0
    assert series.cash_flow_statements[1].depreciation == 40.0

  def test_nan_in_required_field(self):
    cash_flow = pd.DataFrame({
        'fiscal_year': ['2023'],
        'operating_cash_flow': [float('nan')],
        'capital_expenditure': [-60.0],
    })

    with pytest.raises(ValueError, match='operating_cash_flow'):
      StatementSeries.from_frames('ACME', cash_flow=cash_flow)

  def test_empty_frames(self):
    series = StatementSeries.from_frames('EMPTY', income=pd.DataFrame())

    assert series.income_statements == ()
    assert series.income_frame().empty


class TestStatementFrames:
  """Tests for DataFrame views of a series."""

  def test_cash_flow_frame_has_free_cash_flow(self, growing_series):
    frame = growing_series.cash_flow_frame()

    assert 'free_cash_flow' in frame.columns
    assert len(frame) == 10
    assert frame['free_cash_flow'].iloc[0] == pytest.approx(
        growing_series.latest_cash_flow.free_cash_flow)

  def test_income_frame_order(self, growing_series):
    frame = growing_series.income_frame()

    assert frame['fiscal_year'].tolist()[0] == '2023'
    assert frame['fiscal_year'].tolist()[-1] == '2014'


class TestDCFResult:
  """Tests for DCFResult helpers."""

  def _assumptions(self) -> DCFAssumptions:
    return DCFAssumptions(discount_rate=0.10,
                          terminal_growth_rate=0.03,
                          projection_years=10,
                          estimated_growth_rate=0.05,
                          starting_fcf=100.0)

  def test_refused_when_no_projection(self):
    result = DCFResult(intrinsic_value=0.0,
                       projected_fcf=(),
                       terminal_value=0.0,
                       pv_of_fcf=0.0,
                       pv_of_terminal=0.0,
                       enterprise_value=0.0,
                       assumptions=self._assumptions())

    assert result.refused

  def test_to_dict(self):
    result = DCFResult(intrinsic_value=12.5,
                       projected_fcf=(105.0,),
                       terminal_value=1500.0,
                       pv_of_fcf=95.0,
                       pv_of_terminal=1100.0,
                       enterprise_value=1195.0,
                       assumptions=self._assumptions())

    d = result.to_dict()

    assert not result.refused
    assert d['dcf_intrinsic_value'] == 12.5
    assert d['dcf_enterprise_value'] == 1195.0
    assert d['estimated_growth_rate'] == 0.05


class TestSensitivityGrid:

  def test_to_frame_labels(self):
    """Rows are discount rates, columns growth rates, as percentages."""
    grid = SensitivityGrid(
        discount_rates=(0.09, 0.10),
        growth_rates=(0.04, 0.05),
        values=((11.0, 12.0), (9.0, 10.0)),
    )

    df = grid.to_frame()

    assert df.index.name == 'Discount Rate'
    assert df.columns.name == 'Growth Rate'
    assert df.index.tolist() == ['9.0%', '10.0%']
    assert df.columns.tolist() == ['4.0%', '5.0%']
    assert df.loc['10.0%', '5.0%'] == 10.0


class TestRatios:

  def test_empty_defaults(self):
    ratios = Ratios.empty()

    assert ratios.pe is None
    assert ratios.roic is None
    assert ratios.gross_margin == 0.0
    assert not math.isnan(ratios.current_ratio)

  def test_to_dict_has_every_field(self):
    d = Ratios(pe=15.0, gross_margin=0.4).to_dict()

    assert d['pe'] == 15.0
    assert d['gross_margin'] == 0.4
    assert 'fcf_growth_5y' in d
    assert 'dividend_growth_5y' in d
