import pytest

from intrinsic.domain.types import Ratios
from intrinsic.domain.types import StatementSeries
from intrinsic.engine.ratios import calculate_cagr
from intrinsic.engine.ratios import calculate_financial_ratios
from intrinsic.engine.ratios import estimate_tax_rate
from intrinsic.engine.ratios import evaluate_profitability
from intrinsic.engine.ratios import evaluate_safety
from intrinsic.engine.ratios import lookback_cagr


class TestCalculateCAGR:
  """Tests for calculate_cagr function."""

  def test_doubling_over_five_years(self):
    """(200 / 100)^(1/5) - 1 = 0.1487."""
    assert calculate_cagr(100.0, 200.0, 5) == pytest.approx(0.1487, abs=1e-4)

  def test_decline(self):
    """(81 / 100)^(1/2) - 1 = -0.10."""
    assert calculate_cagr(100.0, 81.0, 2) == pytest.approx(-0.10)

  @pytest.mark.parametrize('start,end,years', [
      (0.0, 100.0, 5),
      (-50.0, 100.0, 5),
      (100.0, 0.0, 5),
      (100.0, -10.0, 5),
      (100.0, 200.0, 0),
  ])
  def test_undefined(self, start, end, years):
    assert calculate_cagr(start, end, years) is None


class TestLookbackCAGR:
  """Tests for lookback_cagr function."""

  def test_caps_window_at_five_years(self):
    """Seven values newest first: compares index 0 with index 5."""
    values = [200.0, 180.0, 160.0, 140.0, 120.0, 100.0, 1.0]

    assert lookback_cagr(values) == pytest.approx((2.0)**(1 / 5) - 1)

  def test_short_history(self):
    """Three values: two-year CAGR (121 / 100)^(1/2) - 1 = 0.10."""
    assert lookback_cagr([121.0, 110.0, 100.0]) == pytest.approx(0.10)

  def test_min_history(self):
    assert lookback_cagr([110.0, 100.0], min_history=3) is None
    assert lookback_cagr([110.0]) is None


class TestEstimateTaxRate:

  def test_implied_rate(self):
    """1 - 75 / 100 = 25%."""
    assert estimate_tax_rate(75.0, 100.0) == pytest.approx(0.25)

  def test_losses_use_default(self):
    assert estimate_tax_rate(-10.0, 100.0) == 0.25

  def test_clamped(self):
    """1 - 10 / 100 = 90%, capped at 50%."""
    assert estimate_tax_rate(10.0, 100.0) == 0.5


class TestCalculateFinancialRatios:
  """Tests for calculate_financial_ratios function."""

  def test_profitability_and_solvency(self, growing_series, sample_quote):
    """All line items scale with revenue R.

    Margins: gross 0.50, operating 0.20, net 0.15
    ROE = 0.15R / 1.2R = 0.125, ROA = 0.15R / 2R = 0.075
    Tax = 1 - 0.15 / 0.20 = 25%, NOPAT = 0.15R
    Invested capital = 1.2R + 0.2R - 0.2R = 1.2R, ROIC = 0.125
    Current = 0.8 / 0.3, quick = (0.8 - 0.1) / 0.3
    """
    ratios = calculate_financial_ratios(growing_series, sample_quote)

    assert ratios.gross_margin == pytest.approx(0.50)
    assert ratios.operating_margin == pytest.approx(0.20)
    assert ratios.net_margin == pytest.approx(0.15)
    assert ratios.roe == pytest.approx(0.125)
    assert ratios.roa == pytest.approx(0.075)
    assert ratios.roic == pytest.approx(0.125)
    assert ratios.current_ratio == pytest.approx(0.8 / 0.3)
    assert ratios.quick_ratio == pytest.approx(0.7 / 0.3)
    assert ratios.debt_to_equity == pytest.approx(0.2 / 1.2)
    assert ratios.debt_to_assets == pytest.approx(0.10)
    assert ratios.interest_coverage == pytest.approx(20.0)
    assert ratios.net_debt_to_ebitda == pytest.approx(0.0)

  def test_cash_flow_and_growth(self, growing_series, sample_quote):
    """FCF = 0.15R, capex = 0.05R, depreciation = 0.04R.

    Revenue, EPS and FCF all compound at 10%.
    PEG = 12 / (0.10 * 100) = 1.2
    """
    ratios = calculate_financial_ratios(growing_series, sample_quote)
    fcf = growing_series.latest_cash_flow.free_cash_flow

    assert ratios.cash_conversion == pytest.approx(1.0)
    assert ratios.capex_to_depreciation == pytest.approx(1.25)
    assert ratios.revenue_growth_5y == pytest.approx(0.10)
    assert ratios.eps_growth_5y == pytest.approx(0.10)
    assert ratios.fcf_growth_5y == pytest.approx(0.10)
    assert ratios.dividend_growth_5y is None
    assert ratios.fcf_yield == pytest.approx(fcf / 2e9)
    assert ratios.price_to_fcf == pytest.approx(2e9 / fcf)
    assert ratios.peg == pytest.approx(1.2)

  def test_market_ratios_need_quote(self, growing_series):
    ratios = calculate_financial_ratios(growing_series)

    assert ratios.pe is None
    assert ratios.fcf_yield is None
    assert ratios.ev_to_ebitda is None
    assert ratios.peg is None
    assert ratios.gross_margin == pytest.approx(0.50)

  def test_no_growth_with_single_year(self, minimal_series):
    ratios = calculate_financial_ratios(minimal_series)

    assert ratios.revenue_growth_5y is None
    assert ratios.eps_growth_5y is None
    assert ratios.fcf_growth_5y is None

  def test_missing_statements(self):
    ratios = calculate_financial_ratios(StatementSeries(ticker='NONE'))

    assert ratios == Ratios.empty()


class TestEvaluateProfitability:

  def test_excellent(self):
    """ROE +2, gross +2, operating +1, ROIC +1 = 6."""
    result = evaluate_profitability(
        Ratios(roe=0.25, gross_margin=0.60, operating_margin=0.30, roic=0.20))

    assert result.score == 6
    assert result.assessment.startswith('Excellent')
    assert len(result.details) == 4

  def test_weak(self):
    """ROE -1, gross 0, operating -1 = -2; ROIC unknown adds nothing."""
    result = evaluate_profitability(
        Ratios(roe=0.05, gross_margin=0.10, operating_margin=0.05))

    assert result.score == -2
    assert result.assessment.startswith('Weak')
    assert len(result.details) == 3


class TestEvaluateSafety:

  def test_fortress(self):
    """Current +2, D/E +2, coverage +1, D/A +1 = 6."""
    result = evaluate_safety(
        Ratios(current_ratio=3.0,
               debt_to_equity=0.1,
               interest_coverage=15.0,
               debt_to_assets=0.05))

    assert result.score == 6
    assert 'fortress' in result.assessment

  def test_concerning(self):
    """Current -2, D/E -2, coverage -2, D/A -1 = -7."""
    result = evaluate_safety(
        Ratios(current_ratio=0.8,
               debt_to_equity=3.0,
               interest_coverage=1.5,
               debt_to_assets=0.7))

    assert result.score == -7
    assert result.assessment.startswith('Concerning')
