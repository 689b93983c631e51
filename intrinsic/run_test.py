from dataclasses import replace

import pytest

from intrinsic.data_loader import CompanySnapshot
from intrinsic.engine.margin import calculate_margin_of_safety
from intrinsic.run import run_valuation
from intrinsic.scenarios.config import AnalysisConfig


class TestRunValuation:
  """Tests for run_valuation."""

  def test_default_report(self, sample_snapshot):
    report = run_valuation(sample_snapshot)

    assert report.ticker == 'GROW'
    assert report.price == 20.0
    assert report.config == AnalysisConfig.default()
    assert report.dcf.intrinsic_value > 0
    assert report.graham.graham_number > 0
    assert report.moat is None
    assert report.margin_vs_dcf == calculate_margin_of_safety(
        20.0, report.dcf.intrinsic_value)

  def test_combined_is_conservative(self, sample_snapshot):
    report = run_valuation(sample_snapshot)
    values = [
        report.dcf.intrinsic_value,
        report.graham.graham_number,
        report.graham.graham_growth_value,
    ]

    assert report.combined.effective_intrinsic_value == pytest.approx(
        min(values))
    assert set(report.combined.individual) == {
        'dcf', 'graham_number', 'graham_growth'
    }

  def test_target_prices_use_required_margin(self, sample_snapshot):
    config = AnalysisConfig.conservative()

    report = run_valuation(sample_snapshot, config=config)

    assert report.target_prices['dcf'] == pytest.approx(
        report.dcf.intrinsic_value * 0.65)
    assert report.graham.bond_yield == 0.045
    assert report.required_drop.target_price == pytest.approx(
        report.combined.effective_intrinsic_value * 0.65)

  def test_zero_price_still_reports(self, sample_snapshot):
    snapshot = replace(sample_snapshot,
                       quote=replace(sample_snapshot.quote, price=0.0))

    report = run_valuation(snapshot)

    assert report.combined.status == 'overvalued'
    assert report.required_drop.percent_drop == 0.0
    assert not report.required_drop.is_already_adequate

  def test_include_moat(self, sample_snapshot):
    report = run_valuation(sample_snapshot, include_moat=True)

    assert report.moat is not None
    assert report.moat.overall_score == max(report.moat.dimensions.scores())

  def test_refused_dcf(self, sample_snapshot, negative_fcf_series):
    snapshot = replace(sample_snapshot, series=negative_fcf_series)

    report = run_valuation(snapshot)

    assert report.dcf.refused
    assert report.combined.individual['dcf'] is None
    assert report.margin_vs_dcf.rating == 'invalid'

  def test_invalid_config(self, sample_snapshot):
    config = AnalysisConfig(discount_rate=0.5)

    with pytest.raises(ValueError, match='discount_rate'):
      run_valuation(sample_snapshot, config=config)

  def test_to_dict(self, sample_snapshot):
    d = run_valuation(sample_snapshot, include_moat=True).to_dict()

    assert d['ticker'] == 'GROW'
    assert d['scenario'] == 'default'
    assert 'dcf_intrinsic_value' in d
    assert 'combined_margin_of_safety' in d
    assert 'target_graham_number' in d
    assert 'moat_rating' in d

  def test_without_profile(self, growing_series, sample_quote):
    snapshot = CompanySnapshot(series=growing_series, quote=sample_quote)

    report = run_valuation(snapshot, include_moat=True)

    assert report.moat.dimensions.scale_economies.metrics[
        'revenue_per_employee'] is None
