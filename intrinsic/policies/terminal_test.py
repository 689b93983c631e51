import pytest

from intrinsic.policies.terminal import safe_terminal_growth


class TestSafeTerminalGrowth:
  """Tests for safe_terminal_growth policy."""

  def test_unchanged_below_ceiling(self):
    result = safe_terminal_growth(0.03, 0.10)

    assert result.value == 0.03
    assert result.diag['clamped'] is False

  def test_clamped_to_one_point_below_discount(self):
    """gT = 5% with r = 5%: capped at 4%."""
    result = safe_terminal_growth(0.05, 0.05)

    assert result.value == pytest.approx(0.04)
    assert result.diag['clamped'] is True
    assert result.diag['g_terminal_requested'] == 0.05
