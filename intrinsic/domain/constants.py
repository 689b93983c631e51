"""
Value investing threshold constants.

Based on Benjamin Graham's and Warren Buffett's published rules of thumb.
"""

# Margin of safety bands
MARGIN_EXCELLENT = 0.50
MARGIN_GOOD = 0.35
MARGIN_MINIMUM = 0.25
MARGIN_OVERVALUED_LIMIT = -0.25

# DCF guard rails
GROWTH_CLAMP_MIN = -0.10
GROWTH_CLAMP_MAX = 0.25
GROWTH_HAIRCUT = 0.8
DEFAULT_GROWTH_RATE = 0.05
TERMINAL_SPREAD = 0.01
MAX_LOOKBACK_YEARS = 5
MIN_GROWTH_HISTORY = 3

# Graham
GRAHAM_MULTIPLIER = 22.5
GRAHAM_NO_GROWTH_PE = 8.5
GRAHAM_BASE_YIELD = 4.4
DEFAULT_BOND_YIELD = 0.04
DEFENSIVE_MIN_MARKET_CAP = 500_000_000
DEFENSIVE_MIN_CURRENT_RATIO = 2.0
DEFENSIVE_MIN_EPS_GROWTH = 0.33
DEFENSIVE_MAX_PE = 15.0
DEFENSIVE_MAX_PB = 1.5
MAINTENANCE_CAPEX_SHARE = 0.7

# Tax rate estimate used for NOPAT
DEFAULT_TAX_RATE = 0.25
MAX_TAX_RATE = 0.5

# Moat rating bands
MOAT_WIDE = 4.0
MOAT_NARROW = 2.5
MOAT_SCORE_MIN = 1.0
MOAT_SCORE_MAX = 5.0
