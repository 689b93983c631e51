'''
Valuation engines with pure math functions.

Import the engines directly, for example:
  from intrinsic.engine.dcf import calculate_dcf
  from intrinsic.engine.margin import calculate_margin_of_safety
'''
