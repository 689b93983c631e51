'''
Valuation analysis utilities.

Note: To avoid RuntimeWarning when using -m flag, import directly:
  from intrinsic.analysis.sensitivity import dcf_sensitivity
'''
