"""Domain types for the intrinsic value engine."""

from intrinsic.domain.types import BalanceSheet
from intrinsic.domain.types import CashFlowStatement
from intrinsic.domain.types import CompanyProfile
from intrinsic.domain.types import IncomeStatement
from intrinsic.domain.types import PolicyOutput
from intrinsic.domain.types import Quote
from intrinsic.domain.types import StatementSeries

__all__ = [
    'BalanceSheet',
    'CashFlowStatement',
    'CompanyProfile',
    'IncomeStatement',
    'PolicyOutput',
    'Quote',
    'StatementSeries',
]
