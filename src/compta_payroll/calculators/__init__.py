"""Payroll calculation engine."""

from compta_payroll.calculators.contribution_calculator import ContributionCalculator
from compta_payroll.calculators.engine import PayrollEngine
from compta_payroll.calculators.income_tax import IGR_BRACKETS, IncomeTaxCalculator
from compta_payroll.calculators.types import (
    ContributionAmounts,
    ContributionKind,
    ContributionRule,
    EmployeePay,
    InvalidPayrollInputError,
    PayrollCalculationResult,
)

__all__ = [
    "PayrollEngine",
    "ContributionCalculator",
    "IncomeTaxCalculator",
    "IGR_BRACKETS",
    "ContributionAmounts",
    "ContributionKind",
    "ContributionRule",
    "EmployeePay",
    "InvalidPayrollInputError",
    "PayrollCalculationResult",
]
