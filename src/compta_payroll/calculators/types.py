"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(amount: Decimal) -> Decimal:
    """Round a currency amount to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class InvalidPayrollInputError(ValueError):
    """Raised when calculation inputs fall outside their valid domain."""

    def __init__(self, field_name: str, value: Any, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field_name}={value!r}: {reason}")


class ContributionKind(str, Enum):
    """Contribution rule kinds."""

    SOCIAL_SECURITY = "cnss"
    HEALTH_INSURANCE = "amo"
    INCOME_TAX = "igr"
    SUPPLEMENTARY_PENSION = "cimr"
    OTHER = "other"


class DeductionCategory(str, Enum):
    """Payslip deduction categories."""

    SOCIAL = "social"
    TAX = "tax"
    OTHER = "other"


@dataclass(frozen=True)
class ContributionRule:
    """A company-configured contribution rule."""

    rule_id: int | None
    company_id: int
    name: str
    kind: ContributionKind
    employee_rate: Decimal  # As fraction, e.g. 0.0267 for 2.67%
    employer_rate: Decimal
    max_amount: Decimal | None = None  # Caps the contribution amount, not the base
    min_amount: Decimal | None = None
    is_active: bool = True


@dataclass(frozen=True)
class EmployeePay:
    """The employee fields read by the engine."""

    employee_id: int
    company_id: int
    base_salary: Decimal
    is_active: bool = True


@dataclass(frozen=True)
class TaxBracket:
    """Progressive tax bracket."""

    min_amount: Decimal
    max_amount: Decimal | None  # Inclusive upper bound, None = no upper limit
    rate: Decimal
    flat_amount: Decimal = ZERO  # Tax owed at min_amount


@dataclass(frozen=True)
class ContributionAmounts:
    """Employee and employer share of one contribution."""

    employee: Decimal = ZERO
    employer: Decimal = ZERO


@dataclass(frozen=True)
class DeductionLine:
    """One named deduction on the payslip."""

    name: str
    amount: Decimal
    category: DeductionCategory


@dataclass(frozen=True)
class PayrollBreakdown:
    """Payslip-ready breakdown of a calculation."""

    base_salary: Decimal
    allowances: Decimal
    gross_salary: Decimal
    deductions: list[DeductionLine] = field(default_factory=list)
    total_deductions: Decimal = ZERO
    net_salary: Decimal = ZERO


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Result of calculating one employee's monthly pay."""

    gross_salary: Decimal
    net_salary: Decimal
    total_deductions: Decimal
    social_security: ContributionAmounts
    health_insurance: ContributionAmounts
    income_tax: Decimal
    breakdown: PayrollBreakdown

    @property
    def total_employer_contributions(self) -> Decimal:
        return self.social_security.employer + self.health_insurance.employer


@dataclass(frozen=True)
class PayrollPeriodKey:
    """Uniquely identifies one payroll record."""

    company_id: int
    employee_id: int
    year: int
    month: int

    def __str__(self) -> str:
        return f"company={self.company_id} employee={self.employee_id} period={self.year}-{self.month:02d}"
