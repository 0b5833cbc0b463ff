"""Payroll calculation engine - composes pro-ration, contributions and tax."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal

from compta_payroll.calculators.contribution_calculator import ContributionCalculator
from compta_payroll.calculators.income_tax import IncomeTaxCalculator
from compta_payroll.calculators.types import (
    ZERO,
    ContributionKind,
    ContributionRule,
    DeductionCategory,
    DeductionLine,
    EmployeePay,
    InvalidPayrollInputError,
    PayrollBreakdown,
    PayrollCalculationResult,
    to_money,
)

logger = logging.getLogger(__name__)

# Fixed month length regardless of the calendar
DAYS_PER_MONTH = Decimal("30")


class PayrollEngine:
    """Monthly payroll calculation engine.

    Calculation pipeline (stable order):
    1) daily salary = base salary / 30
    2) pro-rated base = daily salary * worked days, rounded to cents
    3) gross = pro-rated base + allowances
    4) CNSS and AMO employee/employer shares on gross
    5) IGR income tax on gross
    6) total deductions = CNSS + AMO employee shares + IGR + other deductions
    7) net = gross - total deductions (may be negative, reported as-is)

    The engine is pure: it holds no state between calls and performs no I/O.
    """

    def __init__(
        self,
        contribution_calculator: ContributionCalculator | None = None,
        income_tax_calculator: IncomeTaxCalculator | None = None,
    ):
        self.contribution_calculator = contribution_calculator or ContributionCalculator()
        self.income_tax_calculator = income_tax_calculator or IncomeTaxCalculator()

    def calculate(
        self,
        employee: EmployeePay,
        worked_days: int,
        allowances: Decimal,
        other_deductions: Decimal,
        active_rules: Sequence[ContributionRule],
    ) -> PayrollCalculationResult:
        """Calculate gross, deductions and net pay for one month.

        Args:
            employee: Employee pay data (base salary must be >= 0)
            worked_days: Days worked in the period (>= 0)
            allowances: Total allowances added to gross (>= 0)
            other_deductions: Deductions outside contributions and tax (>= 0)
            active_rules: The company's active contribution rules, ascending id

        Raises:
            InvalidPayrollInputError: If an input is outside its domain
        """
        self._check_preconditions(employee, worked_days, allowances, other_deductions)

        # (base / 30) * days, divided last so only one inexact step precedes rounding
        prorated_base = to_money(employee.base_salary * worked_days / DAYS_PER_MONTH)
        gross = prorated_base + allowances

        cnss_rule = self.contribution_calculator.find_rule(
            active_rules, ContributionKind.SOCIAL_SECURITY
        )
        amo_rule = self.contribution_calculator.find_rule(
            active_rules, ContributionKind.HEALTH_INSURANCE
        )
        cnss = self.contribution_calculator.compute(gross, cnss_rule)
        amo = self.contribution_calculator.compute(gross, amo_rule)

        igr = self.income_tax_calculator.compute(gross)

        total_deductions = cnss.employee + amo.employee + igr + other_deductions
        net = gross - total_deductions

        if net < 0:
            logger.info(
                "Negative net salary %s for employee %s (other deductions %s)",
                net,
                employee.employee_id,
                other_deductions,
            )

        breakdown = PayrollBreakdown(
            base_salary=prorated_base,
            allowances=allowances,
            gross_salary=gross,
            deductions=[
                DeductionLine("CNSS Employee", cnss.employee, DeductionCategory.SOCIAL),
                DeductionLine("AMO Employee", amo.employee, DeductionCategory.SOCIAL),
                DeductionLine("IGR Tax", igr, DeductionCategory.TAX),
                DeductionLine("Other Deductions", other_deductions, DeductionCategory.OTHER),
            ],
            total_deductions=total_deductions,
            net_salary=net,
        )

        return PayrollCalculationResult(
            gross_salary=gross,
            net_salary=net,
            total_deductions=total_deductions,
            social_security=cnss,
            health_insurance=amo,
            income_tax=igr,
            breakdown=breakdown,
        )

    @staticmethod
    def _check_preconditions(
        employee: EmployeePay,
        worked_days: int,
        allowances: Decimal,
        other_deductions: Decimal,
    ) -> None:
        if employee.base_salary < ZERO:
            raise InvalidPayrollInputError("base_salary", employee.base_salary, "must be >= 0")
        if worked_days < 0:
            raise InvalidPayrollInputError("worked_days", worked_days, "must be >= 0")
        if allowances < ZERO:
            raise InvalidPayrollInputError("allowances", allowances, "must be >= 0")
        if other_deductions < ZERO:
            raise InvalidPayrollInputError("other_deductions", other_deductions, "must be >= 0")
