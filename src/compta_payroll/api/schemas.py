"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from compta_payroll.calculators.types import PayrollCalculationResult
from compta_payroll.models import Payroll


# ============================================================================
# Calculation schemas
# ============================================================================


class PayrollCalculateRequest(BaseModel):
    """Schema for previewing a payroll calculation."""

    employee_id: int = Field(gt=0)
    worked_days: int = Field(default=30, ge=0, le=31)
    allowances: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)


class DeductionResponse(BaseModel):
    """One named deduction."""

    name: str
    amount: Decimal
    category: str


class PayrollBreakdownResponse(BaseModel):
    """Payslip-ready breakdown."""

    base_salary: Decimal
    allowances: Decimal
    gross_salary: Decimal
    deductions: list[DeductionResponse]
    total_deductions: Decimal
    net_salary: Decimal


class PayrollCalculationResponse(BaseModel):
    """Schema for a calculation result."""

    gross_salary: Decimal
    net_salary: Decimal
    total_deductions: Decimal
    cnss_employee: Decimal
    cnss_employer: Decimal
    amo_employee: Decimal
    amo_employer: Decimal
    igr_tax: Decimal
    breakdown: PayrollBreakdownResponse

    @classmethod
    def from_result(cls, result: PayrollCalculationResult) -> PayrollCalculationResponse:
        breakdown = result.breakdown
        return cls(
            gross_salary=result.gross_salary,
            net_salary=result.net_salary,
            total_deductions=result.total_deductions,
            cnss_employee=result.social_security.employee,
            cnss_employer=result.social_security.employer,
            amo_employee=result.health_insurance.employee,
            amo_employer=result.health_insurance.employer,
            igr_tax=result.income_tax,
            breakdown=PayrollBreakdownResponse(
                base_salary=breakdown.base_salary,
                allowances=breakdown.allowances,
                gross_salary=breakdown.gross_salary,
                deductions=[
                    DeductionResponse(name=d.name, amount=d.amount, category=d.category.value)
                    for d in breakdown.deductions
                ],
                total_deductions=breakdown.total_deductions,
                net_salary=breakdown.net_salary,
            ),
        )


# ============================================================================
# Payroll record schemas
# ============================================================================


class PayrollCreate(BaseModel):
    """Schema for creating a payroll record."""

    employee_id: int = Field(gt=0)
    period_year: int = Field(ge=2000, le=3000)
    period_month: int = Field(ge=1, le=12)
    worked_days: int = Field(ge=1, le=31)
    total_allowances: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)
    payment_date: datetime | None = None


class PayrollResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_full_name: str
    employee_number: str
    period_year: int
    period_month: int
    gross_salary: Decimal
    net_salary: Decimal
    total_deductions: Decimal
    total_allowances: Decimal
    cnss_employee: Decimal
    cnss_employer: Decimal
    amo_employee: Decimal
    amo_employer: Decimal
    igr_tax: Decimal
    other_deductions: Decimal
    worked_days: int
    payment_date: datetime
    status: str
    created_at: datetime

    @classmethod
    def from_payroll(cls, payroll: Payroll) -> PayrollResponse:
        employee = payroll.employee
        data = payroll.to_dict()
        data["employee_full_name"] = employee.full_name
        data["employee_number"] = employee.employee_number
        return cls.model_validate(data)


class PayrollListResponse(BaseModel):
    """Schema for listing payroll records."""

    items: list[PayrollResponse]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
