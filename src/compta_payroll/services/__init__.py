"""Payroll services."""

from compta_payroll.services.payroll_service import (
    DuplicatePeriodError,
    EmployeeNotFoundError,
    PayrollService,
)
from compta_payroll.services.payslip_service import (
    MissingEmailError,
    PayrollNotFoundError,
    PayslipNotFoundError,
    PayslipService,
)
from compta_payroll.services.repositories import PayrollRepository
from compta_payroll.services.state_machine import PayrollStateMachine, PayrollStatus

__all__ = [
    "PayrollService",
    "PayslipService",
    "PayrollRepository",
    "PayrollStateMachine",
    "PayrollStatus",
    "DuplicatePeriodError",
    "EmployeeNotFoundError",
    "PayrollNotFoundError",
    "PayslipNotFoundError",
    "MissingEmailError",
]
