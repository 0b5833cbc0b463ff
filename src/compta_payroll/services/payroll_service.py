"""Payroll service - orchestrates calculation and payroll record lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from compta_payroll.calculators.engine import PayrollEngine
from compta_payroll.calculators.types import (
    InvalidPayrollInputError,
    PayrollCalculationResult,
    PayrollPeriodKey,
)
from compta_payroll.config import get_settings
from compta_payroll.models import Employee, Payroll
from compta_payroll.services.repositories import (
    PayrollRepository,
    PayrollStore,
    PeriodConflictError,
)
from compta_payroll.services.state_machine import PayrollStateMachine, PayrollStatus

logger = logging.getLogger(__name__)

# Accepted ranges for a persisted payroll record
YEAR_RANGE = (2000, 3000)
MONTH_RANGE = (1, 12)
WORKED_DAYS_RANGE = (1, 31)


class EmployeeNotFoundError(Exception):
    """Raised when an employee does not exist in the company's scope."""

    def __init__(self, employee_id: int, company_id: int):
        self.employee_id = employee_id
        self.company_id = company_id
        super().__init__(f"Employee {employee_id} not found in company {company_id}")


class DuplicatePeriodError(Exception):
    """Raised when a payroll record already exists for the period key."""

    def __init__(self, key: PayrollPeriodKey):
        self.key = key
        super().__init__(f"Payroll already exists for {key}")


class PayrollService:
    """Service for payroll calculation and record management.

    Operations:
    - calculate_for_employee: Preview a computation without persisting it
    - create_payroll: Calculate and persist one draft record per period
    - approve_payroll: Transition a draft record to approved
    - get_payroll / list_payrolls: Company-scoped reads

    Every operation takes the company id explicitly.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: PayrollEngine | None = None,
        repository: PayrollStore | None = None,
    ):
        self.session = session
        self.engine = engine or PayrollEngine()
        self.repository: PayrollStore = repository or PayrollRepository(session)
        self.settings = get_settings()

    async def calculate(
        self,
        employee: Employee,
        worked_days: int,
        allowances: Decimal,
        other_deductions: Decimal,
        company_id: int,
    ) -> PayrollCalculationResult:
        """Run the engine against the company's active contribution rules."""
        rules = await self.repository.get_active_rules(company_id)
        return self.engine.calculate(
            employee.to_pay_input(),
            worked_days,
            allowances,
            other_deductions,
            rules,
        )

    async def calculate_for_employee(
        self,
        employee_id: int,
        company_id: int,
        worked_days: int = 30,
        allowances: Decimal = Decimal("0"),
        other_deductions: Decimal = Decimal("0"),
    ) -> PayrollCalculationResult:
        """Preview a payroll calculation for an employee.

        Raises:
            EmployeeNotFoundError: If the employee is not in the company
        """
        employee = await self._require_employee(employee_id, company_id)
        return await self.calculate(employee, worked_days, allowances, other_deductions, company_id)

    async def create_payroll(
        self,
        company_id: int,
        employee_id: int,
        year: int,
        month: int,
        worked_days: int,
        total_allowances: Decimal = Decimal("0"),
        other_deductions: Decimal = Decimal("0"),
        payment_date: datetime | None = None,
    ) -> Payroll:
        """Calculate and persist a draft payroll record.

        Never overwrites: an existing record for the period is a conflict.

        Raises:
            InvalidPayrollInputError: If the period or worked days are out of range
            EmployeeNotFoundError: If the employee is not in the company
            DuplicatePeriodError: If the period already has a record
        """
        _check_range("year", year, YEAR_RANGE)
        _check_range("month", month, MONTH_RANGE)
        _check_range("worked_days", worked_days, WORKED_DAYS_RANGE)

        employee = await self._require_employee(employee_id, company_id)

        key = PayrollPeriodKey(
            company_id=company_id,
            employee_id=employee_id,
            year=year,
            month=month,
        )
        # Fast path; the unique constraint on insert is authoritative
        if await self.repository.find_payroll(key) is not None:
            logger.info("Rejected duplicate payroll for %s", key)
            raise DuplicatePeriodError(key)

        result = await self.calculate(
            employee, worked_days, total_allowances, other_deductions, company_id
        )

        if payment_date is None:
            payment_date = datetime.now(timezone.utc) + timedelta(
                days=self.settings.payment_delay_days
            )

        payroll = Payroll(
            company_id=company_id,
            employee_id=employee_id,
            period_year=year,
            period_month=month,
            gross_salary=result.gross_salary,
            net_salary=result.net_salary,
            total_deductions=result.total_deductions,
            total_allowances=total_allowances,
            cnss_employee=result.social_security.employee,
            cnss_employer=result.social_security.employer,
            amo_employee=result.health_insurance.employee,
            amo_employer=result.health_insurance.employer,
            igr_tax=result.income_tax,
            other_deductions=other_deductions,
            worked_days=worked_days,
            payment_date=payment_date,
            status=PayrollStatus.DRAFT.value,
        )

        try:
            payroll = await self.repository.insert_payroll(payroll)
        except PeriodConflictError as e:
            logger.warning("Concurrent payroll insert lost the race for %s", key)
            raise DuplicatePeriodError(key) from e

        logger.info(
            "Created payroll %s for %s: gross=%s net=%s",
            payroll.id,
            key,
            payroll.gross_salary,
            payroll.net_salary,
        )
        return payroll

    async def approve_payroll(self, payroll_id: int, company_id: int) -> bool:
        """Approve a draft payroll record.

        Returns False without mutating anything when the record does not
        exist or is not in draft status.
        """
        to_status = PayrollStatus.APPROVED
        from_statuses = [PayrollStatus(s).value for s in PayrollStateMachine.sources_for(to_status)]

        approved = await self.repository.update_status(
            payroll_id, company_id, from_statuses, to_status.value
        )
        if approved:
            logger.info("Approved payroll %s (company %s)", payroll_id, company_id)
        else:
            logger.info(
                "Payroll %s (company %s) not approvable: missing or not in draft",
                payroll_id,
                company_id,
            )
        return approved

    async def get_payroll(self, payroll_id: int, company_id: int) -> Payroll | None:
        """Get a payroll record within the company's scope."""
        return await self.repository.get_payroll(payroll_id, company_id)

    async def list_payrolls(
        self, company_id: int, year: int | None = None, month: int | None = None
    ) -> list[Payroll]:
        """List payroll records with optional period filters."""
        return await self.repository.list_payrolls(company_id, year, month)

    async def _require_employee(self, employee_id: int, company_id: int) -> Employee:
        employee = await self.repository.get_employee(employee_id, company_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id, company_id)
        return employee


def _check_range(field_name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise InvalidPayrollInputError(field_name, value, f"must be between {low} and {high}")
