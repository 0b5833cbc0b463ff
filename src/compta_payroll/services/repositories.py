"""Read and write collaborators for the payroll service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from compta_payroll.calculators.types import ContributionRule, PayrollPeriodKey
from compta_payroll.models import Cotisation, Employee, Payroll


class PeriodConflictError(Exception):
    """Raised by the store when the period key is already taken."""

    def __init__(self, key: PayrollPeriodKey):
        self.key = key
        super().__init__(f"Payroll already exists for {key}")


class PayrollReader(Protocol):
    """Data the engine reads."""

    async def get_employee(self, employee_id: int, company_id: int) -> Employee | None: ...

    async def get_active_rules(self, company_id: int) -> list[ContributionRule]: ...

    async def find_payroll(self, key: PayrollPeriodKey) -> Payroll | None: ...

    async def get_payroll(self, payroll_id: int, company_id: int) -> Payroll | None: ...

    async def list_payrolls(
        self, company_id: int, year: int | None = None, month: int | None = None
    ) -> list[Payroll]: ...


class PayrollWriter(Protocol):
    """Writes the engine performs."""

    async def insert_payroll(self, payroll: Payroll) -> Payroll: ...

    async def update_status(
        self, payroll_id: int, company_id: int, from_statuses: list[str], to_status: str
    ) -> bool: ...


class PayrollStore(PayrollReader, PayrollWriter, Protocol):
    """Everything the payroll service needs from storage."""


class PayrollRepository:
    """SQLAlchemy implementation of ``PayrollStore``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employee(self, employee_id: int, company_id: int) -> Employee | None:
        """Get an employee within a company's scope."""
        result = await self.session.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.company_id == company_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_active_rules(self, company_id: int) -> list[ContributionRule]:
        """Get active contribution rules, lowest id first."""
        result = await self.session.execute(
            select(Cotisation)
            .where(Cotisation.company_id == company_id, Cotisation.is_active.is_(True))
            .order_by(Cotisation.id)
        )
        return [c.to_rule() for c in result.scalars().all()]

    async def find_payroll(self, key: PayrollPeriodKey) -> Payroll | None:
        """Get the payroll record for a period key, if any."""
        result = await self.session.execute(
            select(Payroll).where(
                Payroll.company_id == key.company_id,
                Payroll.employee_id == key.employee_id,
                Payroll.period_year == key.year,
                Payroll.period_month == key.month,
            )
        )
        return result.scalar_one_or_none()

    async def get_payroll(self, payroll_id: int, company_id: int) -> Payroll | None:
        """Get a payroll record with its employee."""
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.id == payroll_id, Payroll.company_id == company_id)
            .options(selectinload(Payroll.employee))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_payrolls(
        self, company_id: int, year: int | None = None, month: int | None = None
    ) -> list[Payroll]:
        """List payroll records, newest period first."""
        query = (
            select(Payroll)
            .join(Employee, Payroll.employee_id == Employee.id)
            .where(Payroll.company_id == company_id)
            .options(selectinload(Payroll.employee))
        )
        if year is not None:
            query = query.where(Payroll.period_year == year)
        if month is not None:
            query = query.where(Payroll.period_month == month)

        query = query.order_by(
            Payroll.period_year.desc(),
            Payroll.period_month.desc(),
            Employee.first_name,
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def insert_payroll(self, payroll: Payroll) -> Payroll:
        """Insert a payroll record; the unique period constraint is the guard.

        Only a clash on the period key becomes a conflict; other integrity
        failures (check constraints, foreign keys) propagate unchanged.

        Raises:
            PeriodConflictError: If a record already holds the period key
            IntegrityError: For any other constraint violation
        """
        key = PayrollPeriodKey(
            company_id=payroll.company_id,
            employee_id=payroll.employee_id,
            year=payroll.period_year,
            month=payroll.period_month,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(payroll)
                await self.session.flush()
        except IntegrityError as e:
            # Savepoint is rolled back, so the session can still look the key up
            if await self.find_payroll(key) is not None:
                raise PeriodConflictError(key) from e
            raise

        await self.session.refresh(payroll)
        return payroll

    async def update_status(
        self, payroll_id: int, company_id: int, from_statuses: list[str], to_status: str
    ) -> bool:
        """Conditionally move a record to ``to_status``.

        Returns True if a row was updated, False if the record is missing or
        not in one of ``from_statuses``.
        """
        if not from_statuses:
            return False

        result = await self.session.execute(
            update(Payroll)
            .where(
                Payroll.id == payroll_id,
                Payroll.company_id == company_id,
                Payroll.status.in_(from_statuses),
            )
            .values(status=to_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
