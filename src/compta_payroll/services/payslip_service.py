"""Payslip dispatch: hands payroll records to rendering and delivery collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from compta_payroll.models import Company, Employee, Payroll, Payslip

logger = logging.getLogger(__name__)


class PayrollNotFoundError(Exception):
    """Raised when a payroll record does not exist in the company's scope."""

    def __init__(self, payroll_id: int, company_id: int):
        self.payroll_id = payroll_id
        self.company_id = company_id
        super().__init__(f"Payroll {payroll_id} not found in company {company_id}")


class PayslipNotFoundError(Exception):
    """Raised when a payroll record has no generated payslip."""

    def __init__(self, payroll_id: int, company_id: int):
        self.payroll_id = payroll_id
        self.company_id = company_id
        super().__init__(f"No payslip for payroll {payroll_id} in company {company_id}")


class MissingEmailError(Exception):
    """Raised when a payslip must be emailed to an employee without an address."""

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} has no email address")


@dataclass(frozen=True)
class RenderedPayslip:
    """Location of a rendered payslip document."""

    file_name: str
    file_path: str


class PayslipRenderer(Protocol):
    """Protocol for payslip document renderers."""

    async def render(
        self, payroll: Payroll, employee: Employee, company: Company
    ) -> RenderedPayslip:
        """Render a payslip and return where it was written."""
        ...


class PayslipSender(Protocol):
    """Protocol for payslip delivery transports."""

    async def send(
        self, to_email: str, employee_name: str, file_path: str, month: int, year: int
    ) -> bool:
        """Deliver a rendered payslip. Returns True on success."""
        ...


@dataclass(frozen=True)
class PayslipDispatch:
    """Outcome of generating (and optionally sending) a payslip."""

    payslip: Payslip
    email_sent: bool


class PayslipService:
    """Generates payslip documents and records their delivery.

    Rendering a record again replaces the stored file reference; there is at
    most one payslip per payroll record.
    """

    def __init__(
        self,
        session: AsyncSession,
        renderer: PayslipRenderer,
        sender: PayslipSender | None = None,
    ):
        self.session = session
        self.renderer = renderer
        self.sender = sender

    async def generate(
        self, payroll_id: int, company_id: int, send_email: bool = False
    ) -> PayslipDispatch:
        """Render the payslip for a payroll record and optionally email it.

        Raises:
            PayrollNotFoundError: If the record is not in the company
        """
        payroll = await self._load_payroll(payroll_id, company_id)
        if payroll is None:
            raise PayrollNotFoundError(payroll_id, company_id)

        rendered = await self.renderer.render(payroll, payroll.employee, payroll.company)

        payslip = payroll.payslip
        if payslip is None:
            payslip = Payslip(
                company_id=company_id,
                employee_id=payroll.employee_id,
                payroll_id=payroll.id,
                file_name=rendered.file_name,
                file_path=rendered.file_path,
            )
            payroll.payslip = payslip
            self.session.add(payslip)
        else:
            payslip.file_name = rendered.file_name
            payslip.file_path = rendered.file_path
        await self.session.flush()

        email_sent = False
        if send_email:
            email_sent = await self._send(payroll, payslip)

        return PayslipDispatch(payslip=payslip, email_sent=email_sent)

    async def get(self, payroll_id: int, company_id: int) -> Payslip | None:
        """Get the stored payslip of a payroll record."""
        return await self._load_payslip(payroll_id, company_id)

    async def send(self, payroll_id: int, company_id: int) -> bool:
        """Email an already generated payslip again.

        Returns False when no sender is configured or delivery fails.

        Raises:
            PayslipNotFoundError: If the record has no payslip in the company
            MissingEmailError: If the employee has no email address
        """
        payslip = await self._load_payslip(payroll_id, company_id)
        if payslip is None:
            raise PayslipNotFoundError(payroll_id, company_id)
        if not payslip.employee.email:
            raise MissingEmailError(payslip.employee_id)

        return await self._send(payslip.payroll, payslip)

    async def _send(self, payroll: Payroll, payslip: Payslip) -> bool:
        employee = payroll.employee
        if self.sender is None:
            logger.warning("No payslip sender configured; payroll %s not emailed", payroll.id)
            return False
        if not employee.email:
            logger.info("Employee %s has no email; payroll %s not emailed", employee.id, payroll.id)
            return False

        sent = await self.sender.send(
            employee.email,
            employee.full_name,
            payslip.file_path,
            payroll.period_month,
            payroll.period_year,
        )
        if sent:
            payslip.is_email_sent = True
            payslip.email_sent_at = datetime.now(timezone.utc)
            await self.session.flush()
        else:
            logger.error("Failed to email payslip for payroll %s", payroll.id)
        return sent

    async def _load_payslip(self, payroll_id: int, company_id: int) -> Payslip | None:
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.payroll_id == payroll_id, Payslip.company_id == company_id)
            .options(
                selectinload(Payslip.employee),
                selectinload(Payslip.payroll).selectinload(Payroll.employee),
            )
        )
        return result.scalar_one_or_none()

    async def _load_payroll(self, payroll_id: int, company_id: int) -> Payroll | None:
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.id == payroll_id, Payroll.company_id == company_id)
            .options(
                selectinload(Payroll.employee),
                selectinload(Payroll.company),
                selectinload(Payroll.payslip),
            )
        )
        return result.scalar_one_or_none()
