"""Tests for the payroll service against an in-memory database."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from compta_payroll.calculators.types import InvalidPayrollInputError, PayrollPeriodKey
from compta_payroll.models import Cotisation, Payroll
from compta_payroll.services.payroll_service import (
    DuplicatePeriodError,
    EmployeeNotFoundError,
    PayrollService,
)
from compta_payroll.services.repositories import PayrollRepository, PeriodConflictError

pytestmark = pytest.mark.asyncio


class StalePrecheckRepository(PayrollRepository):
    """Repository whose pre-check never sees the competing record."""

    async def find_payroll(self, key):
        return None


async def count_payrolls(session, company_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(Payroll).where(Payroll.company_id == company_id)
    )
    return result.scalar_one()


class TestCalculateForEmployee:
    """Preview calculations use the company's active rules."""

    async def test_full_month(self, session, test_company, test_cotisations, test_employees):
        service = PayrollService(session)

        result = await service.calculate_for_employee(test_employees[0].id, test_company.id)

        assert result.gross_salary == Decimal("8000.00")
        assert result.social_security.employee == Decimal("213.60")
        assert result.health_insurance.employee == Decimal("180.80")
        assert result.income_tax == Decimal("1286.66")
        assert result.net_salary == Decimal("6318.94")

    async def test_preview_does_not_persist(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)

        await service.calculate_for_employee(test_employees[0].id, test_company.id)

        assert await count_payrolls(session, test_company.id) == 0

    async def test_without_rules(self, session, test_company, test_employees):
        service = PayrollService(session)

        result = await service.calculate_for_employee(
            test_employees[1].id, test_company.id, worked_days=15
        )

        assert result.gross_salary == Decimal("3000.00")
        assert result.income_tax == Decimal("50.00")
        assert result.net_salary == Decimal("2950.00")

    async def test_inactive_rule_ignored(
        self, session, test_company, test_cotisations, test_employees
    ):
        test_cotisations["cnss"].is_active = False
        await session.flush()
        service = PayrollService(session)

        result = await service.calculate_for_employee(test_employees[0].id, test_company.id)

        assert result.social_security.employee == Decimal("0")
        assert result.health_insurance.employee == Decimal("180.80")

    async def test_duplicate_rule_uses_lowest_id(
        self, session, test_company, test_cotisations, test_employees
    ):
        session.add(
            Cotisation(
                company_id=test_company.id,
                name="CNSS bis",
                kind="cnss",
                employee_rate=Decimal("0.05"),
                employer_rate=Decimal("0.05"),
            )
        )
        await session.flush()
        service = PayrollService(session)

        result = await service.calculate_for_employee(test_employees[0].id, test_company.id)

        assert result.social_security.employee == Decimal("213.60")

    async def test_other_company_rules_not_used(
        self, session, test_company, other_company, test_employees
    ):
        session.add(
            Cotisation(
                company_id=other_company.id,
                name="CNSS",
                kind="cnss",
                employee_rate=Decimal("0.0267"),
                employer_rate=Decimal("0.0533"),
            )
        )
        await session.flush()
        service = PayrollService(session)

        result = await service.calculate_for_employee(test_employees[0].id, test_company.id)

        assert result.social_security.employee == Decimal("0")

    async def test_unknown_employee(self, session, test_company):
        service = PayrollService(session)

        with pytest.raises(EmployeeNotFoundError) as exc_info:
            await service.calculate_for_employee(999, test_company.id)

        assert exc_info.value.employee_id == 999


class TestCreatePayroll:
    """Creating payroll records."""

    async def test_creates_draft_record(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)

        payroll = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=3,
            worked_days=30,
        )

        assert payroll.id is not None
        assert payroll.status == "draft"
        assert payroll.period_year == 2025
        assert payroll.period_month == 3
        assert payroll.worked_days == 30
        assert payroll.gross_salary == Decimal("8000.00")
        assert payroll.cnss_employee == Decimal("213.60")
        assert payroll.cnss_employer == Decimal("426.40")
        assert payroll.amo_employee == Decimal("180.80")
        assert payroll.amo_employer == Decimal("271.20")
        assert payroll.igr_tax == Decimal("1286.66")
        assert payroll.total_deductions == Decimal("1681.06")
        assert payroll.net_salary == Decimal("6318.94")

    async def test_records_allowances_and_deductions(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)

        payroll = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[1].id,
            year=2025,
            month=3,
            worked_days=15,
            total_allowances=Decimal("500"),
            other_deductions=Decimal("100"),
        )

        assert payroll.gross_salary == Decimal("3500.00")
        assert payroll.total_allowances == Decimal("500.00")
        assert payroll.other_deductions == Decimal("100.00")
        assert payroll.net_salary == payroll.gross_salary - payroll.total_deductions

    async def test_default_payment_date(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)
        expected = (datetime.now(timezone.utc) + timedelta(days=5)).date()

        payroll = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=4,
            worked_days=30,
        )

        assert payroll.payment_date.date() == expected

    async def test_explicit_payment_date(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)

        payroll = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=4,
            worked_days=30,
            payment_date=datetime(2025, 5, 2, tzinfo=timezone.utc),
        )

        assert payroll.payment_date.date() == datetime(2025, 5, 2).date()

    async def test_duplicate_period_rejected(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)
        await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=3,
            worked_days=30,
        )

        with pytest.raises(DuplicatePeriodError) as exc_info:
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=test_employees[0].id,
                year=2025,
                month=3,
                worked_days=20,
            )

        assert exc_info.value.key == PayrollPeriodKey(
            test_company.id, test_employees[0].id, 2025, 3
        )
        assert await count_payrolls(session, test_company.id) == 1

    async def test_duplicate_does_not_overwrite(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)
        first = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=3,
            worked_days=30,
        )

        with pytest.raises(DuplicatePeriodError):
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=test_employees[0].id,
                year=2025,
                month=3,
                worked_days=10,
            )

        stored = await service.get_payroll(first.id, test_company.id)
        assert stored.worked_days == 30
        assert stored.gross_salary == Decimal("8000.00")

    async def test_other_periods_and_employees_allowed(
        self, session, test_company, test_cotisations, test_employees
    ):
        service = PayrollService(session)
        for employee_id, month in [
            (test_employees[0].id, 3),
            (test_employees[0].id, 4),
            (test_employees[1].id, 3),
        ]:
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=employee_id,
                year=2025,
                month=month,
                worked_days=30,
            )

        assert await count_payrolls(session, test_company.id) == 3

    async def test_unique_constraint_is_authoritative(
        self, session, test_company, test_cotisations, test_employees
    ):
        """A racing insert that passed the pre-check still conflicts."""
        service = PayrollService(session)
        await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=3,
            worked_days=30,
        )

        racer = PayrollService(session, repository=StalePrecheckRepository(session))
        with pytest.raises(DuplicatePeriodError) as exc_info:
            await racer.create_payroll(
                company_id=test_company.id,
                employee_id=test_employees[0].id,
                year=2025,
                month=3,
                worked_days=30,
            )

        assert isinstance(exc_info.value.__cause__, PeriodConflictError)
        # Savepoint rolled back; the session is still usable
        assert await count_payrolls(session, test_company.id) == 1

    async def test_unknown_employee(self, session, test_company):
        service = PayrollService(session)

        with pytest.raises(EmployeeNotFoundError):
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=999,
                year=2025,
                month=3,
                worked_days=30,
            )

        assert await count_payrolls(session, test_company.id) == 0

    async def test_employee_of_other_company_not_found(
        self, session, test_company, other_employee
    ):
        service = PayrollService(session)

        with pytest.raises(EmployeeNotFoundError):
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=other_employee.id,
                year=2025,
                month=3,
                worked_days=30,
            )

    async def test_engine_rejects_invalid_input(self, session, test_company, test_employees):
        service = PayrollService(session)

        with pytest.raises(InvalidPayrollInputError):
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=test_employees[0].id,
                year=2025,
                month=3,
                worked_days=30,
                other_deductions=Decimal("-1"),
            )

        assert await count_payrolls(session, test_company.id) == 0

    @pytest.mark.parametrize(
        "year, month, worked_days, field_name",
        [
            (2025, 13, 30, "month"),
            (2025, 0, 30, "month"),
            (1999, 3, 30, "year"),
            (3001, 3, 30, "year"),
            (2025, 3, 0, "worked_days"),
            (2025, 3, 32, "worked_days"),
        ],
    )
    async def test_out_of_range_period_rejected(
        self, session, test_company, test_employees, year, month, worked_days, field_name
    ):
        """Out-of-range periods are input errors, never duplicates."""
        service = PayrollService(session)

        with pytest.raises(InvalidPayrollInputError) as exc_info:
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=test_employees[0].id,
                year=year,
                month=month,
                worked_days=worked_days,
            )

        assert exc_info.value.field_name == field_name
        assert await count_payrolls(session, test_company.id) == 0


class TestInsertPayroll:
    """Repository insert maps only period clashes to conflicts."""

    def _payroll(self, company_id, employee_id, month=3, worked_days=30):
        amount = Decimal("1000.00")
        return Payroll(
            company_id=company_id,
            employee_id=employee_id,
            period_year=2025,
            period_month=month,
            gross_salary=amount,
            net_salary=amount,
            total_deductions=Decimal("0"),
            total_allowances=Decimal("0"),
            cnss_employee=Decimal("0"),
            cnss_employer=Decimal("0"),
            amo_employee=Decimal("0"),
            amo_employer=Decimal("0"),
            igr_tax=Decimal("0"),
            other_deductions=Decimal("0"),
            worked_days=worked_days,
            payment_date=datetime(2025, 4, 5, tzinfo=timezone.utc),
            status="draft",
        )

    async def test_period_clash_is_conflict(self, session, test_company, test_employees):
        repository = PayrollRepository(session)
        await repository.insert_payroll(self._payroll(test_company.id, test_employees[0].id))

        with pytest.raises(PeriodConflictError) as exc_info:
            await repository.insert_payroll(self._payroll(test_company.id, test_employees[0].id))

        assert exc_info.value.key.month == 3
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    @pytest.mark.parametrize("month, worked_days", [(13, 30), (3, 40)])
    async def test_check_constraint_is_not_conflict(
        self, session, test_company, test_employees, month, worked_days
    ):
        repository = PayrollRepository(session)

        with pytest.raises(IntegrityError):
            await repository.insert_payroll(
                self._payroll(test_company.id, test_employees[0].id, month, worked_days)
            )

        assert await count_payrolls(session, test_company.id) == 0


class TestApprovePayroll:
    """Draft → approved transition."""

    async def _create(self, service, company_id, employee_id, month=3):
        return await service.create_payroll(
            company_id=company_id,
            employee_id=employee_id,
            year=2025,
            month=month,
            worked_days=30,
        )

    async def test_approve_draft(self, session, test_company, test_employees):
        service = PayrollService(session)
        payroll = await self._create(service, test_company.id, test_employees[0].id)

        assert await service.approve_payroll(payroll.id, test_company.id) is True

        stored = await service.get_payroll(payroll.id, test_company.id)
        assert stored.status == "approved"

    async def test_approve_twice(self, session, test_company, test_employees):
        service = PayrollService(session)
        payroll = await self._create(service, test_company.id, test_employees[0].id)

        assert await service.approve_payroll(payroll.id, test_company.id) is True
        assert await service.approve_payroll(payroll.id, test_company.id) is False

        stored = await service.get_payroll(payroll.id, test_company.id)
        assert stored.status == "approved"

    @pytest.mark.parametrize("status", ["paid", "cancelled"])
    async def test_non_draft_not_approved(self, session, test_company, test_employees, status):
        service = PayrollService(session)
        payroll = await self._create(service, test_company.id, test_employees[0].id)
        payroll.status = status
        await session.flush()

        assert await service.approve_payroll(payroll.id, test_company.id) is False

        stored = await service.get_payroll(payroll.id, test_company.id)
        assert stored.status == status

    async def test_unknown_payroll(self, session, test_company):
        service = PayrollService(session)

        assert await service.approve_payroll(999, test_company.id) is False

    async def test_other_company_cannot_approve(
        self, session, test_company, other_company, test_employees
    ):
        service = PayrollService(session)
        payroll = await self._create(service, test_company.id, test_employees[0].id)

        assert await service.approve_payroll(payroll.id, other_company.id) is False

        stored = await service.get_payroll(payroll.id, test_company.id)
        assert stored.status == "draft"

    async def test_financial_fields_unchanged(self, session, test_company, test_employees):
        service = PayrollService(session)
        payroll = await self._create(service, test_company.id, test_employees[0].id)
        before = (payroll.gross_salary, payroll.net_salary, payroll.total_deductions)

        await service.approve_payroll(payroll.id, test_company.id)

        stored = await service.get_payroll(payroll.id, test_company.id)
        assert (stored.gross_salary, stored.net_salary, stored.total_deductions) == before


class TestReads:
    """Company-scoped get and list."""

    async def test_get_scoped_to_company(
        self, session, test_company, other_company, test_employees
    ):
        service = PayrollService(session)
        payroll = await service.create_payroll(
            company_id=test_company.id,
            employee_id=test_employees[0].id,
            year=2025,
            month=3,
            worked_days=30,
        )

        found = await service.get_payroll(payroll.id, test_company.id)
        assert found is not None
        assert found.employee.full_name == "Amina Alaoui"

        assert await service.get_payroll(payroll.id, other_company.id) is None
        assert await service.get_payroll(999, test_company.id) is None

    async def test_list_ordering_and_filters(
        self, session, test_company, other_company, test_employees, other_employee
    ):
        service = PayrollService(session)
        amina, youssef = test_employees
        for employee_id, year, month in [
            (youssef.id, 2025, 3),
            (amina.id, 2025, 3),
            (amina.id, 2024, 12),
            (amina.id, 2025, 4),
        ]:
            await service.create_payroll(
                company_id=test_company.id,
                employee_id=employee_id,
                year=year,
                month=month,
                worked_days=30,
            )
        await service.create_payroll(
            company_id=other_company.id,
            employee_id=other_employee.id,
            year=2025,
            month=3,
            worked_days=30,
        )

        payrolls = await service.list_payrolls(test_company.id)
        assert [(p.period_year, p.period_month, p.employee.first_name) for p in payrolls] == [
            (2025, 4, "Amina"),
            (2025, 3, "Amina"),
            (2025, 3, "Youssef"),
            (2024, 12, "Amina"),
        ]

        march = await service.list_payrolls(test_company.id, year=2025, month=3)
        assert len(march) == 2

        year_2024 = await service.list_payrolls(test_company.id, year=2024)
        assert len(year_2024) == 1

        other = await service.list_payrolls(other_company.id)
        assert [p.employee_id for p in other] == [other_employee.id]
