"""Seed script for a demo company.

Run with:
    python scripts/seed_demo.py

Creates the schema if needed, a demo company with its CNSS/AMO/IGR
cotisations, and a few employees.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compta_payroll.config import get_settings
from compta_payroll.database import dispose_db, get_session, init_db
from compta_payroll.logging_config import configure_logging
from compta_payroll.models import Base, Company, Cotisation, Employee

logger = logging.getLogger("seed_demo")

DEMO_COMPANY = "Demo Company SARL"


async def seed_company(session: AsyncSession) -> Company:
    """Create the demo company unless it exists."""
    result = await session.execute(select(Company).where(Company.name == DEMO_COMPANY))
    company = result.scalar_one_or_none()
    if company is None:
        company = Company(
            name=DEMO_COMPANY,
            address="123 Avenue Mohammed V, Casablanca",
            email="contact@democompany.ma",
            tax_id="12345678",
        )
        session.add(company)
        await session.flush()
        logger.info("Created company %s (id=%s)", company.name, company.id)
    return company


async def seed_cotisations(session: AsyncSession, company: Company) -> None:
    """Create CNSS, AMO and IGR rules for the company."""
    result = await session.execute(
        select(Cotisation).where(Cotisation.company_id == company.id)
    )
    if result.first() is not None:
        logger.info("Cotisations already present for company %s", company.id)
        return

    session.add_all([
        Cotisation(
            company_id=company.id,
            name="CNSS - Sécurité sociale",
            kind="cnss",
            employee_rate=Decimal("0.0267"),
            employer_rate=Decimal("0.0533"),
            max_amount=Decimal("649.80"),  # 6000 MAD ceiling
        ),
        Cotisation(
            company_id=company.id,
            name="AMO - Assurance Maladie Obligatoire",
            kind="amo",
            employee_rate=Decimal("0.0226"),
            employer_rate=Decimal("0.0339"),
        ),
        Cotisation(
            company_id=company.id,
            name="IGR - Impôt Général sur le Revenu",
            kind="igr",
            employee_rate=Decimal("0"),  # Progressive, computed by the engine
            employer_rate=Decimal("0"),
        ),
    ])
    logger.info("Created CNSS/AMO/IGR cotisations for company %s", company.id)


async def seed_employees(session: AsyncSession, company: Company) -> None:
    """Create demo employees."""
    demo = [
        ("EMP001", "John", "Doe", "Software Developer", "IT", Decimal("15000")),
        ("EMP002", "Jane", "Smith", "HR Manager", "Human Resources", Decimal("12000")),
        ("EMP003", "Ahmed", "Benali", "Accountant", "Finance", Decimal("8000")),
    ]
    for number, first, last, position, department, salary in demo:
        result = await session.execute(
            select(Employee).where(
                Employee.company_id == company.id,
                Employee.employee_number == number,
            )
        )
        if result.scalar_one_or_none() is not None:
            continue
        session.add(
            Employee(
                company_id=company.id,
                employee_number=number,
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}@democompany.ma",
                position=position,
                department=department,
                hire_date=date(2023, 1, 15),
                base_salary=salary,
            )
        )
        logger.info("Created employee %s %s", first, last)


async def main() -> None:
    configure_logging(get_settings().log_level)
    engine, _ = init_db()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session() as session:
        company = await seed_company(session)
        await seed_cotisations(session, company)
        await seed_employees(session, company)

    await dispose_db()
    logger.info("Seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
