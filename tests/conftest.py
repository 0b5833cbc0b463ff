"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from compta_payroll.models import Base, Company, Cotisation, Employee

# One in-memory SQLite database per test, shared across connections
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT behaves as on Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_company(session: AsyncSession) -> Company:
    """Create a test company."""
    company = Company(name="Test Company SARL", email="rh@test.ma")
    session.add(company)
    await session.flush()
    return company


@pytest_asyncio.fixture
async def other_company(session: AsyncSession) -> Company:
    """A second tenant, for scoping checks."""
    company = Company(name="Other Company SA")
    session.add(company)
    await session.flush()
    return company


@pytest_asyncio.fixture
async def test_cotisations(
    session: AsyncSession, test_company: Company
) -> dict[str, Cotisation]:
    """Create the standard CNSS/AMO/IGR rules."""
    cnss = Cotisation(
        company_id=test_company.id,
        name="CNSS",
        kind="cnss",
        employee_rate=Decimal("0.0267"),
        employer_rate=Decimal("0.0533"),
        max_amount=Decimal("649.80"),
    )
    amo = Cotisation(
        company_id=test_company.id,
        name="AMO",
        kind="amo",
        employee_rate=Decimal("0.0226"),
        employer_rate=Decimal("0.0339"),
    )
    igr = Cotisation(
        company_id=test_company.id,
        name="IGR",
        kind="igr",
        employee_rate=Decimal("0"),
        employer_rate=Decimal("0"),
    )
    session.add_all([cnss, amo, igr])
    await session.flush()
    return {"cnss": cnss, "amo": amo, "igr": igr}


async def _add_employee(
    session: AsyncSession,
    company: Company,
    number: str,
    first_name: str,
    last_name: str,
    base_salary: Decimal,
    email: str | None = None,
) -> Employee:
    employee = Employee(
        company_id=company.id,
        employee_number=number,
        first_name=first_name,
        last_name=last_name,
        email=email,
        position="Analyst",
        department="Finance",
        hire_date=date(2023, 1, 1),
        base_salary=base_salary,
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest_asyncio.fixture
async def test_employees(session: AsyncSession, test_company: Company) -> list[Employee]:
    """Create test employees: 8000 and 6000 base salary."""
    return [
        await _add_employee(
            session, test_company, "EMP001", "Amina", "Alaoui", Decimal("8000"), "amina@test.ma"
        ),
        await _add_employee(session, test_company, "EMP002", "Youssef", "Berrada", Decimal("6000")),
    ]


@pytest_asyncio.fixture
async def other_employee(session: AsyncSession, other_company: Company) -> Employee:
    return await _add_employee(session, other_company, "EMP001", "Karim", "Idrissi", Decimal("9000"))
