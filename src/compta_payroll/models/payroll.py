"""Payroll record and payslip models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compta_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from compta_payroll.models.company import Company
    from compta_payroll.models.employee import Employee


class Payroll(Base, TimestampMixin):
    """Persisted payroll computation for one employee and one month."""

    __tablename__ = "payroll"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("company.id", ondelete="RESTRICT"),
        nullable=False,
    )
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee.id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)

    gross_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_allowances: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    cnss_employee: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    cnss_employer: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    amo_employee: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    amo_employer: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    igr_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    worked_days: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "employee_id",
            "period_year",
            "period_month",
            name="payroll_period_unique",
        ),
        CheckConstraint(
            "status IN ('draft', 'approved', 'paid', 'cancelled')",
            name="payroll_status_check",
        ),
        CheckConstraint("period_month BETWEEN 1 AND 12", name="payroll_month_check"),
        CheckConstraint("worked_days BETWEEN 0 AND 31", name="payroll_worked_days_check"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="payrolls")
    employee: Mapped[Employee] = relationship(back_populates="payrolls")
    payslip: Mapped[Payslip | None] = relationship(back_populates="payroll", uselist=False)


class Payslip(Base):
    """Rendered payslip document for a payroll record."""

    __tablename__ = "payslip"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("company.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employee.id", ondelete="RESTRICT"),
        nullable=False,
    )
    payroll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll.id", ondelete="RESTRICT"),
        nullable=False,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    is_email_sent: Mapped[bool] = mapped_column(default=False, nullable=False)
    email_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("payroll_id", name="payslip_one_per_payroll"),)

    # Relationships
    payroll: Mapped[Payroll] = relationship(back_populates="payslip")
    employee: Mapped[Employee] = relationship()
