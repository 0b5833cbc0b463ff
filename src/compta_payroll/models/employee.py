"""Employee model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compta_payroll.calculators.types import EmployeePay
from compta_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from compta_payroll.models.company import Company
    from compta_payroll.models.payroll import Payroll


class Employee(Base, TimestampMixin):
    """Employee record."""

    __tablename__ = "employee"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("company.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    employee_number: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    position: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    department: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    cnss_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "employee_number", name="employee_company_number_unique"),
        CheckConstraint("base_salary >= 0", name="employee_base_salary_check"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="employees")
    payrolls: Mapped[list[Payroll]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    def to_pay_input(self) -> EmployeePay:
        """Project the fields the calculation engine reads."""
        return EmployeePay(
            employee_id=self.id,
            company_id=self.company_id,
            base_salary=self.base_salary,
            is_active=self.is_active,
        )
