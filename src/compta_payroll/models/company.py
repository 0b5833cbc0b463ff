"""Company (tenant) model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compta_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from compta_payroll.models.cotisation import Cotisation
    from compta_payroll.models.employee import Employee
    from compta_payroll.models.payroll import Payroll


class Company(Base, TimestampMixin):
    """Tenant container; every other record is scoped to one company."""

    __tablename__ = "company"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="company")
    cotisations: Mapped[list[Cotisation]] = relationship(back_populates="company")
    payrolls: Mapped[list[Payroll]] = relationship(back_populates="company")
