"""SQLAlchemy ORM models."""

from compta_payroll.models.base import Base, TimestampMixin
from compta_payroll.models.company import Company
from compta_payroll.models.cotisation import Cotisation
from compta_payroll.models.employee import Employee
from compta_payroll.models.payroll import Payroll, Payslip

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Cotisation",
    "Employee",
    "Payroll",
    "Payslip",
]
