"""Company-configured statutory contribution rules."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compta_payroll.calculators.types import ContributionKind, ContributionRule
from compta_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from compta_payroll.models.company import Company


class Cotisation(Base, TimestampMixin):
    """Contribution rule: rates as fractions plus an optional amount cap."""

    __tablename__ = "cotisation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    employee_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal("0"))
    employer_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal("0"))
    max_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    min_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "kind IN ('cnss', 'amo', 'igr', 'cimr', 'other')",
            name="cotisation_kind_check",
        ),
        CheckConstraint(
            "employee_rate >= 0 AND employer_rate >= 0",
            name="cotisation_rates_check",
        ),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="cotisations")

    def to_rule(self) -> ContributionRule:
        """Convert to the calculator's value type."""
        return ContributionRule(
            rule_id=self.id,
            company_id=self.company_id,
            name=self.name,
            kind=ContributionKind(self.kind),
            employee_rate=Decimal(self.employee_rate),
            employer_rate=Decimal(self.employer_rate),
            max_amount=Decimal(self.max_amount) if self.max_amount is not None else None,
            min_amount=Decimal(self.min_amount) if self.min_amount is not None else None,
            is_active=self.is_active,
        )
