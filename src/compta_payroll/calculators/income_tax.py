"""Progressive income tax (IGR) on monthly gross salary."""

from __future__ import annotations

from decimal import Decimal

from compta_payroll.calculators.types import ZERO, TaxBracket, to_money

# Each flat_amount is the tax owed at the previous bracket's upper bound.
IGR_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("0"), Decimal("2500"), Decimal("0")),
    TaxBracket(Decimal("2500"), Decimal("4166.67"), Decimal("0.10")),
    TaxBracket(Decimal("4166.67"), Decimal("5000"), Decimal("0.20"), Decimal("166.67")),
    TaxBracket(Decimal("5000"), Decimal("6666.67"), Decimal("0.30"), Decimal("333.33")),
    TaxBracket(Decimal("6666.67"), Decimal("15000"), Decimal("0.34"), Decimal("833.33")),
    TaxBracket(Decimal("15000"), None, Decimal("0.38"), Decimal("3666.67")),
)


class IncomeTaxCalculator:
    """Applies the fixed IGR bracket table.

    Brackets are evaluated in ascending order and the first whose inclusive
    upper bound covers the salary wins:

    ========================  =====================================
    Gross salary              Tax
    ========================  =====================================
    <= 2500                   0
    <= 4166.67                (gross - 2500) * 10%
    <= 5000                   166.67 + (gross - 4166.67) * 20%
    <= 6666.67                333.33 + (gross - 5000) * 30%
    <= 15000                  833.33 + (gross - 6666.67) * 34%
    > 15000                   3666.67 + (gross - 15000) * 38%
    ========================  =====================================
    """

    def __init__(self, brackets: tuple[TaxBracket, ...] = IGR_BRACKETS):
        self.brackets = brackets

    def compute(self, gross_salary: Decimal) -> Decimal:
        """Return the monthly income tax, rounded to cents."""
        if gross_salary <= 0:
            return to_money(ZERO)

        bracket = self.bracket_for(gross_salary)
        tax = bracket.flat_amount + (gross_salary - bracket.min_amount) * bracket.rate
        return to_money(max(tax, ZERO))

    def bracket_for(self, gross_salary: Decimal) -> TaxBracket:
        """Find the bracket covering a salary."""
        for bracket in self.brackets:
            if bracket.max_amount is None or gross_salary <= bracket.max_amount:
                return bracket
        # Table ends with an open bracket, so this only triggers on a custom table
        raise ValueError(f"No tax bracket covers {gross_salary}")
