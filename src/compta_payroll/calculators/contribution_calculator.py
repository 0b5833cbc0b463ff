"""Social contribution calculation with amount caps."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from compta_payroll.calculators.types import (
    ContributionAmounts,
    ContributionKind,
    ContributionRule,
    to_money,
)

logger = logging.getLogger(__name__)


class ContributionCalculator:
    """Applies a contribution rule to a gross salary.

    Each share is ``min(gross * rate, max_amount)``. The cap bounds the
    contribution amount itself, not the contribution base, so a rule with
    ``max_amount=649.80`` never deducts more than 649.80 whatever the salary.
    A missing rule contributes nothing.
    """

    @staticmethod
    def compute(gross_salary: Decimal, rule: ContributionRule | None) -> ContributionAmounts:
        """Compute employee and employer amounts for one rule."""
        if rule is None:
            return ContributionAmounts()

        employee = ContributionCalculator._capped(gross_salary * rule.employee_rate, rule.max_amount)
        employer = ContributionCalculator._capped(gross_salary * rule.employer_rate, rule.max_amount)
        return ContributionAmounts(employee=to_money(employee), employer=to_money(employer))

    @staticmethod
    def find_rule(
        rules: Iterable[ContributionRule], kind: ContributionKind
    ) -> ContributionRule | None:
        """Return the first active rule of ``kind``, or None.

        Rules are expected in ascending id order, so duplicates resolve to the
        lowest id.
        """
        matches = [r for r in rules if r.kind == kind and r.is_active]
        if not matches:
            logger.debug("No active %s contribution rule configured", kind.value)
            return None
        if len(matches) > 1:
            logger.warning(
                "Company %s has %d active %s rules; using rule %s",
                matches[0].company_id,
                len(matches),
                kind.value,
                matches[0].rule_id,
            )
        return matches[0]

    @staticmethod
    def _capped(amount: Decimal, cap: Decimal | None) -> Decimal:
        if cap is None:
            return amount
        return min(amount, cap)
