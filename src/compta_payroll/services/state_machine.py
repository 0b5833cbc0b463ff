"""Payroll record status lifecycle."""

from __future__ import annotations

from enum import Enum


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PayrollStateMachine:
    """State machine for payroll record status transitions.

    The engine performs a single transition:
    - draft → approved

    Paid and cancelled exist in the schema but are managed outside the engine.
    Transitions are applied as conditional updates, so the allowed source
    statuses for a target are what the store filters on.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.DRAFT: [PayrollStatus.APPROVED],
        PayrollStatus.APPROVED: [],
        PayrollStatus.PAID: [],
        PayrollStatus.CANCELLED: [],
    }

    @classmethod
    def sources_for(cls, to_status: str) -> list[str]:
        """Statuses from which ``to_status`` may be reached."""
        return [
            from_status
            for from_status, targets in cls.VALID_TRANSITIONS.items()
            if to_status in targets
        ]
