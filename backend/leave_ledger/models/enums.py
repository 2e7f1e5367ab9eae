from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Kind of leave an employee can request."""

    CASUAL = "CASUAL"
    SICK = "SICK"
    EARNED = "EARNED"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    COMPENSATORY = "COMPENSATORY"
    UNPAID = "UNPAID"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    AUTO_REJECTED = "AUTO_REJECTED"
    CANCELLED = "CANCELLED"


class LedgerEntryType(enum.StrEnum):
    """Type of ledger entry affecting a balance counter."""

    DEDUCTION = "DEDUCTION"
    REFUND = "REFUND"
    CARRY_FORWARD = "CARRY_FORWARD"
    ANNUAL_RESET = "ANNUAL_RESET"


# Statuses that block new requests over the same dates.
ACTIVE_STATUSES = frozenset({LeaveStatus.PENDING, LeaveStatus.APPROVED})

# Leave types whose unused balance is carried into the next year.
CARRY_ELIGIBLE_TYPES = frozenset({LeaveType.CASUAL, LeaveType.EARNED})
