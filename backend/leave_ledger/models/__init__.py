from sqlmodel import SQLModel

from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_ledger.models.enums import (
    ACTIVE_STATUSES,
    CARRY_ELIGIBLE_TYPES,
    LedgerEntryType,
    LeaveStatus,
    LeaveType,
)
from leave_ledger.models.history import LeaveRequestEvent
from leave_ledger.models.holiday import Holiday, HolidayCalendar
from leave_ledger.models.ledger import LeaveLedgerEntry
from leave_ledger.models.request import LeaveRequest

__all__ = [
    "ACTIVE_STATUSES",
    "CARRY_ELIGIBLE_TYPES",
    "Holiday",
    "HolidayCalendar",
    "LeaveBalance",
    "LeaveLedgerEntry",
    "LeaveRequest",
    "LeaveRequestEvent",
    "LeaveStatus",
    "LeaveType",
    "LedgerEntryType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
]
