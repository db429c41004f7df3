"""Installment plan enumerations."""
from enum import Enum


class InstallmentPlanStatus(str, Enum):
    """Installment plan status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"


class ScheduleEntryStatus(str, Enum):
    """Status of one monthly payment in the schedule."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
