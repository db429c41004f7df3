from evdock.models.deposit import (
    DepositType,
    DepositStatus,
    ManufacturerStatus,
    NotificationStatus,
    FinalPaymentType,
)
from evdock.models.preorder_task import PreOrderTaskStatus
from evdock.models.installment import InstallmentPlanStatus, ScheduleEntryStatus
from evdock.models.quotation import QuotationStatus
from evdock.models.record import StoredRecord

__all__ = [
    "DepositType",
    "DepositStatus",
    "ManufacturerStatus",
    "NotificationStatus",
    "FinalPaymentType",
    "PreOrderTaskStatus",
    "InstallmentPlanStatus",
    "ScheduleEntryStatus",
    "QuotationStatus",
    "StoredRecord",
]
