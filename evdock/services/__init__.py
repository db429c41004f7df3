# Services module
from evdock.services.record_store import (
    RecordStore,
    InMemoryRecordStore,
    RedisRecordStore,
    SQLRecordStore,
    RecordCollection,
    build_record_store,
)
from evdock.services.deposit_repository import DepositRepository
from evdock.services.preorder_task_queue import PreOrderTaskQueue
from evdock.services.deposit_lifecycle_service import DepositLifecycleService
from evdock.services.settlement_service import SettlementService

# Default collaborators
from evdock.services.quotation_service import QuotationService
from evdock.services.customer_service import CustomerService
from evdock.services.installment_service import InstallmentService
from evdock.services.payment_service import PaymentService

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "RedisRecordStore",
    "SQLRecordStore",
    "RecordCollection",
    "build_record_store",
    "DepositRepository",
    "PreOrderTaskQueue",
    "DepositLifecycleService",
    "SettlementService",
    # Collaborators
    "QuotationService",
    "CustomerService",
    "InstallmentService",
    "PaymentService",
]
