"""Shared fixtures: in-memory store, services wired together, actors and deposits."""
import pytest

from evdock.config import Settings
from evdock.core.permissions import Actor, ActorRole
from evdock.models.deposit import DepositType
from evdock.services.customer_service import CustomerService
from evdock.services.deposit_lifecycle_service import DepositLifecycleService
from evdock.services.deposit_repository import DepositRepository
from evdock.services.installment_service import InstallmentService
from evdock.services.payment_service import PaymentService
from evdock.services.preorder_task_queue import PreOrderTaskQueue
from evdock.services.quotation_service import QuotationService
from evdock.services.settlement_service import SettlementService

from tests.helpers import FlakyRecordStore, make_deposit_data


@pytest.fixture
def config():
    return Settings(STORE_NAMESPACE="evdock-test", RECORD_STORE_BACKEND="memory")


@pytest.fixture
def store():
    return FlakyRecordStore()


@pytest.fixture
def repository(store, config):
    return DepositRepository(store, config)


@pytest.fixture
def task_queue(store, config):
    return PreOrderTaskQueue(store, config)


@pytest.fixture
def lifecycle(repository, task_queue, config):
    return DepositLifecycleService(repository, task_queue, config)


@pytest.fixture
def quotations(store, config):
    return QuotationService(store, config)


@pytest.fixture
def customers(store, config):
    return CustomerService(store, config)


@pytest.fixture
def installments(store, config):
    return InstallmentService(store, config)


@pytest.fixture
def settlement(repository, quotations, customers, installments, config):
    return SettlementService(repository, quotations, customers, installments, config)


@pytest.fixture
def payments(store, repository, config):
    return PaymentService(store, repository, config)


# ==================== Actors ====================

@pytest.fixture
def staff():
    return Actor("Lan Tran", ActorRole.DEALER_STAFF)


@pytest.fixture
def manager():
    return Actor("Minh Nguyen", ActorRole.DEALER_MANAGER)


@pytest.fixture
def evm_staff():
    return Actor("Hoa Le", ActorRole.EVM_STAFF)


@pytest.fixture
def evm_admin():
    return Actor("Admin", ActorRole.EVM_ADMIN)


# ==================== Deposits ====================

@pytest.fixture
async def available_deposit(lifecycle, staff):
    return await lifecycle.create_deposit(staff, make_deposit_data())


@pytest.fixture
async def confirmed_available(lifecycle, staff, available_deposit):
    return await lifecycle.confirm_deposit(staff, available_deposit.id)


@pytest.fixture
async def pre_order_deposit(lifecycle, staff):
    return await lifecycle.create_deposit(
        staff, make_deposit_data(DepositType.PRE_ORDER, estimated_arrival="1-3 months")
    )


@pytest.fixture
async def arrived_pre_order(lifecycle, staff, manager, pre_order_deposit):
    """Confirmed pre-order whose vehicle arrived and staff was notified."""
    deposit_id = pre_order_deposit.id
    await lifecycle.confirm_deposit(staff, deposit_id)
    await lifecycle.place_manufacturer_order(manager, deposit_id)
    await lifecycle.mark_vehicle_arrived(manager, deposit_id)
    return await lifecycle.notify_staff_vehicle_ready(manager, deposit_id)


@pytest.fixture
async def payable_pre_order(lifecycle, staff, arrived_pre_order):
    return await lifecycle.acknowledge_notification(staff, arrived_pre_order.id)
