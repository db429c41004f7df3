from functools import lru_cache
from typing import Annotated, Optional
import logging

from fastapi import Depends, Header, HTTPException, status

from evdock.config import settings
from evdock.core.permissions import Actor, ActorRole
from evdock.services.customer_service import CustomerService
from evdock.services.deposit_lifecycle_service import DepositLifecycleService
from evdock.services.deposit_repository import DepositRepository
from evdock.services.installment_service import InstallmentService
from evdock.services.payment_service import PaymentService
from evdock.services.preorder_task_queue import PreOrderTaskQueue
from evdock.services.quotation_service import QuotationService
from evdock.services.record_store import RecordStore, build_record_store
from evdock.services.settlement_service import SettlementService


logger = logging.getLogger(__name__)


@lru_cache()
def get_record_store() -> RecordStore:
    """One record store per process, selected by RECORD_STORE_BACKEND."""
    return build_record_store(settings)


async def get_current_actor(
    x_actor_name: Annotated[Optional[str], Header()] = None,
    x_actor_role: Annotated[Optional[str], Header()] = None,
) -> Actor:
    """
    Actor handed over by the host's session layer.

    Authentication happens upstream; this only reads the forwarded identity.
    """
    if not x_actor_name or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Name and X-Actor-Role headers are required",
        )
    try:
        role = ActorRole(x_actor_role.strip().upper())
    except ValueError:
        logger.warning(f"Unknown actor role header: {x_actor_role}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown actor role: {x_actor_role}",
        )
    return Actor(actor_name=x_actor_name.strip(), actor_role=role)


Store = Annotated[RecordStore, Depends(get_record_store)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def get_deposit_repository(store: Store) -> DepositRepository:
    return DepositRepository(store, settings)


def get_task_queue(store: Store) -> PreOrderTaskQueue:
    return PreOrderTaskQueue(store, settings)


def get_installment_service(store: Store) -> InstallmentService:
    return InstallmentService(store, settings)


Deposits = Annotated[DepositRepository, Depends(get_deposit_repository)]
TaskQueue = Annotated[PreOrderTaskQueue, Depends(get_task_queue)]
Installments = Annotated[InstallmentService, Depends(get_installment_service)]


def get_lifecycle_service(repository: Deposits, task_queue: TaskQueue) -> DepositLifecycleService:
    return DepositLifecycleService(repository, task_queue, settings)


def get_settlement_service(
    store: Store, repository: Deposits, installments: Installments
) -> SettlementService:
    return SettlementService(
        repository,
        quotations=QuotationService(store, settings),
        customers=CustomerService(store, settings),
        installments=installments,
        config=settings,
    )


def get_payment_service(store: Store, repository: Deposits) -> PaymentService:
    return PaymentService(store, repository, settings)


Lifecycle = Annotated[DepositLifecycleService, Depends(get_lifecycle_service)]
Settlement = Annotated[SettlementService, Depends(get_settlement_service)]
Payments = Annotated[PaymentService, Depends(get_payment_service)]
