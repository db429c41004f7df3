"""Deposit API endpoints: lifecycle transitions and final-payment settlement."""
from typing import List, Optional

from fastapi import APIRouter, Query, status

from evdock.api.deps import CurrentActor, Deposits, Lifecycle, Payments, Settlement
from evdock.models.deposit import DepositStatus, DepositType
from evdock.schemas.deposit import (
    Deposit,
    DepositActions,
    DepositCancelRequest,
    DepositCreate,
    DepositStatistics,
    ManufacturerOrderRequest,
    VehicleArrivalRequest,
)
from evdock.schemas.installment import InstallmentQuote
from evdock.schemas.settlement import (
    InstallmentSettleRequest,
    PaymentRequest,
    PaymentRequestCreate,
    PaymentSummary,
    PaymentVerification,
    SettlementResult,
)


router = APIRouter()


# ==================== CRUD ENDPOINTS ====================

@router.post("", response_model=Deposit, status_code=status.HTTP_201_CREATED)
async def create_deposit(data: DepositCreate, actor: CurrentActor, lifecycle: Lifecycle):
    """Create a deposit (dealer staff)."""
    return await lifecycle.create_deposit(actor, data)


@router.get("", response_model=List[Deposit])
async def list_deposits(
    deposits: Deposits,
    type: Optional[DepositType] = Query(None),
    status: Optional[DepositStatus] = Query(None),
    q: Optional[str] = Query(None, description="Customer name, phone, model or id"),
):
    """List deposits, newest first."""
    items = await deposits.search(q) if q else await deposits.list_all()
    if type:
        items = [d for d in items if d.type == type]
    if status:
        items = [d for d in items if d.status == status]
    return sorted(items, key=lambda d: d.created_at, reverse=True)


@router.get("/stats", response_model=DepositStatistics)
async def get_deposit_stats(deposits: Deposits):
    return await deposits.statistics()


@router.get("/{deposit_id}", response_model=Deposit)
async def get_deposit(deposit_id: str, lifecycle: Lifecycle):
    return await lifecycle.get_deposit(deposit_id)


@router.get("/{deposit_id}/actions", response_model=DepositActions)
async def get_deposit_actions(deposit_id: str, lifecycle: Lifecycle):
    """Workflow actions currently open on the deposit."""
    actions = await lifecycle.get_allowed_actions(deposit_id)
    return DepositActions(deposit_id=deposit_id, actions=actions)


@router.delete("/{deposit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deposit(deposit_id: str, actor: CurrentActor, lifecycle: Lifecycle):
    """Administrative delete (dealer manager or EVM admin)."""
    await lifecycle.delete_deposit(actor, deposit_id)


# ==================== LIFECYCLE ====================

@router.post("/{deposit_id}/confirm", response_model=Deposit)
async def confirm_deposit(deposit_id: str, actor: CurrentActor, lifecycle: Lifecycle):
    return await lifecycle.confirm_deposit(actor, deposit_id)


@router.post("/{deposit_id}/manufacturer-order", response_model=Deposit)
async def place_manufacturer_order(
    deposit_id: str,
    actor: CurrentActor,
    lifecycle: Lifecycle,
    data: Optional[ManufacturerOrderRequest] = None,
):
    """Order a pre-order vehicle from the manufacturer and queue the EVM task."""
    return await lifecycle.place_manufacturer_order(actor, deposit_id, data)


@router.post("/{deposit_id}/arrival", response_model=Deposit)
async def mark_vehicle_arrived(
    deposit_id: str,
    actor: CurrentActor,
    lifecycle: Lifecycle,
    data: Optional[VehicleArrivalRequest] = None,
):
    return await lifecycle.mark_vehicle_arrived(actor, deposit_id, data)


@router.post("/{deposit_id}/notify-staff", response_model=Deposit)
async def notify_staff(deposit_id: str, actor: CurrentActor, lifecycle: Lifecycle):
    return await lifecycle.notify_staff_vehicle_ready(actor, deposit_id)


@router.post("/{deposit_id}/acknowledge", response_model=Deposit)
async def acknowledge_notification(deposit_id: str, actor: CurrentActor, lifecycle: Lifecycle):
    return await lifecycle.acknowledge_notification(actor, deposit_id)


@router.post("/{deposit_id}/cancel", response_model=Deposit)
async def cancel_deposit(
    deposit_id: str,
    actor: CurrentActor,
    lifecycle: Lifecycle,
    data: Optional[DepositCancelRequest] = None,
):
    return await lifecycle.cancel_deposit(actor, deposit_id, data)


# ==================== PAYMENT ====================

@router.get("/{deposit_id}/payment-summary", response_model=PaymentSummary)
async def get_payment_summary(deposit_id: str, settlement: Settlement):
    return await settlement.get_payment_summary(deposit_id)


@router.get("/{deposit_id}/installment-quote", response_model=InstallmentQuote)
async def get_installment_quote(
    deposit_id: str,
    settlement: Settlement,
    months: int = Query(..., description="6, 12, 24 or 36"),
):
    return await settlement.quote_installment(deposit_id, months)


@router.post(
    "/{deposit_id}/payment-request",
    response_model=PaymentRequest,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_request(
    deposit_id: str,
    data: PaymentRequestCreate,
    actor: CurrentActor,
    payments: Payments,
):
    """Create a QR payment request for the remaining amount."""
    return await payments.create_payment_request(actor, deposit_id, data)


@router.post("/payments/{payment_id}/verify", response_model=PaymentVerification)
async def verify_payment(payment_id: str, actor: CurrentActor, payments: Payments):
    return await payments.verify_payment(actor, payment_id)


@router.post("/{deposit_id}/settle/full", response_model=SettlementResult)
async def settle_full(deposit_id: str, actor: CurrentActor, settlement: Settlement):
    """Collect the remaining amount in one payment; creates quotation and customer."""
    return await settlement.settle_full(actor, deposit_id)


@router.post("/{deposit_id}/settle/installment", response_model=SettlementResult)
async def settle_installment(
    deposit_id: str,
    data: InstallmentSettleRequest,
    actor: CurrentActor,
    settlement: Settlement,
):
    """Collect the remaining amount through an installment plan."""
    return await settlement.settle_installment(actor, deposit_id, data.months)
