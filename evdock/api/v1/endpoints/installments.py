"""Installment plan endpoints."""
from typing import List

from fastapi import APIRouter, Query

from evdock.api.deps import Installments
from evdock.schemas.installment import InstallmentPaymentCreate, InstallmentPlan, PaymentReminder


router = APIRouter()


@router.get("", response_model=List[InstallmentPlan])
async def list_active_plans(installments: Installments):
    return await installments.list_active()


@router.get("/upcoming", response_model=List[PaymentReminder])
async def get_upcoming_payments(
    installments: Installments,
    days: int = Query(7, ge=1, le=365),
):
    """Next payments falling due within `days` days."""
    return await installments.upcoming_payments(days)


@router.get("/overdue", response_model=List[PaymentReminder])
async def get_overdue_payments(installments: Installments):
    """Past-due payments; pending entries are marked overdue."""
    return await installments.overdue_payments()


@router.get("/{plan_id}", response_model=InstallmentPlan)
async def get_plan(plan_id: str, installments: Installments):
    return await installments.get_plan(plan_id)


@router.post("/{plan_id}/payments", response_model=InstallmentPlan)
async def record_payment(
    plan_id: str,
    data: InstallmentPaymentCreate,
    installments: Installments,
):
    return await installments.record_payment(plan_id, data)
