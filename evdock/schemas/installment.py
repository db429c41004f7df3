"""Pydantic schemas for installment plans."""
from datetime import datetime
from typing import Optional, List

from pydantic import Field

from evdock.schemas.base import RecordSchema, BaseCreateSchema
from evdock.models.installment import InstallmentPlanStatus, ScheduleEntryStatus


class InstallmentQuote(RecordSchema):
    """Result of the installment formula for one principal and term."""
    principal: int
    installment_months: int
    interest_rate: float
    monthly_payment: float
    total_payable: float
    interest_amount: float


class InstallmentPlanDraft(BaseCreateSchema):
    """What settlement hands to the installment collaborator."""
    deposit_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    vehicle_color: str
    total_amount: int = Field(..., gt=0)  # The deposit's remaining amount
    installment_months: int = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0)
    monthly_payment: float = Field(..., gt=0)
    start_date: datetime
    dealer_id: str
    created_by: str


class InstallmentScheduleEntry(RecordSchema):
    month: int
    due_date: datetime
    amount: float
    principal: float
    interest: float
    status: ScheduleEntryStatus = ScheduleEntryStatus.PENDING
    paid_date: Optional[datetime] = None
    paid_amount: float = 0
    remaining_balance: float


class InstallmentPlan(RecordSchema):
    """Stored installment plan with its monthly schedule."""
    id: str
    deposit_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    vehicle_color: str

    total_amount: int
    installment_months: int
    interest_rate: float
    monthly_payment: float
    total_payable: float
    interest_amount: float

    status: InstallmentPlanStatus = InstallmentPlanStatus.ACTIVE
    paid_months: int = 0
    remaining_months: int
    remaining_amount: float

    start_date: datetime
    end_date: datetime
    next_payment_date: Optional[datetime] = None
    last_payment_date: Optional[datetime] = None

    payment_schedule: List[InstallmentScheduleEntry]

    dealer_id: str
    created_by: str
    created_at: datetime
    last_modified: datetime


class InstallmentPaymentCreate(BaseCreateSchema):
    """Record one monthly payment."""
    month: int = Field(..., ge=1)
    paid_amount: Optional[float] = Field(None, gt=0)
    paid_date: Optional[datetime] = None


class PaymentReminder(RecordSchema):
    """An upcoming or overdue monthly payment."""
    installment_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    month: int
    due_date: datetime
    amount: float
    days_until_due: Optional[int] = None
    days_overdue: Optional[int] = None
