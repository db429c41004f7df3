"""Pydantic schemas for deposits."""
from datetime import datetime
from typing import Optional, List

from pydantic import EmailStr, Field, field_validator, model_validator

from evdock.schemas.base import RecordSchema, BaseCreateSchema
from evdock.models.deposit import (
    DepositType,
    DepositStatus,
    ManufacturerStatus,
    NotificationStatus,
    FinalPaymentType,
)


# Fields that only a pre-order deposit may carry
PRE_ORDER_FIELDS = (
    "manufacturer_order_id",
    "manufacturer_status",
    "manufacturer_ordered_at",
    "manufacturer_ordered_by",
    "manufacturer_arrived_at",
    "manufacturer_arrived_by",
    "estimated_arrival",
    "staff_notified_at",
    "staff_notified_by",
    "notification_status",
    "staff_acknowledged_at",
    "staff_acknowledged_by",
)

# Fields fixed at creation
IMMUTABLE_FIELDS = frozenset({
    "id",
    "type",
    "created_at",
    "vehicle_price",
    "deposit_percentage",
    "deposit_amount",
    "remaining_amount",
})


# ==================== Deposit Record ====================

class Deposit(RecordSchema):
    """A customer's partial payment reserving a vehicle."""
    id: str
    type: DepositType

    # Customer
    customer_id: str
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_email: Optional[str] = None

    # Vehicle
    vehicle_id: Optional[str] = None
    vehicle_model: str = Field(..., min_length=1)
    vehicle_color: str
    vehicle_price: int = Field(..., gt=0)  # Minor currency units

    # Money
    deposit_percentage: float = Field(..., gt=0, le=100)
    deposit_amount: int = Field(..., ge=0)
    remaining_amount: int = Field(..., ge=0)

    status: DepositStatus = DepositStatus.PENDING

    # Dates
    deposit_date: datetime
    expected_delivery_date: Optional[datetime] = None
    final_payment_due_date: Optional[datetime] = None

    # Confirmation
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None

    # Pre-order pipeline
    manufacturer_order_id: Optional[str] = None
    manufacturer_status: Optional[ManufacturerStatus] = None
    manufacturer_ordered_at: Optional[datetime] = None
    manufacturer_ordered_by: Optional[str] = None
    manufacturer_arrived_at: Optional[datetime] = None
    manufacturer_arrived_by: Optional[str] = None
    estimated_arrival: Optional[str] = None
    staff_notified_at: Optional[datetime] = None
    staff_notified_by: Optional[str] = None
    notification_status: Optional[NotificationStatus] = None
    staff_acknowledged_at: Optional[datetime] = None
    staff_acknowledged_by: Optional[str] = None

    # Settlement
    final_payment_type: Optional[FinalPaymentType] = None
    final_payment_amount: Optional[int] = None
    installment_months: Optional[int] = None
    installment_id: Optional[str] = None
    final_payment_date: Optional[datetime] = None
    quotation_id: Optional[str] = None
    completed_by: Optional[str] = None

    # Cancellation
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None

    # Metadata
    notes: str = ""
    dealer_id: str
    created_by: str
    created_at: datetime
    last_modified: datetime

    @model_validator(mode="after")
    def check_invariants(self):
        if self.deposit_amount + self.remaining_amount != self.vehicle_price:
            raise ValueError(
                f"depositAmount ({self.deposit_amount}) + remainingAmount "
                f"({self.remaining_amount}) must equal vehiclePrice ({self.vehicle_price})"
            )
        if self.type == DepositType.AVAILABLE:
            carried = [name for name in PRE_ORDER_FIELDS if getattr(self, name) is not None]
            if carried:
                raise ValueError(
                    f"Available deposit cannot carry pre-order fields: {', '.join(carried)}"
                )
        return self

    @property
    def is_pre_order(self) -> bool:
        return self.type == DepositType.PRE_ORDER


# ==================== Input Payloads ====================

class DepositCreate(BaseCreateSchema):
    """Schema for creating a deposit (dealer staff form)."""
    type: DepositType

    customer_id: Optional[str] = None
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: str = Field(..., min_length=8, max_length=20)
    customer_email: Optional[EmailStr] = None

    vehicle_id: Optional[str] = None
    vehicle_model: str = Field(..., min_length=1, max_length=200)
    vehicle_color: str = Field(..., max_length=50)
    vehicle_price: int = Field(..., gt=0)
    deposit_percentage: Optional[float] = Field(None, gt=0, le=100)

    deposit_date: Optional[datetime] = None
    expected_delivery_date: Optional[datetime] = None
    final_payment_due_date: Optional[datetime] = None
    estimated_arrival: Optional[str] = None  # Free text, e.g. "1-3 months"

    dealer_id: Optional[str] = None
    notes: str = ""

    @field_validator("customer_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_type_fields(self):
        if self.type == DepositType.AVAILABLE and self.estimated_arrival:
            raise ValueError("estimatedArrival only applies to pre-order deposits")
        return self


class ManufacturerOrderRequest(BaseCreateSchema):
    """Optional details when the manager places the manufacturer order."""
    manufacturer_order_id: Optional[str] = Field(None, min_length=1, max_length=64)
    estimated_arrival: Optional[str] = None


class VehicleArrivalRequest(BaseCreateSchema):
    """Optional details when the manager marks the vehicle as arrived."""
    vehicle_id: Optional[str] = None
    arrival_date: Optional[datetime] = None


class DepositCancelRequest(BaseCreateSchema):
    reason: Optional[str] = Field(None, max_length=500)


# ==================== Read Models ====================

class DepositStatistics(RecordSchema):
    """Counts and totals across all deposits."""
    total: int = 0
    available: int = 0
    pre_order: int = 0
    pending: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    total_deposit_amount: int = 0
    total_remaining_amount: int = 0  # Outstanding on non-completed deposits


class DepositActions(RecordSchema):
    """Transitions currently open on a deposit."""
    deposit_id: str
    actions: List[str] = []
