"""Pydantic schemas for quotations produced by full settlement."""
from datetime import datetime
from typing import Optional, List

from pydantic import Field, model_validator

from evdock.schemas.base import RecordSchema, BaseCreateSchema
from evdock.models.deposit import FinalPaymentType
from evdock.models.quotation import QuotationStatus


class QuotationItem(BaseCreateSchema):
    vehicle_id: Optional[str] = None
    model: str
    color: str
    price: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class QuotationPricing(BaseCreateSchema):
    """Pricing breakdown: basePrice = depositAmount + finalAmount."""
    base_price: int = Field(..., gt=0)
    total_price: int = Field(..., gt=0)
    deposit_amount: int = Field(..., ge=0)
    final_amount: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_breakdown(self):
        if self.deposit_amount + self.final_amount != self.base_price:
            raise ValueError("depositAmount + finalAmount must equal basePrice")
        return self


class QuotationDraft(BaseCreateSchema):
    """What settlement hands to the quotation collaborator."""
    deposit_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    vehicle_model: str
    vehicle_color: str
    items: List[QuotationItem]
    pricing: QuotationPricing
    total_amount: int
    status: QuotationStatus = QuotationStatus.PAID
    payment_type: FinalPaymentType = FinalPaymentType.FULL
    payment_status: str = "completed"
    payment_completed_at: datetime
    dealer_id: str
    created_by: str
    notes: str = ""


class Quotation(RecordSchema):
    """Stored quotation."""
    id: str
    deposit_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    vehicle_model: str
    vehicle_color: str
    items: List[QuotationItem]
    pricing: QuotationPricing
    total_amount: int
    status: QuotationStatus
    payment_type: FinalPaymentType
    payment_status: str
    payment_completed_at: datetime
    dealer_id: str
    created_by: str
    notes: str = ""
    created_at: datetime
    last_modified: datetime
