"""Pydantic schemas for final-payment settlement."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from evdock.schemas.base import RecordSchema, BaseCreateSchema
from evdock.schemas.deposit import Deposit
from evdock.schemas.installment import InstallmentQuote
from evdock.models.deposit import DepositStatus, FinalPaymentType


class InstallmentSettleRequest(BaseCreateSchema):
    months: int


class PaymentRequestCreate(BaseCreateSchema):
    payment_type: FinalPaymentType = FinalPaymentType.FULL
    installment_months: Optional[int] = None


class SettlementResult(RecordSchema):
    """Outcome of settling a deposit."""
    deposit: Deposit
    final_payment_type: FinalPaymentType
    final_amount: int
    quotation_id: Optional[str] = None
    customer_id: Optional[str] = None
    installment_id: Optional[str] = None
    installment: Optional[InstallmentQuote] = None


class PaymentSummary(RecordSchema):
    deposit_id: str
    deposit_amount: int
    remaining_amount: int
    total_amount: int
    status: DepositStatus
    payable: bool
    final_payment_type: Optional[FinalPaymentType] = None
    quotation_id: Optional[str] = None
    installment_id: Optional[str] = None


class PaymentRequest(RecordSchema):
    """Placeholder payment request standing in for a gateway QR checkout."""
    payment_id: str
    deposit_id: str
    amount: int = Field(..., gt=0)
    payment_type: FinalPaymentType
    installment_months: Optional[int] = None
    qr_code: str
    transaction_id: str
    status: str = "pending"
    created_at: datetime
    expires_at: datetime


class PaymentVerification(RecordSchema):
    payment_id: str
    status: str
    transaction_id: str
    verified_at: datetime
