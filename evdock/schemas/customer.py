"""Pydantic schemas for customers produced by full settlement."""
from datetime import datetime
from typing import Optional

from evdock.schemas.base import RecordSchema, BaseCreateSchema


class CustomerSnapshot(BaseCreateSchema):
    """Customer fields derived from a settled deposit."""
    deposit_id: str
    quotation_id: str
    customer_id: str
    name: str
    phone: str
    email: Optional[str] = None
    vehicle_model: str
    vehicle_color: str
    order_value: int
    purchase_date: datetime
    dealer_id: str
    staff_name: str


class Customer(RecordSchema):
    """Stored customer record."""
    id: str
    deposit_id: str
    quotation_id: str
    customer_id: str
    name: str
    phone: str
    email: Optional[str] = None
    vehicle_model: str
    vehicle_color: str
    order_value: int
    purchase_date: datetime
    dealer_id: str
    staff_name: str
    created_at: datetime
