"""Pydantic schemas for pre-order fulfillment tasks."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from evdock.schemas.base import RecordSchema, BaseCreateSchema
from evdock.models.preorder_task import PreOrderTaskStatus


class PreOrderTask(RecordSchema):
    """Handoff of a manufacturer-ordered vehicle from central inventory to the dealer."""
    id: str
    deposit_id: str
    dealer_id: str
    vehicle_id: Optional[str] = None
    vehicle_model: str
    vehicle_color: str
    quantity: int = Field(1, ge=1)

    status: PreOrderTaskStatus = PreOrderTaskStatus.REQUESTED

    # Audit
    requested_by: str
    requested_at: datetime
    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None
    in_transit_by: Optional[str] = None
    in_transit_at: Optional[datetime] = None
    delivered_by: Optional[str] = None
    delivered_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    notes: str = ""

    created_at: datetime
    updated_at: datetime


class PreOrderTaskCreate(BaseCreateSchema):
    """Schema for enqueuing a fulfillment task."""
    deposit_id: str = Field(..., min_length=1)
    dealer_id: str = Field(..., min_length=1)
    vehicle_id: Optional[str] = None
    vehicle_model: str = Field(..., min_length=1)
    vehicle_color: str
    quantity: int = Field(1, ge=1)
    requested_by: str = Field(..., min_length=1)
    notes: str = ""


class PreOrderTaskAdvance(BaseCreateSchema):
    """Schema for moving a task to its next status."""
    next_status: PreOrderTaskStatus
    notes: Optional[str] = None
