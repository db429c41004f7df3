"""Quotation enumerations."""
from enum import Enum


class QuotationStatus(str, Enum):
    """Quotation status. Quotations produced by settlement are always PAID."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"
