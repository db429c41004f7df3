"""Deposit enumerations.

A deposit reserves a vehicle for a customer, either from dealer stock
(AVAILABLE) or ordered from the manufacturer (PRE_ORDER). Values are stored
lowercase, matching the records written by the mobile client.
"""
from enum import Enum


class DepositType(str, Enum):
    """Deposit type - fixed at creation."""
    AVAILABLE = "available"    # Vehicle in dealer stock
    PRE_ORDER = "pre_order"    # Vehicle ordered from manufacturer


class DepositStatus(str, Enum):
    """Deposit lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"    # Terminal
    CANCELLED = "cancelled"    # Terminal


class ManufacturerStatus(str, Enum):
    """Pre-order position in the supply pipeline."""
    REQUESTED = "requested"    # Requested by dealer staff at creation
    ORDERED = "ordered"        # Manager placed the manufacturer order
    ARRIVED = "arrived"        # Vehicle arrived at the dealer


class NotificationStatus(str, Enum):
    """Whether staff has been told (and confirmed) the vehicle arrived."""
    NOTIFIED = "notified"
    ACKNOWLEDGED = "acknowledged"


class FinalPaymentType(str, Enum):
    """How the remaining amount was settled."""
    FULL = "full"
    INSTALLMENT = "installment"
