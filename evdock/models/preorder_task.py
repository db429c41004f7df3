"""Pre-order fulfillment task enumerations."""
from enum import Enum


class PreOrderTaskStatus(str, Enum):
    """Fulfillment task status.

    requested -> accepted -> in_transit -> delivered, or cancelled from any
    non-terminal status.
    """
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"    # Terminal
    CANCELLED = "cancelled"    # Terminal
