"""
Deposit State Machine

This module is the SINGLE SOURCE OF TRUTH for deposit status transitions
and for the pre-order pipeline checks that gate final payment.

    pending -> confirmed -> completed
       \\           \\
        +-----------+--> cancelled

completed and cancelled are terminal.

All checks here are pure functions over a freshly loaded Deposit; they
raise typed workflow errors and never touch the record store.
"""
from typing import Dict, List, Optional

from evdock.core.exceptions import InvalidOperation, PreconditionFailed
from evdock.models.deposit import (
    DepositStatus,
    DepositType,
    ManufacturerStatus,
    NotificationStatus,
)
from evdock.schemas.deposit import Deposit


# =============================================================================
# TRANSITION RULES
# =============================================================================

DEPOSIT_TRANSITIONS: Dict[DepositStatus, List[DepositStatus]] = {
    DepositStatus.PENDING: [
        DepositStatus.CONFIRMED,    # Staff confirms the deposit
        DepositStatus.CANCELLED,
    ],
    DepositStatus.CONFIRMED: [
        DepositStatus.COMPLETED,    # Final payment settled
        DepositStatus.CANCELLED,
    ],
    DepositStatus.COMPLETED: [],    # Terminal state - no transitions
    DepositStatus.CANCELLED: [],    # Terminal state - no transitions
}

TRANSITION_ACTIONS: Dict[tuple, str] = {
    (DepositStatus.PENDING, DepositStatus.CONFIRMED): "Confirm Deposit",
    (DepositStatus.PENDING, DepositStatus.CANCELLED): "Cancel",
    (DepositStatus.CONFIRMED, DepositStatus.COMPLETED): "Settle Final Payment",
    (DepositStatus.CONFIRMED, DepositStatus.CANCELLED): "Cancel",
}


def _value(item) -> Optional[str]:
    return item.value if item is not None else None


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def can_transition(current_status: DepositStatus, new_status: DepositStatus) -> bool:
    """Check if a transition is allowed."""
    return new_status in DEPOSIT_TRANSITIONS.get(current_status, [])


def get_allowed_transitions(current_status: DepositStatus) -> List[DepositStatus]:
    """Get list of statuses that can be transitioned to from current status."""
    return DEPOSIT_TRANSITIONS.get(current_status, [])


def get_transition_action(current_status: DepositStatus, new_status: DepositStatus) -> str:
    """Get human-readable action name for a transition."""
    return TRANSITION_ACTIONS.get(
        (current_status, new_status),
        f"{current_status.value} -> {new_status.value}",
    )


def is_terminal(status: DepositStatus) -> bool:
    """Is this a terminal (final) state?"""
    return not DEPOSIT_TRANSITIONS.get(status)


def validate_transition(deposit: Deposit, new_status: DepositStatus) -> None:
    """
    Validate a status transition. Raises PreconditionFailed if invalid.

    The expected value in the error lists the statuses from which the
    requested status can be reached.
    """
    if can_transition(deposit.status, new_status):
        return

    expected = [
        status.value for status, targets in DEPOSIT_TRANSITIONS.items()
        if new_status in targets
    ]
    if is_terminal(deposit.status):
        message = (
            f"Deposit {deposit.id} is '{deposit.status.value}', a terminal state, "
            f"and cannot move to '{new_status.value}'"
        )
    else:
        message = (
            f"Cannot change deposit {deposit.id} from '{deposit.status.value}' "
            f"to '{new_status.value}'. Expected status: {' or '.join(expected)}"
        )
    raise PreconditionFailed(message, "status", expected, deposit.status.value)


# =============================================================================
# PRE-ORDER PIPELINE CHECKS
# =============================================================================

def require_type(deposit: Deposit, deposit_type: DepositType, operation: str) -> None:
    """Reject operations that do not apply to this deposit type."""
    if deposit.type != deposit_type:
        raise InvalidOperation(
            f"Cannot {operation} on {deposit.type.value} deposit {deposit.id}; "
            f"only {deposit_type.value} deposits support it",
            deposit.type.value,
            deposit_type.value,
        )


def require_active(deposit: Deposit, operation: str) -> None:
    """Reject pipeline steps on completed or cancelled deposits."""
    if is_terminal(deposit.status):
        raise PreconditionFailed(
            f"Cannot {operation} on deposit {deposit.id} in terminal status "
            f"'{deposit.status.value}'",
            "status",
            [DepositStatus.PENDING.value, DepositStatus.CONFIRMED.value],
            deposit.status.value,
        )


def validate_manufacturer_order(deposit: Deposit) -> None:
    require_type(deposit, DepositType.PRE_ORDER, "place a manufacturer order")
    require_active(deposit, "place a manufacturer order")
    if deposit.manufacturer_order_id is not None:
        raise PreconditionFailed(
            f"Manufacturer order already placed for deposit {deposit.id} "
            f"({deposit.manufacturer_order_id})",
            "manufacturerOrderId",
            None,
            deposit.manufacturer_order_id,
        )


def validate_vehicle_arrival(deposit: Deposit) -> None:
    require_type(deposit, DepositType.PRE_ORDER, "mark the vehicle arrived")
    require_active(deposit, "mark the vehicle arrived")
    if deposit.manufacturer_status != ManufacturerStatus.ORDERED:
        raise PreconditionFailed(
            f"Vehicle for deposit {deposit.id} can only arrive after it is ordered",
            "manufacturerStatus",
            ManufacturerStatus.ORDERED.value,
            _value(deposit.manufacturer_status),
        )


def validate_staff_notification(deposit: Deposit) -> None:
    require_type(deposit, DepositType.PRE_ORDER, "notify staff")
    require_active(deposit, "notify staff")
    if deposit.manufacturer_status != ManufacturerStatus.ARRIVED:
        raise PreconditionFailed(
            f"Staff can only be notified once the vehicle for deposit {deposit.id} has arrived",
            "manufacturerStatus",
            ManufacturerStatus.ARRIVED.value,
            _value(deposit.manufacturer_status),
        )
    if deposit.notification_status == NotificationStatus.NOTIFIED:
        raise PreconditionFailed(
            f"Staff already notified for deposit {deposit.id}",
            "notificationStatus",
            f"not {NotificationStatus.NOTIFIED.value}",
            NotificationStatus.NOTIFIED.value,
        )


def validate_acknowledgement(deposit: Deposit) -> None:
    require_type(deposit, DepositType.PRE_ORDER, "acknowledge the arrival notice")
    require_active(deposit, "acknowledge the arrival notice")
    if deposit.notification_status != NotificationStatus.NOTIFIED:
        raise PreconditionFailed(
            f"No pending arrival notice to acknowledge for deposit {deposit.id}",
            "notificationStatus",
            NotificationStatus.NOTIFIED.value,
            _value(deposit.notification_status),
        )


# =============================================================================
# PAYMENT ELIGIBILITY
# =============================================================================

def is_payable(deposit: Deposit) -> bool:
    """
    Can the remaining amount be collected?

    Available deposits: once confirmed.
    Pre-order deposits: once confirmed AND the vehicle arrived AND staff
    acknowledged the arrival notice.
    """
    if deposit.status != DepositStatus.CONFIRMED:
        return False
    if deposit.type == DepositType.PRE_ORDER:
        return (
            deposit.manufacturer_status == ManufacturerStatus.ARRIVED
            and deposit.notification_status == NotificationStatus.ACKNOWLEDGED
        )
    return True


def validate_payable(deposit: Deposit) -> None:
    """Raise PreconditionFailed naming the first unmet payment condition."""
    if deposit.status != DepositStatus.CONFIRMED:
        raise PreconditionFailed(
            f"Deposit {deposit.id} must be confirmed before final payment",
            "status",
            DepositStatus.CONFIRMED.value,
            deposit.status.value,
        )
    if deposit.type != DepositType.PRE_ORDER:
        return
    if deposit.manufacturer_status != ManufacturerStatus.ARRIVED:
        raise PreconditionFailed(
            f"Pre-ordered vehicle for deposit {deposit.id} has not arrived",
            "manufacturerStatus",
            ManufacturerStatus.ARRIVED.value,
            _value(deposit.manufacturer_status),
        )
    if deposit.notification_status != NotificationStatus.ACKNOWLEDGED:
        raise PreconditionFailed(
            f"Staff must acknowledge the arrival notice for deposit {deposit.id} "
            f"before final payment",
            "notificationStatus",
            NotificationStatus.ACKNOWLEDGED.value,
            _value(deposit.notification_status),
        )


def get_allowed_actions(deposit: Deposit) -> List[str]:
    """List the workflow actions currently open on a deposit."""
    if is_terminal(deposit.status):
        return []

    actions = []
    if deposit.status == DepositStatus.PENDING:
        actions.append("confirm")
    if deposit.type == DepositType.PRE_ORDER:
        if deposit.manufacturer_order_id is None:
            actions.append("place_manufacturer_order")
        if deposit.manufacturer_status == ManufacturerStatus.ORDERED:
            actions.append("mark_vehicle_arrived")
        if (
            deposit.manufacturer_status == ManufacturerStatus.ARRIVED
            and deposit.notification_status != NotificationStatus.NOTIFIED
        ):
            actions.append("notify_staff")
        if deposit.notification_status == NotificationStatus.NOTIFIED:
            actions.append("acknowledge_notification")
    if is_payable(deposit):
        actions.extend(["settle_full", "settle_installment"])
    actions.append("cancel")
    return actions
