"""
Role gates for the deposit workflow.

The workflow services are the single source of truth for "who may do what".
Screens may hide buttons, but every transition re-checks the actor's role
here before touching a record.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from evdock.core.exceptions import Forbidden


class ActorRole(str, Enum):
    """Roles of the people operating the app."""
    DEALER_STAFF = "DEALER_STAFF"
    DEALER_MANAGER = "DEALER_MANAGER"
    EVM_STAFF = "EVM_STAFF"          # Central inventory staff
    EVM_ADMIN = "EVM_ADMIN"


@dataclass(frozen=True)
class Actor:
    """The current actor, as handed over by the host's session layer."""
    actor_name: str
    actor_role: ActorRole


# Operation -> roles allowed to perform it
OPERATION_ROLES: Dict[str, Tuple[ActorRole, ...]] = {
    "create_deposit": (ActorRole.DEALER_STAFF,),
    "confirm_deposit": (ActorRole.DEALER_STAFF,),
    "place_manufacturer_order": (ActorRole.DEALER_MANAGER,),
    "mark_vehicle_arrived": (ActorRole.DEALER_MANAGER,),
    "notify_staff_vehicle_ready": (ActorRole.DEALER_MANAGER,),
    "acknowledge_notification": (ActorRole.DEALER_STAFF,),
    "cancel_deposit": (ActorRole.DEALER_STAFF, ActorRole.DEALER_MANAGER),
    "delete_deposit": (ActorRole.DEALER_MANAGER, ActorRole.EVM_ADMIN),
    "settle_deposit": (ActorRole.DEALER_STAFF,),
    "request_payment": (ActorRole.DEALER_STAFF,),
    "advance_preorder_task": (ActorRole.EVM_STAFF,),
}


def require_role(actor: Actor, operation: str) -> None:
    """
    Reject the operation unless the actor holds one of its roles.

    Raises:
        Forbidden: If the actor's role is not listed for the operation
    """
    allowed = OPERATION_ROLES[operation]
    if actor.actor_role not in allowed:
        raise Forbidden(
            operation,
            [role.value for role in allowed],
            ActorRole(actor.actor_role).value,
        )
