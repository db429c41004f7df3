"""
Pre-order Task Queue

Fulfillment tasks handed from the dealer to central inventory (EVM) staff
when a manager places a manufacturer order. One task per pre-order deposit.

    requested -> accepted -> in_transit -> delivered
        \\           \\            \\
         +-----------+------------+--> cancelled

Tasks only move one step forward at a time; delivered and cancelled are
terminal.
"""
import logging
from typing import Dict, List, Optional

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import InvalidTransition, NotFound
from evdock.core.identifiers import generate_record_id, utcnow
from evdock.core.permissions import Actor, require_role
from evdock.models.preorder_task import PreOrderTaskStatus
from evdock.schemas.preorder_task import PreOrderTask, PreOrderTaskCreate
from evdock.services.record_store import RecordCollection, RecordStore

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION RULES
# =============================================================================

TASK_TRANSITIONS: Dict[PreOrderTaskStatus, List[PreOrderTaskStatus]] = {
    PreOrderTaskStatus.REQUESTED: [PreOrderTaskStatus.ACCEPTED, PreOrderTaskStatus.CANCELLED],
    PreOrderTaskStatus.ACCEPTED: [PreOrderTaskStatus.IN_TRANSIT, PreOrderTaskStatus.CANCELLED],
    PreOrderTaskStatus.IN_TRANSIT: [PreOrderTaskStatus.DELIVERED, PreOrderTaskStatus.CANCELLED],
    PreOrderTaskStatus.DELIVERED: [],    # Terminal state
    PreOrderTaskStatus.CANCELLED: [],    # Terminal state
}

# Audit field prefix stamped when a task enters a status
_AUDIT_FIELDS = {
    PreOrderTaskStatus.ACCEPTED: "accepted",
    PreOrderTaskStatus.IN_TRANSIT: "in_transit",
    PreOrderTaskStatus.DELIVERED: "delivered",
    PreOrderTaskStatus.CANCELLED: "cancelled",
}


def validate_task_transition(current: PreOrderTaskStatus, requested: PreOrderTaskStatus) -> None:
    """Raise InvalidTransition unless `requested` is the next step (or a cancel)."""
    allowed = TASK_TRANSITIONS.get(current, [])
    if requested not in allowed:
        raise InvalidTransition(current.value, requested.value, [s.value for s in allowed])


class PreOrderTaskQueue:
    """Queue of manufacturer-order fulfillment tasks."""

    ENTITY = "preorder_task"

    def __init__(self, store: RecordStore, config: Settings = None):
        self.config = config or default_settings
        self.records = RecordCollection(
            store, self.ENTITY, PreOrderTask, self.config.STORE_NAMESPACE
        )

    @staticmethod
    def generate_task_id() -> str:
        return generate_record_id("POT", suffix_length=6)

    async def _new_task_id(self) -> str:
        return self.generate_task_id()

    async def create_task(self, data: PreOrderTaskCreate) -> PreOrderTask:
        """
        Enqueue a task in REQUESTED status.

        Creation is keyed by deposit id: if a task already exists for the
        deposit it is returned unchanged, so a retried manufacturer order
        never produces a second task.
        """
        task_id, existing = await self.records.claim("deposit", data.deposit_id, self._new_task_id)
        if existing is not None:
            logger.info(
                f"Pre-order task {existing.id} already exists for deposit "
                f"{data.deposit_id}; reusing it"
            )
            return existing

        now = utcnow()
        task = PreOrderTask(
            id=task_id,
            deposit_id=data.deposit_id,
            dealer_id=data.dealer_id,
            vehicle_id=data.vehicle_id,
            vehicle_model=data.vehicle_model,
            vehicle_color=data.vehicle_color,
            quantity=data.quantity,
            status=PreOrderTaskStatus.REQUESTED,
            requested_by=data.requested_by,
            requested_at=now,
            notes=data.notes,
            created_at=now,
            updated_at=now,
        )
        await self.records.put(task.id, task)
        logger.info(f"Pre-order task {task.id} queued for deposit {task.deposit_id}")
        return task

    async def get(self, task_id: str) -> Optional[PreOrderTask]:
        return await self.records.get(task_id)

    async def get_or_raise(self, task_id: str) -> PreOrderTask:
        task = await self.records.get(task_id)
        if task is None:
            raise NotFound("PreOrderTask", task_id)
        return task

    async def get_by_deposit_id(self, deposit_id: str) -> Optional[PreOrderTask]:
        return await self.records.lookup_record("deposit", deposit_id)

    async def list_all(self) -> List[PreOrderTask]:
        return await self.records.all()

    async def list_by_status(self, status: PreOrderTaskStatus) -> List[PreOrderTask]:
        return [t for t in await self.records.all() if t.status == status]

    async def advance(
        self,
        task_id: str,
        next_status: PreOrderTaskStatus,
        actor: Actor,
        notes: Optional[str] = None,
    ) -> PreOrderTask:
        """
        Move a task to its next status.

        Args:
            task_id: Task to advance
            next_status: Immediate successor, or CANCELLED
            actor: Must be EVM staff
            notes: Optional replacement notes

        Raises:
            Forbidden: If the actor is not EVM staff
            NotFound: If the task does not exist
            InvalidTransition: If next_status is not adjacent or task is terminal
        """
        require_role(actor, "advance_preorder_task")
        task = await self.get_or_raise(task_id)
        try:
            validate_task_transition(task.status, next_status)
        except InvalidTransition:
            logger.warning(
                f"Rejected task {task_id} move {task.status.value} -> {next_status.value}"
            )
            raise

        now = utcnow()
        prefix = _AUDIT_FIELDS[next_status]
        changes = {
            "status": next_status,
            "updated_at": now,
            f"{prefix}_at": now,
            f"{prefix}_by": actor.actor_name,
        }
        if notes:
            changes["notes"] = notes

        updated = PreOrderTask.model_validate({**task.model_dump(), **changes})
        await self.records.put(updated.id, updated)
        logger.info(
            f"Pre-order task {task_id}: {task.status.value} -> {next_status.value} "
            f"by {actor.actor_name}"
        )
        return updated
