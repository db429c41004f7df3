"""
Deposit Lifecycle Service

Role-gated workflow transitions on deposits:

    1. create_deposit            (Dealer Staff)
    2. confirm_deposit           (Dealer Staff)     pending -> confirmed
    3. place_manufacturer_order  (Dealer Manager)   pre-order only, enqueues a task
    4. mark_vehicle_arrived      (Dealer Manager)   pre-order only
    5. notify_staff_vehicle_ready(Dealer Manager)   pre-order only
    6. acknowledge_notification  (Dealer Staff)     pre-order only
    7. cancel_deposit            (Dealer Staff/Manager)

Each transition loads the deposit fresh, checks its preconditions against
that copy and writes it back once. A rejected transition leaves the record
untouched.
"""
import logging
from datetime import datetime
from typing import List, Optional

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import WorkflowError
from evdock.core.identifiers import utcnow
from evdock.core.permissions import Actor, require_role
from evdock.models.deposit import DepositStatus, ManufacturerStatus, NotificationStatus
from evdock.schemas.deposit import (
    Deposit,
    DepositCancelRequest,
    DepositCreate,
    ManufacturerOrderRequest,
    VehicleArrivalRequest,
)
from evdock.schemas.preorder_task import PreOrderTaskCreate
from evdock.services import deposit_state_machine as sm
from evdock.services.deposit_repository import DepositRepository
from evdock.services.preorder_task_queue import PreOrderTaskQueue

logger = logging.getLogger(__name__)


def generate_manufacturer_order_id(now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    return f"MFG-PO-{int(now.timestamp() * 1000)}"


class DepositLifecycleService:
    """Workflow transitions on deposits."""

    def __init__(
        self,
        repository: DepositRepository,
        task_queue: PreOrderTaskQueue,
        config: Settings = None,
    ):
        self.repository = repository
        self.task_queue = task_queue
        self.config = config or default_settings

    async def _load(self, deposit_id: str) -> Deposit:
        return await self.repository.get_or_raise(deposit_id)

    async def _apply(self, deposit: Deposit, **changes) -> Deposit:
        return await self.repository.save(deposit.model_copy(update=changes))

    # ==================== CREATE / READ ====================

    async def create_deposit(self, actor: Actor, data: DepositCreate) -> Deposit:
        require_role(actor, "create_deposit")
        return await self.repository.create(data, created_by=actor.actor_name)

    async def get_deposit(self, deposit_id: str) -> Deposit:
        return await self._load(deposit_id)

    async def get_allowed_actions(self, deposit_id: str) -> List[str]:
        return sm.get_allowed_actions(await self._load(deposit_id))

    # ==================== TRANSITIONS ====================

    async def confirm_deposit(self, actor: Actor, deposit_id: str) -> Deposit:
        """pending -> confirmed."""
        require_role(actor, "confirm_deposit")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_transition(deposit, DepositStatus.CONFIRMED)
        except WorkflowError as e:
            logger.warning(f"Confirm rejected for {deposit_id}: {e.message}")
            raise

        now = utcnow()
        updated = await self._apply(
            deposit,
            status=DepositStatus.CONFIRMED,
            confirmed_at=now,
            confirmed_by=actor.actor_name,
        )
        logger.info(f"Deposit {deposit_id} confirmed by {actor.actor_name}")
        return updated

    async def place_manufacturer_order(
        self,
        actor: Actor,
        deposit_id: str,
        request: Optional[ManufacturerOrderRequest] = None,
    ) -> Deposit:
        """
        Order the vehicle from the manufacturer and enqueue the fulfillment task.

        The task is created before the deposit is written. If the deposit
        write fails the call can be retried: the queue returns the task
        already created for this deposit instead of adding a second one.

        Raises:
            Forbidden: If the actor is not a dealer manager
            NotFound: If the deposit does not exist
            InvalidOperation: If the deposit is not a pre-order
            PreconditionFailed: If an order was already placed or the deposit is closed
        """
        require_role(actor, "place_manufacturer_order")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_manufacturer_order(deposit)
        except WorkflowError as e:
            logger.warning(f"Manufacturer order rejected for {deposit_id}: {e.message}")
            raise

        request = request or ManufacturerOrderRequest()
        now = utcnow()

        task = await self.task_queue.create_task(
            PreOrderTaskCreate(
                deposit_id=deposit.id,
                dealer_id=deposit.dealer_id,
                vehicle_id=deposit.vehicle_id,
                vehicle_model=deposit.vehicle_model,
                vehicle_color=deposit.vehicle_color,
                quantity=1,
                requested_by=actor.actor_name,
                notes=f"Pre-order from deposit {deposit.id}",
            )
        )

        changes = {
            "manufacturer_order_id": request.manufacturer_order_id
            or generate_manufacturer_order_id(now),
            "manufacturer_status": ManufacturerStatus.ORDERED,
            "manufacturer_ordered_at": now,
            "manufacturer_ordered_by": actor.actor_name,
        }
        if request.estimated_arrival:
            changes["estimated_arrival"] = request.estimated_arrival

        updated = await self._apply(deposit, **changes)
        logger.info(
            f"Manufacturer order {updated.manufacturer_order_id} placed for deposit "
            f"{deposit_id} (task {task.id}) by {actor.actor_name}"
        )
        return updated

    async def mark_vehicle_arrived(
        self,
        actor: Actor,
        deposit_id: str,
        request: Optional[VehicleArrivalRequest] = None,
    ) -> Deposit:
        """ordered -> arrived, optionally binding the delivered vehicle."""
        require_role(actor, "mark_vehicle_arrived")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_vehicle_arrival(deposit)
        except WorkflowError as e:
            logger.warning(f"Arrival rejected for {deposit_id}: {e.message}")
            raise

        request = request or VehicleArrivalRequest()
        changes = {
            "manufacturer_status": ManufacturerStatus.ARRIVED,
            "manufacturer_arrived_at": request.arrival_date or utcnow(),
            "manufacturer_arrived_by": actor.actor_name,
        }
        if request.vehicle_id:
            changes["vehicle_id"] = request.vehicle_id

        updated = await self._apply(deposit, **changes)
        logger.info(f"Vehicle for deposit {deposit_id} marked arrived by {actor.actor_name}")
        return updated

    async def notify_staff_vehicle_ready(self, actor: Actor, deposit_id: str) -> Deposit:
        require_role(actor, "notify_staff_vehicle_ready")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_staff_notification(deposit)
        except WorkflowError as e:
            logger.warning(f"Staff notification rejected for {deposit_id}: {e.message}")
            raise

        updated = await self._apply(
            deposit,
            notification_status=NotificationStatus.NOTIFIED,
            staff_notified_at=utcnow(),
            staff_notified_by=actor.actor_name,
        )
        logger.info(f"Staff notified of arrival for deposit {deposit_id}")
        return updated

    async def acknowledge_notification(self, actor: Actor, deposit_id: str) -> Deposit:
        require_role(actor, "acknowledge_notification")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_acknowledgement(deposit)
        except WorkflowError as e:
            logger.warning(f"Acknowledgement rejected for {deposit_id}: {e.message}")
            raise

        updated = await self._apply(
            deposit,
            notification_status=NotificationStatus.ACKNOWLEDGED,
            staff_acknowledged_at=utcnow(),
            staff_acknowledged_by=actor.actor_name,
        )
        logger.info(f"Arrival notice for deposit {deposit_id} acknowledged by {actor.actor_name}")
        return updated

    async def cancel_deposit(
        self,
        actor: Actor,
        deposit_id: str,
        request: Optional[DepositCancelRequest] = None,
    ) -> Deposit:
        """pending/confirmed -> cancelled (terminal)."""
        require_role(actor, "cancel_deposit")
        deposit = await self._load(deposit_id)
        try:
            sm.validate_transition(deposit, DepositStatus.CANCELLED)
        except WorkflowError as e:
            logger.warning(f"Cancel rejected for {deposit_id}: {e.message}")
            raise

        reason = request.reason if request else None
        updated = await self._apply(
            deposit,
            status=DepositStatus.CANCELLED,
            cancelled_at=utcnow(),
            cancelled_by=actor.actor_name,
            cancellation_reason=reason,
        )
        logger.info(f"Deposit {deposit_id} cancelled by {actor.actor_name}: {reason or '-'}")
        return updated

    async def delete_deposit(self, actor: Actor, deposit_id: str) -> None:
        require_role(actor, "delete_deposit")
        await self.repository.delete(deposit_id)
