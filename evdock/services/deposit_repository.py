"""
Deposit Repository

CRUD and queries over Deposit records. Owns id generation and the
lastModified stamp. Money fields are computed once, here, at creation and
are never written again.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import InvalidArgument, NotFound
from evdock.core.identifiers import generate_record_id, utcnow
from evdock.models.deposit import DepositStatus, DepositType, ManufacturerStatus
from evdock.schemas.deposit import (
    Deposit,
    DepositCreate,
    DepositStatistics,
    IMMUTABLE_FIELDS,
)
from evdock.services.record_store import RecordCollection, RecordStore

logger = logging.getLogger(__name__)


def calculate_deposit_amounts(vehicle_price: int, deposit_percentage: float) -> tuple[int, int]:
    """
    Split the vehicle price into deposit and remaining amounts.

    depositAmount = vehiclePrice * depositPercentage / 100, rounded half-up
    to whole minor units; remainingAmount takes the rest so the two always
    sum to the price.
    """
    if vehicle_price <= 0:
        raise InvalidArgument("Vehicle price must be positive", "vehiclePrice", vehicle_price)
    if not 0 < deposit_percentage <= 100:
        raise InvalidArgument(
            "Deposit percentage must be in (0, 100]", "depositPercentage", deposit_percentage
        )
    deposit_amount = int(
        (Decimal(vehicle_price) * Decimal(str(deposit_percentage)) / Decimal(100))
        .quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    return deposit_amount, vehicle_price - deposit_amount


class DepositRepository:
    """Repository for deposit records."""

    ENTITY = "deposit"

    def __init__(self, store: RecordStore, config: Settings = None):
        self.config = config or default_settings
        self.records = RecordCollection(store, self.ENTITY, Deposit, self.config.STORE_NAMESPACE)

    @staticmethod
    def generate_deposit_id() -> str:
        return generate_record_id("DEP")

    def _default_dates(self, deposit_type: DepositType, deposit_date: datetime):
        if deposit_type == DepositType.PRE_ORDER:
            expected_delivery = deposit_date + timedelta(days=self.config.PRE_ORDER_DELIVERY_DAYS)
            payment_due = expected_delivery + timedelta(days=self.config.PRE_ORDER_PAYMENT_GRACE_DAYS)
        else:
            expected_delivery = deposit_date + timedelta(days=self.config.AVAILABLE_DELIVERY_DAYS)
            payment_due = deposit_date + timedelta(days=self.config.AVAILABLE_PAYMENT_DUE_DAYS)
        return expected_delivery, payment_due

    async def create(self, data: DepositCreate, created_by: str) -> Deposit:
        """
        Create a new deposit in PENDING status.

        Args:
            data: Validated creation payload
            created_by: Name of the staff member creating it

        Returns:
            The stored Deposit
        """
        now = utcnow()
        percentage = data.deposit_percentage or self.config.DEFAULT_DEPOSIT_PERCENTAGE
        deposit_amount, remaining_amount = calculate_deposit_amounts(data.vehicle_price, percentage)

        deposit_date = data.deposit_date or now
        expected_delivery, payment_due = self._default_dates(data.type, deposit_date)

        pre_order_fields = {}
        if data.type == DepositType.PRE_ORDER:
            pre_order_fields = {
                "manufacturer_status": ManufacturerStatus.REQUESTED,
                "estimated_arrival": data.estimated_arrival,
            }

        deposit_id = self.generate_deposit_id()
        deposit = Deposit(
            id=deposit_id,
            type=data.type,
            customer_id=data.customer_id or generate_record_id("C", suffix_length=4),
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            customer_email=str(data.customer_email) if data.customer_email else None,
            vehicle_id=data.vehicle_id,
            vehicle_model=data.vehicle_model,
            vehicle_color=data.vehicle_color,
            vehicle_price=data.vehicle_price,
            deposit_percentage=percentage,
            deposit_amount=deposit_amount,
            remaining_amount=remaining_amount,
            status=DepositStatus.PENDING,
            deposit_date=deposit_date,
            expected_delivery_date=data.expected_delivery_date or expected_delivery,
            final_payment_due_date=data.final_payment_due_date or payment_due,
            notes=data.notes,
            dealer_id=data.dealer_id or self.config.DEFAULT_DEALER_ID,
            created_by=created_by,
            created_at=now,
            last_modified=now,
            **pre_order_fields,
        )

        await self.records.put(deposit_id, deposit)
        logger.info(
            f"Deposit created: {deposit_id} ({data.type.value}) "
            f"{deposit_amount}/{data.vehicle_price} by {created_by}"
        )
        return deposit

    async def get(self, deposit_id: str) -> Optional[Deposit]:
        return await self.records.get(deposit_id)

    async def get_or_raise(self, deposit_id: str) -> Deposit:
        deposit = await self.records.get(deposit_id)
        if deposit is None:
            raise NotFound("Deposit", deposit_id)
        return deposit

    async def save(self, deposit: Deposit) -> Deposit:
        """Write a modified deposit back, stamping lastModified."""
        stamped = deposit.model_copy(update={"last_modified": utcnow()})
        # Re-validate the full record before it reaches the store
        stamped = Deposit.model_validate(stamped.model_dump())
        await self.records.put(stamped.id, stamped)
        return stamped

    async def update(self, deposit_id: str, changes: Dict[str, Any]) -> Deposit:
        """
        Apply field changes to a deposit.

        Immutable fields (id, type, createdAt and the money fields) are
        rejected. Workflow status changes belong to the lifecycle and
        settlement services, not here.
        """
        locked = sorted((IMMUTABLE_FIELDS | {"status"}).intersection(changes))
        if locked:
            raise InvalidArgument(
                f"Deposit fields cannot be changed directly: {', '.join(locked)}",
                "changes",
                locked,
            )
        deposit = await self.get_or_raise(deposit_id)
        data = deposit.model_dump()
        unknown = sorted(set(changes) - set(data))
        if unknown:
            raise InvalidArgument(
                f"Unknown deposit fields: {', '.join(unknown)}", "changes", unknown
            )
        data.update(changes)
        try:
            updated = Deposit.model_validate(data)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid deposit update: {e}", "changes", sorted(changes)) from e
        return await self.save(updated)

    async def delete(self, deposit_id: str) -> None:
        """
        Administrative cleanup. Bypasses the state machine.

        Raises:
            NotFound: If the deposit does not exist
        """
        await self.get_or_raise(deposit_id)
        await self.records.delete(deposit_id)
        logger.info(f"Deposit deleted: {deposit_id}")

    # ==================== QUERIES ====================

    async def list_all(self) -> List[Deposit]:
        return await self.records.all()

    async def list_by_type(self, deposit_type: DepositType) -> List[Deposit]:
        return [d for d in await self.records.all() if d.type == deposit_type]

    async def list_by_status(self, status: DepositStatus) -> List[Deposit]:
        return [d for d in await self.records.all() if d.status == status]

    async def search(self, query: str) -> List[Deposit]:
        """Match customer name, phone, vehicle model or id (case-insensitive)."""
        deposits = await self.records.all()
        query = (query or "").strip()
        if not query:
            return deposits

        needle = query.lower()
        return [
            d for d in deposits
            if needle in d.customer_name.lower()
            or query in d.customer_phone
            or needle in d.vehicle_model.lower()
            or needle in d.id.lower()
        ]

    async def statistics(self) -> DepositStatistics:
        deposits = await self.records.all()
        open_statuses = (DepositStatus.PENDING, DepositStatus.CONFIRMED)
        return DepositStatistics(
            total=len(deposits),
            available=sum(1 for d in deposits if d.type == DepositType.AVAILABLE),
            pre_order=sum(1 for d in deposits if d.type == DepositType.PRE_ORDER),
            pending=sum(1 for d in deposits if d.status == DepositStatus.PENDING),
            confirmed=sum(1 for d in deposits if d.status == DepositStatus.CONFIRMED),
            completed=sum(1 for d in deposits if d.status == DepositStatus.COMPLETED),
            cancelled=sum(1 for d in deposits if d.status == DepositStatus.CANCELLED),
            total_deposit_amount=sum(d.deposit_amount for d in deposits),
            total_remaining_amount=sum(
                d.remaining_amount for d in deposits if d.status in open_statuses
            ),
        )
