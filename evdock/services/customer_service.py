"""Customer records created when a deposit is settled in full."""
import logging
from typing import List, Optional

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import NotFound
from evdock.core.identifiers import generate_record_id, utcnow
from evdock.schemas.customer import Customer, CustomerSnapshot
from evdock.services.collaborators import CustomerCreator
from evdock.services.record_store import RecordCollection, RecordStore

logger = logging.getLogger(__name__)


class CustomerService(CustomerCreator):
    """Stores one customer per fully settled deposit."""

    ENTITY = "customer"

    def __init__(self, store: RecordStore, config: Settings = None):
        self.config = config or default_settings
        self.records = RecordCollection(store, self.ENTITY, Customer, self.config.STORE_NAMESPACE)

    async def _new_customer_id(self) -> str:
        return generate_record_id("CUS")

    async def create_customer_from_settlement(self, snapshot: CustomerSnapshot) -> str:
        customer_id, existing = await self.records.claim(
            "deposit", snapshot.deposit_id, self._new_customer_id
        )
        if existing is not None:
            logger.info(f"Customer {customer_id} already exists for deposit {snapshot.deposit_id}")
            return customer_id

        customer = Customer(
            id=customer_id,
            created_at=utcnow(),
            **snapshot.model_dump(),
        )
        await self.records.put(customer.id, customer)
        logger.info(
            f"Customer {customer.id} created from deposit {snapshot.deposit_id} "
            f"(quotation {snapshot.quotation_id})"
        )
        return customer.id

    async def get_customer(self, customer_id: str) -> Customer:
        customer = await self.records.get(customer_id)
        if customer is None:
            raise NotFound("Customer", customer_id)
        return customer

    async def find_customer_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        record = await self.records.lookup_record("deposit", deposit_id)
        return record.id if record else None

    async def list_customers(self) -> List[Customer]:
        return await self.records.all()
