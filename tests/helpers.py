"""Test doubles and payload builders shared across test modules."""
from typing import Callable, Optional

from evdock.core.exceptions import RecordStoreError
from evdock.models.deposit import DepositType
from evdock.schemas.deposit import DepositCreate
from evdock.services.record_store import InMemoryRecordStore


VEHICLE_PRICE = 1_250_000_000


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose writes fail while `fail_when(key)` is true."""

    def __init__(self):
        super().__init__()
        self.fail_when: Optional[Callable[[str], bool]] = None
        self.failed_writes = 0

    async def put(self, key: str, value: bytes) -> None:
        if self.fail_when is not None and self.fail_when(key):
            self.failed_writes += 1
            raise RecordStoreError("Injected write failure", key)
        await super().put(key, value)


def make_deposit_data(deposit_type: DepositType = DepositType.AVAILABLE, **overrides) -> DepositCreate:
    data = {
        "type": deposit_type,
        "customer_name": "Nguyen Van An",
        "customer_phone": "0901234567",
        "customer_email": "an.nguyen@evdock.vn",
        "vehicle_id": "V001" if deposit_type == DepositType.AVAILABLE else None,
        "vehicle_model": "EV Sedan X",
        "vehicle_color": "Pearl White",
        "vehicle_price": VEHICLE_PRICE,
        "deposit_percentage": 20,
    }
    data.update(overrides)
    return DepositCreate(**data)
