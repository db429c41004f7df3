import json
from datetime import timedelta

import pytest
from pydantic import ValidationError

from evdock.core.exceptions import InvalidArgument, NotFound
from evdock.core.identifiers import utcnow
from evdock.models.deposit import DepositStatus, DepositType, ManufacturerStatus
from evdock.schemas.deposit import Deposit, DepositCreate
from evdock.services.deposit_repository import calculate_deposit_amounts

from tests.helpers import VEHICLE_PRICE, make_deposit_data


# ==================== Money ====================

def test_deposit_amounts_split_price():
    assert calculate_deposit_amounts(VEHICLE_PRICE, 20) == (250_000_000, 1_000_000_000)


@pytest.mark.parametrize(
    "price, percentage, expected_deposit",
    [
        (999, 50, 500),        # 499.5 rounds up
        (1001, 12.5, 125),     # 125.125 rounds down
        (100, 100, 100),
    ],
)
def test_deposit_amount_rounds_half_up(price, percentage, expected_deposit):
    deposit_amount, remaining = calculate_deposit_amounts(price, percentage)
    assert deposit_amount == expected_deposit
    assert deposit_amount + remaining == price


@pytest.mark.parametrize("price, percentage", [(0, 20), (-5, 20), (1000, 0), (1000, 120)])
def test_deposit_amounts_reject_bad_input(price, percentage):
    with pytest.raises(InvalidArgument):
        calculate_deposit_amounts(price, percentage)


# ==================== Create ====================

async def test_create_available_deposit(repository, config):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    assert deposit.id.startswith("DEP")
    assert deposit.status == DepositStatus.PENDING
    assert deposit.deposit_amount == 250_000_000
    assert deposit.remaining_amount == 1_000_000_000
    assert deposit.dealer_id == config.DEFAULT_DEALER_ID
    assert deposit.created_by == "Lan"
    assert deposit.manufacturer_status is None
    assert deposit.expected_delivery_date - deposit.deposit_date == timedelta(days=7)
    assert deposit.final_payment_due_date - deposit.deposit_date == timedelta(days=14)

    assert await repository.get(deposit.id) == deposit


async def test_create_pre_order_deposit(repository):
    deposit = await repository.create(
        make_deposit_data(DepositType.PRE_ORDER, estimated_arrival="2 months"),
        created_by="Lan",
    )

    assert deposit.manufacturer_status == ManufacturerStatus.REQUESTED
    assert deposit.manufacturer_order_id is None
    assert deposit.estimated_arrival == "2 months"
    assert deposit.expected_delivery_date - deposit.deposit_date == timedelta(days=90)
    assert deposit.final_payment_due_date - deposit.expected_delivery_date == timedelta(days=7)


async def test_create_uses_default_percentage(repository, config):
    deposit = await repository.create(
        make_deposit_data(deposit_percentage=None, vehicle_price=1_000_000), created_by="Lan"
    )
    assert deposit.deposit_percentage == config.DEFAULT_DEPOSIT_PERCENTAGE
    assert deposit.deposit_amount == 200_000


async def test_deposit_stored_as_camel_case(repository, store):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    payload = json.loads(await store.get(repository.records.key(deposit.id)))
    assert payload["depositAmount"] == 250_000_000
    assert payload["remainingAmount"] == 1_000_000_000
    assert payload["type"] == "available"
    assert payload["status"] == "pending"


def test_create_payload_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        DepositCreate(
            type="available",
            customer_name="An",
            customer_phone="0901234567",
            vehicle_model="EV",
            vehicle_color="Red",
            vehicle_price=1000,
            discount=5,
        )


def test_create_payload_accepts_camel_case():
    data = DepositCreate.model_validate({
        "type": "pre_order",
        "customerName": "An",
        "customerPhone": "0901234567",
        "customerEmail": "",
        "vehicleModel": "EV",
        "vehicleColor": "Red",
        "vehiclePrice": 1000,
        "estimatedArrival": "1-3 months",
    })
    assert data.customer_email is None
    assert data.vehicle_price == 1000


def test_estimated_arrival_only_for_pre_order():
    with pytest.raises(ValidationError):
        make_deposit_data(DepositType.AVAILABLE, estimated_arrival="soon")


# ==================== Record invariants ====================

def _deposit_fields(**overrides):
    now = utcnow()
    fields = dict(
        id="DEP1",
        type=DepositType.AVAILABLE,
        customer_id="C1",
        customer_name="An",
        customer_phone="0901234567",
        vehicle_model="EV",
        vehicle_color="Red",
        vehicle_price=1000,
        deposit_percentage=20,
        deposit_amount=200,
        remaining_amount=800,
        deposit_date=now,
        dealer_id="dealer001",
        created_by="Lan",
        created_at=now,
        last_modified=now,
    )
    fields.update(overrides)
    return fields


def test_deposit_requires_amounts_to_sum_to_price():
    Deposit(**_deposit_fields())
    with pytest.raises(ValidationError):
        Deposit(**_deposit_fields(remaining_amount=700))


def test_available_deposit_cannot_carry_pre_order_fields():
    with pytest.raises(ValidationError):
        Deposit(**_deposit_fields(manufacturer_status=ManufacturerStatus.ORDERED))

    pre_order = Deposit(**_deposit_fields(
        type=DepositType.PRE_ORDER, manufacturer_status=ManufacturerStatus.ORDERED
    ))
    assert pre_order.is_pre_order


# ==================== Read / update / delete ====================

async def test_get_or_raise_missing(repository):
    assert await repository.get("DEP-NOPE") is None
    with pytest.raises(NotFound) as exc_info:
        await repository.get_or_raise("DEP-NOPE")
    assert exc_info.value.details == {"entity": "Deposit", "id": "DEP-NOPE"}


async def test_update_mutable_fields(repository):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    updated = await repository.update(deposit.id, {"notes": "Wants plate number 88", "customer_phone": "0911111111"})

    assert updated.notes == "Wants plate number 88"
    assert updated.customer_phone == "0911111111"
    assert updated.last_modified >= deposit.last_modified
    assert (await repository.get(deposit.id)).notes == "Wants plate number 88"


@pytest.mark.parametrize(
    "field, value",
    [
        ("deposit_amount", 1),
        ("remaining_amount", 1),
        ("vehicle_price", 1),
        ("deposit_percentage", 50),
        ("type", DepositType.PRE_ORDER),
        ("id", "DEP2"),
        ("status", DepositStatus.COMPLETED),
    ],
)
async def test_update_rejects_locked_fields(repository, field, value):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    with pytest.raises(InvalidArgument):
        await repository.update(deposit.id, {field: value})

    assert await repository.get(deposit.id) == deposit


async def test_update_rejects_unknown_and_invalid_fields(repository):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    with pytest.raises(InvalidArgument):
        await repository.update(deposit.id, {"discount": 10})
    with pytest.raises(InvalidArgument):
        await repository.update(deposit.id, {"manufacturer_status": ManufacturerStatus.ORDERED})


async def test_delete(repository):
    deposit = await repository.create(make_deposit_data(), created_by="Lan")

    await repository.delete(deposit.id)

    assert await repository.get(deposit.id) is None
    assert await repository.list_all() == []
    with pytest.raises(NotFound):
        await repository.delete(deposit.id)


# ==================== Queries ====================

async def test_queries_and_statistics(repository):
    a = await repository.create(make_deposit_data(customer_name="Tran Thi Binh"), created_by="Lan")
    b = await repository.create(
        make_deposit_data(DepositType.PRE_ORDER, vehicle_model="EV SUV Y", customer_phone="0988888888"),
        created_by="Lan",
    )

    assert {d.id for d in await repository.list_all()} == {a.id, b.id}
    assert [d.id for d in await repository.list_by_type(DepositType.PRE_ORDER)] == [b.id]
    assert len(await repository.list_by_status(DepositStatus.PENDING)) == 2

    assert [d.id for d in await repository.search("binh")] == [a.id]
    assert [d.id for d in await repository.search("suv")] == [b.id]
    assert [d.id for d in await repository.search("0988")] == [b.id]
    assert [d.id for d in await repository.search(a.id.lower())] == [a.id]
    assert len(await repository.search("  ")) == 2

    stats = await repository.statistics()
    assert stats.total == 2
    assert stats.available == 1
    assert stats.pre_order == 1
    assert stats.pending == 2
    assert stats.total_deposit_amount == 500_000_000
    assert stats.total_remaining_amount == 2_000_000_000
