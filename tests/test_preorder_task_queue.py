import pytest

from evdock.core.exceptions import Forbidden, InvalidTransition, NotFound, RecordStoreError
from evdock.models.preorder_task import PreOrderTaskStatus
from evdock.schemas.preorder_task import PreOrderTaskCreate


def task_data(deposit_id: str = "DEP1") -> PreOrderTaskCreate:
    return PreOrderTaskCreate(
        deposit_id=deposit_id,
        dealer_id="dealer001",
        vehicle_model="EV SUV Y",
        vehicle_color="Midnight Blue",
        quantity=1,
        requested_by="Minh Nguyen",
        notes=f"Pre-order from deposit {deposit_id}",
    )


async def test_create_task(task_queue):
    task = await task_queue.create_task(task_data())

    assert task.id.startswith("POT")
    assert task.status == PreOrderTaskStatus.REQUESTED
    assert task.requested_by == "Minh Nguyen"
    assert task.requested_at is not None
    assert await task_queue.get(task.id) == task
    assert await task_queue.get_by_deposit_id("DEP1") == task


async def test_create_task_is_keyed_by_deposit(task_queue):
    first = await task_queue.create_task(task_data("DEP1"))
    again = await task_queue.create_task(task_data("DEP1"))
    other = await task_queue.create_task(task_data("DEP2"))

    assert again.id == first.id
    assert other.id != first.id
    assert len(await task_queue.list_all()) == 2


async def test_failed_lookup_write_leaves_no_task(task_queue, store):
    store.fail_when = lambda key: ":preorder_task:by_deposit:" in key

    with pytest.raises(RecordStoreError):
        await task_queue.create_task(task_data())
    assert await task_queue.list_all() == []

    store.fail_when = None
    task = await task_queue.create_task(task_data())

    assert [t.id for t in await task_queue.list_all()] == [task.id]
    assert await task_queue.get_by_deposit_id("DEP1") == task


async def test_retry_completes_task_under_reserved_id(task_queue, store):
    store.fail_when = lambda key: ":preorder_task:POT" in key

    with pytest.raises(RecordStoreError):
        await task_queue.create_task(task_data())

    store.fail_when = None
    reserved = await task_queue.records.lookup("deposit", "DEP1")
    assert reserved is not None
    assert await task_queue.get_by_deposit_id("DEP1") is None

    task = await task_queue.create_task(task_data())

    assert task.id == reserved
    assert [t.id for t in await task_queue.list_all()] == [reserved]


async def test_advance_through_every_step(task_queue, evm_staff):
    task = await task_queue.create_task(task_data())

    accepted = await task_queue.advance(task.id, PreOrderTaskStatus.ACCEPTED, evm_staff)
    assert accepted.accepted_by == "Hoa Le"
    assert accepted.accepted_at is not None

    in_transit = await task_queue.advance(
        task.id, PreOrderTaskStatus.IN_TRANSIT, evm_staff, notes="Truck 51C-12345"
    )
    assert in_transit.in_transit_by == "Hoa Le"
    assert in_transit.notes == "Truck 51C-12345"

    delivered = await task_queue.advance(task.id, PreOrderTaskStatus.DELIVERED, evm_staff)
    assert delivered.status == PreOrderTaskStatus.DELIVERED
    assert delivered.delivered_by == "Hoa Le"
    assert (await task_queue.get(task.id)).status == PreOrderTaskStatus.DELIVERED


async def test_cannot_skip_steps(task_queue, evm_staff):
    task = await task_queue.create_task(task_data())

    with pytest.raises(InvalidTransition) as exc_info:
        await task_queue.advance(task.id, PreOrderTaskStatus.DELIVERED, evm_staff)

    assert exc_info.value.current == "requested"
    assert exc_info.value.requested == "delivered"
    assert exc_info.value.allowed == ["accepted", "cancelled"]
    assert (await task_queue.get(task.id)).status == PreOrderTaskStatus.REQUESTED


async def test_cannot_go_backward(task_queue, evm_staff):
    task = await task_queue.create_task(task_data())
    await task_queue.advance(task.id, PreOrderTaskStatus.ACCEPTED, evm_staff)

    with pytest.raises(InvalidTransition):
        await task_queue.advance(task.id, PreOrderTaskStatus.REQUESTED, evm_staff)


async def test_cancel_from_any_open_step(task_queue, evm_staff):
    task = await task_queue.create_task(task_data())
    await task_queue.advance(task.id, PreOrderTaskStatus.ACCEPTED, evm_staff)
    await task_queue.advance(task.id, PreOrderTaskStatus.IN_TRANSIT, evm_staff)

    cancelled = await task_queue.advance(task.id, PreOrderTaskStatus.CANCELLED, evm_staff)

    assert cancelled.status == PreOrderTaskStatus.CANCELLED
    assert cancelled.cancelled_by == "Hoa Le"


@pytest.mark.parametrize("terminal", [PreOrderTaskStatus.DELIVERED, PreOrderTaskStatus.CANCELLED])
async def test_terminal_tasks_cannot_advance(task_queue, evm_staff, terminal):
    task = await task_queue.create_task(task_data())
    if terminal == PreOrderTaskStatus.DELIVERED:
        for step in (PreOrderTaskStatus.ACCEPTED, PreOrderTaskStatus.IN_TRANSIT, PreOrderTaskStatus.DELIVERED):
            await task_queue.advance(task.id, step, evm_staff)
    else:
        await task_queue.advance(task.id, PreOrderTaskStatus.CANCELLED, evm_staff)

    with pytest.raises(InvalidTransition) as exc_info:
        await task_queue.advance(task.id, PreOrderTaskStatus.CANCELLED, evm_staff)
    assert exc_info.value.allowed == []


async def test_advance_unknown_task(task_queue, evm_staff):
    with pytest.raises(NotFound):
        await task_queue.advance("POT-MISSING", PreOrderTaskStatus.ACCEPTED, evm_staff)


async def test_only_evm_staff_advance(task_queue, manager, evm_admin):
    task = await task_queue.create_task(task_data())

    with pytest.raises(Forbidden):
        await task_queue.advance(task.id, PreOrderTaskStatus.ACCEPTED, manager)
    with pytest.raises(Forbidden):
        await task_queue.advance(task.id, PreOrderTaskStatus.ACCEPTED, evm_admin)


async def test_list_by_status(task_queue, evm_staff):
    first = await task_queue.create_task(task_data("DEP1"))
    second = await task_queue.create_task(task_data("DEP2"))
    await task_queue.advance(second.id, PreOrderTaskStatus.ACCEPTED, evm_staff)

    assert [t.id for t in await task_queue.list_by_status(PreOrderTaskStatus.REQUESTED)] == [first.id]
    assert [t.id for t in await task_queue.list_by_status(PreOrderTaskStatus.ACCEPTED)] == [second.id]
    assert await task_queue.list_by_status(PreOrderTaskStatus.DELIVERED) == []
    assert await task_queue.get_by_deposit_id("DEP-NONE") is None
