"""Pre-order task endpoints for central inventory (EVM) staff."""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from evdock.api.deps import CurrentActor, TaskQueue
from evdock.models.preorder_task import PreOrderTaskStatus
from evdock.schemas.preorder_task import PreOrderTask, PreOrderTaskAdvance


router = APIRouter()


@router.get("", response_model=List[PreOrderTask])
async def list_tasks(
    queue: TaskQueue,
    status: Optional[PreOrderTaskStatus] = Query(None),
):
    """List tasks, newest first, optionally by status."""
    tasks = await queue.list_by_status(status) if status else await queue.list_all()
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


@router.get("/by-deposit/{deposit_id}", response_model=PreOrderTask)
async def get_task_by_deposit(deposit_id: str, queue: TaskQueue):
    task = await queue.get_by_deposit_id(deposit_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pre-order task for deposit '{deposit_id}'",
        )
    return task


@router.get("/{task_id}", response_model=PreOrderTask)
async def get_task(task_id: str, queue: TaskQueue):
    return await queue.get_or_raise(task_id)


@router.post("/{task_id}/advance", response_model=PreOrderTask)
async def advance_task(
    task_id: str,
    data: PreOrderTaskAdvance,
    actor: CurrentActor,
    queue: TaskQueue,
):
    """Move the task one step forward, or cancel it (EVM staff)."""
    return await queue.advance(task_id, data.next_status, actor, data.notes)
