"""Housekeeping queue API routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...core.exceptions import InvalidRoomNumberError, InvalidTransitionError
from ...core.orchestrator import HousekeepingEngine
from ...models import StaffStatus, TaskStatus
from ..deps import get_engine

router = APIRouter(prefix="/housekeeping", tags=["housekeeping"])


class CheckoutRequest(BaseModel):
    """Schema for a checkout event."""

    room_number: str
    next_arrival: Optional[datetime] = None
    next_guest_name: Optional[str] = None
    next_guest_vip: bool = False


class TaskUpdate(BaseModel):
    """Schema for a task status change."""

    status: str


class StaffUpdate(BaseModel):
    """Schema for a staff status change."""

    status: str


class TaskResponse(BaseModel):
    """Schema for task response."""

    id: str
    room_number: str
    floor: int
    room_type: str
    checkout_time: str
    next_arrival: Optional[str]
    next_guest_vip: bool
    next_guest_name: Optional[str]
    next_guest_preferences: Optional[List[str]]
    priority: int
    priority_level: str
    assigned_to: List[str]
    status: str
    created_at: str
    assigned_at: Optional[str]
    started_at: Optional[str]
    completed_at: Optional[str]


class CheckoutResponse(BaseModel):
    """Checkout result with a human-readable outcome."""

    data: TaskResponse
    message: str


class StaffResponse(BaseModel):
    """Schema for staff response."""

    id: str
    name: str
    current_floor: int
    status: str
    assigned_rooms: int
    rooms_completed: int
    avg_cleaning_time: float


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(
    payload: CheckoutRequest,
    engine: HousekeepingEngine = Depends(get_engine),
):
    """Trigger a checkout event and add the room to the queue."""
    existing = engine.task_store.get_by_room(payload.room_number)
    if existing:
        raise HTTPException(
            status_code=409,
            detail=f"Room {payload.room_number} already in queue ({existing.id})",
        )

    try:
        task = engine.process_checkout(
            room_number=payload.room_number,
            next_arrival=payload.next_arrival,
            next_guest_name=payload.next_guest_name,
            next_guest_vip=payload.next_guest_vip,
        )
    except InvalidRoomNumberError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if task.assigned_to:
        message = f"Room {payload.room_number} added to queue and assigned"
    else:
        message = f"Room {payload.room_number} queued, awaiting staff"

    return CheckoutResponse(data=TaskResponse(**task.to_dict()), message=message)


@router.get("/queue")
async def get_queue(engine: HousekeepingEngine = Depends(get_engine)):
    """Get current queue status."""
    status = engine.get_queue_status()
    status["tasks"] = [task.to_dict() for task in status["tasks"]]
    return status


@router.get("/task/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, engine: HousekeepingEngine = Depends(get_engine)):
    """Get a specific task by ID."""
    task = engine.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse(**task.to_dict())


@router.patch("/task/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    update: TaskUpdate,
    engine: HousekeepingEngine = Depends(get_engine),
):
    """Start or complete a task."""
    try:
        if update.status == TaskStatus.IN_PROGRESS.value:
            task = engine.start_task(task_id)
        elif update.status == TaskStatus.COMPLETE.value:
            task = engine.complete_task(task_id)
        else:
            raise HTTPException(status_code=400, detail=f"Invalid status: {update.status}")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse(**task.to_dict())


@router.get("/staff", response_model=List[StaffResponse])
async def get_staff(
    status: Optional[str] = None,
    engine: HousekeepingEngine = Depends(get_engine),
):
    """Get all housekeepers, optionally filtered by status."""
    if status:
        try:
            staff_status = StaffStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        members = engine.staff_store.get_by_status(staff_status)
    else:
        members = engine.staff_store.get_all()
    return [StaffResponse(**m.to_dict()) for m in members]


@router.patch("/staff/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: str,
    update: StaffUpdate,
    engine: HousekeepingEngine = Depends(get_engine),
):
    """Change a housekeeper's availability."""
    try:
        staff_status = StaffStatus(update.status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {update.status}")

    try:
        member = engine.set_staff_status(staff_id, staff_status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not member:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return StaffResponse(**member.to_dict())
