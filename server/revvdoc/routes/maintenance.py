"""Maintenance schedule and health recompute endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from revvdoc.schemas import CreateScheduleRequest, RecomputeRequest, UpdateScheduleRequest
from revvdoc.services.auth import get_current_user_id
from revvdoc.services.database import get_db
from revvdoc.services.vehicle_health import recompute_vehicle_health
from revvdoc.tools import maintenance_tools
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/maintenance/recompute")
async def recompute(
    body: RecomputeRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Recompute a vehicle's schedules and health snapshot.

    Allowed for the vehicle's owner or an admin.
    """
    await maintenance_tools.get_owned_vehicle(db, body.vehicle_id, caller_id, allow_admin=True)
    result = await recompute_vehicle_health(db, body.vehicle_id)
    return result.to_response()


@router.get("/vehicles/{vehicle_id}/schedules")
async def list_schedules(
    vehicle_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    schedules = await maintenance_tools.list_schedules(db, vehicle_id, caller_id)
    return {"schedules": schedules, "count": len(schedules)}


@router.post("/vehicles/{vehicle_id}/schedules", status_code=status.HTTP_201_CREATED)
async def create_schedule(
    vehicle_id: str,
    body: CreateScheduleRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await maintenance_tools.create_schedule(db, caller_id, vehicle_id, **body.model_dump())


@router.patch("/maintenance/schedules/{schedule_id}")
async def update_schedule(
    schedule_id: str,
    body: UpdateScheduleRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    return await maintenance_tools.update_schedule(db, schedule_id, caller_id, changes)


@router.delete("/maintenance/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the schedule stops counting toward health."""
    return await maintenance_tools.deactivate_schedule(db, schedule_id, caller_id)


@router.get("/vehicles/{vehicle_id}/health")
async def get_vehicle_health(
    vehicle_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return {"health": await maintenance_tools.get_vehicle_health(db, vehicle_id, caller_id)}
