"""Maintenance schedule management and health snapshot reads.

Computed fields (next_due_mileage, next_due_date) are never written here;
only ``revvdoc.services.vehicle_health`` sets them.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from revvdoc.errors import ForbiddenError, InvalidRequestError, NotFoundError
from revvdoc.models.maintenance import (
    MaintenanceSchedule,
    MaintenanceServiceType,
    VehicleHealthSnapshot,
)
from revvdoc.models.user import UserRole
from revvdoc.models.vehicle import Vehicle
from revvdoc.services.vehicle_health import load_active_schedules
from revvdoc.tools.user_tools import get_user_role
from revvdoc.utils.timeutils import isoformat_or_none
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Fields a client may change on an existing schedule
MUTABLE_SCHEDULE_FIELDS = {
    "custom_label",
    "interval_miles",
    "interval_days",
    "last_service_date",
    "last_service_mileage",
    "reminder_lead_days",
    "reminder_lead_miles",
}

# Changing any of these starts a new reminder cycle
REMINDER_RESET_FIELDS = {"interval_miles", "interval_days", "last_service_date", "last_service_mileage"}


def serialize_schedule(schedule: MaintenanceSchedule) -> Dict[str, Any]:
    return {
        "scheduleId": schedule.id,
        "vehicleId": schedule.vehicle_id,
        "ownerId": schedule.owner_id,
        "serviceType": schedule.service_type.value,
        "customLabel": schedule.custom_label,
        "intervalMiles": schedule.interval_miles,
        "intervalDays": schedule.interval_days,
        "lastServiceDate": isoformat_or_none(schedule.last_service_date),
        "lastServiceMileage": schedule.last_service_mileage,
        "nextDueDate": isoformat_or_none(schedule.next_due_date),
        "nextDueMileage": schedule.next_due_mileage,
        "reminderLeadDays": schedule.reminder_lead_days,
        "reminderLeadMiles": schedule.reminder_lead_miles,
        "reminderSentAt": isoformat_or_none(schedule.reminder_sent_at),
        "isActive": schedule.is_active,
    }


async def get_owned_vehicle(
    db: AsyncSession, vehicle_id: str, caller_id: str, allow_admin: bool = False
) -> Vehicle:
    """
    Load a vehicle the caller owns (or may act on as admin).

    Raises:
        NotFoundError: Vehicle does not exist
        ForbiddenError: Caller is neither owner nor (when allowed) admin
    """
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError("Vehicle not found")

    if vehicle.owner_id == caller_id:
        return vehicle

    if allow_admin and await get_user_role(db, caller_id) == UserRole.ADMIN:
        return vehicle

    raise ForbiddenError("Forbidden: not your vehicle")


async def _load_owned_schedule(db: AsyncSession, schedule_id: str, caller_id: str) -> MaintenanceSchedule:
    schedule = await db.get(MaintenanceSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Schedule not found")
    if schedule.owner_id != caller_id:
        raise ForbiddenError("Forbidden: not your schedule")
    return schedule


async def create_schedule(
    db: AsyncSession,
    caller_id: str,
    vehicle_id: str,
    service_type: MaintenanceServiceType,
    custom_label: Optional[str] = None,
    interval_miles: Optional[int] = None,
    interval_days: Optional[int] = None,
    last_service_date: Optional[datetime] = None,
    last_service_mileage: Optional[int] = None,
    reminder_lead_days: int = 7,
    reminder_lead_miles: int = 500,
) -> Dict[str, Any]:
    """Create an active schedule for a vehicle the caller owns."""
    if interval_miles is None and interval_days is None:
        raise InvalidRequestError("At least one of intervalMiles or intervalDays is required")

    vehicle = await get_owned_vehicle(db, vehicle_id, caller_id)

    schedule = MaintenanceSchedule(
        vehicle_id=vehicle.id,
        owner_id=vehicle.owner_id,
        service_type=service_type,
        custom_label=custom_label,
        interval_miles=interval_miles,
        interval_days=interval_days,
        last_service_date=last_service_date,
        last_service_mileage=last_service_mileage,
        next_due_date=None,
        next_due_mileage=None,
        reminder_lead_days=reminder_lead_days,
        reminder_lead_miles=reminder_lead_miles,
        reminder_sent_at=None,
        is_active=True,
    )
    db.add(schedule)
    await db.commit()

    logger.info(f"Schedule {schedule.id} ({service_type.value}) created for vehicle {vehicle_id}")
    return serialize_schedule(schedule)


async def list_schedules(db: AsyncSession, vehicle_id: str, caller_id: str) -> List[Dict[str, Any]]:
    """Active schedules for a vehicle the caller owns."""
    await get_owned_vehicle(db, vehicle_id, caller_id)
    return [serialize_schedule(s) for s in await load_active_schedules(db, vehicle_id)]


async def update_schedule(
    db: AsyncSession, schedule_id: str, caller_id: str, changes: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply client-editable changes; interval or anchor changes reset the reminder cycle."""
    unknown = set(changes) - MUTABLE_SCHEDULE_FIELDS
    if unknown:
        raise InvalidRequestError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    schedule = await _load_owned_schedule(db, schedule_id, caller_id)

    for field, value in changes.items():
        setattr(schedule, field, value)

    if schedule.interval_miles is None and schedule.interval_days is None:
        await db.rollback()
        raise InvalidRequestError("At least one of intervalMiles or intervalDays is required")

    if REMINDER_RESET_FIELDS & set(changes):
        schedule.reminder_sent_at = None

    await db.commit()
    logger.info(f"Schedule {schedule_id} updated: {sorted(changes)}")
    return serialize_schedule(schedule)


async def deactivate_schedule(db: AsyncSession, schedule_id: str, caller_id: str) -> Dict[str, Any]:
    """Soft delete."""
    schedule = await _load_owned_schedule(db, schedule_id, caller_id)
    schedule.is_active = False
    await db.commit()
    logger.info(f"Schedule {schedule_id} deactivated")
    return serialize_schedule(schedule)


async def get_vehicle_health(db: AsyncSession, vehicle_id: str, caller_id: str) -> Optional[Dict[str, Any]]:
    """Latest health snapshot, or None if never computed."""
    await get_owned_vehicle(db, vehicle_id, caller_id)

    snapshot = await db.get(VehicleHealthSnapshot, vehicle_id)
    if snapshot is None:
        return None

    return {
        "vehicleId": snapshot.vehicle_id,
        "ownerId": snapshot.owner_id,
        "alertLevel": snapshot.alert_level.value,
        "upcomingServices": snapshot.upcoming_services,
        "costForecastCentsMonthly": snapshot.cost_forecast_cents_monthly,
        "estimatedResaleValueBoostCents": snapshot.estimated_resale_value_boost_cents,
        "updatedAt": isoformat_or_none(snapshot.updated_at),
    }
