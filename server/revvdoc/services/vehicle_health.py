"""
Maintenance health engine.

Recomputes, for one vehicle, every active maintenance schedule's next-due
point and the vehicle's aggregate alert level, then writes the schedule
updates and the health snapshot in a single transaction.

Mileage-based and date-based due points are independent triggers: a
schedule is overdue if either metric is negative and due soon if either is
inside its reminder lead.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from revvdoc.config import settings
from revvdoc.errors import NotFoundError
from revvdoc.models.maintenance import (
    HealthAlertLevel,
    MaintenanceSchedule,
    ServiceUrgency,
    VehicleHealthSnapshot,
)
from revvdoc.models.vehicle import Vehicle
from revvdoc.utils.timeutils import ensure_utc, isoformat_or_none, utcnow
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

URGENCY_TO_ALERT = {
    ServiceUrgency.ROUTINE: HealthAlertLevel.NONE,
    ServiceUrgency.SOON: HealthAlertLevel.SOON,
    ServiceUrgency.OVERDUE: HealthAlertLevel.OVERDUE,
}

ALERT_SEVERITY = {
    HealthAlertLevel.NONE: 0,
    HealthAlertLevel.SOON: 1,
    HealthAlertLevel.OVERDUE: 2,
}


@dataclass(frozen=True)
class ScheduleForecast:
    """Due metrics and urgency for one schedule.

    Absent metrics are None, never a sentinel number.
    """

    schedule_id: str
    service_type: str
    custom_label: Optional[str]
    next_due_mileage: Optional[int]
    next_due_date: Optional[datetime]
    days_until_due: Optional[int]
    miles_until_due: Optional[int]
    urgency: ServiceUrgency

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheduleId": self.schedule_id,
            "serviceType": self.service_type,
            "customLabel": self.custom_label,
            "nextDueDate": isoformat_or_none(self.next_due_date),
            "nextDueMileage": self.next_due_mileage,
            "daysUntilDue": self.days_until_due,
            "milesUntilDue": self.miles_until_due,
            "estimatedCostCents": None,
            "urgency": self.urgency.value,
        }


@dataclass(frozen=True)
class RecomputeResult:
    schedules_updated: int
    alert_level: HealthAlertLevel

    def to_response(self) -> Dict[str, Any]:
        return {"schedulesUpdated": self.schedules_updated, "alertLevel": self.alert_level.value}


def compute_next_due_mileage(
    interval_miles: Optional[int], last_service_mileage: Optional[int]
) -> Optional[int]:
    if interval_miles is None or last_service_mileage is None:
        return None
    return last_service_mileage + interval_miles


def compute_next_due_date(
    interval_days: Optional[int], last_service_date: Optional[datetime]
) -> Optional[datetime]:
    if interval_days is None or last_service_date is None:
        return None
    return ensure_utc(last_service_date) + timedelta(days=interval_days)


def days_until(due: Optional[datetime], now: datetime) -> Optional[int]:
    """Whole days from ``now`` to ``due``, floored (negative once past due)."""
    if due is None:
        return None
    return math.floor((ensure_utc(due) - ensure_utc(now)).total_seconds() / SECONDS_PER_DAY)


def classify_urgency(
    days_until_due: Optional[int],
    miles_until_due: Optional[int],
    lead_days: int,
    lead_miles: int,
) -> ServiceUrgency:
    """Classify one schedule, OR-ing whichever metrics are present."""
    if (days_until_due is not None and days_until_due < 0) or (
        miles_until_due is not None and miles_until_due < 0
    ):
        return ServiceUrgency.OVERDUE

    if (days_until_due is not None and days_until_due < lead_days) or (
        miles_until_due is not None and miles_until_due < lead_miles
    ):
        return ServiceUrgency.SOON

    return ServiceUrgency.ROUTINE


def aggregate_alert_level(urgencies: Iterable[ServiceUrgency]) -> HealthAlertLevel:
    """Most severe urgency across schedules; NONE when there are none."""
    level = HealthAlertLevel.NONE
    for urgency in urgencies:
        candidate = URGENCY_TO_ALERT[urgency]
        if ALERT_SEVERITY[candidate] > ALERT_SEVERITY[level]:
            level = candidate
    return level


def forecast_schedule(
    schedule: MaintenanceSchedule, current_mileage: int, now: datetime
) -> ScheduleForecast:
    """Derive due metrics and urgency for one schedule. Never raises on missing data."""
    next_due_mileage = compute_next_due_mileage(
        schedule.interval_miles, schedule.last_service_mileage
    )
    next_due_date = compute_next_due_date(schedule.interval_days, schedule.last_service_date)

    miles_until_due = next_due_mileage - current_mileage if next_due_mileage is not None else None
    days_until_due = days_until(next_due_date, now)

    lead_days = (
        schedule.reminder_lead_days
        if isinstance(schedule.reminder_lead_days, int)
        else settings.DEFAULT_REMINDER_LEAD_DAYS
    )
    lead_miles = (
        schedule.reminder_lead_miles
        if isinstance(schedule.reminder_lead_miles, int)
        else settings.DEFAULT_REMINDER_LEAD_MILES
    )

    service_type = getattr(schedule.service_type, "value", schedule.service_type)

    return ScheduleForecast(
        schedule_id=schedule.id,
        service_type=service_type,
        custom_label=schedule.custom_label,
        next_due_mileage=next_due_mileage,
        next_due_date=next_due_date,
        days_until_due=days_until_due,
        miles_until_due=miles_until_due,
        urgency=classify_urgency(days_until_due, miles_until_due, lead_days, lead_miles),
    )


async def load_active_schedules(db: AsyncSession, vehicle_id: str) -> List[MaintenanceSchedule]:
    stmt = (
        select(MaintenanceSchedule)
        .where(
            MaintenanceSchedule.vehicle_id == vehicle_id,
            MaintenanceSchedule.is_active.is_(True),
        )
        .order_by(MaintenanceSchedule.created_at, MaintenanceSchedule.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def write_snapshot(db: AsyncSession, snapshot: VehicleHealthSnapshot) -> None:
    """Insert or replace the vehicle's health snapshot."""
    # merge() with every column populated replaces the previous snapshot
    await db.merge(snapshot)


async def _recompute_once(db: AsyncSession, vehicle_id: str, now: datetime) -> RecomputeResult:
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError(f"Vehicle not found: {vehicle_id}")

    current_mileage = vehicle.mileage if isinstance(vehicle.mileage, int) else 0
    owner_id = vehicle.owner_id

    schedules = await load_active_schedules(db, vehicle_id)

    forecasts: List[ScheduleForecast] = []
    for schedule in schedules:
        forecast = forecast_schedule(schedule, current_mileage, now)
        schedule.next_due_mileage = forecast.next_due_mileage
        schedule.next_due_date = forecast.next_due_date
        forecasts.append(forecast)

    alert_level = aggregate_alert_level(f.urgency for f in forecasts)

    await write_snapshot(
        db,
        VehicleHealthSnapshot(
            vehicle_id=vehicle_id,
            owner_id=owner_id,
            alert_level=alert_level,
            upcoming_services=[f.to_dict() for f in forecasts],
            cost_forecast_cents_monthly=None,
            estimated_resale_value_boost_cents=None,
            updated_at=utcnow(),
        ),
    )

    await db.commit()
    return RecomputeResult(schedules_updated=len(schedules), alert_level=alert_level)


async def recompute_vehicle_health(
    db: AsyncSession, vehicle_id: str, now: Optional[datetime] = None
) -> RecomputeResult:
    """
    Recompute all active schedules and the health snapshot for a vehicle.

    Two recomputes racing to create a vehicle's first snapshot collide on its
    primary key; the loser rolls back and runs once more against the
    winner's row.

    Args:
        db: Database session
        vehicle_id: Vehicle to recompute
        now: Reference time for days-until-due (defaults to the current time)

    Returns:
        RecomputeResult with the number of schedules updated and the alert level

    Raises:
        NotFoundError: If the vehicle does not exist
    """
    now = ensure_utc(now) if now else utcnow()

    try:
        try:
            result = await _recompute_once(db, vehicle_id, now)
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Concurrent snapshot write for vehicle {vehicle_id}, retrying: {e}")
            result = await _recompute_once(db, vehicle_id, now)

    except NotFoundError:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error recomputing health for vehicle {vehicle_id}: {e}", exc_info=True)
        raise

    logger.info(
        f"Recomputed health for vehicle {vehicle_id}: "
        f"{result.schedules_updated} schedules, alert level {result.alert_level.value}"
    )
    return result
