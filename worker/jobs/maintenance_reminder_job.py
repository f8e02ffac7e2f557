"""Maintenance reminder sweep.

Creates one in-app reminder per schedule that has become due soon or
overdue since its last service, then stamps ``reminder_sent_at`` so the
schedule is skipped until its interval or anchors change.
"""

import logging
from datetime import datetime
from typing import List, Optional

from revvdoc.models import MaintenanceSchedule, Notification, NotificationType, Vehicle
from revvdoc.models.maintenance import ServiceUrgency
from revvdoc.services.notifications import build_notification
from revvdoc.services.vehicle_health import forecast_schedule
from revvdoc.utils.timeutils import ensure_utc, utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from worker.config import settings

logger = logging.getLogger(__name__)

REMINDER_URGENCIES = {ServiceUrgency.SOON, ServiceUrgency.OVERDUE}

UNREMINDED = (
    MaintenanceSchedule.is_active.is_(True),
    MaintenanceSchedule.reminder_sent_at.is_(None),
)


def _service_label(schedule: MaintenanceSchedule) -> str:
    if schedule.custom_label:
        return schedule.custom_label
    return schedule.service_type.value.replace("_", " ").title()


async def _load_unreminded(db: AsyncSession, vehicle_id: str) -> List[MaintenanceSchedule]:
    result = await db.execute(
        select(MaintenanceSchedule)
        .where(MaintenanceSchedule.vehicle_id == vehicle_id, *UNREMINDED)
        .order_by(MaintenanceSchedule.created_at, MaintenanceSchedule.id)
    )
    return list(result.scalars().all())


def build_reminder(schedule: MaintenanceSchedule, vehicle: Vehicle, urgency: ServiceUrgency) -> Notification:
    label = _service_label(schedule)
    vehicle_name = vehicle.nickname or f"{vehicle.year} {vehicle.make} {vehicle.model}"

    if urgency == ServiceUrgency.OVERDUE:
        title = f"{label} overdue"
        body = f"{label} for your {vehicle_name} is overdue. Book a service soon."
    else:
        title = f"{label} due soon"
        body = f"{label} for your {vehicle_name} is coming up."

    return build_notification(
        user_id=vehicle.owner_id,
        notification_type=NotificationType.MAINTENANCE_REMINDER,
        title=title,
        body=body,
    )


async def sweep_maintenance_reminders(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Send reminders for every unreminded schedule that is due soon or overdue.

    Each vehicle's notifications and schedule stamps commit together; a
    failure on one vehicle is logged and does not stop the sweep.

    Returns:
        Number of reminders created
    """
    now = ensure_utc(now) if now else utcnow()

    result = await db.execute(
        select(MaintenanceSchedule.vehicle_id)
        .where(*UNREMINDED)
        .distinct()
        .order_by(MaintenanceSchedule.vehicle_id)
    )
    vehicle_ids: List[str] = list(result.scalars().all())

    logger.info(f"Checking {len(vehicle_ids)} vehicles for maintenance reminders")

    sent = 0
    for vehicle_id in vehicle_ids:
        try:
            schedules = await _load_unreminded(db, vehicle_id)
            vehicle = await db.get(Vehicle, vehicle_id)
            if vehicle is None:
                logger.warning(f"Skipping schedules of missing vehicle {vehicle_id}")
                continue

            mileage = vehicle.mileage if isinstance(vehicle.mileage, int) else 0
            created = 0
            for schedule in schedules:
                forecast = forecast_schedule(schedule, mileage, now)
                if forecast.urgency not in REMINDER_URGENCIES:
                    continue
                db.add(build_reminder(schedule, vehicle, forecast.urgency))
                schedule.reminder_sent_at = now
                created += 1

            if created:
                await db.commit()
                sent += created
                logger.info(f"Sent {created} maintenance reminders for vehicle {vehicle_id}")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to send reminders for vehicle {vehicle_id}: {e}")
            continue

    return sent


async def send_maintenance_reminders():
    """Scheduled entry point: run one sweep on a fresh engine."""
    logger.info("Running maintenance reminder job...")

    engine = create_async_engine(settings.DATABASE_URL)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with async_session_maker() as db:
            sent = await sweep_maintenance_reminders(db)
            logger.info(f"Maintenance reminder job created {sent} reminders")
    except Exception as e:
        logger.error(f"Error in maintenance reminder job: {e}")
    finally:
        await engine.dispose()

    logger.info("Maintenance reminder job completed")
