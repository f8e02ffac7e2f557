"""Booking creation and read-side queries."""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from revvdoc.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from revvdoc.models.booking import Booking, BookingSource, BookingStatus, BookingTimeWindow
from revvdoc.models.service import Service
from revvdoc.models.user import UserRole
from revvdoc.models.vehicle import Vehicle
from revvdoc.tools.user_tools import get_user_role, require_role
from revvdoc.utils.timeutils import ensure_utc, isoformat_or_none, utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Start hour (24h, UTC) for each time window
TIME_WINDOW_HOURS = {
    BookingTimeWindow.MORNING: 8,
    BookingTimeWindow.AFTERNOON: 12,
    BookingTimeWindow.EVENING: 17,
}


def serialize_booking(booking: Booking) -> Dict[str, Any]:
    return {
        "bookingId": booking.id,
        "customerId": booking.customer_id,
        "technicianId": booking.technician_id,
        "jobId": booking.job_id,
        "vehicleId": booking.vehicle_id,
        "serviceId": booking.service_id,
        "serviceSnapshot": booking.service_snapshot,
        "vehicleSnapshot": booking.vehicle_snapshot,
        "scheduledAt": isoformat_or_none(booking.scheduled_at),
        "scheduledTimeWindow": booking.scheduled_time_window.value if booking.scheduled_time_window else None,
        "status": booking.status.value,
        "address": booking.address,
        "totalPrice": booking.total_price,
        "notes": booking.notes,
        "source": booking.source.value if booking.source else None,
        "createdAt": isoformat_or_none(booking.created_at),
        "updatedAt": isoformat_or_none(booking.updated_at),
    }


def scheduled_at_for(scheduled_date: date, window: BookingTimeWindow) -> datetime:
    """Combine a date and a time window into the booking's start time."""
    return datetime.combine(scheduled_date, time(hour=TIME_WINDOW_HOURS[window]), tzinfo=timezone.utc)


async def create_booking(
    db: AsyncSession,
    customer_id: str,
    vehicle_id: str,
    service_id: str,
    scheduled_date: date,
    scheduled_time_window: BookingTimeWindow,
    notes: Optional[str] = None,
    source: Optional[BookingSource] = None,
    address: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Create a pending booking with denormalised service and vehicle snapshots.

    Raises:
        ForbiddenError: Vehicle missing or not owned by the customer
        NotFoundError: Service does not exist
        ConflictError: Service is no longer offered
        InvalidRequestError: Requested time is not in the future
    """
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None or vehicle.owner_id != customer_id:
        raise ForbiddenError("Forbidden: not your vehicle")

    service = await db.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service not found")
    if not service.is_active:
        raise ConflictError("Service is no longer available")

    scheduled_at = scheduled_at_for(scheduled_date, scheduled_time_window)
    if scheduled_at < ensure_utc(now or utcnow()):
        raise InvalidRequestError("scheduledDate must be in the future")

    booking = Booking(
        customer_id=customer_id,
        technician_id=None,
        job_id=None,
        vehicle_id=vehicle.id,
        service_id=service.id,
        service_snapshot={
            "serviceId": service.id,
            "name": service.name or "",
            "category": service.category.value if service.category else "mechanic",
            "basePrice": service.base_price or 0,
            "durationMins": service.duration_mins or 0,
        },
        vehicle_snapshot={
            "vehicleId": vehicle.id,
            "vin": vehicle.vin or "",
            "make": vehicle.make or "",
            "model": vehicle.model or "",
            "year": vehicle.year or 0,
            "nickname": vehicle.nickname,
            "mileage": vehicle.mileage or 0,
        },
        scheduled_at=scheduled_at,
        scheduled_time_window=scheduled_time_window,
        status=BookingStatus.PENDING,
        address=address,
        total_price=service.base_price or 0,
        notes=notes,
        source=source or BookingSource.MANUAL,
    )
    db.add(booking)
    await db.commit()

    logger.info(f"Booking {booking.id} created for customer {customer_id} ({service.name})")
    return {"bookingId": booking.id}


async def get_booking_for_caller(db: AsyncSession, booking_id: str, caller_id: str) -> Dict[str, Any]:
    """
    Fetch one booking the caller may see.

    Parties always see their booking; technicians also see pending bookings
    they could accept.
    """
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    if caller_id in (booking.customer_id, booking.technician_id):
        return serialize_booking(booking)

    if booking.status == BookingStatus.PENDING:
        if await get_user_role(db, caller_id) == UserRole.TECHNICIAN:
            return serialize_booking(booking)

    raise ForbiddenError("Forbidden: not your booking")


async def list_customer_bookings(db: AsyncSession, customer_id: str) -> List[Dict[str, Any]]:
    """Customer's bookings, soonest scheduled first."""
    stmt = (
        select(Booking)
        .where(Booking.customer_id == customer_id)
        .order_by(Booking.scheduled_at.asc())
    )
    result = await db.execute(stmt)
    return [serialize_booking(b) for b in result.scalars().all()]


async def list_technician_bookings(db: AsyncSession, technician_id: str) -> List[Dict[str, Any]]:
    """Bookings assigned to a technician, soonest scheduled first."""
    stmt = (
        select(Booking)
        .where(Booking.technician_id == technician_id)
        .order_by(Booking.scheduled_at.asc())
    )
    result = await db.execute(stmt)
    return [serialize_booking(b) for b in result.scalars().all()]


async def list_pending_bookings(db: AsyncSession, caller_id: str) -> List[Dict[str, Any]]:
    """Technician queue: every pending booking, soonest scheduled first."""
    await require_role(db, caller_id, UserRole.TECHNICIAN)

    stmt = (
        select(Booking)
        .where(Booking.status == BookingStatus.PENDING)
        .order_by(Booking.scheduled_at.asc())
    )
    result = await db.execute(stmt)
    return [serialize_booking(b) for b in result.scalars().all()]
