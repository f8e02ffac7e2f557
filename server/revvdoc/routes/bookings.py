"""Booking endpoints: creation, status transitions, reads, and chat."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from revvdoc.errors import ForbiddenError
from revvdoc.schemas import ChatMessageRequest, CreateBookingRequest, StatusUpdate, StatusUpdateRequest
from revvdoc.services.auth import get_current_user_id
from revvdoc.services.booking_state import BookingStateMachine, get_booking_state_machine
from revvdoc.services.database import get_db
from revvdoc.tools import booking_tools, chat_tools, job_tools
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: CreateBookingRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending booking for one of the caller's vehicles."""
    return await booking_tools.create_booking(
        db,
        customer_id=caller_id,
        vehicle_id=body.vehicle_id,
        service_id=body.service_id,
        scheduled_date=body.scheduled_date,
        scheduled_time_window=body.scheduled_time_window,
        notes=body.notes,
        source=body.source,
        address=body.address.model_dump() if body.address else None,
    )


async def _apply_transition(
    booking_id: str,
    body: StatusUpdate,
    caller_id: str,
    db: AsyncSession,
    machine: BookingStateMachine,
):
    if body.user_id != caller_id:
        raise ForbiddenError("Forbidden: userId does not match the authenticated user")

    result = await machine.transition(
        db,
        booking_id,
        caller_id,
        body.status,
        tech_notes=body.tech_notes,
        mileage_at_service=body.mileage_at_service,
    )
    return result.to_response()


@router.patch("/bookings/status")
async def update_booking_status(
    body: StatusUpdateRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    machine: BookingStateMachine = Depends(get_booking_state_machine),
):
    """
    Transition a booking's status.

    Returns ``{bookingId, status, jobId?}``; errors are 400 (body), 401,
    403 (party, role, or userId mismatch), 404, and 409 (illegal transition
    or lost race).
    """
    return await _apply_transition(body.booking_id, body, caller_id, db, machine)


@router.patch("/bookings/{booking_id}/status")
async def update_booking_status_by_path(
    booking_id: str,
    body: StatusUpdate,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    machine: BookingStateMachine = Depends(get_booking_state_machine),
):
    return await _apply_transition(booking_id, body, caller_id, db, machine)


@router.get("/bookings")
async def list_bookings(
    role: str = Query(default="customer", pattern="^(customer|technician)$"),
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's bookings, as customer (default) or as assigned technician."""
    if role == "technician":
        bookings = await booking_tools.list_technician_bookings(db, caller_id)
    else:
        bookings = await booking_tools.list_customer_bookings(db, caller_id)
    return {"bookings": bookings, "count": len(bookings)}


@router.get("/bookings/pending")
async def list_pending_bookings(
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Technician queue."""
    bookings = await booking_tools.list_pending_bookings(db, caller_id)
    return {"bookings": bookings, "count": len(bookings)}


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await booking_tools.get_booking_for_caller(db, booking_id, caller_id)


@router.get("/bookings/{booking_id}/job")
async def get_booking_job(
    booking_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await job_tools.get_job_by_booking(db, booking_id, caller_id)


@router.get("/bookings/{booking_id}/messages")
async def list_booking_messages(
    booking_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await chat_tools.list_messages(db, booking_id, caller_id)


@router.post("/bookings/{booking_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_booking_message(
    booking_id: str,
    body: ChatMessageRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await chat_tools.send_message(db, booking_id, caller_id, body.body)
