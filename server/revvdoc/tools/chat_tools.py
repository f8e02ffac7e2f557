"""Booking chat between the customer and the assigned technician."""

import enum
import logging
from typing import Any, Dict, List

from revvdoc.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from revvdoc.models.booking import Booking, BookingStatus
from revvdoc.models.chat_message import ChatMessage, MessageType, SenderRole
from revvdoc.utils.timeutils import isoformat_or_none
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


class ChatState(str, enum.Enum):
    LOCKED = "locked"
    ACTIVE = "active"
    READ_ONLY = "read_only"


CHAT_STATE_BY_STATUS = {
    BookingStatus.PENDING: ChatState.LOCKED,
    BookingStatus.CANCELLED: ChatState.LOCKED,
    BookingStatus.ACCEPTED: ChatState.ACTIVE,
    BookingStatus.SCHEDULED: ChatState.ACTIVE,
    BookingStatus.EN_ROUTE: ChatState.ACTIVE,
    BookingStatus.IN_PROGRESS: ChatState.ACTIVE,
    BookingStatus.COMPLETE: ChatState.READ_ONLY,
}


def chat_state_for(status: BookingStatus) -> ChatState:
    return CHAT_STATE_BY_STATUS[status]


def serialize_message(message: ChatMessage) -> Dict[str, Any]:
    return {
        "messageId": message.id,
        "bookingId": message.booking_id,
        "senderId": message.sender_id,
        "senderRole": message.sender_role.value,
        "body": message.body,
        "type": message.type.value,
        "readBy": list(message.read_by or []),
        "createdAt": isoformat_or_none(message.created_at),
    }


async def _load_booking_for_party(db: AsyncSession, booking_id: str, caller_id: str) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    if caller_id not in (booking.customer_id, booking.technician_id):
        raise ForbiddenError("Forbidden: not a party to this booking")
    return booking


async def send_message(db: AsyncSession, booking_id: str, caller_id: str, body: str) -> Dict[str, Any]:
    """
    Post a text message to an active booking's chat.

    Raises:
        NotFoundError: Booking does not exist
        ForbiddenError: Caller is not the customer or assigned technician
        ConflictError: Chat is locked or read-only
        InvalidRequestError: Empty or oversized body
    """
    booking = await _load_booking_for_party(db, booking_id, caller_id)

    state = chat_state_for(booking.status)
    if state != ChatState.ACTIVE:
        raise ConflictError(f"Chat is {state.value} for a {booking.status.value} booking")

    text = (body or "").strip()
    if not text or len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidRequestError(f"Message must be 1-{MAX_MESSAGE_LENGTH} characters")

    sender_role = SenderRole.CUSTOMER if caller_id == booking.customer_id else SenderRole.TECHNICIAN

    message = ChatMessage(
        booking_id=booking.id,
        sender_id=caller_id,
        sender_role=sender_role,
        body=text,
        type=MessageType.TEXT,
        read_by=[caller_id],
        customer_id=booking.customer_id,
        technician_id=booking.technician_id,
        booking_status=booking.status.value,
    )
    db.add(message)
    await db.commit()

    logger.info(f"Chat message {message.id} posted to booking {booking_id} by {sender_role.value}")
    return serialize_message(message)


async def list_messages(db: AsyncSession, booking_id: str, caller_id: str) -> Dict[str, Any]:
    """Messages oldest first; marks each as read by the caller."""
    booking = await _load_booking_for_party(db, booking_id, caller_id)

    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.booking_id == booking_id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    messages = list(result.scalars().all())

    changed = False
    for message in messages:
        read_by = list(message.read_by or [])
        if caller_id not in read_by:
            # reassign so the JSON column registers the change
            message.read_by = read_by + [caller_id]
            changed = True

    if changed:
        await db.commit()

    return {
        "bookingId": booking.id,
        "chatState": chat_state_for(booking.status).value,
        "messages": [serialize_message(m) for m in messages],
    }
