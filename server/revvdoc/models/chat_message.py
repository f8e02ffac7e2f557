"""Booking chat message model."""

import enum

from revvdoc.models.base import Base
from revvdoc.utils.timeutils import new_id, utcnow
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Index, String, Text


class SenderRole(str, enum.Enum):
    CUSTOMER = "customer"
    TECHNICIAN = "technician"


class MessageType(str, enum.Enum):
    TEXT = "text"
    SYSTEM = "system"


class ChatMessage(Base):
    """A message exchanged between the two parties of a booking.

    customer_id, technician_id and booking_status are copied from the
    parent booking at write time.
    """

    __tablename__ = "chat_messages"

    __table_args__ = (Index("ix_chat_messages_booking_created", "booking_id", "created_at"),)

    id = Column(String(64), primary_key=True, default=new_id)
    booking_id = Column(String(64), nullable=False)
    sender_id = Column(String(128), nullable=False)
    sender_role = Column(SQLEnum(SenderRole), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(SQLEnum(MessageType), default=MessageType.TEXT, nullable=False)
    read_by = Column(JSON, nullable=False, default=list)

    customer_id = Column(String(128), nullable=False)
    technician_id = Column(String(128), nullable=False)
    booking_status = Column(String(20), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ChatMessage(id='{self.id}', booking_id='{self.booking_id}')>"
