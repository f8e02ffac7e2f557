"""Notification model."""

import enum

from revvdoc.models.base import Base
from revvdoc.utils.timeutils import new_id, utcnow
from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Index, String, Text


class NotificationType(str, enum.Enum):
    """Notification type enum."""

    BOOKING_CONFIRMED = "booking_confirmed"
    TECHNICIAN_ACCEPTED = "technician_accepted"
    TECHNICIAN_EN_ROUTE = "technician_en_route"
    JOB_STARTED = "job_started"
    JOB_COMPLETE = "job_complete"
    BOOKING_CANCELLED = "booking_cancelled"
    SYSTEM = "system"
    MAINTENANCE_REMINDER = "maintenance_reminder"
    RECALL_DETECTED = "recall_detected"
    CHAT_MESSAGE = "chat_message"
    NEW_JOB_OFFER = "new_job_offer"


class Notification(Base):
    """In-app notification for one user."""

    __tablename__ = "notifications"

    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(128), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    related_booking_id = Column(String(64))
    related_job_id = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification(id='{self.id}', user_id='{self.user_id}', type='{self.type}')>"
