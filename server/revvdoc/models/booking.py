"""Booking model."""

import enum

from revvdoc.models.base import Base, TimestampMixin
from revvdoc.utils.timeutils import new_id
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Index, Integer, String, Text


class BookingStatus(str, enum.Enum):
    """Booking status enum."""

    PENDING = "pending"  # submitted, awaiting technician assignment
    ACCEPTED = "accepted"  # technician accepted the job
    SCHEDULED = "scheduled"  # appointment time confirmed by technician
    EN_ROUTE = "en_route"  # technician is driving to customer
    IN_PROGRESS = "in_progress"  # service actively underway
    COMPLETE = "complete"  # service done
    CANCELLED = "cancelled"  # cancelled by customer while pending


class BookingTimeWindow(str, enum.Enum):
    """Time-of-day preference selected during booking."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class BookingSource(str, enum.Enum):
    """How the customer initiated the booking."""

    ASSISTANT = "assistant"
    SCHEDULE = "schedule"
    HISTORY = "history"
    MANUAL = "manual"


class Booking(Base, TimestampMixin):
    """One requested service instance.

    The status column is only ever changed through
    ``revvdoc.services.booking_state.BookingStateMachine``.

    Invariants:
    - technician_id is null while the booking is pending (or was cancelled
      from pending) and never reverts to null once set
    - job_id is set exactly once, at the pending -> accepted transition
    """

    __tablename__ = "bookings"

    __table_args__ = (
        Index("ix_bookings_customer_scheduled", "customer_id", "scheduled_at"),
        Index("ix_bookings_status_scheduled", "status", "scheduled_at"),
    )

    # Primary Identity
    id = Column(String(64), primary_key=True, default=new_id)
    customer_id = Column(String(128), nullable=False, index=True)
    technician_id = Column(String(128), index=True)  # null until accepted
    job_id = Column(String(64), unique=True)  # set atomically on acceptance
    vehicle_id = Column(String(64), nullable=False, index=True)
    service_id = Column(String(64), nullable=False)

    # Denormalised at creation time, never updated afterwards
    service_snapshot = Column(JSON, nullable=False)
    vehicle_snapshot = Column(JSON, nullable=False)

    # Scheduling
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    scheduled_time_window = Column(SQLEnum(BookingTimeWindow))

    # Status & Workflow
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)

    # {"street", "city", "state", "zip", "lat", "lng"}
    address = Column(JSON)

    total_price = Column(Integer, nullable=False, default=0)  # USD cents
    notes = Column(Text)
    source = Column(SQLEnum(BookingSource), default=BookingSource.MANUAL)

    def __repr__(self):
        return (
            f"<Booking(id='{self.id}', customer_id='{self.customer_id}', "
            f"status='{self.status}', job_id='{self.job_id}')>"
        )
