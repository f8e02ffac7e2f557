"""Job model."""

import enum

from revvdoc.models.base import Base, TimestampMixin
from revvdoc.utils.timeutils import new_id
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String, Text


class JobStage(str, enum.Enum):
    """Operational stage of a job, finer grained than booking status."""

    DISPATCHED = "dispatched"
    EN_ROUTE = "en_route"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    QUALITY_CHECK = "quality_check"
    COMPLETE = "complete"


JOB_STAGE_ORDER = [
    JobStage.DISPATCHED,
    JobStage.EN_ROUTE,
    JobStage.ARRIVED,
    JobStage.IN_PROGRESS,
    JobStage.QUALITY_CHECK,
    JobStage.COMPLETE,
]


class Job(Base, TimestampMixin):
    """Operational tracking record created when a booking is accepted.

    ``stages`` is an append-only log of ``{"stage", "enteredAt", "note"}``
    entries; ``current_stage`` mirrors the most recent entry (or
    ``dispatched`` while the log is empty).
    """

    __tablename__ = "jobs"

    id = Column(String(64), primary_key=True, default=new_id)
    booking_id = Column(String(64), nullable=False, unique=True, index=True)
    technician_id = Column(String(128), nullable=False, index=True)
    customer_id = Column(String(128), nullable=False, index=True)

    status = Column(String(20), default="accepted")  # job-level mirror of booking status
    current_stage = Column(SQLEnum(JobStage), default=JobStage.DISPATCHED, nullable=False)
    stages = Column(JSON, nullable=False, default=list)

    tech_location = Column(JSON)  # {"lat", "lng", "updatedAt"}, null until GPS broadcast
    route = Column(JSON)  # reserved for route polyline storage
    eta_minutes = Column(Integer)
    notes = Column(Text)

    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return (
            f"<Job(id='{self.id}', booking_id='{self.booking_id}', "
            f"current_stage='{self.current_stage}')>"
        )
