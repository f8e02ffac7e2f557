"""Service history model."""

from revvdoc.models.base import Base
from revvdoc.utils.timeutils import new_id, utcnow
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text


class ServiceHistory(Base):
    """Immutable record of a completed service.

    Created once per completed booking (``booking_id`` is unique) as a
    best-effort side effect of the ``complete`` transition.
    """

    __tablename__ = "service_history"

    # Primary Identity
    id = Column(String(64), primary_key=True, default=new_id)
    vehicle_id = Column(String(64), nullable=False, index=True)
    booking_id = Column(String(64), unique=True, index=True)
    customer_id = Column(String(128), nullable=False, index=True)

    # Service Performed
    service_type = Column(String(50))  # service category from the booking snapshot
    service_title = Column(String(200))
    source = Column(String(20), default="booking")  # booking, manual
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True))
    mileage_at_service = Column(Integer, nullable=False, default=0)
    cost = Column(Integer, nullable=False, default=0)  # USD cents
    tech_notes = Column(Text)

    parts_used = Column(JSON, nullable=False, default=list)  # [{"name", "partNumber", "brand", "warrantyExpires"}]
    photo_urls = Column(JSON, nullable=False, default=list)
    warranty_info = Column(JSON)  # {"description", "expiresAt", "claimContact"}

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<ServiceHistory(id='{self.id}', vehicle_id='{self.vehicle_id}', "
            f"date='{self.date}')>"
        )
