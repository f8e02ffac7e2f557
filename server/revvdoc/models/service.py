"""Service catalog model."""

import enum

from revvdoc.models.base import Base, TimestampMixin
from revvdoc.utils.timeutils import new_id
from sqlalchemy import Boolean, Column
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String, Text


class ServiceCategory(str, enum.Enum):
    """Service category enum."""

    MECHANIC = "mechanic"
    DETAILING = "detailing"
    DIAGNOSTIC = "diagnostic"


class Service(Base, TimestampMixin):
    """Bookable service offered by the marketplace."""

    __tablename__ = "services"

    id = Column(String(64), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    category = Column(SQLEnum(ServiceCategory), nullable=False)
    base_price = Column(Integer, nullable=False, default=0)  # USD cents
    duration_mins = Column(Integer, nullable=False, default=60)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Service(id='{self.id}', name='{self.name}', category='{self.category}')>"
