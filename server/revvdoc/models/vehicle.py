"""Vehicle model."""

import enum
import re

from revvdoc.models.base import Base, TimestampMixin
from revvdoc.utils.timeutils import new_id
from sqlalchemy import JSON, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String
from sqlalchemy.orm import validates

VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")


class VehicleStatus(str, enum.Enum):
    """Vehicle status enum."""

    OPTIMAL = "OPTIMAL"
    SERVICE_DUE = "SERVICE_DUE"
    FAULT = "FAULT"


class Vehicle(Base, TimestampMixin):
    """Vehicle owned by a customer.

    Stores:
    - Vehicle identification and specifications
    - Current mileage (drives the maintenance health computation)
    - Denormalised last completed service
    """

    __tablename__ = "vehicles"

    # Primary Identity
    id = Column(String(64), primary_key=True, default=new_id)
    owner_id = Column(String(128), nullable=False, index=True)

    # Vehicle Details
    vin = Column(String(17), nullable=False, index=True)
    make = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    nickname = Column(String(100))
    photo_url = Column(String(500))

    # Service Information
    status = Column(SQLEnum(VehicleStatus), default=VehicleStatus.OPTIMAL)
    mileage = Column(Integer, default=0)
    last_service_date = Column(DateTime(timezone=True))
    last_service_snapshot = Column(JSON)  # {"serviceTitle": str, "date": iso str}

    @validates("vin")
    def validate_vin(self, key, value):
        """Validate VIN format (17 characters, no I/O/Q), enforcing uppercase."""
        if not value:
            raise ValueError("VIN cannot be empty")

        value = value.upper()
        if not VIN_PATTERN.match(value):
            raise ValueError(
                f"Invalid VIN format: {value}. VIN must be 17 letters (except I, O, Q) and numbers"
            )

        return value

    def __repr__(self):
        return f"<Vehicle(id='{self.id}', vin='{self.vin}', {self.year} {self.make} {self.model})>"
