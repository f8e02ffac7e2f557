"""Maintenance schedule and vehicle health snapshot models."""

import enum

from revvdoc.models.base import Base, TimestampMixin
from revvdoc.utils.timeutils import new_id, utcnow
from sqlalchemy import JSON, Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Index, Integer, String


class MaintenanceServiceType(str, enum.Enum):
    """Service types that support recurring maintenance schedules."""

    OIL_CHANGE = "oil_change"
    TIRE_ROTATION = "tire_rotation"
    BRAKE_INSPECTION = "brake_inspection"
    AIR_FILTER = "air_filter"
    CABIN_FILTER = "cabin_filter"
    COOLANT_FLUSH = "coolant_flush"
    TRANSMISSION_SERVICE = "transmission_service"
    SPARK_PLUGS = "spark_plugs"
    WIPER_BLADES = "wiper_blades"
    CUSTOM = "custom"


class ServiceUrgency(str, enum.Enum):
    """Urgency of a single schedule."""

    ROUTINE = "routine"
    SOON = "soon"
    OVERDUE = "overdue"


class HealthAlertLevel(str, enum.Enum):
    """Aggregate alert level of a vehicle."""

    NONE = "none"
    SOON = "soon"
    OVERDUE = "overdue"


class MaintenanceSchedule(Base, TimestampMixin):
    """One recurring maintenance schedule for one vehicle.

    Mileage and date intervals are independent triggers; either, both, or
    neither may be set. ``next_due_mileage`` / ``next_due_date`` are written
    only by ``revvdoc.services.vehicle_health``.
    """

    __tablename__ = "maintenance_schedules"

    __table_args__ = (
        Index("ix_maintenance_schedules_vehicle_active", "vehicle_id", "is_active"),
        Index("ix_maintenance_schedules_owner_active", "owner_id", "is_active"),
    )

    id = Column(String(64), primary_key=True, default=new_id)
    vehicle_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(128), nullable=False)
    service_type = Column(SQLEnum(MaintenanceServiceType), nullable=False)
    custom_label = Column(String(100))  # used when service_type is custom

    # Interval definition
    interval_miles = Column(Integer)
    interval_days = Column(Integer)

    # Anchor points from the most recent completed service
    last_service_date = Column(DateTime(timezone=True))
    last_service_mileage = Column(Integer)

    # Computed
    next_due_date = Column(DateTime(timezone=True))
    next_due_mileage = Column(Integer)

    # Reminder thresholds
    reminder_lead_days = Column(Integer, default=7, nullable=False)
    reminder_lead_miles = Column(Integer, default=500, nullable=False)
    reminder_sent_at = Column(DateTime(timezone=True))  # null = not sent this cycle

    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return (
            f"<MaintenanceSchedule(id='{self.id}', vehicle_id='{self.vehicle_id}', "
            f"service_type='{self.service_type}')>"
        )


class VehicleHealthSnapshot(Base):
    """Most recently computed health state, one row per vehicle.

    Fully overwritten on every recompute; a derived view, not a source of truth.
    """

    __tablename__ = "vehicle_health"

    vehicle_id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    alert_level = Column(SQLEnum(HealthAlertLevel), nullable=False, default=HealthAlertLevel.NONE)
    upcoming_services = Column(JSON, nullable=False, default=list)
    cost_forecast_cents_monthly = Column(Integer)
    estimated_resale_value_boost_cents = Column(Integer)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<VehicleHealthSnapshot(vehicle_id='{self.vehicle_id}', alert_level='{self.alert_level}')>"
