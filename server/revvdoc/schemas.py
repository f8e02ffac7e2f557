"""Request bodies accepted by the API.

Clients send camelCase; fields are snake_case in Python.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from revvdoc.models.booking import BookingSource, BookingStatus, BookingTimeWindow
from revvdoc.models.job import JobStage
from revvdoc.models.maintenance import MaintenanceServiceType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class Address(CamelModel):
    street: str = Field(default="", max_length=200)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=50)
    zip: str = Field(default="", max_length=20)
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class CreateBookingRequest(CamelModel):
    vehicle_id: str = Field(min_length=1)
    service_id: str = Field(min_length=1)
    scheduled_date: date
    scheduled_time_window: BookingTimeWindow
    notes: Optional[str] = Field(default=None, max_length=500)
    source: BookingSource = BookingSource.MANUAL
    address: Optional[Address] = None


class StatusUpdate(CamelModel):
    user_id: str = Field(min_length=1)
    status: BookingStatus
    tech_notes: Optional[str] = Field(default=None, max_length=1000)
    mileage_at_service: Optional[int] = Field(default=None, ge=0)


class StatusUpdateRequest(StatusUpdate):
    booking_id: str = Field(min_length=1)


class RecomputeRequest(CamelModel):
    vehicle_id: str = Field(min_length=1)


class AdvanceStageRequest(CamelModel):
    stage: JobStage
    note: Optional[str] = Field(default=None, max_length=500)


class TechLocationRequest(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ChatMessageRequest(CamelModel):
    body: str = Field(min_length=1, max_length=2000)


class CreateScheduleRequest(StrictCamelModel):
    service_type: MaintenanceServiceType
    custom_label: Optional[str] = Field(default=None, max_length=100)
    interval_miles: Optional[int] = Field(default=None, gt=0)
    interval_days: Optional[int] = Field(default=None, gt=0)
    last_service_date: Optional[datetime] = None
    last_service_mileage: Optional[int] = Field(default=None, ge=0)
    reminder_lead_days: int = Field(default=7, ge=0)
    reminder_lead_miles: int = Field(default=500, ge=0)

    @model_validator(mode="after")
    def require_interval(self):
        if self.interval_miles is None and self.interval_days is None:
            raise ValueError("At least one of intervalMiles or intervalDays is required")
        return self


class UpdateScheduleRequest(StrictCamelModel):
    custom_label: Optional[str] = Field(default=None, max_length=100)
    interval_miles: Optional[int] = Field(default=None, gt=0)
    interval_days: Optional[int] = Field(default=None, gt=0)
    last_service_date: Optional[datetime] = None
    last_service_mileage: Optional[int] = Field(default=None, ge=0)
    reminder_lead_days: Optional[int] = Field(default=None, ge=0)
    reminder_lead_miles: Optional[int] = Field(default=None, ge=0)
