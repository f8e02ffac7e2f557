"""Database models for the application."""

from revvdoc.models.booking import Booking, BookingStatus
from revvdoc.models.chat_message import ChatMessage
from revvdoc.models.job import Job, JobStage
from revvdoc.models.maintenance import MaintenanceSchedule, VehicleHealthSnapshot
from revvdoc.models.notification import Notification, NotificationType
from revvdoc.models.service import Service
from revvdoc.models.service_history import ServiceHistory
from revvdoc.models.user import User, UserRole
from revvdoc.models.vehicle import Vehicle

__all__ = [
    "Booking",
    "BookingStatus",
    "ChatMessage",
    "Job",
    "JobStage",
    "MaintenanceSchedule",
    "Notification",
    "NotificationType",
    "Service",
    "ServiceHistory",
    "User",
    "UserRole",
    "Vehicle",
    "VehicleHealthSnapshot",
]
