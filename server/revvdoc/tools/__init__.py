"""Domain operations invoked by the API routes and the worker."""

from revvdoc.tools.booking_tools import (
    create_booking,
    get_booking_for_caller,
    list_customer_bookings,
    list_pending_bookings,
    list_technician_bookings,
)
from revvdoc.tools.chat_tools import list_messages, send_message
from revvdoc.tools.job_tools import advance_job_stage, get_job, update_tech_location
from revvdoc.tools.maintenance_tools import (
    create_schedule,
    deactivate_schedule,
    get_vehicle_health,
    list_schedules,
    update_schedule,
)
from revvdoc.tools.notification_tools import list_notifications, mark_all_read, mark_notification_read
from revvdoc.tools.vehicle_tools import get_vehicle_history
from revvdoc.tools.vin_tools import decode_vin, fetch_recalls
from revvdoc.tools.weather_tools import fetch_weather

__all__ = [
    "create_booking",
    "get_booking_for_caller",
    "list_customer_bookings",
    "list_technician_bookings",
    "list_pending_bookings",
    "send_message",
    "list_messages",
    "get_job",
    "advance_job_stage",
    "update_tech_location",
    "create_schedule",
    "list_schedules",
    "update_schedule",
    "deactivate_schedule",
    "get_vehicle_health",
    "list_notifications",
    "mark_notification_read",
    "mark_all_read",
    "get_vehicle_history",
    "decode_vin",
    "fetch_recalls",
    "fetch_weather",
]
