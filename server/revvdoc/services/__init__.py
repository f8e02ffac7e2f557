"""
Services package for the RevvDoc backend.
"""

from .booking_state import BookingStateMachine, TransitionResult
from .technician_assignment import AcceptingCallerAssigner, TechnicianAssigner
from .vehicle_health import RecomputeResult, recompute_vehicle_health

__all__ = [
    "BookingStateMachine",
    "TransitionResult",
    "TechnicianAssigner",
    "AcceptingCallerAssigner",
    "RecomputeResult",
    "recompute_vehicle_health",
]
