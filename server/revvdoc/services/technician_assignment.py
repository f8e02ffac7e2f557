"""
Technician assignment strategies.

The booking state machine asks a strategy which technician to stamp on a
booking (and its job) when the booking is accepted. Swapping the strategy
replaces dispatch logic without touching the state machine.
"""

from abc import ABC, abstractmethod

from revvdoc.models.booking import Booking


class TechnicianAssigner(ABC):
    """Decides which technician takes a booking at acceptance time."""

    @abstractmethod
    async def assign_technician(self, booking: Booking, caller_id: str) -> str:
        """
        Pick the technician for a booking being accepted.

        Args:
            booking: The pending booking
            caller_id: Verified id of the caller accepting the booking

        Returns:
            Technician id stamped on both the booking and the new job
        """
        pass


class AcceptingCallerAssigner(TechnicianAssigner):
    """The technician who accepts a pending booking is the one assigned."""

    async def assign_technician(self, booking: Booking, caller_id: str) -> str:
        return caller_id
