"""
Booking status state machine.

Single authoritative entry point for changing a booking's status:
authorises the caller, checks transition legality, applies the status write
atomically (creating the job on acceptance), and dispatches best-effort side
effects once the write has committed.

Lifecycle:
    pending -> accepted -> scheduled -> en_route -> in_progress -> complete
    pending -> cancelled  (customer only)

Forward transitions may skip stages; they only have to move strictly forward.

Consistency window: a completed booking's service-history record and the
vehicle's last-service stamp are written after the status change commits and
may lag behind it, or be missing if those writes fail.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from revvdoc.errors import ConflictError, ForbiddenError, NotFoundError
from revvdoc.models.booking import Booking, BookingStatus
from revvdoc.models.job import Job, JobStage
from revvdoc.models.notification import NotificationType
from revvdoc.models.service_history import ServiceHistory
from revvdoc.models.vehicle import Vehicle
from revvdoc.services.database import new_session
from revvdoc.services.geocoding import GeoPoint, build_address_string, geocode_address, has_coordinates
from revvdoc.services.notifications import create_notification
from revvdoc.services.technician_assignment import AcceptingCallerAssigner, TechnicianAssigner
from revvdoc.utils.background_tasks import BackgroundTaskDispatcher, get_dispatcher
from revvdoc.utils.timeutils import new_id, utcnow
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

STATUS_ORDER = [
    BookingStatus.PENDING,
    BookingStatus.ACCEPTED,
    BookingStatus.SCHEDULED,
    BookingStatus.EN_ROUTE,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETE,
]

# Customer-facing notifications created after these transitions
TRANSITION_NOTIFICATIONS = {
    BookingStatus.ACCEPTED: (
        NotificationType.TECHNICIAN_ACCEPTED,
        "Technician Assigned",
        "A technician accepted your {service} booking.",
    ),
    BookingStatus.EN_ROUTE: (
        NotificationType.TECHNICIAN_EN_ROUTE,
        "Technician En Route",
        "Your technician is on the way for your {service} service.",
    ),
    BookingStatus.COMPLETE: (
        NotificationType.JOB_COMPLETE,
        "Service Complete",
        "Your {service} service is complete. Thanks for using RevvDoc!",
    ),
}

Geocoder = Callable[[str], Awaitable[Optional[GeoPoint]]]
SessionFactory = Callable[[], AsyncSession]


@dataclass
class TransitionResult:
    """Outcome of a successful transition."""

    booking_id: str
    status: BookingStatus
    job_id: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        response = {"bookingId": self.booking_id, "status": self.status.value}
        if self.job_id:
            response["jobId"] = self.job_id
        return response


@dataclass(frozen=True)
class CompletionDetails:
    """Plain copy of the booking fields the completion side effects need."""

    booking_id: str
    vehicle_id: str
    customer_id: str
    service_type: Optional[str]
    service_title: Optional[str]
    cost: int
    tech_notes: Optional[str]
    mileage_at_service: int


def _position(status: BookingStatus) -> Optional[int]:
    try:
        return STATUS_ORDER.index(status)
    except ValueError:
        return None


class BookingStateMachine:
    """
    Applies booking status transitions.

    Collaborators are injected so tests and future dispatch logic can swap
    them:
        session_factory: opens a standalone session for best-effort writes
        assigner: picks the technician at acceptance
        geocoder: resolves missing address coordinates after acceptance
        dispatcher: runs best-effort side effects
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        assigner: Optional[TechnicianAssigner] = None,
        geocoder: Optional[Geocoder] = None,
        dispatcher: Optional[BackgroundTaskDispatcher] = None,
    ):
        self.session_factory = session_factory
        self.assigner = assigner or AcceptingCallerAssigner()
        self.geocoder = geocoder or geocode_address
        self.dispatcher = dispatcher or get_dispatcher()

    async def transition(
        self,
        db: AsyncSession,
        booking_id: str,
        caller_id: str,
        target_status: BookingStatus,
        tech_notes: Optional[str] = None,
        mileage_at_service: Optional[int] = None,
    ) -> TransitionResult:
        """
        Move a booking to ``target_status``.

        Args:
            db: Request-scoped session
            booking_id: Booking to transition
            caller_id: Verified caller identity
            target_status: Requested status
            tech_notes: Notes recorded in service history on completion
            mileage_at_service: Odometer reading recorded on completion

        Returns:
            TransitionResult (carrying the job id for acceptances)

        Raises:
            NotFoundError: Booking does not exist
            ForbiddenError: Caller is not entitled to this transition
            ConflictError: Transition is illegal from the current status, or
                another caller changed the booking first
        """
        booking = await db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        current_status = booking.status
        is_customer = booking.customer_id == caller_id
        is_technician = booking.technician_id is not None and booking.technician_id == caller_id
        is_accepting_pending = (
            target_status == BookingStatus.ACCEPTED and current_status == BookingStatus.PENDING
        )

        # Repeated acceptance of an accepted booking: the assigned technician
        # gets the same job back, anyone else lost the acceptance. Later
        # statuses fall through to the order check.
        if (
            target_status == BookingStatus.ACCEPTED
            and current_status == BookingStatus.ACCEPTED
            and booking.job_id
        ):
            if is_technician:
                logger.info(
                    f"Booking {booking_id} already has job {booking.job_id}, skipping job creation"
                )
                return TransitionResult(booking.id, current_status, booking.job_id)
            raise ConflictError("Booking has already been accepted")

        if not (is_customer or is_technician or is_accepting_pending):
            raise ForbiddenError("Forbidden: not your booking")

        if target_status == BookingStatus.CANCELLED:
            if not is_customer:
                raise ForbiddenError("Only the customer can cancel a booking")
            if current_status != BookingStatus.PENDING:
                raise ConflictError("Only pending bookings can be cancelled")
        else:
            if not is_technician and not is_accepting_pending:
                raise ForbiddenError("Only the assigned technician can advance booking status")

            current_idx = _position(current_status)
            target_idx = _position(target_status)
            if current_idx is None or target_idx is None or target_idx <= current_idx:
                raise ConflictError(
                    f"Cannot transition from '{current_status.value}' to '{target_status.value}'"
                )

        if target_status == BookingStatus.ACCEPTED:
            result = await self._accept(db, booking, caller_id)
        else:
            result = await self._apply_status(db, booking, current_status, target_status)
            if target_status == BookingStatus.COMPLETE:
                self._dispatch_completion(
                    self._completion_details(booking, tech_notes, mileage_at_service)
                )

        self._dispatch_notification(booking, target_status, result.job_id)
        return result

    # ------------------------------------------------------------------
    # Atomic writes
    # ------------------------------------------------------------------

    async def _accept(self, db: AsyncSession, booking: Booking, caller_id: str) -> TransitionResult:
        """Create the job and stamp technician + job id on the booking in one transaction."""
        booking_id = booking.id
        customer_id = booking.customer_id
        address = dict(booking.address) if booking.address else None

        technician_id = await self.assigner.assign_technician(booking, caller_id)
        now = utcnow()

        job = Job(
            id=new_id(),
            booking_id=booking_id,
            technician_id=technician_id,
            customer_id=customer_id,
            status=BookingStatus.ACCEPTED.value,
            current_stage=JobStage.DISPATCHED,
            stages=[],
            tech_location=None,
            route=None,
            eta_minutes=None,
            notes=None,
            started_at=None,
            completed_at=None,
        )

        try:
            db.add(job)
            stamped = await db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.PENDING,
                    Booking.technician_id.is_(None),
                    Booking.job_id.is_(None),
                )
                .values(
                    status=BookingStatus.ACCEPTED,
                    technician_id=technician_id,
                    job_id=job.id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if stamped.rowcount != 1:
                await db.rollback()
                logger.warning(f"Acceptance race lost on booking {booking_id} by {caller_id}")
                raise ConflictError("Booking was already accepted by another technician")

            await db.commit()

        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Acceptance race lost on booking {booking_id} by {caller_id}: {e}")
            raise ConflictError("Booking was already accepted by another technician") from e

        await db.refresh(booking)
        logger.info(f"Job {job.id} created for booking {booking_id} (technician {technician_id})")

        if address and address.get("street") and not has_coordinates(address):
            self.dispatcher.dispatch(
                self.enrich_address(booking_id, address), name=f"geocode:{booking_id}"
            )

        return TransitionResult(booking_id, BookingStatus.ACCEPTED, job.id)

    async def _apply_status(
        self,
        db: AsyncSession,
        booking: Booking,
        current_status: BookingStatus,
        target_status: BookingStatus,
    ) -> TransitionResult:
        """Compare-and-set the status against the value the checks ran on."""
        booking_id = booking.id
        try:
            written = await db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status == current_status)
                .values(status=target_status, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if written.rowcount != 1:
                await db.rollback()
                raise ConflictError(
                    f"Booking {booking_id} changed status concurrently, retry the request"
                )
            await db.commit()
        except ConflictError:
            raise
        except Exception as e:
            await db.rollback()
            logger.error(f"Status update failed for booking {booking_id}: {e}", exc_info=True)
            raise

        await db.refresh(booking)
        logger.info(
            f"Booking {booking_id} transitioned {current_status.value} -> {target_status.value}"
        )
        return TransitionResult(booking_id, target_status)

    # ------------------------------------------------------------------
    # Best-effort side effects
    # ------------------------------------------------------------------

    @staticmethod
    def _completion_details(
        booking: Booking, tech_notes: Optional[str], mileage_at_service: Optional[int]
    ) -> CompletionDetails:
        service_snapshot = booking.service_snapshot or {}
        vehicle_snapshot = booking.vehicle_snapshot or {}

        if mileage_at_service is None:
            mileage_at_service = vehicle_snapshot.get("mileage") or 0

        return CompletionDetails(
            booking_id=booking.id,
            vehicle_id=booking.vehicle_id,
            customer_id=booking.customer_id,
            service_type=service_snapshot.get("category"),
            service_title=service_snapshot.get("name"),
            cost=booking.total_price or 0,
            tech_notes=tech_notes if tech_notes is not None else booking.notes,
            mileage_at_service=mileage_at_service,
        )

    def _dispatch_completion(self, details: CompletionDetails) -> None:
        self.dispatcher.dispatch(
            self.record_service_history(details), name=f"service-history:{details.booking_id}"
        )
        self.dispatcher.dispatch(
            self.stamp_vehicle_service(details), name=f"vehicle-stamp:{details.booking_id}"
        )

    def _dispatch_notification(
        self, booking: Booking, target_status: BookingStatus, job_id: Optional[str]
    ) -> None:
        template = TRANSITION_NOTIFICATIONS.get(target_status)
        if not template:
            return

        notification_type, title, body = template
        service_name = (booking.service_snapshot or {}).get("name") or "vehicle"
        self.dispatcher.dispatch(
            create_notification(
                self.session_factory,
                booking.customer_id,
                notification_type,
                title,
                body.format(service=service_name),
                related_booking_id=booking.id,
                related_job_id=job_id or booking.job_id,
            ),
            name=f"notify:{notification_type.value}:{booking.id}",
        )

    async def enrich_address(self, booking_id: str, address: Dict[str, Any]) -> None:
        """Resolve and patch missing booking coordinates."""
        coords = await self.geocoder(build_address_string(address))
        if not coords:
            logger.warning(f"No coordinates resolved for booking {booking_id}")
            return

        async with self.session_factory() as db:
            booking = await db.get(Booking, booking_id)
            if booking is None:
                return
            booking.address = {**(booking.address or {}), "lat": coords.lat, "lng": coords.lng}
            await db.commit()

        logger.info(f"Geocoded booking {booking_id} -> {coords.lat}, {coords.lng}")

    async def record_service_history(self, details: CompletionDetails) -> None:
        """Create the service-history record for a completed booking."""
        now = utcnow()
        async with self.session_factory() as db:
            db.add(
                ServiceHistory(
                    vehicle_id=details.vehicle_id,
                    booking_id=details.booking_id,
                    customer_id=details.customer_id,
                    service_type=details.service_type,
                    service_title=details.service_title,
                    source="booking",
                    date=now,
                    completed_at=now,
                    mileage_at_service=details.mileage_at_service,
                    cost=details.cost,
                    tech_notes=details.tech_notes,
                    parts_used=[],
                    photo_urls=[],
                    warranty_info=None,
                )
            )
            await db.commit()

        logger.info(f"Service history recorded for booking {details.booking_id}")

    async def stamp_vehicle_service(self, details: CompletionDetails) -> None:
        """Update the vehicle's last-service fields."""
        now = utcnow()
        async with self.session_factory() as db:
            vehicle = await db.get(Vehicle, details.vehicle_id)
            if vehicle is None:
                logger.warning(
                    f"Vehicle {details.vehicle_id} missing, cannot stamp booking {details.booking_id}"
                )
                return
            vehicle.last_service_date = now
            vehicle.last_service_snapshot = {
                "serviceTitle": details.service_title,
                "date": now.isoformat(),
            }
            await db.commit()

        logger.info(f"Vehicle {details.vehicle_id} stamped with last service")


def get_booking_state_machine() -> BookingStateMachine:
    """FastAPI dependency building the state machine with production collaborators."""
    return BookingStateMachine(session_factory=new_session)
