"""Job tracking: reads for both parties, stage and location writes for the technician."""

import logging
from typing import Any, Dict, Optional

from revvdoc.errors import ConflictError, ForbiddenError, NotFoundError
from revvdoc.models.job import JOB_STAGE_ORDER, Job, JobStage
from revvdoc.utils.timeutils import isoformat_or_none, utcnow
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def serialize_job(job: Job) -> Dict[str, Any]:
    return {
        "jobId": job.id,
        "bookingId": job.booking_id,
        "technicianId": job.technician_id,
        "customerId": job.customer_id,
        "currentStage": job.current_stage.value,
        "stages": list(job.stages or []),
        "techLocation": job.tech_location,
        "etaMinutes": job.eta_minutes,
        "notes": job.notes,
        "startedAt": isoformat_or_none(job.started_at),
        "completedAt": isoformat_or_none(job.completed_at),
    }


def _ensure_party(job: Job, caller_id: str) -> None:
    if caller_id not in (job.technician_id, job.customer_id):
        raise ForbiddenError("Forbidden: not your job")


async def _load_job(db: AsyncSession, job_id: str) -> Job:
    job = await db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


async def get_job(db: AsyncSession, job_id: str, caller_id: str) -> Dict[str, Any]:
    job = await _load_job(db, job_id)
    _ensure_party(job, caller_id)
    return serialize_job(job)


async def get_job_by_booking(db: AsyncSession, booking_id: str, caller_id: str) -> Dict[str, Any]:
    result = await db.execute(select(Job).where(Job.booking_id == booking_id).limit(1))
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError("Job not found")
    _ensure_party(job, caller_id)
    return serialize_job(job)


async def get_technician_active_job(db: AsyncSession, technician_id: str) -> Optional[Dict[str, Any]]:
    """Most recently created job of the technician that is not complete."""
    stmt = (
        select(Job)
        .where(Job.technician_id == technician_id, Job.current_stage != JobStage.COMPLETE)
        .order_by(Job.created_at.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    job = result.scalar_one_or_none()
    return serialize_job(job) if job else None


async def advance_job_stage(
    db: AsyncSession,
    job_id: str,
    caller_id: str,
    new_stage: JobStage,
    note: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Append a stage entry and move ``current_stage`` forward.

    Raises:
        ForbiddenError: Caller is not the job's technician
        ConflictError: Stage does not move forward
    """
    job = await _load_job(db, job_id)
    if job.technician_id != caller_id:
        raise ForbiddenError("Only the assigned technician can update this job")

    if JOB_STAGE_ORDER.index(new_stage) <= JOB_STAGE_ORDER.index(job.current_stage) and job.stages:
        raise ConflictError(
            f"Cannot move job from '{job.current_stage.value}' to '{new_stage.value}'"
        )

    now = utcnow()
    # Reassign instead of appending so the JSON column is marked dirty
    job.stages = [
        *(job.stages or []),
        {"stage": new_stage.value, "enteredAt": now.isoformat(), "note": note},
    ]
    job.current_stage = new_stage
    if new_stage == JobStage.IN_PROGRESS and job.started_at is None:
        job.started_at = now
    if new_stage == JobStage.COMPLETE:
        job.completed_at = now

    await db.commit()
    logger.info(f"Job {job_id} entered stage {new_stage.value}")
    return serialize_job(job)


async def update_tech_location(
    db: AsyncSession, job_id: str, caller_id: str, lat: float, lng: float
) -> Dict[str, Any]:
    """Record the technician's latest GPS position."""
    job = await _load_job(db, job_id)
    if job.technician_id != caller_id:
        raise ForbiddenError("Only the assigned technician can update this job")

    job.tech_location = {"lat": lat, "lng": lng, "updatedAt": utcnow().isoformat()}
    await db.commit()
    logger.debug(f"Job {job_id} location updated")
    return serialize_job(job)
