"""Job tracking endpoints."""

from fastapi import APIRouter, Depends
from revvdoc.schemas import AdvanceStageRequest, TechLocationRequest
from revvdoc.services.auth import get_current_user_id
from revvdoc.services.database import get_db
from revvdoc.tools import job_tools
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()


@router.get("/jobs/active")
async def get_active_job(
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's current (not complete) job, or null."""
    return {"job": await job_tools.get_technician_active_job(db, caller_id)}


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await job_tools.get_job(db, job_id, caller_id)


@router.post("/jobs/{job_id}/stage")
async def advance_job_stage(
    job_id: str,
    body: AdvanceStageRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await job_tools.advance_job_stage(db, job_id, caller_id, body.stage, note=body.note)


@router.put("/jobs/{job_id}/location")
async def update_tech_location(
    job_id: str,
    body: TechLocationRequest,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await job_tools.update_tech_location(db, job_id, caller_id, body.lat, body.lng)
