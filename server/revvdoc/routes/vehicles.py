"""Vehicle history and external vehicle-data endpoints."""

from fastapi import APIRouter, Depends, Query
from revvdoc.services.auth import get_current_user_id
from revvdoc.services.database import get_db
from revvdoc.tools import vehicle_tools, vin_tools, weather_tools
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()


@router.get("/vehicles/decode-vin")
async def decode_vin(vin: str = Query(..., min_length=1)):
    """Decode a VIN through NHTSA. No authentication needed."""
    return await vin_tools.decode_vin(vin)


@router.get("/vehicles/recalls")
async def get_recalls(
    make: str = Query(..., min_length=1),
    model: str = Query(..., min_length=1),
    year: int = Query(...),
    caller_id: str = Depends(get_current_user_id),
):
    return await vin_tools.fetch_recalls(make, model, year)


@router.get("/vehicles/{vehicle_id}/history")
async def get_vehicle_history(
    vehicle_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    records = await vehicle_tools.get_vehicle_history(db, vehicle_id, caller_id)
    return {"history": records, "count": len(records)}


@router.get("/weather")
async def get_weather(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    caller_id: str = Depends(get_current_user_id),
):
    return await weather_tools.fetch_weather(lat, lng)
