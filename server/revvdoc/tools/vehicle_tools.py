"""Vehicle service history reads."""

from typing import Any, Dict, List

from revvdoc.models.service_history import ServiceHistory
from revvdoc.tools.maintenance_tools import get_owned_vehicle
from revvdoc.utils.timeutils import isoformat_or_none
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def serialize_service_record(record: ServiceHistory) -> Dict[str, Any]:
    return {
        "recordId": record.id,
        "vehicleId": record.vehicle_id,
        "bookingId": record.booking_id,
        "customerId": record.customer_id,
        "serviceType": record.service_type,
        "serviceTitle": record.service_title,
        "source": record.source,
        "date": isoformat_or_none(record.date),
        "completedAt": isoformat_or_none(record.completed_at),
        "mileageAtService": record.mileage_at_service,
        "cost": record.cost,
        "techNotes": record.tech_notes,
        "partsUsed": record.parts_used or [],
        "photoUrls": record.photo_urls or [],
        "warrantyInfo": record.warranty_info,
    }


async def get_vehicle_history(db: AsyncSession, vehicle_id: str, caller_id: str) -> List[Dict[str, Any]]:
    """Service history of an owned vehicle, newest first."""
    await get_owned_vehicle(db, vehicle_id, caller_id)

    stmt = (
        select(ServiceHistory)
        .where(ServiceHistory.vehicle_id == vehicle_id)
        .order_by(ServiceHistory.date.desc())
    )
    result = await db.execute(stmt)
    return [serialize_service_record(r) for r in result.scalars().all()]
