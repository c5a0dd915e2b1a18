from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_now, get_session
from turnoapp.api.schemas.availability import (
    AvailabilityDateResponse,
    AvailabilitySlotResponse,
    DateAvailabilityOut,
    TimeSlot,
)
from turnoapp.core.config import settings
from turnoapp.models.service import Service
from turnoapp.services.availability_service import compute_date_availability
from turnoapp.services.catalog_service import get_service
from turnoapp.services.slot_service import format_hhmm, get_available_slots_for_date

router = APIRouter(prefix="/availability", tags=["availability"])


async def _service_or_404(session: AsyncSession, professional_id: int, service_id: int) -> Service:
    service = await get_service(session, professional_id, service_id)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found for this professional",
        )
    return service


@router.get("/dates", response_model=AvailabilityDateResponse)
async def date_availability(
    professional_id: int = Query(...),
    service_id: int = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> AvailabilityDateResponse:
    """One boolean per calendar date: does the date have at least one bookable slot."""
    service = await _service_or_404(session, professional_id, service_id)
    try:
        days = await compute_date_availability(
            session, service, start_date, end_date, settings.availability_max_days, now
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return AvailabilityDateResponse(
        professional_id=professional_id,
        service_id=service_id,
        availability=[DateAvailabilityOut(date=d.date, has_availability=d.has_availability) for d in days],
    )


@router.get("/slots", response_model=AvailabilitySlotResponse)
async def available_slots(
    professional_id: int = Query(...),
    service_id: int = Query(...),
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
) -> AvailabilitySlotResponse:
    """Bookable start times for one date; busy and elapsed slots are left out."""
    service = await _service_or_404(session, professional_id, service_id)
    slots = await get_available_slots_for_date(session, service, date_param, now)
    return AvailabilitySlotResponse(
        professional_id=professional_id,
        service_id=service_id,
        date=date_param,
        service_duration=service.duration_minutes,
        slots=[
            TimeSlot(start_time=format_hhmm(s.start_time), end_time=format_hhmm(s.end_time), available=s.available)
            for s in slots
        ],
    )
