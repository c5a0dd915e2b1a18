from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_current_professional, get_session
from turnoapp.api.schemas.schedule import (
    ScheduleBlockCreate,
    ScheduleBlockPublic,
    ScheduleBlockUpdate,
)
from turnoapp.models.professional import Professional
from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.services.schedule_service import (
    create_block,
    delete_block,
    get_block,
    get_weekly_schedule,
    update_block,
)

router = APIRouter(prefix="/schedule", tags=["schedule"])


def _to_public(b: WeeklyScheduleBlock) -> ScheduleBlockPublic:
    return ScheduleBlockPublic(
        id=b.id,
        professional_id=b.professional_id,
        day_of_week=b.day_of_week,
        start_time=b.start_time.strftime("%H:%M"),
        end_time=b.end_time.strftime("%H:%M"),
        active=b.active,
    )


async def _block_or_404(session: AsyncSession, professional: Professional, block_id: int) -> WeeklyScheduleBlock:
    block = await get_block(session, professional.id, block_id)
    if not block:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule block not found")
    return block


@router.get("", response_model=list[ScheduleBlockPublic])
async def list_schedule(
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> list[ScheduleBlockPublic]:
    return [_to_public(b) for b in await get_weekly_schedule(session, professional.id)]


@router.post("", response_model=ScheduleBlockPublic, status_code=status.HTTP_201_CREATED)
async def add_block(
    body: ScheduleBlockCreate,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ScheduleBlockPublic:
    try:
        block = await create_block(
            session, professional.id, body.day_of_week, body.start_time, body.end_time, body.active
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _to_public(block)


@router.put("/{block_id}", response_model=ScheduleBlockPublic)
async def edit_block(
    block_id: int,
    body: ScheduleBlockUpdate,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ScheduleBlockPublic:
    block = await _block_or_404(session, professional, block_id)
    try:
        block = await update_block(session, block, body.start_time, body.end_time, body.active)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _to_public(block)


@router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_block(
    block_id: int,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> None:
    block = await _block_or_404(session, professional, block_id)
    await delete_block(session, block)
