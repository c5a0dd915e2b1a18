from datetime import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.models.schedule import WeeklyScheduleBlock


async def get_weekly_schedule(
    session: AsyncSession, professional_id: int, active_only: bool = False
) -> list[WeeklyScheduleBlock]:
    q = (
        select(WeeklyScheduleBlock)
        .where(WeeklyScheduleBlock.professional_id == professional_id)
        .order_by(
            WeeklyScheduleBlock.day_of_week,
            WeeklyScheduleBlock.start_time,
            WeeklyScheduleBlock.id,
        )
    )
    if active_only:
        q = q.where(WeeklyScheduleBlock.active == True)  # noqa: E712
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_block(
    session: AsyncSession, professional_id: int, block_id: int
) -> WeeklyScheduleBlock | None:
    result = await session.execute(
        select(WeeklyScheduleBlock).where(
            WeeklyScheduleBlock.id == block_id,
            WeeklyScheduleBlock.professional_id == professional_id,
        )
    )
    return result.scalar_one_or_none()


async def validate_block(
    session: AsyncSession,
    professional_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    active: bool,
    exclude_id: int | None = None,
) -> None:
    """Raise ValueError if the block is malformed or overlaps another active block that day."""
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if start_time >= end_time:
        raise ValueError("start_time must be before end_time")
    if not active:
        return
    q = select(WeeklyScheduleBlock).where(
        WeeklyScheduleBlock.professional_id == professional_id,
        WeeklyScheduleBlock.day_of_week == day_of_week,
        WeeklyScheduleBlock.active == True,  # noqa: E712
        WeeklyScheduleBlock.start_time < end_time,
        WeeklyScheduleBlock.end_time > start_time,
    )
    if exclude_id is not None:
        q = q.where(WeeklyScheduleBlock.id != exclude_id)
    result = await session.execute(q)
    clash = result.scalars().first()
    if clash:
        raise ValueError(
            f"Overlaps the active block {clash.start_time:%H:%M}-{clash.end_time:%H:%M} on the same day"
        )


async def create_block(
    session: AsyncSession,
    professional_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    active: bool = True,
) -> WeeklyScheduleBlock:
    await validate_block(session, professional_id, day_of_week, start_time, end_time, active)
    block = WeeklyScheduleBlock(
        professional_id=professional_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        active=active,
    )
    session.add(block)
    await session.flush()
    await session.refresh(block)
    return block


async def update_block(
    session: AsyncSession,
    block: WeeklyScheduleBlock,
    start_time: time | None = None,
    end_time: time | None = None,
    active: bool | None = None,
) -> WeeklyScheduleBlock:
    new_start = start_time if start_time is not None else block.start_time
    new_end = end_time if end_time is not None else block.end_time
    new_active = active if active is not None else block.active
    await validate_block(
        session,
        block.professional_id,
        block.day_of_week,
        new_start,
        new_end,
        new_active,
        exclude_id=block.id,
    )
    block.start_time = new_start
    block.end_time = new_end
    block.active = new_active
    session.add(block)
    await session.flush()
    await session.refresh(block)
    return block


async def delete_block(session: AsyncSession, block: WeeklyScheduleBlock) -> None:
    await session.delete(block)
    await session.flush()
