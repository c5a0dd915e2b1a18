from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.core.config import settings
from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.models.service import Service, ServiceStatus
from turnoapp.services.appointment_service import get_booked_ranges
from turnoapp.services.schedule_service import get_weekly_schedule

MINUTES_PER_DAY = 24 * 60

BusyRange = tuple[time, time]


@dataclass(frozen=True)
class SlotView:
    start_time: time
    end_time: time
    available: bool


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def add_minutes(t: time, minutes: int) -> time:
    return from_minutes(to_minutes(t) + minutes)


def format_hhmm(t: time) -> str:
    return t.strftime("%H:%M")


def day_of_week(d: date) -> int:
    """0=Sunday .. 6=Saturday (date.weekday() is 0=Monday)."""
    return (d.weekday() + 1) % 7


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open test: [a_start, a_end) intersects [b_start, b_end)."""
    return a_start < b_end and a_end > b_start


def _cutoff_minute(day: date, not_before: datetime | None) -> int | None:
    """Last minute of `day` that has already elapsed, or None if nothing has."""
    if not_before is None or day > not_before.date():
        return None
    if day < not_before.date():
        return MINUTES_PER_DAY
    return not_before.hour * 60 + not_before.minute


def last_bookable_day(now: datetime | None) -> date | None:
    """End of the booking horizon counted from `now`; None when there is no clock."""
    if now is None:
        return None
    return now.date() + timedelta(days=settings.booking_horizon_days)


def generate_slots(
    day: date,
    blocks: Sequence[WeeklyScheduleBlock],
    duration_minutes: int,
    booked: Iterable[BusyRange],
    not_before: datetime | None = None,
    not_after: date | None = None,
) -> list[SlotView]:
    """Tile the day's active blocks with fixed-size slots and flag the busy ones.

    Each block is walked from its start in steps of exactly `duration_minutes`;
    a candidate is kept only if it ends at or before the block end. A candidate
    is unavailable when it overlaps a booked range (half-open, so back-to-back is
    fine), starts at or before `not_before`, or falls on a day after `not_after`.
    Blocks keep their input order.
    Active blocks for one day are assumed not to overlap; that is checked on write.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    dow = day_of_week(day)
    day_blocks = [b for b in blocks if b.active and b.day_of_week == dow]
    if not day_blocks:
        return []

    busy = [(to_minutes(s), to_minutes(e)) for s, e in booked]
    cutoff = _cutoff_minute(day, not_before)
    beyond_horizon = not_after is not None and day > not_after

    slots: list[SlotView] = []
    for block in day_blocks:
        current = to_minutes(block.start_time)
        block_end = to_minutes(block.end_time)
        while current + duration_minutes <= block_end:
            slot_end = current + duration_minutes
            available = not beyond_horizon and not any(
                overlaps(current, slot_end, b_start, b_end) for b_start, b_end in busy
            )
            if cutoff is not None and current <= cutoff:
                available = False
            slots.append(SlotView(from_minutes(current), from_minutes(slot_end), available))
            current = slot_end
    return slots


def bookable_slots(slots: Iterable[SlotView]) -> list[SlotView]:
    return [s for s in slots if s.available]


async def get_slots_for_date(
    session: AsyncSession,
    service: Service,
    day: date,
    now: datetime | None = None,
) -> list[SlotView]:
    """Full tiling with availability flags for one date; empty for inactive services.

    With a clock, slots that already started or lie past the booking horizon are flagged busy.
    """
    if service.status != ServiceStatus.ACTIVE:
        return []
    blocks = await get_weekly_schedule(session, service.professional_id, active_only=True)
    if not blocks:
        return []
    booked = await get_booked_ranges(session, service.professional_id, day)
    return generate_slots(
        day,
        blocks,
        service.duration_minutes,
        booked,
        not_before=now,
        not_after=last_bookable_day(now),
    )


async def get_available_slots_for_date(
    session: AsyncSession,
    service: Service,
    day: date,
    now: datetime | None = None,
) -> list[SlotView]:
    """Only the bookable slots, in order. This is what clients are shown."""
    return bookable_slots(await get_slots_for_date(session, service, day, now))
