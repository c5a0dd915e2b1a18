from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.models.service import Service, ServiceStatus
from turnoapp.services.appointment_service import get_booked_ranges_between
from turnoapp.services.schedule_service import get_weekly_schedule
from turnoapp.services.slot_service import BusyRange, bookable_slots, generate_slots, last_bookable_day


@dataclass(frozen=True)
class DateAvailability:
    date: date
    has_availability: bool


def date_range(start_date: date, end_date: date) -> list[date]:
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


def validate_window(start_date: date, end_date: date, max_days: int) -> None:
    if start_date > end_date:
        raise ValueError("start_date must not be after end_date")
    if (end_date - start_date).days > max_days:
        raise ValueError(f"Date range must span at most {max_days} days")


def summarize_dates(
    days: Sequence[date],
    blocks: Sequence[WeeklyScheduleBlock],
    duration_minutes: int,
    booked_by_date: Mapping[date, Sequence[BusyRange]],
    not_before: datetime | None = None,
    not_after: date | None = None,
) -> list[DateAvailability]:
    """One entry per day: true iff the slot generator yields at least one bookable slot."""
    return [
        DateAvailability(
            date=d,
            has_availability=bool(
                bookable_slots(
                    generate_slots(d, blocks, duration_minutes, booked_by_date.get(d, ()), not_before, not_after)
                )
            ),
        )
        for d in days
    ]


async def compute_date_availability(
    session: AsyncSession,
    service: Service,
    start_date: date,
    end_date: date,
    max_days: int,
    now: datetime | None = None,
) -> list[DateAvailability]:
    """Calendar view for a bounded window. Missing schedule or an inactive service is all-false.

    Dates past the booking horizon are false even when the schedule has room.
    """
    validate_window(start_date, end_date, max_days)
    days = date_range(start_date, end_date)
    if service.status != ServiceStatus.ACTIVE:
        return [DateAvailability(date=d, has_availability=False) for d in days]
    blocks = await get_weekly_schedule(session, service.professional_id, active_only=True)
    if not blocks:
        return [DateAvailability(date=d, has_availability=False) for d in days]
    booked = await get_booked_ranges_between(session, service.professional_id, start_date, end_date)
    return summarize_dates(
        days, blocks, service.duration_minutes, booked, not_before=now, not_after=last_bookable_day(now)
    )
