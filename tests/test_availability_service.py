from datetime import date, time, timedelta

import pytest

from conftest import MONDAY, NOW, make_block
from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.models.service import ServiceStatus
from turnoapp.services.availability_service import (
    compute_date_availability,
    date_range,
    summarize_dates,
    validate_window,
)
from turnoapp.services.slot_service import bookable_slots, generate_slots

SUNDAY = date(2026, 3, 1)
MONDAY_BLOCK = WeeklyScheduleBlock(
    professional_id=1, day_of_week=1, start_time=time(9), end_time=time(13), active=True
)


def test_window_must_be_ordered():
    with pytest.raises(ValueError):
        validate_window(MONDAY, SUNDAY, 30)


def test_window_is_bounded():
    validate_window(SUNDAY, SUNDAY + timedelta(days=30), 30)
    with pytest.raises(ValueError):
        validate_window(SUNDAY, SUNDAY + timedelta(days=31), 30)


def test_date_range_is_inclusive():
    assert date_range(SUNDAY, SUNDAY) == [SUNDAY]
    assert len(date_range(SUNDAY, SUNDAY + timedelta(days=6))) == 7


def test_only_scheduled_weekday_has_availability():
    week = date_range(SUNDAY, SUNDAY + timedelta(days=6))

    summary = summarize_dates(week, [MONDAY_BLOCK], 50, {})

    assert [d.date for d in summary if d.has_availability] == [MONDAY]


def test_fully_booked_day_has_no_availability():
    summary = summarize_dates([MONDAY], [MONDAY_BLOCK], 50, {MONDAY: [(time(9), time(13))]})

    assert summary[0].has_availability is False


def test_summary_matches_slot_generator():
    days = date_range(SUNDAY, SUNDAY + timedelta(days=13))
    booked = {MONDAY: [(time(9), time(11, 30))], MONDAY + timedelta(days=7): [(time(11, 30), time(12, 20))]}

    summary = summarize_dates(days, [MONDAY_BLOCK], 50, booked, not_before=NOW)

    for entry in summary:
        slots = generate_slots(entry.date, [MONDAY_BLOCK], 50, booked.get(entry.date, ()), NOW)
        assert entry.has_availability == bool(bookable_slots(slots))


async def test_no_schedule_means_all_false(session, service):
    result = await compute_date_availability(session, service, SUNDAY, SUNDAY + timedelta(days=13), 30, NOW)

    assert len(result) == 14
    assert not any(d.has_availability for d in result)


async def test_inactive_service_means_all_false(session, professional, service, monday_block):
    service.status = ServiceStatus.INACTIVE
    await session.commit()

    result = await compute_date_availability(session, service, SUNDAY, SUNDAY + timedelta(days=6), 30, NOW)

    assert not any(d.has_availability for d in result)


async def test_calendar_for_two_weeks(session, professional, service, monday_block):
    await make_block(session, professional, 3, time(14), time(14, 30))  # too short for 50 minutes

    result = await compute_date_availability(session, service, SUNDAY, SUNDAY + timedelta(days=13), 30, NOW)

    assert [d.date for d in result if d.has_availability] == [MONDAY, MONDAY + timedelta(days=7)]


async def test_window_errors_propagate(session, service):
    with pytest.raises(ValueError):
        await compute_date_availability(session, service, MONDAY, SUNDAY, 30, NOW)


def test_summary_stops_at_horizon():
    days = [MONDAY + timedelta(days=7 * i) for i in range(3)]

    summary = summarize_dates(days, [MONDAY_BLOCK], 50, {}, not_after=MONDAY + timedelta(days=7))

    assert [d.has_availability for d in summary] == [True, True, False]


async def test_calendar_is_false_past_booking_horizon(session, service, monday_block):
    start = NOW.date() + timedelta(days=10)

    result = await compute_date_availability(session, service, start, start + timedelta(days=30), 30, NOW)

    assert [d.date for d in result if d.has_availability] == [
        date(2026, 3, 16),
        date(2026, 3, 23),
        date(2026, 3, 30),
    ]
    assert date(2026, 4, 6) in [d.date for d in result]
