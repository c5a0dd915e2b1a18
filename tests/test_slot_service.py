from datetime import date, datetime, time

import pytest

from conftest import MONDAY, NOW, make_block
from turnoapp.models.appointment import Appointment
from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.services.slot_service import (
    add_minutes,
    day_of_week,
    from_minutes,
    generate_slots,
    get_available_slots_for_date,
    get_slots_for_date,
    overlaps,
)


def block(day: int, start: time, end: time, active: bool = True) -> WeeklyScheduleBlock:
    return WeeklyScheduleBlock(professional_id=1, day_of_week=day, start_time=start, end_time=end, active=active)


def starts(slots) -> list[str]:
    return [s.start_time.strftime("%H:%M") for s in slots]


def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2026, 3, 1)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2026, 3, 7)) == 6


def test_overlap_is_half_open():
    assert overlaps(540, 600, 570, 630)
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)


def test_minutes_past_midnight_rejected():
    assert add_minutes(time(23, 0), 59) == time(23, 59)
    with pytest.raises(ValueError):
        from_minutes(24 * 60)


def test_fifty_minute_service_in_four_hour_block():
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 50, [])

    assert starts(slots) == ["09:00", "09:50", "10:40", "11:30"]
    assert slots[-1].end_time == time(12, 20)
    assert all(s.available for s in slots)


def test_trailing_partial_slot_dropped():
    slots = generate_slots(MONDAY, [block(1, time(15), time(18))], 60, [])

    assert starts(slots) == ["15:00", "16:00", "17:00"]


def test_block_shorter_than_service_yields_nothing():
    assert generate_slots(MONDAY, [block(1, time(9), time(9, 30))], 50, []) == []


def test_other_weekday_and_inactive_blocks_ignored():
    blocks = [block(2, time(9), time(13)), block(1, time(14), time(16), active=False)]

    assert generate_slots(MONDAY, blocks, 30, []) == []


def test_booked_range_marks_overlapping_slot_only():
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 60, [(time(10), time(10, 50))])

    by_start = {s.start_time: s.available for s in slots}
    assert by_start == {time(9): True, time(10): False, time(11): True, time(12): True}


def test_back_to_back_with_booking_on_the_grid():
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 50, [(time(9, 50), time(10, 40))])

    assert [s.available for s in slots] == [True, False, True, True]


def test_off_grid_booking_on_fifty_minute_grid():
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 50, [(time(10), time(10, 50))])

    assert [(s.start_time, s.available) for s in slots] == [
        (time(9), True),
        (time(9, 50), False),
        (time(10, 40), False),
        (time(11, 30), True),
    ]


def test_booking_straddling_two_slots_blocks_both():
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 60, [(time(9, 30), time(10, 30))])

    assert [s.available for s in slots] == [False, False, True, True]


def test_blocks_are_tiled_in_input_order():
    blocks = [block(1, time(14), time(15)), block(1, time(9), time(10))]

    assert starts(generate_slots(MONDAY, blocks, 30, [])) == ["14:00", "14:30", "09:00", "09:30"]


def test_same_inputs_same_output():
    blocks = [block(1, time(9), time(13))]
    booked = [(time(9, 50), time(10, 40))]

    assert generate_slots(MONDAY, blocks, 50, booked) == generate_slots(MONDAY, blocks, 50, booked)


def test_slots_at_or_before_now_are_unavailable():
    now = datetime.combine(MONDAY, time(9, 50))
    slots = generate_slots(MONDAY, [block(1, time(9), time(13))], 50, [], not_before=now)

    assert [s.available for s in slots] == [False, False, True, True]


def test_past_date_fully_unavailable_and_future_untouched():
    blocks = [block(1, time(9), time(13))]
    after_monday = datetime(2026, 3, 3, 8, 0)
    before_monday = datetime(2026, 3, 1, 23, 0)

    assert not any(s.available for s in generate_slots(MONDAY, blocks, 50, [], not_before=after_monday))
    assert all(s.available for s in generate_slots(MONDAY, blocks, 50, [], not_before=before_monday))


@pytest.mark.parametrize("duration", [0, -15])
def test_non_positive_duration_rejected(duration):
    with pytest.raises(ValueError):
        generate_slots(MONDAY, [block(1, time(9), time(13))], duration, [])


async def test_slots_for_date_reads_schedule_and_ledger(session, professional, service, client_user):
    await make_block(session, professional, 1, time(9), time(13))
    session.add(
        Appointment(
            professional_id=professional.id,
            client_id=client_user.id,
            service_id=service.id,
            date=MONDAY,
            start_time=time(9, 50),
            end_time=time(10, 40),
        )
    )
    await session.commit()

    full = await get_slots_for_date(session, service, MONDAY)
    available = await get_available_slots_for_date(session, service, MONDAY)

    assert [s.available for s in full] == [True, False, True, True]
    assert starts(available) == ["09:00", "10:40", "11:30"]


async def test_professional_without_schedule_has_no_slots(session, service):
    assert await get_slots_for_date(session, service, MONDAY) == []


def test_day_past_horizon_fully_unavailable():
    blocks = [block(1, time(9), time(13))]

    assert not any(s.available for s in generate_slots(MONDAY, blocks, 50, [], not_after=date(2026, 3, 1)))
    assert all(s.available for s in generate_slots(MONDAY, blocks, 50, [], not_after=MONDAY))


async def test_slots_for_date_respect_booking_horizon(session, service, monday_block):
    last_monday = date(2026, 3, 30)
    first_monday_out = date(2026, 4, 6)  # horizon ends 2026-03-31 for the test clock

    inside = await get_slots_for_date(session, service, last_monday, now=NOW)
    outside = await get_slots_for_date(session, service, first_monday_out, now=NOW)
    bookable = await get_available_slots_for_date(session, service, first_monday_out, now=NOW)

    assert all(s.available for s in inside)
    assert len(outside) == 4
    assert not any(s.available for s in outside)
    assert bookable == []
