import random
from datetime import time, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from conftest import MONDAY, NOW, make_service, make_user
from turnoapp.models.appointment import Appointment, AppointmentStatus
from turnoapp.models.service import ServiceStatus
from turnoapp.services.appointment_service import commit_appointment, get_appointments
from turnoapp.services.booking_service import (
    BookingError,
    BookingErrorKind,
    DepositCheckout,
    complete_deposit_booking,
    request_booking,
)
from turnoapp.services.payment_service import SimulatedPaymentGateway, decode_checkout_token
from turnoapp.services.slot_service import overlaps, to_minutes

gateway = SimulatedPaymentGateway(base_url="http://pay.test/checkout")


async def count_appointments(session) -> int:
    result = await session.execute(select(func.count()).select_from(Appointment))
    return result.scalar_one()


async def book(session, client, service, start, day=MONDAY, now=NOW, notes=None):
    return await request_booking(session, client, service.id, day, start, notes, now, gateway)


async def test_no_deposit_confirms_immediately(session, client_user, service, monday_block):
    result = await book(session, client_user, service, time(9, 50), notes="first visit")

    assert isinstance(result, Appointment)
    assert result.status == AppointmentStatus.CONFIRMED
    assert (result.start_time, result.end_time) == (time(9, 50), time(10, 40))
    assert result.deposit_amount == 0
    assert result.notes == "first visit"
    assert await count_appointments(session) == 1


async def test_same_slot_cannot_be_booked_twice(session, client_user, other_client, service, monday_block):
    assert isinstance(await book(session, client_user, service, time(9)), Appointment)

    result = await book(session, other_client, service, time(9))

    assert isinstance(result, BookingError)
    assert result.kind == BookingErrorKind.SLOT_NO_LONGER_AVAILABLE
    assert await count_appointments(session) == 1


async def test_start_off_the_grid_is_rejected(session, client_user, service, monday_block):
    result = await book(session, client_user, service, time(9, 10))

    assert result.kind == BookingErrorKind.SLOT_NO_LONGER_AVAILABLE


async def test_elapsed_slot_is_rejected(session, client_user, service, monday_block):
    result = await book(session, client_user, service, time(9), now=NOW.replace(day=2, hour=9, minute=30))

    assert result.kind == BookingErrorKind.SLOT_NO_LONGER_AVAILABLE


async def test_anonymous_and_non_client_callers_rejected(session, professional_user, service, monday_block):
    for caller in (None, professional_user):
        result = await book(session, caller, service, time(9))
        assert result.kind == BookingErrorKind.UNAUTHENTICATED_CLIENT
    assert await count_appointments(session) == 0


async def test_unknown_service(session, client_user, monday_block):
    result = await request_booking(session, client_user, 9999, MONDAY, time(9), None, NOW, gateway)

    assert result.kind == BookingErrorKind.SERVICE_NOT_FOUND


async def test_inactive_service(session, client_user, service, monday_block):
    service.status = ServiceStatus.INACTIVE
    await session.commit()

    result = await book(session, client_user, service, time(9))

    assert result.kind == BookingErrorKind.SERVICE_INACTIVE


@pytest.mark.parametrize("offset_days", [-1, 31])
async def test_dates_outside_horizon(session, client_user, service, monday_block, offset_days):
    result = await book(session, client_user, service, time(9), day=NOW.date() + timedelta(days=offset_days))

    assert result.kind == BookingErrorKind.DATE_OUT_OF_HORIZON


async def test_deposit_service_creates_nothing_until_paid(session, client_user, deposit_service, monday_block):
    result = await book(session, client_user, deposit_service, time(10, 40))

    assert isinstance(result, DepositCheckout)
    assert result.deposit_amount == 50.0
    assert result.checkout_url.startswith("http://pay.test/checkout?")
    assert await count_appointments(session) == 0

    pending, checkout_id = decode_checkout_token(result.checkout_token)
    assert checkout_id == result.checkout_id
    assert (pending.client_id, pending.date, pending.start_time) == (client_user.id, MONDAY, time(10, 40))


async def test_paid_deposit_commits_exactly_once(session, client_user, deposit_service, monday_block):
    checkout = await book(session, client_user, deposit_service, time(10, 40))

    first = await complete_deposit_booking(session, checkout.checkout_token, NOW)
    again = await complete_deposit_booking(session, checkout.checkout_token, NOW)

    assert isinstance(first, Appointment)
    assert first.deposit_amount == 50.0
    assert first.payment_reference == checkout.checkout_id
    assert again.id == first.id
    assert await count_appointments(session) == 1


async def test_slot_is_not_held_during_payment(session, client_user, other_client, deposit_service, monday_block):
    slow = await book(session, client_user, deposit_service, time(9))
    fast = await book(session, other_client, deposit_service, time(9))
    assert isinstance(await complete_deposit_booking(session, fast.checkout_token, NOW), Appointment)

    result = await complete_deposit_booking(session, slow.checkout_token, NOW)

    assert result.kind == BookingErrorKind.SLOT_NO_LONGER_AVAILABLE
    assert await count_appointments(session) == 1


async def test_tampered_checkout_token(session, client_user, deposit_service, monday_block):
    checkout = await book(session, client_user, deposit_service, time(9))

    result = await complete_deposit_booking(session, checkout.checkout_token + "x", NOW)

    assert result.kind == BookingErrorKind.INVALID_CHECKOUT


async def test_commit_rejects_overlapping_range(session, client_user, service, professional):
    kwargs = dict(professional_id=professional.id, client_id=client_user.id, service_id=service.id, day=MONDAY)
    assert await commit_appointment(session, start_time=time(9), end_time=time(9, 50), **kwargs) is not None

    assert await commit_appointment(session, start_time=time(9, 30), end_time=time(10, 20), **kwargs) is None
    assert await commit_appointment(session, start_time=time(9, 50), end_time=time(10, 40), **kwargs) is not None


async def test_storage_rejects_duplicate_live_start(session, client_user, service, professional):
    for _ in range(2):
        session.add(
            Appointment(
                professional_id=professional.id,
                client_id=client_user.id,
                service_id=service.id,
                date=MONDAY,
                start_time=time(9),
                end_time=time(9, 50),
            )
        )
    with pytest.raises(IntegrityError):
        await session.flush()


async def test_cancelled_appointment_frees_its_start(session, client_user, service, professional):
    session.add(
        Appointment(
            professional_id=professional.id,
            client_id=client_user.id,
            service_id=service.id,
            date=MONDAY,
            start_time=time(9),
            end_time=time(9, 50),
            status=AppointmentStatus.CANCELLED,
        )
    )
    await session.commit()

    result = await commit_appointment(
        session,
        professional_id=professional.id,
        client_id=client_user.id,
        service_id=service.id,
        day=MONDAY,
        start_time=time(9),
        end_time=time(9, 50),
    )

    assert result is not None


async def test_random_booking_attempts_never_overlap(session, professional, monday_block):
    rng = random.Random(20260301)
    short = await make_service(session, professional, duration_minutes=30)
    long = await make_service(session, professional, duration_minutes=50)
    clients = [await make_user(session, f"client{i}@example.com") for i in range(3)]
    days = [MONDAY, MONDAY + timedelta(days=7)]
    starts = sorted({time(9 + m // 60, m % 60) for m in list(range(0, 240, 30)) + list(range(0, 240, 50))})

    for _ in range(60):
        await request_booking(
            session,
            rng.choice(clients),
            rng.choice([short, long]).id,
            rng.choice(days),
            rng.choice(starts),
            None,
            NOW,
            gateway,
        )
    await session.commit()

    rows = (await session.execute(select(Appointment))).scalars().all()
    assert rows
    for i, a in enumerate(rows):
        for b in rows[i + 1:]:
            if a.date == b.date:
                assert not overlaps(
                    to_minutes(a.start_time), to_minutes(a.end_time), to_minutes(b.start_time), to_minutes(b.end_time)
                )


async def test_ledger_lists_live_appointments_by_start(session, client_user, other_client, service, monday_block):
    await book(session, client_user, service, time(11, 30))
    early = await book(session, other_client, service, time(9))
    early.status = AppointmentStatus.CANCELLED
    await book(session, client_user, service, time(9, 50))
    await session.commit()

    ledger = await get_appointments(session, service.professional_id, MONDAY)

    assert [a.start_time for a in ledger] == [time(9, 50), time(11, 30)]


async def test_commit_with_stored_payment_reference_returns_existing(session, client_user, service, professional):
    kwargs = dict(
        professional_id=professional.id,
        client_id=client_user.id,
        service_id=service.id,
        day=MONDAY,
        start_time=time(9),
        end_time=time(9, 50),
        payment_reference="chk_123",
    )

    first = await commit_appointment(session, **kwargs)
    again = await commit_appointment(session, **kwargs)

    assert first is not None
    assert again.id == first.id
    assert await count_appointments(session) == 1
