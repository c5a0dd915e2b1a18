import logging
from collections import defaultdict
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.models.appointment import Appointment, AppointmentPublic, AppointmentStatus
from turnoapp.models.professional import Professional

logger = logging.getLogger(__name__)


def _live():
    return Appointment.status != AppointmentStatus.CANCELLED


async def get_appointments(
    session: AsyncSession, professional_id: int, day: date
) -> list[Appointment]:
    """Non-cancelled appointments of a professional on one date, by start time."""
    result = await session.execute(
        select(Appointment)
        .where(
            Appointment.professional_id == professional_id,
            Appointment.date == day,
            _live(),
        )
        .order_by(Appointment.start_time)
    )
    return list(result.scalars().all())


async def get_booked_ranges(
    session: AsyncSession, professional_id: int, day: date
) -> list[tuple[time, time]]:
    result = await session.execute(
        select(Appointment.start_time, Appointment.end_time).where(
            Appointment.professional_id == professional_id,
            Appointment.date == day,
            _live(),
        )
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_booked_ranges_between(
    session: AsyncSession, professional_id: int, start_date: date, end_date: date
) -> dict[date, list[tuple[time, time]]]:
    """Busy ranges grouped by date for an inclusive date window (one query)."""
    result = await session.execute(
        select(Appointment.date, Appointment.start_time, Appointment.end_time).where(
            Appointment.professional_id == professional_id,
            Appointment.date >= start_date,
            Appointment.date <= end_date,
            _live(),
        )
    )
    by_date: dict[date, list[tuple[time, time]]] = defaultdict(list)
    for d, start, end in result.all():
        by_date[d].append((start, end))
    return by_date


async def get_appointment(session: AsyncSession, appointment_id: int, for_update: bool = False) -> Appointment | None:
    q = select(Appointment).where(Appointment.id == appointment_id)
    if for_update:
        q = q.with_for_update()
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def get_appointment_by_payment_reference(
    session: AsyncSession, payment_reference: str
) -> Appointment | None:
    result = await session.execute(
        select(Appointment).where(Appointment.payment_reference == payment_reference)
    )
    return result.scalar_one_or_none()


async def list_appointments_for_professional(
    session: AsyncSession,
    professional_id: int,
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Appointment]:
    q = (
        select(Appointment)
        .where(Appointment.professional_id == professional_id)
        .order_by(Appointment.date, Appointment.start_time)
    )
    if from_date:
        q = q.where(Appointment.date >= from_date)
    if to_date:
        q = q.where(Appointment.date <= to_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_appointments_for_client(
    session: AsyncSession, client_id: int, from_date: date | None = None
) -> list[Appointment]:
    q = (
        select(Appointment)
        .where(Appointment.client_id == client_id)
        .order_by(Appointment.date, Appointment.start_time)
    )
    if from_date:
        q = q.where(Appointment.date >= from_date)
    result = await session.execute(q)
    return list(result.scalars().all())


async def commit_appointment(
    session: AsyncSession,
    *,
    professional_id: int,
    client_id: int,
    service_id: int,
    day: date,
    start_time: time,
    end_time: time,
    notes: str | None = None,
    deposit_amount: float = 0.0,
    payment_reference: str | None = None,
) -> Appointment | None:
    """Check-and-insert under a per-professional lock. None means the range is taken.

    The professional row is locked so concurrent commits for the same agenda
    serialize; the overlap re-read below then sees the winner's row. The
    storage constraints are the last line: a violation also returns None.
    A commit carrying a `payment_reference` that is already stored returns
    that appointment instead, so retried payment callbacks converge.
    """
    await session.execute(
        select(Professional.id).where(Professional.id == professional_id).with_for_update()
    )
    if payment_reference is not None:
        existing = await get_appointment_by_payment_reference(session, payment_reference)
        if existing is not None:
            return existing
    clash = await session.execute(
        select(Appointment.id).where(
            Appointment.professional_id == professional_id,
            Appointment.date == day,
            _live(),
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
    )
    if clash.first() is not None:
        logger.info(
            "Commit rejected: professional=%s %s %s-%s overlaps an existing appointment",
            professional_id, day, start_time, end_time,
        )
        return None

    appointment = Appointment(
        professional_id=professional_id,
        client_id=client_id,
        service_id=service_id,
        date=day,
        start_time=start_time,
        end_time=end_time,
        status=AppointmentStatus.CONFIRMED,
        notes=notes,
        deposit_amount=deposit_amount,
        payment_reference=payment_reference,
    )
    session.add(appointment)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        if payment_reference is not None:
            existing = await get_appointment_by_payment_reference(session, payment_reference)
            if existing is not None:
                return existing
        logger.warning(
            "Commit rejected by storage constraint: professional=%s %s %s",
            professional_id, day, start_time,
        )
        return None
    await session.refresh(appointment)
    return appointment


def to_public(a: Appointment, refund_percentage: int | None = None) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        professional_id=a.professional_id,
        client_id=a.client_id,
        service_id=a.service_id,
        date=a.date,
        start_time=a.start_time.strftime("%H:%M"),
        end_time=a.end_time.strftime("%H:%M"),
        status=a.status,
        notes=a.notes,
        deposit_amount=a.deposit_amount,
        created_at=a.created_at,
        updated_at=a.updated_at,
        cancelled_by=a.cancelled_by,
        refund_percentage=refund_percentage,
    )
