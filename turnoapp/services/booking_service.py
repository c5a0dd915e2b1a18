"""Booking orchestrator: validate a requested slot and either commit it or hand off for a deposit.

Failures come back as `BookingError` values rather than exceptions; losing a race
for a slot is a routine outcome the caller has to handle.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.core.config import settings
from turnoapp.models.appointment import Appointment
from turnoapp.models.service import Service, ServiceStatus
from turnoapp.models.user import User, UserRole
from turnoapp.services.appointment_service import (
    commit_appointment,
    get_appointment_by_payment_reference,
)
from turnoapp.services.catalog_service import get_service_by_id
from turnoapp.services.payment_service import (
    PaymentGateway,
    PendingBooking,
    decode_checkout_token,
    encode_checkout_token,
)
from turnoapp.services.slot_service import add_minutes, get_available_slots_for_date

logger = logging.getLogger(__name__)


class BookingErrorKind(str, Enum):
    SLOT_NO_LONGER_AVAILABLE = "SlotNoLongerAvailable"
    SERVICE_INACTIVE = "ServiceInactive"
    SERVICE_NOT_FOUND = "ServiceNotFound"
    DATE_OUT_OF_HORIZON = "DateOutOfHorizon"
    UNAUTHENTICATED_CLIENT = "UnauthenticatedClient"
    INVALID_CHECKOUT = "InvalidCheckout"


@dataclass(frozen=True)
class BookingError:
    kind: BookingErrorKind
    message: str


@dataclass(frozen=True)
class DepositCheckout:
    """Deposit required: no appointment exists yet, the client is sent to pay."""

    checkout_id: str
    checkout_url: str
    checkout_token: str
    deposit_amount: float
    service_id: int
    date: date
    start_time: time


BookingResult = Appointment | DepositCheckout | BookingError


def within_horizon(day: date, today: date, horizon_days: int) -> bool:
    return today <= day <= today + timedelta(days=horizon_days)


async def _check_bookable(
    session: AsyncSession,
    service: Service | None,
    day: date,
    start_time: time,
    now: datetime,
) -> BookingError | None:
    """Every precondition except identity, re-checked at commit time."""
    if service is None:
        return BookingError(BookingErrorKind.SERVICE_NOT_FOUND, "Service not found")
    if service.status != ServiceStatus.ACTIVE:
        return BookingError(BookingErrorKind.SERVICE_INACTIVE, "Service is not offered for booking")
    if not within_horizon(day, now.date(), settings.booking_horizon_days):
        return BookingError(
            BookingErrorKind.DATE_OUT_OF_HORIZON,
            f"Date must be between today and {settings.booking_horizon_days} days ahead",
        )
    available = await get_available_slots_for_date(session, service, day, now)
    if start_time not in {s.start_time for s in available}:
        return BookingError(
            BookingErrorKind.SLOT_NO_LONGER_AVAILABLE,
            "That time is no longer available; pick another slot",
        )
    return None


async def _commit(
    session: AsyncSession,
    client_id: int,
    service: Service,
    day: date,
    start_time: time,
    notes: str | None,
    deposit_amount: float = 0.0,
    payment_reference: str | None = None,
) -> Appointment | BookingError:
    appointment = await commit_appointment(
        session,
        professional_id=service.professional_id,
        client_id=client_id,
        service_id=service.id,
        day=day,
        start_time=start_time,
        end_time=add_minutes(start_time, service.duration_minutes),
        notes=notes,
        deposit_amount=deposit_amount,
        payment_reference=payment_reference,
    )
    if appointment is None:
        return BookingError(
            BookingErrorKind.SLOT_NO_LONGER_AVAILABLE,
            "That time was just booked by someone else; pick another slot",
        )
    logger.info(
        "Appointment %s confirmed: professional=%s client=%s %s %s",
        appointment.id, appointment.professional_id, client_id, day, start_time,
    )
    return appointment


async def request_booking(
    session: AsyncSession,
    client: User | None,
    service_id: int,
    day: date,
    start_time: time,
    notes: str | None,
    now: datetime,
    gateway: PaymentGateway,
) -> BookingResult:
    if client is None or client.role != UserRole.CLIENT:
        return BookingError(BookingErrorKind.UNAUTHENTICATED_CLIENT, "Sign in as a client to book")

    service = await get_service_by_id(session, service_id)
    error = await _check_bookable(session, service, day, start_time, now)
    if error:
        return error

    if not service.requires_deposit:
        return await _commit(session, client.id, service, day, start_time, notes)

    pending = PendingBooking(
        client_id=client.id,
        professional_id=service.professional_id,
        service_id=service.id,
        date=day,
        start_time=start_time,
        deposit_amount=service.deposit_amount,
        notes=notes,
    )
    checkout = await gateway.create_checkout(pending)
    logger.info(
        "Deposit hand-off %s: client=%s service=%s %s %s amount=%.2f",
        checkout.checkout_id, client.id, service.id, day, start_time, pending.deposit_amount,
    )
    return DepositCheckout(
        checkout_id=checkout.checkout_id,
        checkout_url=checkout.checkout_url,
        checkout_token=encode_checkout_token(pending, checkout.checkout_id),
        deposit_amount=pending.deposit_amount,
        service_id=service.id,
        date=day,
        start_time=start_time,
    )


async def complete_deposit_booking(
    session: AsyncSession, checkout_token: str, now: datetime
) -> Appointment | BookingError:
    """Payment-success callback: run the same validation and commit as the no-deposit path."""
    decoded = decode_checkout_token(checkout_token)
    if decoded is None:
        return BookingError(BookingErrorKind.INVALID_CHECKOUT, "Invalid or expired checkout")
    pending, checkout_id = decoded

    # Payment callbacks get retried; the first one to commit wins
    existing = await get_appointment_by_payment_reference(session, checkout_id)
    if existing is not None:
        return existing

    client = await session.get(User, pending.client_id)
    if client is None or client.role != UserRole.CLIENT:
        return BookingError(BookingErrorKind.UNAUTHENTICATED_CLIENT, "Unknown client for this checkout")

    service = await get_service_by_id(session, pending.service_id)
    error = await _check_bookable(session, service, pending.date, pending.start_time, now)
    if error:
        logger.warning("Paid checkout %s could not be committed: %s", checkout_id, error.kind.value)
        return error
    return await _commit(
        session,
        client.id,
        service,
        pending.date,
        pending.start_time,
        pending.notes,
        deposit_amount=pending.deposit_amount,
        payment_reference=checkout_id,
    )
