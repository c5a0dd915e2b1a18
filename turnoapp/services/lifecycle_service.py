import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.core.clock import utc_naive_now
from turnoapp.models.appointment import ActorRole, Appointment, AppointmentStatus
from turnoapp.services.appointment_service import get_appointment

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW, AppointmentStatus.CANCELLED}
)

# Transitions out of CONFIRMED and who may trigger them
ALLOWED_ACTORS: dict[AppointmentStatus, frozenset[ActorRole]] = {
    AppointmentStatus.CANCELLED: frozenset({ActorRole.CLIENT, ActorRole.PROFESSIONAL}),
    AppointmentStatus.COMPLETED: frozenset({ActorRole.PROFESSIONAL}),
    AppointmentStatus.NO_SHOW: frozenset({ActorRole.PROFESSIONAL}),
}

REQUIRES_PAST_DATE = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW})


class LifecycleErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_TRANSITION = "InvalidTransition"
    NOT_YET_ALLOWED = "NotYetAllowed"


@dataclass(frozen=True)
class LifecycleError:
    kind: LifecycleErrorKind
    message: str


@dataclass(frozen=True)
class Actor:
    role: ActorRole
    user_id: int
    professional_id: int | None = None


def owns(actor: Actor, appointment: Appointment) -> bool:
    if actor.role == ActorRole.CLIENT:
        return appointment.client_id == actor.user_id
    return actor.professional_id is not None and appointment.professional_id == actor.professional_id


def check_transition(
    appointment: Appointment, actor: Actor, new_status: AppointmentStatus, today: date
) -> LifecycleError | None:
    if not owns(actor, appointment):
        return LifecycleError(LifecycleErrorKind.FORBIDDEN, "Not your appointment")
    if appointment.status in TERMINAL_STATES:
        return LifecycleError(
            LifecycleErrorKind.INVALID_TRANSITION,
            f"Appointment is already {appointment.status.value}",
        )
    allowed = ALLOWED_ACTORS.get(new_status)
    if allowed is None:
        return LifecycleError(
            LifecycleErrorKind.INVALID_TRANSITION,
            f"Cannot move from {appointment.status.value} to {new_status.value}",
        )
    if actor.role not in allowed:
        return LifecycleError(
            LifecycleErrorKind.FORBIDDEN,
            f"Only the professional can mark an appointment {new_status.value}",
        )
    if new_status in REQUIRES_PAST_DATE and not appointment.date < today:
        return LifecycleError(
            LifecycleErrorKind.NOT_YET_ALLOWED,
            f"{new_status.value} can only be set once the appointment date has passed",
        )
    return None


def refund_percentage(appointment: Appointment, at: datetime) -> int:
    """Informational refund tier for a cancelled deposit; never enforced.

    More than 48h before the start: 100. Between 24h and 48h: 50. Under 24h: 0.
    """
    lead = datetime.combine(appointment.date, appointment.start_time) - at
    if lead > timedelta(hours=48):
        return 100
    if lead >= timedelta(hours=24):
        return 50
    return 0


async def transition_appointment(
    session: AsyncSession,
    appointment_id: int,
    actor: Actor,
    new_status: AppointmentStatus,
    now: datetime,
) -> Appointment | LifecycleError:
    appointment = await get_appointment(session, appointment_id, for_update=True)
    if appointment is None:
        return LifecycleError(LifecycleErrorKind.NOT_FOUND, "Appointment not found")

    error = check_transition(appointment, actor, new_status, now.date())
    if error:
        logger.info(
            "Transition %s -> %s on appointment %s rejected: %s",
            appointment.status.value, new_status.value, appointment_id, error.kind.value,
        )
        return error

    stamp = utc_naive_now()
    appointment.status = new_status
    appointment.updated_at = stamp
    if new_status == AppointmentStatus.CANCELLED:
        appointment.cancelled_at = stamp
        appointment.cancelled_by = actor.role
    session.add(appointment)
    await session.flush()
    await session.refresh(appointment)
    logger.info("Appointment %s is now %s (by %s)", appointment_id, new_status.value, actor.role.value)
    return appointment
