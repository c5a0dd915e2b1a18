import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import (
    get_actor,
    get_current_client,
    get_current_professional,
    get_now,
    get_optional_user,
    get_session,
)
from turnoapp.api.schemas.appointment import (
    CreateAppointmentRequest,
    DepositCheckoutResponse,
    UpdateAppointmentStatusRequest,
)
from turnoapp.models.appointment import AppointmentPublic, AppointmentStatus
from turnoapp.models.professional import Professional
from turnoapp.models.user import User
from turnoapp.services.appointment_service import (
    list_appointments_for_client,
    list_appointments_for_professional,
    to_public,
)
from turnoapp.services.booking_service import (
    BookingError,
    BookingErrorKind,
    DepositCheckout,
    request_booking,
)
from turnoapp.services.lifecycle_service import (
    Actor,
    LifecycleError,
    LifecycleErrorKind,
    refund_percentage,
    transition_appointment,
)
from turnoapp.services.payment_service import PaymentGateway, get_payment_gateway
from turnoapp.services.slot_service import format_hhmm

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])

BOOKING_ERROR_STATUS = {
    BookingErrorKind.SLOT_NO_LONGER_AVAILABLE: status.HTTP_409_CONFLICT,
    BookingErrorKind.SERVICE_INACTIVE: status.HTTP_400_BAD_REQUEST,
    BookingErrorKind.SERVICE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.DATE_OUT_OF_HORIZON: status.HTTP_400_BAD_REQUEST,
    BookingErrorKind.UNAUTHENTICATED_CLIENT: status.HTTP_401_UNAUTHORIZED,
    BookingErrorKind.INVALID_CHECKOUT: status.HTTP_400_BAD_REQUEST,
}

LIFECYCLE_ERROR_STATUS = {
    LifecycleErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LifecycleErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    LifecycleErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    LifecycleErrorKind.NOT_YET_ALLOWED: status.HTTP_409_CONFLICT,
}


def booking_http_error(error: BookingError) -> HTTPException:
    return HTTPException(
        status_code=BOOKING_ERROR_STATUS[error.kind],
        detail={"error": error.kind.value, "message": error.message},
    )


def _checkout_response(checkout: DepositCheckout) -> DepositCheckoutResponse:
    return DepositCheckoutResponse(
        checkout_id=checkout.checkout_id,
        checkout_url=checkout.checkout_url,
        checkout_token=checkout.checkout_token,
        deposit_amount=checkout.deposit_amount,
        service_id=checkout.service_id,
        date=checkout.date,
        start_time=format_hhmm(checkout.start_time),
    )


@router.post(
    "",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_202_ACCEPTED: {"model": DepositCheckoutResponse}},
)
async def create_appointment(
    body: CreateAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
    now: datetime = Depends(get_now),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Book a slot. 201 with the appointment, or 202 with a deposit checkout to pay first."""
    result = await request_booking(
        session,
        current_user,
        body.service_id,
        body.date,
        body.start_time,
        body.notes,
        now,
        gateway,
    )
    if isinstance(result, BookingError):
        raise booking_http_error(result)
    if isinstance(result, DepositCheckout):
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=_checkout_response(result).model_dump(mode="json"),
        )
    return to_public(result)


@router.get("", response_model=list[AppointmentPublic])
async def list_professional_appointments(
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> list[AppointmentPublic]:
    appointments = await list_appointments_for_professional(session, professional.id, from_date, to_date)
    return [to_public(a) for a in appointments]


@router.get("/client", response_model=list[AppointmentPublic])
async def list_my_appointments(
    from_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
    client: User = Depends(get_current_client),
) -> list[AppointmentPublic]:
    appointments = await list_appointments_for_client(session, client.id, from_date=from_date)
    return [to_public(a) for a in appointments]


@router.patch("/{appointment_id}/status", response_model=AppointmentPublic)
async def update_appointment_status(
    appointment_id: int,
    body: UpdateAppointmentStatusRequest,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    now: datetime = Depends(get_now),
) -> AppointmentPublic:
    result = await transition_appointment(session, appointment_id, actor, body.status, now)
    if isinstance(result, LifecycleError):
        raise HTTPException(
            status_code=LIFECYCLE_ERROR_STATUS[result.kind],
            detail={"error": result.kind.value, "message": result.message},
        )
    refund = None
    if result.status == AppointmentStatus.CANCELLED and result.deposit_amount > 0:
        refund = refund_percentage(result, now)
    return to_public(result, refund_percentage=refund)
