import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_now, get_session
from turnoapp.api.routes.appointments import booking_http_error
from turnoapp.api.schemas.payment import DepositCallbackAck, DepositCallbackRequest
from turnoapp.models.appointment import AppointmentPublic
from turnoapp.services.appointment_service import to_public
from turnoapp.services.booking_service import BookingError, complete_deposit_booking
from turnoapp.services.payment_service import decode_checkout_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/deposit/callback",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_200_OK: {"model": DepositCallbackAck}},
)
async def deposit_callback(
    body: DepositCallbackRequest,
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Payment collaborator reports the outcome of a deposit checkout."""
    if not body.succeeded:
        decoded = decode_checkout_token(body.checkout_token)
        logger.info(
            "Deposit checkout %s did not complete; nothing booked",
            decoded[1] if decoded else "<invalid token>",
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "abandoned"})

    result = await complete_deposit_booking(session, body.checkout_token, now)
    if isinstance(result, BookingError):
        raise booking_http_error(result)
    return to_public(result)
