from datetime import date

from pydantic import BaseModel, Field

from turnoapp.api.schemas.common import MinuteTime
from turnoapp.models.appointment import AppointmentStatus


class CreateAppointmentRequest(BaseModel):
    service_id: int
    date: date
    start_time: MinuteTime
    notes: str | None = Field(default=None, max_length=1000)


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus


class DepositCheckoutResponse(BaseModel):
    """Returned with 202 when the service needs a deposit; no appointment exists yet."""

    checkout_id: str
    checkout_url: str
    checkout_token: str
    deposit_amount: float
    service_id: int
    date: date
    start_time: str
