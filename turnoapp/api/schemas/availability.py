from datetime import date

from pydantic import BaseModel


class DateAvailabilityOut(BaseModel):
    date: date
    has_availability: bool


class AvailabilityDateResponse(BaseModel):
    professional_id: int
    service_id: int
    availability: list[DateAvailabilityOut]


class TimeSlot(BaseModel):
    start_time: str  # HH:MM
    end_time: str
    available: bool


class AvailabilitySlotResponse(BaseModel):
    professional_id: int
    service_id: int
    date: date
    service_duration: int
    slots: list[TimeSlot]
