import datetime as dt
from enum import Enum

from sqlalchemy import CheckConstraint, Index, text
from sqlmodel import Field, SQLModel

from turnoapp.core.clock import utc_naive_now


class AppointmentStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"
    CANCELLED = "CANCELLED"


class ActorRole(str, Enum):
    CLIENT = "CLIENT"
    PROFESSIONAL = "PROFESSIONAL"


_ACTIVE_ONLY = text("status <> 'CANCELLED'")


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        # One live appointment per professional start instant; PostgreSQL also gets
        # a range exclusion constraint in the migration.
        Index(
            "uq_appointments_active_start",
            "professional_id",
            "date",
            "start_time",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    professional_id: int = Field(foreign_key="professionals.id", index=True)
    client_id: int = Field(foreign_key="users.id", index=True)
    service_id: int = Field(foreign_key="services.id", index=True)
    date: dt.date = Field(index=True)
    start_time: dt.time
    end_time: dt.time  # start + duration at creation time; later service edits don't move it
    status: AppointmentStatus = Field(default=AppointmentStatus.CONFIRMED, index=True)
    notes: str | None = None
    deposit_amount: float = 0.0
    payment_reference: str | None = Field(default=None, unique=True)
    created_at: dt.datetime = Field(default_factory=utc_naive_now)
    updated_at: dt.datetime = Field(default_factory=utc_naive_now)
    cancelled_at: dt.datetime | None = None
    cancelled_by: ActorRole | None = None


class AppointmentPublic(SQLModel):
    id: int
    professional_id: int
    client_id: int
    service_id: int
    date: dt.date
    start_time: str  # HH:MM
    end_time: str
    status: AppointmentStatus
    notes: str | None = None
    deposit_amount: float
    created_at: dt.datetime
    updated_at: dt.datetime
    cancelled_by: ActorRole | None = None
    refund_percentage: int | None = None
