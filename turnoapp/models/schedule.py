from datetime import datetime, time

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from turnoapp.core.clock import utc_naive_now


class WeeklyScheduleBlock(SQLModel, table=True):
    """Recurring availability window; day_of_week is 0=Sunday .. 6=Saturday."""

    __tablename__ = "weekly_schedule_blocks"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_schedule_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_schedule_time_order"),
    )

    id: int | None = Field(default=None, primary_key=True)
    professional_id: int = Field(foreign_key="professionals.id", index=True)
    day_of_week: int = Field(index=True)
    start_time: time
    end_time: time
    active: bool = True
    created_at: datetime = Field(default_factory=utc_naive_now)
