from pydantic import BaseModel, Field

from turnoapp.api.schemas.common import MinuteTime


class ScheduleBlockCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sunday
    start_time: MinuteTime
    end_time: MinuteTime
    active: bool = True


class ScheduleBlockUpdate(BaseModel):
    start_time: MinuteTime | None = None
    end_time: MinuteTime | None = None
    active: bool | None = None


class ScheduleBlockPublic(BaseModel):
    id: int
    professional_id: int
    day_of_week: int
    start_time: str  # HH:MM
    end_time: str
    active: bool
