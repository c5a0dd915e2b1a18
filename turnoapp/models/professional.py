from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from turnoapp.core.clock import utc_naive_now


class ProfessionalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ProfessionalBase(SQLModel):
    first_name: str
    last_name: str
    profession: str
    phone: str | None = None
    province: str | None = Field(default=None, index=True)
    city: str | None = Field(default=None, index=True)
    custom_url: str = Field(unique=True, index=True)  # public landing page slug


class Professional(ProfessionalBase, table=True):
    __tablename__ = "professionals"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    status: ProfessionalStatus = Field(default=ProfessionalStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utc_naive_now)


class ProfessionalPublic(ProfessionalBase):
    id: int
    status: ProfessionalStatus
