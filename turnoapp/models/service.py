from enum import Enum

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


class ServiceStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Service(SQLModel, table=True):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint(
            "deposit_percentage >= 0 AND deposit_percentage <= 100",
            name="ck_services_deposit_range",
        ),
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
    )

    id: int | None = Field(default=None, primary_key=True)
    professional_id: int = Field(foreign_key="professionals.id", index=True)
    name: str
    description: str | None = None
    price: float = 0.0
    duration_minutes: int
    deposit_percentage: int = 0  # 0 means no deposit
    status: ServiceStatus = Field(default=ServiceStatus.ACTIVE, index=True)

    @property
    def requires_deposit(self) -> bool:
        return self.deposit_percentage > 0

    @property
    def deposit_amount(self) -> float:
        return round(self.price * self.deposit_percentage / 100, 2)


class ServicePublic(SQLModel):
    id: int
    professional_id: int
    name: str
    description: str | None = None
    price: float
    duration_minutes: int
    deposit_percentage: int
    status: ServiceStatus
