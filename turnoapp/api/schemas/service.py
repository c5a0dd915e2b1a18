from pydantic import BaseModel, Field, model_validator

from turnoapp.models.professional import ProfessionalPublic
from turnoapp.models.service import ServicePublic, ServiceStatus


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    price: float = Field(default=0.0, ge=0)
    duration_minutes: int = Field(gt=0, le=24 * 60)
    deposit_percentage: int = Field(default=0, ge=0, le=100)


class ServiceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    duration_minutes: int | None = Field(default=None, gt=0, le=24 * 60)
    deposit_percentage: int | None = Field(default=None, ge=0, le=100)
    status: ServiceStatus | None = None

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> "ServiceUpdate":
        for name in ("name", "price", "duration_minutes", "deposit_percentage", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PublicProfessionalResponse(BaseModel):
    """Landing page payload: the professional and the services open for booking."""

    professional: ProfessionalPublic
    services: list[ServicePublic]
