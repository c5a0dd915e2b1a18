from turnoapp.models.user import User, UserCreate, UserPublic, UserRole
from turnoapp.models.professional import Professional, ProfessionalPublic, ProfessionalStatus
from turnoapp.models.schedule import WeeklyScheduleBlock
from turnoapp.models.service import Service, ServicePublic, ServiceStatus
from turnoapp.models.appointment import (
    ActorRole,
    Appointment,
    AppointmentPublic,
    AppointmentStatus,
)

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "UserRole",
    "Professional",
    "ProfessionalPublic",
    "ProfessionalStatus",
    "WeeklyScheduleBlock",
    "Service",
    "ServicePublic",
    "ServiceStatus",
    "ActorRole",
    "Appointment",
    "AppointmentPublic",
    "AppointmentStatus",
]
