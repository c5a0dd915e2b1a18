from pydantic import BaseModel, EmailStr

from turnoapp.models.professional import ProfessionalPublic


class ProfessionalProfile(ProfessionalPublic):
    """The signed-in professional's own profile."""

    user_id: int
    email: EmailStr


class ProfessionalPage(BaseModel):
    content: list[ProfessionalPublic]
    total_elements: int
    total_pages: int
    number: int  # zero-based page index
    size: int


class FilterOptions(BaseModel):
    professions: list[str]
    provinces: list[str]
    cities: list[str]
