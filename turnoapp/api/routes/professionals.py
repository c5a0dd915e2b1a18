import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_current_professional, get_session
from turnoapp.api.schemas.professional import FilterOptions, ProfessionalPage, ProfessionalProfile
from turnoapp.api.schemas.service import PublicProfessionalResponse
from turnoapp.models.professional import Professional, ProfessionalPublic
from turnoapp.models.user import User
from turnoapp.services.catalog_service import (
    get_active_professional_by_url,
    list_services,
    service_to_public,
)
from turnoapp.services.professional_service import (
    DEFAULT_PAGE_SIZE,
    get_filter_options,
    search_professionals,
)

router = APIRouter(prefix="/professionals", tags=["professionals"])


@router.get("/me", response_model=ProfessionalProfile)
async def my_profile(
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ProfessionalProfile:
    user = await session.get(User, professional.user_id)
    return ProfessionalProfile(
        **ProfessionalPublic.model_validate(professional, from_attributes=True).model_dump(),
        user_id=professional.user_id,
        email=user.email,
    )


@router.get("/public/search", response_model=ProfessionalPage)
async def search(
    profession: str | None = None,
    province: str | None = None,
    city: str | None = None,
    search: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> ProfessionalPage:
    found, total = await search_professionals(
        session, profession=profession, province=province, city=city, search=search, page=page, size=size
    )
    return ProfessionalPage(
        content=[ProfessionalPublic.model_validate(p, from_attributes=True) for p in found],
        total_elements=total,
        total_pages=math.ceil(total / size),
        number=page,
        size=size,
    )


@router.get("/public/filter-options", response_model=FilterOptions)
async def filter_options(session: AsyncSession = Depends(get_session)) -> FilterOptions:
    return FilterOptions(**await get_filter_options(session))


@router.get("/public/{custom_url}", response_model=PublicProfessionalResponse)
async def public_profile(
    custom_url: str,
    session: AsyncSession = Depends(get_session),
) -> PublicProfessionalResponse:
    professional = await get_active_professional_by_url(session, custom_url)
    if not professional:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Professional not found")
    services = await list_services(session, professional.id, active_only=True)
    return PublicProfessionalResponse(
        professional=ProfessionalPublic.model_validate(professional, from_attributes=True),
        services=[service_to_public(s) for s in services],
    )
