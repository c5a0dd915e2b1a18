from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_current_professional, get_session
from turnoapp.api.schemas.service import ServiceCreate, ServiceUpdate
from turnoapp.models.professional import Professional
from turnoapp.models.service import ServicePublic, ServiceStatus
from turnoapp.services.catalog_service import (
    create_service,
    get_service,
    list_services,
    service_to_public,
    update_service,
)

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[ServicePublic])
async def list_my_services(
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> list[ServicePublic]:
    return [service_to_public(s) for s in await list_services(session, professional.id)]


@router.post("", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def add_service(
    body: ServiceCreate,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ServicePublic:
    service = await create_service(session, professional.id, **body.model_dump())
    return service_to_public(service)


@router.put("/{service_id}", response_model=ServicePublic)
async def edit_service(
    service_id: int,
    body: ServiceUpdate,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ServicePublic:
    service = await get_service(session, professional.id, service_id)
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    service = await update_service(session, service, **body.model_dump(exclude_unset=True))
    return service_to_public(service)


@router.delete("/{service_id}", response_model=ServicePublic)
async def deactivate_service(
    service_id: int,
    session: AsyncSession = Depends(get_session),
    professional: Professional = Depends(get_current_professional),
) -> ServicePublic:
    """Soft delete: historical appointments keep pointing at the service."""
    service = await get_service(session, professional.id, service_id)
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    service = await update_service(session, service, status=ServiceStatus.INACTIVE)
    return service_to_public(service)
