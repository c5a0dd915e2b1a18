from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.models.professional import Professional, ProfessionalStatus
from turnoapp.models.service import Service, ServicePublic, ServiceStatus


async def get_service(
    session: AsyncSession, professional_id: int, service_id: int
) -> Service | None:
    """A service only resolves under the professional that owns it."""
    result = await session.execute(
        select(Service).where(
            Service.id == service_id,
            Service.professional_id == professional_id,
        )
    )
    return result.scalar_one_or_none()


async def get_service_by_id(session: AsyncSession, service_id: int) -> Service | None:
    return await session.get(Service, service_id)


async def list_services(
    session: AsyncSession, professional_id: int, active_only: bool = False
) -> list[Service]:
    q = select(Service).where(Service.professional_id == professional_id).order_by(Service.id)
    if active_only:
        q = q.where(Service.status == ServiceStatus.ACTIVE)
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_service(session: AsyncSession, professional_id: int, **fields) -> Service:
    service = Service(professional_id=professional_id, **fields)
    session.add(service)
    await session.flush()
    await session.refresh(service)
    return service


async def update_service(session: AsyncSession, service: Service, **changes) -> Service:
    """Apply the given changes as-is; None clears a nullable field.

    Existing appointments keep their stored end times.
    """
    for key, value in changes.items():
        setattr(service, key, value)
    session.add(service)
    await session.flush()
    await session.refresh(service)
    return service


async def get_active_professional_by_url(
    session: AsyncSession, custom_url: str
) -> Professional | None:
    result = await session.execute(
        select(Professional).where(
            Professional.custom_url == custom_url,
            Professional.status == ProfessionalStatus.ACTIVE,
        )
    )
    return result.scalar_one_or_none()


def service_to_public(s: Service) -> ServicePublic:
    return ServicePublic(
        id=s.id,
        professional_id=s.professional_id,
        name=s.name,
        description=s.description,
        price=s.price,
        duration_minutes=s.duration_minutes,
        deposit_percentage=s.deposit_percentage,
        status=s.status,
    )
