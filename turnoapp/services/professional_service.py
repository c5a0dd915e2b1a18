from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.models.professional import Professional, ProfessionalStatus

DEFAULT_PAGE_SIZE = 12


def _active():
    return select(Professional).where(Professional.status == ProfessionalStatus.ACTIVE)


async def search_professionals(
    session: AsyncSession,
    profession: str | None = None,
    province: str | None = None,
    city: str | None = None,
    search: str | None = None,
    page: int = 0,
    size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[Professional], int]:
    """Page through active professionals; returns the page and the total match count.

    `profession`, `province` and `city` match whole values ignoring case.
    `search` is a substring match on first name, last name or profession.
    Pages are zero-based.
    """
    q = _active()
    for column, value in (
        (Professional.profession, profession),
        (Professional.province, province),
        (Professional.city, city),
    ):
        if value:
            q = q.where(func.lower(column) == value.strip().lower())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        q = q.where(
            or_(
                Professional.first_name.ilike(pattern),
                Professional.last_name.ilike(pattern),
                Professional.profession.ilike(pattern),
            )
        )

    total = (await session.execute(select(func.count()).select_from(q.subquery()))).scalar_one()
    result = await session.execute(
        q.order_by(Professional.last_name, Professional.first_name, Professional.id)
        .offset(page * size)
        .limit(size)
    )
    return list(result.scalars().all()), total


async def _distinct_values(session: AsyncSession, column) -> list[str]:
    result = await session.execute(
        select(column)
        .where(Professional.status == ProfessionalStatus.ACTIVE, column.is_not(None), column != "")
        .distinct()
        .order_by(column)
    )
    return list(result.scalars().all())


async def get_filter_options(session: AsyncSession) -> dict[str, list[str]]:
    """Values the search filters can take, drawn from active professionals only."""
    return {
        "professions": await _distinct_values(session, Professional.profession),
        "provinces": await _distinct_values(session, Professional.province),
        "cities": await _distinct_values(session, Professional.city),
    }
