import os
from datetime import date, datetime, time

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from turnoapp.api.deps import get_now, get_session
from turnoapp.core.security import create_access_token, hash_password
from turnoapp.main import app
from turnoapp.models import (
    Professional,
    Service,
    User,
    UserRole,
    WeeklyScheduleBlock,
)

# Sunday morning; the Monday after is the usual booking day in these tests
NOW = datetime(2026, 3, 1, 8, 0)
MONDAY = date(2026, 3, 2)
PASSWORD = "password123"


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_now] = lambda: NOW
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(session: AsyncSession, email: str, role: UserRole = UserRole.CLIENT) -> User:
    user = User(email=email, full_name=email.split("@")[0], role=role, hashed_password=hash_password(PASSWORD))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_professional(session: AsyncSession, email: str, custom_url: str, **extra) -> Professional:
    user = await make_user(session, email, UserRole.PROFESSIONAL)
    fields = {"first_name": "Ana", "last_name": "Souza", "profession": "Psychologist", **extra}
    professional = Professional(user_id=user.id, custom_url=custom_url, **fields)
    session.add(professional)
    await session.commit()
    await session.refresh(professional)
    return professional


async def make_block(
    session: AsyncSession,
    professional: Professional,
    day_of_week: int,
    start: time,
    end: time,
    active: bool = True,
) -> WeeklyScheduleBlock:
    block = WeeklyScheduleBlock(
        professional_id=professional.id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        active=active,
    )
    session.add(block)
    await session.commit()
    await session.refresh(block)
    return block


async def make_service(
    session: AsyncSession,
    professional: Professional,
    duration_minutes: int = 50,
    price: float = 100.0,
    deposit_percentage: int = 0,
    **extra,
) -> Service:
    service = Service(
        professional_id=professional.id,
        name=extra.pop("name", f"Session {duration_minutes}min"),
        price=price,
        duration_minutes=duration_minutes,
        deposit_percentage=deposit_percentage,
        **extra,
    )
    session.add(service)
    await session.commit()
    await session.refresh(service)
    return service


@pytest_asyncio.fixture
async def professional(session):
    return await make_professional(session, "ana@example.com", "dr-ana")


@pytest_asyncio.fixture
async def professional_user(session, professional):
    return await session.get(User, professional.user_id)


@pytest_asyncio.fixture
async def client_user(session):
    return await make_user(session, "carla@example.com")


@pytest_asyncio.fixture
async def other_client(session):
    return await make_user(session, "bruno@example.com")


@pytest_asyncio.fixture
async def monday_block(session, professional):
    return await make_block(session, professional, 1, time(9, 0), time(13, 0))


@pytest_asyncio.fixture
async def service(session, professional):
    return await make_service(session, professional, duration_minutes=50)


@pytest_asyncio.fixture
async def deposit_service(session, professional):
    return await make_service(
        session, professional, duration_minutes=50, price=100.0, deposit_percentage=50, name="Assessment"
    )
