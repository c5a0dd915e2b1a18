from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.core.config import settings
from turnoapp.core.security import create_access_token, hash_password, verify_password
from turnoapp.models.professional import Professional
from turnoapp.models.user import User, UserCreate, UserPublic, UserRole


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_professional_for_user(session: AsyncSession, user_id: int) -> Professional | None:
    result = await session.execute(select(Professional).where(Professional.user_id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email,
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
        role=data.role,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User, professional_id: int | None = None) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        professional_id=professional_id,
    )


def make_access_token(user_id: int) -> tuple[str, int]:
    return create_access_token(user_id), settings.access_token_expire_minutes * 60


async def login_user(
    session: AsyncSession, email: str, password: str
) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in


async def signup_client(
    session: AsyncSession, email: str, password: str, full_name: str | None = None
) -> tuple[User, str, int] | None:
    if await get_user_by_email(session, email):
        return None
    user = await create_user(
        session, UserCreate(email=email, password=password, full_name=full_name, role=UserRole.CLIENT)
    )
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in


async def signup_professional(
    session: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    profession: str,
    custom_url: str,
    phone: str | None = None,
    province: str | None = None,
    city: str | None = None,
) -> tuple[User, Professional, str, int] | None:
    """Every professional starts the same way: no schedule blocks and no services."""
    if await get_user_by_email(session, email):
        return None
    taken = await session.execute(select(Professional.id).where(Professional.custom_url == custom_url))
    if taken.first() is not None:
        return None
    user = await create_user(
        session,
        UserCreate(
            email=email,
            password=password,
            full_name=f"{first_name} {last_name}",
            role=UserRole.PROFESSIONAL,
        ),
    )
    professional = Professional(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        profession=profession,
        phone=phone,
        province=province,
        city=city,
        custom_url=custom_url,
    )
    session.add(professional)
    await session.flush()
    await session.refresh(professional)
    access, expires_in = make_access_token(user.id)
    return user, professional, access, expires_in
