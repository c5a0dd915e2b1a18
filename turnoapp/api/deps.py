from datetime import datetime

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.core.clock import local_now
from turnoapp.core.db import get_session
from turnoapp.core.security import decode_access_token
from turnoapp.models.appointment import ActorRole
from turnoapp.models.professional import Professional
from turnoapp.models.user import User, UserRole
from turnoapp.services.auth_service import get_professional_for_user
from turnoapp.services.lifecycle_service import Actor

security = HTTPBearer(auto_error=False)


def get_now() -> datetime:
    """Request clock; overridden in tests."""
    return local_now()


async def _user_from_credentials(
    session: AsyncSession, credentials: HTTPAuthorizationCredentials | None
) -> User | None:
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        return None
    try:
        uid = int(user_id)
    except ValueError:
        return None
    result = await session.execute(select(User).where(User.id == uid))
    return result.scalar_one_or_none()


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await _user_from_credentials(session, credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    return await _user_from_credentials(session, credentials)


async def get_current_professional(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> Professional:
    if current_user.role != UserRole.PROFESSIONAL:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only professionals can access this resource",
        )
    professional = await get_professional_for_user(session, current_user.id)
    if not professional:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No professional profile for this account",
        )
    return professional


async def get_current_client(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only clients can access this resource",
        )
    return current_user


async def get_actor(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> Actor:
    if current_user.role == UserRole.CLIENT:
        return Actor(role=ActorRole.CLIENT, user_id=current_user.id)
    if current_user.role == UserRole.PROFESSIONAL:
        professional = await get_professional_for_user(session, current_user.id)
        if professional:
            return Actor(
                role=ActorRole.PROFESSIONAL,
                user_id=current_user.id,
                professional_id=professional.id,
            )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only the appointment's client or professional can change it",
    )
