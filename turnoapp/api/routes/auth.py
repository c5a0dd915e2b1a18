import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from turnoapp.api.deps import get_current_user
from turnoapp.api.schemas.auth import (
    LoginRequest,
    ProfessionalSignupRequest,
    SignupRequest,
    TokenResponse,
)
from turnoapp.core.db import get_session
from turnoapp.models.user import User, UserPublic
from turnoapp.services.auth_service import (
    get_professional_for_user,
    login_user,
    signup_client,
    signup_professional,
    user_to_public,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    result = await login_user(session, body.email, body.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = result
    return TokenResponse(access_token=access, expires_in=expires_in)


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    result = await signup_client(session, body.email, body.password, body.full_name)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    _, access, expires_in = result
    return TokenResponse(access_token=access, expires_in=expires_in)


@router.post("/signup/professional", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup_as_professional(
    body: ProfessionalSignupRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    result = await signup_professional(
        session,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        profession=body.profession,
        custom_url=body.custom_url,
        phone=body.phone,
        province=body.province,
        city=body.city,
    )
    if not result:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or custom URL already in use",
        )
    _, professional, access, expires_in = result
    logger.info("Professional %s registered at /%s", professional.id, professional.custom_url)
    return TokenResponse(access_token=access, expires_in=expires_in)


@router.get("/me", response_model=UserPublic)
async def me(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> UserPublic:
    professional = await get_professional_for_user(session, current_user.id)
    return user_to_public(current_user, professional.id if professional else None)
