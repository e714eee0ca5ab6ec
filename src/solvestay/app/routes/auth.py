"""Authentication routes: register, login, me, profile update."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.errors import ApiError
from solvestay.domain.enums import UserRole
from solvestay.domain.models import Profile
from solvestay.domain.schemas import (
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
)
from solvestay.infra.database import get_db
from solvestay.services.auth_service import (
    create_access_token,
    create_profile,
    decode_token,
    get_profile_by_email,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

SELF_SERVICE_ROLES = {UserRole.CUSTOMER.value, UserRole.OWNER.value}


async def _profile_from_token(token: str, db: AsyncSession) -> Profile | None:
    payload = decode_token(token)
    if not payload or "sub" not in payload:
        return None
    result = await db.execute(select(Profile).where(Profile.id == payload["sub"]))
    profile = result.scalar_one_or_none()
    if not profile or not profile.is_active:
        return None
    return profile


async def get_current_user_dep(
    request: Request, db: AsyncSession = Depends(get_db)
) -> Profile:
    """Dependency: extract current user from Bearer token."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    profile = await _profile_from_token(auth_header.removeprefix("Bearer "), db)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return profile


async def get_optional_user_dep(
    request: Request, db: AsyncSession = Depends(get_db)
) -> Profile | None:
    """Dependency: current user if a valid Bearer token is present, else None."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return await _profile_from_token(auth_header.removeprefix("Bearer "), db)


def require_role(*roles: str):
    """Factory: dependency that checks user has one of the required roles."""

    async def checker(user: Profile = Depends(get_current_user_dep)):
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
        return user

    return checker


@router.post("/register", response_model=TokenResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    if data.role not in SELF_SERVICE_ROLES:
        raise ApiError(400, "Invalid role")
    if await get_profile_by_email(db, data.email):
        raise ApiError(400, "Email already registered")

    profile = await create_profile(
        db, data.email, data.password, data.role, data.full_name, data.phone
    )
    logger.info("Registered %s as %s", profile.id, profile.role)
    token = create_access_token(profile.id, profile.role)
    return TokenResponse(access_token=token, user=ProfileResponse.model_validate(profile))


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    profile = await get_profile_by_email(db, data.email)
    if not profile or not verify_password(data.password, profile.password_hash):
        raise ApiError(401, "Invalid email or password")
    if not profile.is_active:
        raise ApiError(403, "Account disabled")
    token = create_access_token(profile.id, profile.role)
    return TokenResponse(access_token=token, user=ProfileResponse.model_validate(profile))


@router.get("/me", response_model=ProfileResponse)
async def me(user: Profile = Depends(get_current_user_dep)):
    return ProfileResponse.model_validate(user)


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return ProfileResponse.model_validate(user)
