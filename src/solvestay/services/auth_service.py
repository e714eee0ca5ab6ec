"""Authentication service: password hashing and JWT token management."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.config import get_settings
from solvestay.domain.enums import UserRole
from solvestay.domain.models import Profile

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unrecognised hash format (e.g. seeded placeholder)
        return False


def create_access_token(user_id: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expiration_minutes)
    payload = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_profile_by_email(db: AsyncSession, email: str) -> Profile | None:
    result = await db.execute(
        select(Profile).where(func.lower(Profile.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def create_profile(
    db: AsyncSession,
    email: str,
    password: str,
    role: str = UserRole.CUSTOMER.value,
    full_name: str | None = None,
    phone: str | None = None,
) -> Profile:
    profile = Profile(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=full_name,
        phone=phone,
        role=role,
        is_verified=False,
        verification_documents=[],
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile
