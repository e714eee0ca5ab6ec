"""Shared test infrastructure for the SolveStay test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_profile: factory for Profile rows (customer / owner / admin)
- make_property: factory for Property rows
- make_subscription: factory for Subscription rows
- auth_headers: Bearer header for a profile

Factories commit, because routes under test may roll the session back.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from solvestay.infra.database import Base, enable_sqlite_foreign_keys

import solvestay.domain.models  # noqa: F401

from solvestay.domain.models import Profile, Property, Subscription
from solvestay.domain.plans import get_plan
from solvestay.services.auth_service import create_access_token


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Auth helper
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_headers():
    """Build an Authorization header for a profile.

    Usage:
        headers = auth_headers(owner)
    """
    def _factory(profile: Profile) -> dict:
        return {"Authorization": f"Bearer {create_access_token(profile.id, profile.role)}"}

    return _factory


# ---------------------------------------------------------------------------
# Profile factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_profile(db_session):
    """Factory that creates a Profile row.

    Usage:
        owner = await make_profile(role="owner", is_verified=True)
    """
    counter = {"n": 0}

    async def _factory(
        role: str = "customer",
        email: str | None = None,
        full_name: str = "Test User",
        phone: str | None = "+919800000000",
        is_verified: bool = False,
        **overrides,
    ) -> Profile:
        counter["n"] += 1
        fields = {
            # bcrypt is slow; login tests hash their own password
            "password_hash": "x",
            "verification_documents": [],
            **overrides,
        }
        profile = Profile(
            email=email or f"{role}{counter['n']}@test.com",
            full_name=full_name,
            phone=phone,
            role=role,
            is_verified=is_verified,
            **fields,
        )
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _factory


# ---------------------------------------------------------------------------
# Property factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_property(db_session):
    """Factory that creates a Property row, approved and live by default.

    Usage:
        prop = await make_property(owner, city="Pune", price=25000)
    """
    async def _factory(
        owner: Profile,
        title: str = "2BHK near Metro",
        city: str = "Bengaluru",
        price: float = 20000,
        property_type: str = "apartment",
        listing_type: str = "rent",
        bedrooms: int | None = 2,
        status: str = "approved",
        is_active: bool = True,
        **overrides,
    ) -> Property:
        prop = Property(
            owner_id=owner.id,
            title=title,
            address="12 MG Road",
            city=city,
            price=price,
            property_type=property_type,
            listing_type=listing_type,
            bedrooms=bedrooms,
            status=status,
            is_active=is_active,
            **overrides,
        )
        db_session.add(prop)
        await db_session.commit()
        return prop

    return _factory


# ---------------------------------------------------------------------------
# Subscription factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_subscription(db_session):
    """Factory that creates a Subscription row from a catalogue plan.

    Usage:
        sub = await make_subscription(customer, plan_type="day", contacts_used=5)
    """
    async def _factory(
        user: Profile,
        plan_type: str = "day",
        contacts_used: int = 0,
        expires_in: timedelta = timedelta(days=2),
        is_active: bool = True,
        contacts_limit: int | None = None,
    ) -> Subscription:
        plan = get_plan(plan_type)
        now = datetime.now(timezone.utc)
        sub = Subscription(
            user_id=user.id,
            plan_type=plan.id,
            plan_name=plan.name,
            price=plan.price,
            contacts_limit=plan.contacts if contacts_limit is None else contacts_limit,
            contacts_used=contacts_used,
            starts_at=now,
            expires_at=now + expires_in,
            is_active=is_active,
        )
        db_session.add(sub)
        await db_session.commit()
        return sub

    return _factory
