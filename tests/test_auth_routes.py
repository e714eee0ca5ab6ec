"""Tests for /api/auth register, login, me and profile update."""

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.services.auth_service import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


def _build_app_client(db_session: AsyncSession):
    from fastapi import FastAPI
    from solvestay.app.errors import register_exception_handlers
    from solvestay.app.routes.auth import router as auth_router
    from solvestay.infra.database import get_db

    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(auth_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


class TestTokens:
    def test_token_roundtrip(self):
        payload = decode_token(create_access_token("user-1", "owner"))
        assert payload["sub"] == "user-1"
        assert payload["role"] == "owner"

    def test_garbage_token(self):
        assert decode_token("not-a-jwt") is None

    def test_password_hashing(self):
        hashed = hash_password("s3cret!")
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)
        assert not verify_password("s3cret!", "x")


class TestRegisterAndLogin:
    async def test_register_then_login(self, db_session):
        async with _build_app_client(db_session) as client:
            reg = await client.post(
                "/api/auth/register",
                json={
                    "email": "Priya@Example.com",
                    "password": "hunter22",
                    "full_name": "Priya",
                    "role": "owner",
                },
            )
            login = await client.post(
                "/api/auth/login", json={"email": "priya@example.com", "password": "hunter22"}
            )
            me = await client.get(
                "/api/auth/me", headers={"Authorization": f"Bearer {login.json()['access_token']}"}
            )

        assert reg.status_code == 200
        assert reg.json()["user"]["email"] == "priya@example.com"
        assert reg.json()["user"]["role"] == "owner"
        assert reg.json()["user"]["is_verified"] is False
        assert login.status_code == 200
        assert me.json()["full_name"] == "Priya"

    async def test_duplicate_email(self, db_session, make_profile):
        await make_profile(email="taken@example.com")

        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/auth/register", json={"email": "TAKEN@example.com", "password": "hunter22"}
            )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Email already registered"

    async def test_admin_role_not_self_service(self, db_session):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/auth/register",
                json={"email": "x@example.com", "password": "hunter22", "role": "admin"},
            )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid role"

    async def test_short_password_is_400(self, db_session):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/auth/register", json={"email": "x@example.com", "password": "123"}
            )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    async def test_wrong_password(self, db_session, make_profile):
        await make_profile(email="k@example.com", password_hash=hash_password("right-one"))

        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/auth/login", json={"email": "k@example.com", "password": "wrong-one"}
            )

        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid email or password"


class TestProfile:
    async def test_invalid_token_is_401(self, db_session):
        async with _build_app_client(db_session) as client:
            resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    async def test_update_own_profile(self, db_session, make_profile, auth_headers):
        user = await make_profile()

        async with _build_app_client(db_session) as client:
            resp = await client.patch(
                "/api/auth/profile",
                json={"city": "Pune", "notification_sms": True},
                headers=auth_headers(user),
            )

        assert resp.json()["city"] == "Pune"
        assert resp.json()["notification_sms"] is True
        assert resp.json()["role"] == "customer"
