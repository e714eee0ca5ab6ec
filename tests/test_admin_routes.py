"""Tests for /api/admin: role gate, owner verification, moderation, stats."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.models import Notification


def _build_app_client(db_session: AsyncSession):
    from fastapi import FastAPI
    from solvestay.app.errors import register_exception_handlers
    from solvestay.app.routes.admin import router as admin_router
    from solvestay.infra.database import get_db

    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(admin_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


@pytest.fixture
async def admin(make_profile):
    return await make_profile(role="admin", email="admin@solvestay.test")


@pytest.fixture
async def pending_owner(make_profile):
    return await make_profile(
        role="owner",
        verification_status="pending",
        verification_documents=["https://cdn/doc.pdf"],
    )


async def _notification_types(db_session, user_id):
    result = await db_session.execute(select(Notification).where(Notification.user_id == user_id))
    return [(n.type, n.title) for n in result.scalars().all()]


class TestRoleGate:
    async def test_unauthenticated_is_401(self, db_session):
        async with _build_app_client(db_session) as client:
            resp = await client.get("/api/admin/stats")

        assert resp.status_code == 401

    async def test_non_admin_is_403(self, db_session, make_profile, auth_headers):
        owner = await make_profile(role="owner")

        async with _build_app_client(db_session) as client:
            resp = await client.get("/api/admin/stats", headers=auth_headers(owner))

        assert resp.status_code == 403
        assert resp.json() == {"error": "Forbidden"}


class TestOwnerVerification:
    async def test_queue_lists_pending_owners(self, db_session, admin, pending_owner, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.get("/api/admin/verify", headers=auth_headers(admin))

        assert [p["id"] for p in resp.json()["verifications"]] == [pending_owner.id]
        assert resp.json()["verifications"][0]["verification_documents"] == ["https://cdn/doc.pdf"]

    async def test_approve(self, db_session, admin, pending_owner, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/admin/verify",
                json={"userId": pending_owner.id, "action": "approve"},
                headers=auth_headers(admin),
            )

        assert resp.status_code == 200
        profile = resp.json()["profile"]
        assert profile["is_verified"] is True
        assert profile["verification_status"] == "verified"
        assert await _notification_types(db_session, pending_owner.id) == [
            ("property_approved", "Verification Approved")
        ]

    async def test_reject_requires_reason(self, db_session, admin, pending_owner, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/admin/verify",
                json={"userId": pending_owner.id, "action": "reject"},
                headers=auth_headers(admin),
            )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Rejection reason is required"

    async def test_reject_with_reason(self, db_session, admin, pending_owner, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/admin/verify",
                json={
                    "userId": pending_owner.id,
                    "action": "reject",
                    "rejectionReason": "Document unreadable",
                },
                headers=auth_headers(admin),
            )

        profile = resp.json()["profile"]
        assert profile["is_verified"] is False
        assert profile["verification_status"] == "rejected"
        assert profile["verification_rejection_reason"] == "Document unreadable"
        assert await _notification_types(db_session, pending_owner.id) == [
            ("general", "Verification Rejected")
        ]

    async def test_unknown_user_is_404(self, db_session, admin, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/admin/verify",
                json={"userId": "ghost", "action": "approve"},
                headers=auth_headers(admin),
            )

        assert resp.status_code == 404


class TestModeration:
    async def test_approve_makes_listing_live(
        self, db_session, admin, make_profile, make_property, auth_headers
    ):
        owner = await make_profile(role="owner", is_verified=True)
        prop = await make_property(owner, status="pending", is_active=False)

        async with _build_app_client(db_session) as client:
            queue = await client.get("/api/admin/properties", headers=auth_headers(admin))
            resp = await client.post(
                f"/api/admin/properties/{prop.id}/approve", headers=auth_headers(admin)
            )

        assert [p["id"] for p in queue.json()["properties"]] == [prop.id]
        body = resp.json()["property"]
        assert body["status"] == "approved"
        assert body["is_active"] is True
        assert body["approved_at"] is not None
        assert await _notification_types(db_session, owner.id) == [
            ("property_approved", "Property Approved")
        ]

    async def test_reject_records_reason(
        self, db_session, admin, make_profile, make_property, auth_headers
    ):
        owner = await make_profile(role="owner", is_verified=True)
        prop = await make_property(owner, status="pending", is_active=False)

        async with _build_app_client(db_session) as client:
            empty = await client.post(
                f"/api/admin/properties/{prop.id}/reject", json={"reason": ""}, headers=auth_headers(admin)
            )
            resp = await client.post(
                f"/api/admin/properties/{prop.id}/reject",
                json={"reason": "Blurry photos"},
                headers=auth_headers(admin),
            )

        assert empty.status_code == 400
        body = resp.json()["property"]
        assert body["status"] == "rejected"
        assert body["rejection_reason"] == "Blurry photos"


class TestUsersAndStats:
    async def test_admin_cannot_demote_self(self, db_session, admin, auth_headers):
        async with _build_app_client(db_session) as client:
            resp = await client.patch(
                f"/api/admin/users/{admin.id}/role", json={"role": "customer"}, headers=auth_headers(admin)
            )

        assert resp.status_code == 400

    async def test_change_role_and_search(self, db_session, admin, make_profile, auth_headers):
        user = await make_profile(full_name="Neha Kapoor")

        async with _build_app_client(db_session) as client:
            resp = await client.patch(
                f"/api/admin/users/{user.id}/role", json={"role": "owner"}, headers=auth_headers(admin)
            )
            found = await client.get(
                "/api/admin/users", params={"q": "kapoor"}, headers=auth_headers(admin)
            )

        assert resp.json()["user"]["role"] == "owner"
        assert [u["id"] for u in found.json()["users"]] == [user.id]

    async def test_stats(
        self, db_session, admin, pending_owner, make_profile, make_property, auth_headers
    ):
        owner = await make_profile(role="owner", is_verified=True)
        await make_property(owner)
        await make_property(owner, status="pending", is_active=False)

        async with _build_app_client(db_session) as client:
            resp = await client.get("/api/admin/stats", headers=auth_headers(admin))

        assert resp.json() == {
            "total_users": 3,
            "total_owners": 2,
            "total_properties": 2,
            "pending_properties": 1,
            "pending_verifications": 1,
            "active_listings": 1,
        }
