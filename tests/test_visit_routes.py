"""Tests for /api/visits request, listing and owner updates."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.models import Notification, VisitRequest


def _build_app_client(db_session: AsyncSession):
    from fastapi import FastAPI
    from solvestay.app.errors import register_exception_handlers
    from solvestay.app.routes.visits import router as visits_router
    from solvestay.infra.database import get_db

    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(visits_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


@pytest.fixture
async def parties(make_profile, make_property):
    owner = await make_profile(role="owner", is_verified=True, full_name="Owner One")
    customer = await make_profile(full_name="Asha", phone="+919833333333")
    prop = await make_property(owner, title="Garden Villa", images=["https://img/1.jpg"])
    return owner, customer, prop


async def _create_visit(client, prop, customer, auth_headers, **extra):
    payload = {
        "property_id": prop.id,
        "preferred_date": "2026-11-01",
        "preferred_time": "10:00",
        **extra,
    }
    return await client.post("/api/visits", json=payload, headers=auth_headers(customer))


async def _notifications(db_session, user_id, type_):
    result = await db_session.execute(
        select(Notification).where(Notification.user_id == user_id, Notification.type == type_)
    )
    return result.scalars().all()


class TestCreateVisit:
    async def test_owner_taken_from_property_and_notified(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            resp = await _create_visit(client, prop, customer, auth_headers)

        assert resp.status_code == 201
        visit = resp.json()["visit_request"]
        assert visit["owner_id"] == owner.id
        assert visit["customer_id"] == customer.id
        assert visit["status"] == "pending"
        # Falls back to the profile phone
        assert visit["customer_phone"] == "+919833333333"

        notes = await _notifications(db_session, owner.id, "visit_request")
        assert len(notes) == 1
        assert notes[0].title == "New Visit Request"
        assert "Garden Villa" in notes[0].message
        assert notes[0].image_url == "https://img/1.jpg"

    async def test_missing_fields_is_400(self, db_session, parties, auth_headers):
        _, customer, prop = parties

        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/visits", json={"property_id": prop.id}, headers=auth_headers(customer)
            )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields"

    async def test_realtime_push_failure_does_not_fail_request(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        with patch(
            "solvestay.services.notifications.push_to_user",
            new=AsyncMock(side_effect=RuntimeError("socket gone")),
        ):
            async with _build_app_client(db_session) as client:
                resp = await _create_visit(client, prop, customer, auth_headers)

        assert resp.status_code == 201
        rows = (await db_session.execute(select(VisitRequest))).scalars().all()
        assert len(rows) == 1


class TestUpdateVisit:
    async def test_owner_confirms_and_customer_is_notified(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "confirmed", "confirmed_date": "2026-11-02", "confirmed_time": "11:30"},
                headers=auth_headers(owner),
            )

        assert resp.status_code == 200
        visit = resp.json()["visit_request"]
        assert visit["status"] == "confirmed"
        assert visit["confirmed_date"] == "2026-11-02"

        notes = await _notifications(db_session, customer.id, "visit_update")
        assert [n.title for n in notes] == ["Visit Confirmed"]

    async def test_customer_cannot_update_another_users_request(
        self, db_session, parties, make_profile, auth_headers
    ):
        owner, customer, prop = parties
        stranger = await make_profile(full_name="Stranger")

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "confirmed"},
                headers=auth_headers(stranger),
            )

        assert resp.status_code == 403

    async def test_customer_cannot_confirm_own_request(self, db_session, parties, auth_headers):
        _, customer, prop = parties

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "confirmed"},
                headers=auth_headers(customer),
            )

        assert resp.status_code == 403

    async def test_customer_may_cancel_and_owner_is_notified(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "cancelled"},
                headers=auth_headers(customer),
            )

        assert resp.status_code == 200
        assert resp.json()["visit_request"]["status"] == "cancelled"
        notes = await _notifications(db_session, owner.id, "visit_update")
        assert [n.title for n in notes] == ["Visit Cancelled"]

    async def test_rejected_visit_cannot_be_confirmed(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "rejected", "owner_message": "Already let"},
                headers=auth_headers(owner),
            )
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "confirmed"},
                headers=auth_headers(owner),
            )

        assert resp.status_code == 400
        assert "rejected" in resp.json()["error"]

    async def test_unknown_status_is_400(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            visit_id = (await _create_visit(client, prop, customer, auth_headers)).json()["visit_request"]["id"]
            resp = await client.put(
                f"/api/visits/{visit_id}",
                json={"status": "approved"},
                headers=auth_headers(owner),
            )

        assert resp.status_code == 400


class TestListVisits:
    async def test_owner_and_customer_views(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            await _create_visit(client, prop, customer, auth_headers)
            as_owner = await client.get("/api/visits", params={"role": "owner"}, headers=auth_headers(owner))
            as_customer = await client.get("/api/visits", headers=auth_headers(customer))
            owner_as_customer = await client.get("/api/visits", headers=auth_headers(owner))

        assert len(as_owner.json()["visit_requests"]) == 1
        assert as_owner.json()["visit_requests"][0]["property"]["title"] == "Garden Villa"
        assert as_owner.json()["visit_requests"][0]["customer"]["full_name"] == "Asha"
        assert len(as_customer.json()["visit_requests"]) == 1
        assert owner_as_customer.json()["visit_requests"] == []
