"""Tests for /api/chats and /api/messages."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.models import Chat, Notification
from solvestay.services.chat import message_preview


def _build_app_client(db_session: AsyncSession):
    from fastapi import FastAPI
    from solvestay.app.errors import register_exception_handlers
    from solvestay.app.routes.chats import router as chats_router
    from solvestay.app.routes.messages import router as messages_router
    from solvestay.infra.database import get_db

    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(chats_router)
    test_app.include_router(messages_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


@pytest.fixture
async def parties(make_profile, make_property):
    owner = await make_profile(role="owner", is_verified=True, full_name="Meera")
    customer = await make_profile(full_name="Kabir")
    prop = await make_property(owner, title="Studio in Indiranagar")
    return owner, customer, prop


async def _open_chat(client, prop, headers):
    return await client.post("/api/chats", json={"property_id": prop.id}, headers=headers)


class TestMessagePreview:
    def test_short_content_unchanged(self):
        assert message_preview("hello") == "hello"

    def test_long_content_truncated(self):
        preview = message_preview("x" * 80)
        assert preview == "x" * 50 + "..."


class TestOpenChat:
    async def test_one_chat_per_customer_and_property(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            first = await _open_chat(client, prop, auth_headers(customer))
            second = await _open_chat(client, prop, auth_headers(customer))

        assert first.json()["created"] is True
        assert second.json()["created"] is False
        assert first.json()["chat"]["id"] == second.json()["chat"]["id"]
        assert first.json()["chat"]["owner_id"] == owner.id
        chats = (await db_session.execute(select(Chat))).scalars().all()
        assert len(chats) == 1

    async def test_owner_cannot_chat_with_self(self, db_session, parties, auth_headers):
        owner, _, prop = parties

        async with _build_app_client(db_session) as client:
            resp = await _open_chat(client, prop, auth_headers(owner))

        assert resp.status_code == 400


class TestMessaging:
    async def test_send_bumps_unread_and_notifies_recipient(self, db_session, parties, auth_headers):
        owner, customer, prop = parties
        long_text = "Is the flat still available for a family of four from next month?"

        with patch("solvestay.app.routes.messages.push_to_user", new=AsyncMock()) as push:
            async with _build_app_client(db_session) as client:
                chat_id = (await _open_chat(client, prop, auth_headers(customer))).json()["chat"]["id"]
                resp = await client.post(
                    "/api/messages",
                    json={"chat_id": chat_id, "content": long_text},
                    headers=auth_headers(customer),
                )
                chats = await client.get("/api/chats", headers=auth_headers(owner))

        assert resp.status_code == 201
        assert resp.json()["message"]["sender_id"] == customer.id

        pushed = {(call.args[0], call.args[1]) for call in push.await_args_list}
        assert pushed == {
            (customer.id, "message"),
            (customer.id, "chat_update"),
            (owner.id, "message"),
            (owner.id, "chat_update"),
        }

        item = chats.json()["chats"][0]
        assert item["unread"] == 1
        assert item["last_message"] == long_text
        assert item["other_party"]["full_name"] == "Kabir"
        assert item["property"]["title"] == "Studio in Indiranagar"

        note = (
            await db_session.execute(select(Notification).where(Notification.user_id == owner.id))
        ).scalar_one()
        assert note.title == "New Message"
        assert note.message == f"Kabir: {long_text[:50]}..."
        assert note.link == f"/dashboard/messages?chat={chat_id}"

    async def test_reading_clears_unread(self, db_session, parties, auth_headers):
        owner, customer, prop = parties

        async with _build_app_client(db_session) as client:
            chat_id = (await _open_chat(client, prop, auth_headers(customer))).json()["chat"]["id"]
            await client.post(
                "/api/messages", json={"chat_id": chat_id, "content": "Hi"}, headers=auth_headers(customer)
            )
            await client.post(
                "/api/messages", json={"chat_id": chat_id, "content": "Hello?"}, headers=auth_headers(customer)
            )
            read = await client.get("/api/messages", params={"chat_id": chat_id}, headers=auth_headers(owner))
            chats = await client.get("/api/chats", headers=auth_headers(owner))

        messages = read.json()["messages"]
        assert [m["content"] for m in messages] == ["Hi", "Hello?"]
        assert all(m["is_read"] for m in messages)
        assert chats.json()["chats"][0]["unread"] == 0

    async def test_outsider_cannot_read_or_post(self, db_session, parties, make_profile, auth_headers):
        _, customer, prop = parties
        outsider = await make_profile()

        async with _build_app_client(db_session) as client:
            chat_id = (await _open_chat(client, prop, auth_headers(customer))).json()["chat"]["id"]
            read = await client.get("/api/messages", params={"chat_id": chat_id}, headers=auth_headers(outsider))
            post = await client.post(
                "/api/messages", json={"chat_id": chat_id, "content": "hey"}, headers=auth_headers(outsider)
            )

        assert read.status_code == 403
        assert post.status_code == 403

    async def test_blocked_chat_rejects_messages(self, db_session, parties, auth_headers):
        _, customer, prop = parties

        async with _build_app_client(db_session) as client:
            chat_id = (await _open_chat(client, prop, auth_headers(customer))).json()["chat"]["id"]
            chat = await db_session.get(Chat, chat_id)
            chat.is_blocked = True
            await db_session.commit()
            resp = await client.post(
                "/api/messages", json={"chat_id": chat_id, "content": "hi"}, headers=auth_headers(customer)
            )

        assert resp.status_code == 403
        assert resp.json()["error"] == "Chat is blocked"
