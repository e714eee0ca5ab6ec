"""Chat routes: list the caller's conversations, open one on a listing."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.models import Chat, Profile, Property
from solvestay.domain.schemas import ChatCreate, ChatResponse
from solvestay.infra.database import get_db
from solvestay.services.chat import get_or_create_chat, unread_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chats", tags=["chats"])


def _party(profile: Profile | None) -> dict | None:
    if not profile:
        return None
    return {"id": profile.id, "full_name": profile.full_name, "avatar_url": profile.avatar_url}


@router.get("")
async def list_chats(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Chat)
        .options(
            selectinload(Chat.property),
            selectinload(Chat.customer),
            selectinload(Chat.owner),
        )
        .where(or_(Chat.customer_id == user.id, Chat.owner_id == user.id))
        .order_by(Chat.last_message_at.desc().nulls_last(), Chat.created_at.desc())
    )
    chats = []
    for chat in result.scalars().all():
        item = ChatResponse.model_validate(chat).model_dump()
        item["property"] = (
            {
                "id": chat.property.id,
                "title": chat.property.title,
                "images": chat.property.images or [],
                "city": chat.property.city,
            }
            if chat.property
            else None
        )
        item["other_party"] = _party(chat.owner if chat.customer_id == user.id else chat.customer)
        item["unread"] = unread_for(chat, user.id)
        chats.append(item)
    return {"chats": chats}


@router.post("")
async def open_chat(
    data: ChatCreate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    prop = await db.get(Property, data.property_id)
    if not prop:
        raise ApiError(404, "Property not found")
    if prop.owner_id == user.id:
        raise ApiError(400, "Cannot start a chat on your own property")

    chat, created = await get_or_create_chat(db, prop.id, user.id, prop.owner_id)
    return {"chat": ChatResponse.model_validate(chat), "created": created}
