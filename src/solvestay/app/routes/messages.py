"""Message routes: read and append to a chat."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.enums import NotificationType
from solvestay.domain.models import Profile
from solvestay.domain.schemas import ChatResponse, MessageCreate, MessageResponse
from solvestay.infra.database import get_db
from solvestay.services.chat import (
    get_chat_for_participant,
    list_messages,
    mark_chat_read,
    message_preview,
    other_participant,
    post_message,
)
from solvestay.services.notifications import NotificationService
from solvestay.services.realtime import push_to_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("")
async def get_messages(
    chat_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Messages oldest first; marks the other party's messages read."""
    chat = await get_chat_for_participant(db, chat_id, user.id)
    await mark_chat_read(db, chat, user.id)
    messages = await list_messages(db, chat)
    return {"messages": [MessageResponse.model_validate(m) for m in messages]}


@router.post("", status_code=201)
async def send_message(
    data: MessageCreate,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    chat = await get_chat_for_participant(db, data.chat_id, user.id)
    message = await post_message(
        db, chat, user.id, data.content, data.message_type, data.image_url
    )
    recipient_id = other_participant(chat, user.id)
    payload = MessageResponse.model_validate(message).model_dump(mode="json")
    chat_payload = ChatResponse.model_validate(chat).model_dump(mode="json")

    for participant_id in (chat.customer_id, chat.owner_id):
        try:
            await push_to_user(participant_id, "message", payload)
            await push_to_user(participant_id, "chat_update", chat_payload)
        except Exception as e:
            logger.warning("Realtime push failed for chat %s: %s", chat.id, e)

    await NotificationService(db).notify(
        recipient_id,
        NotificationType.MESSAGE.value,
        "New Message",
        f"{user.full_name or 'Someone'}: {message_preview(data.content)}",
        link=f"/dashboard/messages?chat={chat.id}",
        metadata={"chat_id": chat.id, "sender_id": user.id},
    )
    return {"message": payload}
