"""Chat and message relay between a customer and a listing owner."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.errors import ApiError
from solvestay.domain.enums import MessageType
from solvestay.domain.models import Chat, Message

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


def message_preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


def is_participant(chat: Chat, user_id: str) -> bool:
    return user_id in (chat.customer_id, chat.owner_id)


def other_participant(chat: Chat, user_id: str) -> str:
    return chat.owner_id if user_id == chat.customer_id else chat.customer_id


def unread_for(chat: Chat, user_id: str) -> int:
    return chat.customer_unread if user_id == chat.customer_id else chat.owner_unread


async def get_chat_for_participant(db: AsyncSession, chat_id: str, user_id: str) -> Chat:
    chat = await db.get(Chat, chat_id)
    if not chat:
        raise ApiError(404, "Chat not found")
    if not is_participant(chat, user_id):
        raise ApiError(403, "Unauthorized")
    return chat


async def _find_chat(db: AsyncSession, property_id: str, customer_id: str) -> Chat | None:
    result = await db.execute(
        select(Chat).where(Chat.property_id == property_id, Chat.customer_id == customer_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_chat(
    db: AsyncSession, property_id: str, customer_id: str, owner_id: str
) -> tuple[Chat, bool]:
    """Return ``(chat, created)`` for the (property, customer) pair."""
    chat = await _find_chat(db, property_id, customer_id)
    if chat:
        return chat, False

    chat = Chat(property_id=property_id, customer_id=customer_id, owner_id=owner_id)
    db.add(chat)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        chat = await _find_chat(db, property_id, customer_id)
        if chat is None:
            raise
        return chat, False

    logger.info("Chat %s opened on property %s by %s", chat.id, property_id, customer_id)
    return chat, True


async def post_message(
    db: AsyncSession,
    chat: Chat,
    sender_id: str,
    content: str,
    message_type: str = MessageType.TEXT.value,
    image_url: str | None = None,
) -> Message:
    if chat.is_blocked:
        raise ApiError(403, "Chat is blocked")

    now = datetime.now(timezone.utc)
    message = Message(
        chat_id=chat.id,
        sender_id=sender_id,
        content=content,
        message_type=message_type,
        image_url=image_url,
        created_at=now,
    )
    db.add(message)
    await db.flush()

    # Bump the recipient's unread counter in the same statement as the preview
    unread_col = Chat.owner_unread if sender_id == chat.customer_id else Chat.customer_unread
    await db.execute(
        update(Chat)
        .where(Chat.id == chat.id)
        .values({
            "last_message": content,
            "last_message_at": now,
            "last_message_by": sender_id,
            unread_col.key: unread_col + 1,
        })
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(chat)
    return message


async def list_messages(db: AsyncSession, chat: Chat) -> list[Message]:
    result = await db.execute(
        select(Message).where(Message.chat_id == chat.id).order_by(Message.created_at.asc())
    )
    return list(result.scalars().all())


async def mark_chat_read(db: AsyncSession, chat: Chat, reader_id: str) -> None:
    """Zero the reader's unread counter and mark the other side's messages read."""
    now = datetime.now(timezone.utc)
    await db.execute(
        update(Message)
        .where(
            Message.chat_id == chat.id,
            Message.sender_id != reader_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True, read_at=now)
    )
    unread_key = "customer_unread" if reader_id == chat.customer_id else "owner_unread"
    await db.execute(
        update(Chat)
        .where(Chat.id == chat.id)
        .values({unread_key: 0})
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(chat)
