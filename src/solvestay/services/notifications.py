"""In-app notifications.

Notifications are a side effect: callers commit their primary write first,
then notify. A failed insert is logged and dropped.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.models import Notification
from solvestay.services.realtime import push_to_user

logger = logging.getLogger(__name__)


def notification_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "link": notification.link,
        "image_url": notification.image_url,
        "is_read": notification.is_read,
        "metadata": notification.metadata_ or {},
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationService:
    """Insert notification rows and push them to the recipient's sockets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: str | None = None,
        image_url: str | None = None,
        metadata: dict | None = None,
    ) -> Notification | None:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            image_url=image_url,
            metadata_=metadata or {},
        )
        try:
            self.db.add(notification)
            await self.db.commit()
        except Exception as e:
            logger.error("Failed to create %s notification for %s: %s", type, user_id, e)
            await self.db.rollback()
            return None

        try:
            await push_to_user(user_id, "notification", notification_dict(notification))
        except Exception as e:
            logger.warning("Realtime push failed for notification %s: %s", notification.id, e)
        return notification
