"""Notification inbox routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.models import Notification, Profile
from solvestay.domain.schemas import NotificationResponse
from solvestay.infra.database import get_db

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).where(Notification.user_id == user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(
        query.order_by(Notification.created_at.desc()).limit(min(max(limit, 1), 200))
    )

    unread_count = (
        await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user.id, Notification.is_read.is_(False))
        )
    ).scalar() or 0

    return {
        "notifications": [NotificationResponse.model_validate(n) for n in result.scalars().all()],
        "unread_count": unread_count,
    }


@router.post("/read-all")
async def mark_all_read(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user.id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return {"success": True, "updated": result.rowcount}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != user.id:
        raise ApiError(404, "Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.commit()
    return {"success": True}
