"""Background jobs for subscription expiry warnings and auto-deactivation."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.enums import NotificationType
from solvestay.domain.models import Notification, Subscription
from solvestay.services.quota import as_utc

logger = logging.getLogger(__name__)

WARNING_WINDOW = timedelta(hours=24)


async def warn_expiring_subscriptions(db: AsyncSession, now: datetime | None = None) -> int:
    """Notify users whose subscription ends within the warning window. Once per subscription."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Subscription).where(
            Subscription.is_active.is_(True),
            Subscription.expiry_warning_sent_at.is_(None),
            Subscription.expires_at >= now,
            Subscription.expires_at <= now + WARNING_WINDOW,
        )
    )
    subscriptions = result.scalars().all()

    for sub in subscriptions:
        hours_remaining = (as_utc(sub.expires_at) - now).total_seconds() / 3600
        db.add(Notification(
            user_id=sub.user_id,
            type=NotificationType.SUBSCRIPTION_EXPIRING.value,
            title="Subscription Expiring Soon",
            message=f"Your {sub.plan_name} expires in about {max(1, round(hours_remaining))} hours.",
            link="/pricing",
            metadata_={"subscription_id": sub.id, "expires_at": as_utc(sub.expires_at).isoformat()},
        ))
        sub.expiry_warning_sent_at = now
        logger.info("Expiry warning: subscription=%s, expires=%s", sub.id, sub.expires_at)

    await db.commit()
    return len(subscriptions)


async def deactivate_expired_subscriptions(db: AsyncSession, now: datetime | None = None) -> int:
    """Flip ``is_active`` off for subscriptions past their expiry."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Subscription).where(
            Subscription.is_active.is_(True),
            Subscription.expires_at < now,
        )
    )
    subscriptions = result.scalars().all()

    for sub in subscriptions:
        sub.is_active = False
        logger.info("Subscription expired: %s (user=%s)", sub.id, sub.user_id)

    await db.commit()
    return len(subscriptions)
