"""Subscription quota accounting and atomic listing counters.

Counters are updated in the database (``col = col + delta``) instead of
read-modify-write in Python, so concurrent requests cannot lose updates.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.models import Property, Subscription
from solvestay.domain.plans import UNLIMITED_CONTACTS

logger = logging.getLogger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def contacts_remaining(subscription: Subscription) -> int:
    if subscription.contacts_limit == UNLIMITED_CONTACTS:
        return UNLIMITED_CONTACTS
    return max(0, subscription.contacts_limit - subscription.contacts_used)


def has_quota(subscription: Subscription) -> bool:
    return (
        subscription.contacts_limit == UNLIMITED_CONTACTS
        or subscription.contacts_used < subscription.contacts_limit
    )


async def get_active_subscription(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> Subscription | None:
    """Newest active, unexpired subscription for ``user_id``."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.is_active.is_(True),
            Subscription.expires_at >= now,
        )
        .order_by(Subscription.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def consume_contact_quota(db: AsyncSession, subscription_id: str) -> bool:
    """Take one contact from the subscription if any remain.

    Returns False when the limit was already reached. Does not commit.
    """
    result = await db.execute(
        update(Subscription)
        .where(
            Subscription.id == subscription_id,
            or_(
                Subscription.contacts_limit == UNLIMITED_CONTACTS,
                Subscription.contacts_used < Subscription.contacts_limit,
            ),
        )
        .values(contacts_used=Subscription.contacts_used + 1)
        .execution_options(synchronize_session=False)
    )
    consumed = result.rowcount == 1
    if consumed:
        logger.info("Consumed one contact from subscription %s", subscription_id)
    else:
        logger.info("Subscription %s has no contacts left", subscription_id)
    return consumed


async def increment_counter(db: AsyncSession, column, property_id: str, delta: int = 1) -> bool:
    """Add ``delta`` to a Property counter column, never going below zero.

    ``column`` is one of ``Property.views_count``, ``contacts_count`` or
    ``favorites_count``. Does not commit.
    """
    result = await db.execute(
        update(Property)
        .where(Property.id == property_id, column + delta >= 0)
        .values({column.key: column + delta})
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
