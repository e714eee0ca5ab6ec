"""Contact reveal: disclose a listing owner's contact details against quota.

A (customer, property) pair is charged at most once. Repeat requests return
the stored contact without touching the subscription.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from solvestay.app.errors import ApiError
from solvestay.domain.models import ContactReveal, Profile, Property
from solvestay.services.quota import (
    consume_contact_quota,
    contacts_remaining,
    get_active_subscription,
    has_quota,
    increment_counter,
)

logger = logging.getLogger(__name__)


def _contact_payload(reveal: ContactReveal, owner: Profile | None) -> dict:
    return {
        "phone": reveal.revealed_phone,
        "email": reveal.revealed_email,
        "whatsapp": reveal.revealed_whatsapp,
        "name": owner.full_name if owner else None,
    }


async def _get_reveal(db: AsyncSession, customer_id: str, property_id: str) -> ContactReveal | None:
    result = await db.execute(
        select(ContactReveal)
        .options(selectinload(ContactReveal.owner))
        .where(
            ContactReveal.customer_id == customer_id,
            ContactReveal.property_id == property_id,
        )
    )
    return result.scalar_one_or_none()


def _already_revealed(reveal: ContactReveal) -> dict:
    return {
        "success": True,
        "already_revealed": True,
        "contact": _contact_payload(reveal, reveal.owner),
    }


def _limit_reached(used: int, limit: int) -> ApiError:
    return ApiError(
        403,
        "Contact limit reached",
        contacts_exhausted=True,
        contacts_used=used,
        contacts_limit=limit,
    )


async def reveal_contact(db: AsyncSession, customer_id: str, property_id: str) -> dict:
    existing = await _get_reveal(db, customer_id, property_id)
    if existing:
        return _already_revealed(existing)

    subscription = await get_active_subscription(db, customer_id)
    if not subscription:
        raise ApiError(403, "No active subscription", requires_subscription=True)
    if not has_quota(subscription):
        raise _limit_reached(subscription.contacts_used, subscription.contacts_limit)

    result = await db.execute(
        select(Property)
        .options(selectinload(Property.owner))
        .where(Property.id == property_id)
    )
    prop = result.scalar_one_or_none()
    if not prop:
        raise ApiError(404, "Property not found")

    owner = prop.owner
    reveal = ContactReveal(
        customer_id=customer_id,
        property_id=property_id,
        owner_id=prop.owner_id,
        subscription_id=subscription.id,
        revealed_phone=owner.phone if owner else None,
        revealed_email=owner.email if owner else None,
        revealed_whatsapp=owner.whatsapp_number if owner else None,
    )
    db.add(reveal)
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent request for the same pair won the insert
        await db.rollback()
        existing = await _get_reveal(db, customer_id, property_id)
        if existing:
            return _already_revealed(existing)
        raise

    if not await consume_contact_quota(db, subscription.id):
        await db.rollback()
        await db.refresh(subscription)
        raise _limit_reached(subscription.contacts_used, subscription.contacts_limit)

    await increment_counter(db, Property.contacts_count, property_id)
    await db.commit()
    await db.refresh(subscription)

    logger.info("Customer %s revealed owner contact for property %s", customer_id, property_id)
    return {
        "success": True,
        "contact": _contact_payload(reveal, owner),
        "contacts_remaining": contacts_remaining(subscription),
    }


async def get_reveal_status(db: AsyncSession, customer_id: str, property_id: str) -> dict:
    reveal = await _get_reveal(db, customer_id, property_id)
    if not reveal:
        return {"is_revealed": False, "contact": None}
    return {"is_revealed": True, "contact": _contact_payload(reveal, reveal.owner)}
