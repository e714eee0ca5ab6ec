"""Dashboard summary for owners and customers."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.enums import PropertyStatus, UserRole, VisitStatus
from solvestay.domain.models import ContactReveal, Favorite, Profile, Property, VisitRequest
from solvestay.domain.schemas import SubscriptionResponse
from solvestay.infra.database import get_db
from solvestay.services.quota import contacts_remaining, get_active_subscription

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


async def _owner_summary(db: AsyncSession, owner_id: str) -> dict:
    row = (
        await db.execute(
            select(
                func.count(Property.id),
                func.coalesce(func.sum(Property.views_count), 0),
                func.coalesce(func.sum(Property.contacts_count), 0),
                func.coalesce(func.sum(Property.favorites_count), 0),
            ).where(Property.owner_id == owner_id)
        )
    ).one()
    by_status = dict(
        (
            await db.execute(
                select(Property.status, func.count(Property.id))
                .where(Property.owner_id == owner_id)
                .group_by(Property.status)
            )
        ).all()
    )
    pending_visits = (
        await db.execute(
            select(func.count(VisitRequest.id)).where(
                VisitRequest.owner_id == owner_id,
                VisitRequest.status == VisitStatus.PENDING.value,
            )
        )
    ).scalar() or 0
    return {
        "total_properties": row[0],
        "approved_properties": by_status.get(PropertyStatus.APPROVED.value, 0),
        "pending_properties": by_status.get(PropertyStatus.PENDING.value, 0),
        "rejected_properties": by_status.get(PropertyStatus.REJECTED.value, 0),
        "total_views": int(row[1]),
        "total_contacts": int(row[2]),
        "total_favorites": int(row[3]),
        "pending_visits": pending_visits,
    }


async def _customer_summary(db: AsyncSession, customer_id: str) -> dict:
    favorites = (
        await db.execute(select(func.count(Favorite.id)).where(Favorite.user_id == customer_id))
    ).scalar() or 0
    reveals = (
        await db.execute(
            select(func.count(ContactReveal.id)).where(ContactReveal.customer_id == customer_id)
        )
    ).scalar() or 0
    visits = (
        await db.execute(
            select(func.count(VisitRequest.id)).where(VisitRequest.customer_id == customer_id)
        )
    ).scalar() or 0
    subscription = await get_active_subscription(db, customer_id)
    return {
        "favorites_count": favorites,
        "contacts_revealed": reveals,
        "visit_requests": visits,
        "subscription": SubscriptionResponse.model_validate(subscription) if subscription else None,
        "contacts_remaining": contacts_remaining(subscription) if subscription else 0,
    }


@router.get("/summary")
async def summary(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    if user.role == UserRole.OWNER.value:
        return {"role": user.role, **(await _owner_summary(db, user.id))}
    return {"role": user.role, **(await _customer_summary(db, user.id))}
